from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

from ..models.language import LanguageCode

"""Progress display with tqdm (TTY only).

One bar counts translation batches across all languages. In non-TTY
environments (CI, redirected output) nothing is drawn, so log lines stay
clean.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
    "LanguageProgressIndicator",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ProgressTracker:
    """Batch progress bar."""

    def __init__(self, total_batches: int, *, description: str = "Translating") -> None:
        self.total_batches = total_batches
        self.description = description
        self.current_batch = 0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_batches,
                desc=description,
                unit="batch",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def start_batch(self, language: LanguageCode, batch_index: int) -> None:
        self.current_batch += 1
        if self.enabled and self.pbar is not None:
            self.pbar.set_description(f"{self.description} ({language.value} #{batch_index + 1})")

    def finish_batch(self, success: bool = True) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.update(1)
            self.pbar.set_description(self.description)

    def set_postfix(self, **kwargs: Any) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.set_postfix(**kwargs)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


class LanguageProgressIndicator:
    """Per-language status line printed around each language's jobs (TTY only)."""

    def __init__(self, total_languages: int) -> None:
        self.total_languages = total_languages
        self.current_language = 0
        self.enabled = is_tty_enabled()

    def start_language(self, language: LanguageCode, rows: int) -> None:
        self.current_language += 1
        if self.enabled:
            print(
                f"  Language {self.current_language}/{self.total_languages}: "
                f"{language.display_name} ({rows} rows)",
                flush=True,
            )

    def finish_language(self, success: bool = True, rows_written: int = 0) -> None:
        if self.enabled:
            status = "ok" if success else "failed"
            print(f"  -> {rows_written} rows {status}", flush=True)
