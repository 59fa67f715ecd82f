from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .coverage import Row
from .language import LanguageCode

"""Estimate and translation result models.

EstimateResult is produced per language by the estimate step and carries the
encoded batches forward, so the translate step sends exactly what was priced.
"""

__all__ = [
    "EstimatedPrice",
    "EstimateResult",
    "LanguageTranslationResult",
    "TranslationResults",
]


@dataclass(frozen=True)
class EstimatedPrice:
    """USD prices; per-word figures are in cents (price * 100 / words)."""
    total: float = 0.0
    input: float = 0.0
    output: float = 0.0
    per_word_total: float = 0.0
    per_word_input: float = 0.0
    per_word_output: float = 0.0


@dataclass(frozen=True)
class EstimateResult:
    language: LanguageCode
    row_count: int
    word_count: int
    token_count: int
    price: EstimatedPrice
    system_prompt: str
    batches: tuple[str, ...] = ()  # encoded batch payloads, one per request

    @property
    def is_empty(self) -> bool:
        return self.row_count == 0


@dataclass(frozen=True)
class LanguageTranslationResult:
    language: LanguageCode
    output_path: Path | None  # None when nothing needed translating
    rows: list[Row]
    input_tokens: int = 0
    output_tokens: int = 0
    reasoning_tokens: int = 0
    cost: float = 0.0  # USD


@dataclass(frozen=True)
class TranslationResults:
    output_dir: Path
    languages: list[LanguageTranslationResult] = field(default_factory=list)

    @property
    def total_rows(self) -> int:
        return sum(len(r.rows) for r in self.languages)

    @property
    def input_tokens(self) -> int:
        return sum(r.input_tokens for r in self.languages)

    @property
    def output_tokens(self) -> int:
        return sum(r.output_tokens for r in self.languages)

    @property
    def reasoning_tokens(self) -> int:
        return sum(r.reasoning_tokens for r in self.languages)

    @property
    def total_cost(self) -> float:
        return sum(r.cost for r in self.languages)

    @property
    def output_files(self) -> list[Path]:
        return [r.output_path for r in self.languages if r.output_path is not None]
