from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

import pandas as pd

from ..models.coverage import Row
from ..models.language import LanguageCode

"""Translated export writer (one CSV per language)."""

__all__ = [
    "OUTPUT_TIMESTAMP_FMT",
    "build_output_path",
    "output_columns",
    "write_translated_table",
]

OUTPUT_TIMESTAMP_FMT = "%Y-%m-%dT%H-%M-%S"


def build_output_path(
    source_path: Path, language: LanguageCode, output_dir: Path, now: datetime | None = None
) -> Path:
    """``{output_dir}/{source stem}-{language}-{timestamp}.csv``"""
    stamp = (now or datetime.now()).strftime(OUTPUT_TIMESTAMP_FMT)
    return output_dir / f"{source_path.stem}-{language.value}-{stamp}.csv"


def output_columns(headers: Sequence[str], rows: Sequence[Row]) -> list[str]:
    """Source header order first, then any column introduced by post-processing."""
    columns = list(headers)
    seen = set(columns)
    for row in rows:
        for key in row:
            if key not in seen:
                seen.add(key)
                columns.append(key)
    return columns


def write_translated_table(rows: Sequence[Row], headers: Sequence[str], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    columns = output_columns(headers, rows)
    df = pd.DataFrame(list(rows), columns=columns).fillna("")
    df.to_csv(path, index=False, encoding="utf-8")
    return path
