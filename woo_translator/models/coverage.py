from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .attribute import AttributeColumnMapping, MetaColumnMapping
from .language import LanguageCode

"""Coverage and parse summary models.

A Row is a plain ``dict[str, str]``; every row of a table shares the header
order recorded in ParseSummary.headers.
"""

__all__ = [
    "Row",
    "Partition",
    "TranslationCoverage",
    "ParseSummary",
]

Row = dict[str, str]


@dataclass(frozen=True)
class Partition:
    """Split of a table into source rows and existing-translation rows."""
    source_rows: list[Row]
    existing_rows: list[Row]
    ignored: int = 0  # rows that match neither marker rule


@dataclass(frozen=True)
class TranslationCoverage:
    """Per source row: languages already translated vs still missing.

    ``already_translated_into`` and ``missing_for`` are disjoint and together
    cover every LanguageCode.
    """
    row: Row
    already_translated_into: frozenset[LanguageCode]
    missing_for: frozenset[LanguageCode]

    def is_missing(self, language: LanguageCode) -> bool:
        return language in self.missing_for


@dataclass(frozen=True)
class ParseSummary:
    """Everything learned from reading and validating one export file."""
    source_path: Path
    headers: list[str]
    attribute_mappings: list[AttributeColumnMapping]
    meta_mappings: list[MetaColumnMapping]
    source_rows: list[Row]
    existing_rows: list[Row]
    coverage: list[TranslationCoverage] = field(default_factory=list)

    @property
    def total_rows(self) -> int:
        return len(self.source_rows) + len(self.existing_rows)

    def missing_count(self, language: LanguageCode) -> int:
        return sum(1 for c in self.coverage if c.is_missing(language))
