from __future__ import annotations

from dataclasses import dataclass, field

from .attribute import AttributeNameAccumulator
from .coverage import ParseSummary, Row
from .language import LanguageCode
from .translation_result import EstimateResult, TranslationResults

"""Typed payloads handed from one wizard step to the next.

Each step handler declares which of these it expects from its predecessor
(see services.wizard.WizardStep.expects). Every payload is immutable and
carries forward what later steps need, so a failing step never has to reach
back into the state of earlier steps.
"""

__all__ = [
    "SourceLoaded",
    "ColumnsSelected",
    "TranslationPlanned",
    "TranslationConfirmed",
    "TranslationCompleted",
    "ResultsReported",
    "StepPayload",
]


@dataclass(frozen=True)
class SourceLoaded:
    summary: ParseSummary


@dataclass(frozen=True)
class ColumnsSelected:
    summary: ParseSummary
    fixed_columns: tuple[str, ...]
    meta_columns: tuple[str, ...]


@dataclass(frozen=True)
class TranslationPlanned:
    selection: ColumnsSelected
    languages: tuple[LanguageCode, ...]
    override_languages: tuple[LanguageCode, ...]
    rows_by_language: dict[LanguageCode, list[Row]]
    attribute_names: AttributeNameAccumulator
    estimates: dict[LanguageCode, EstimateResult] = field(default_factory=dict)

    @property
    def total_price(self) -> float:
        return sum(e.price.total for e in self.estimates.values())

    @property
    def total_tokens(self) -> int:
        return sum(e.token_count for e in self.estimates.values())


@dataclass(frozen=True)
class TranslationConfirmed:
    plan: TranslationPlanned


@dataclass(frozen=True)
class TranslationCompleted:
    plan: TranslationPlanned
    results: TranslationResults


@dataclass(frozen=True)
class ResultsReported:
    results: TranslationResults
    summary_line: str


StepPayload = (
    SourceLoaded
    | ColumnsSelected
    | TranslationPlanned
    | TranslationConfirmed
    | TranslationCompleted
    | ResultsReported
)
