"""Domain models for the WooCommerce -> WPML translation tool.

Rows are plain ``dict[str, str]``; everything else is a frozen dataclass or an
enum so that data handed between pipeline stages is never mutated in place.
"""

from .attribute import (
    AttributeColumnMapping,
    AttributeName,
    AttributeNameAccumulator,
    MetaColumnMapping,
    TranslatableAttribute,
)
from .coverage import ParseSummary, Partition, Row, TranslationCoverage
from .language import LANGUAGE_NAMES, LanguageCode
from .step_state import StepStatus, WizardStepState

__all__ = [
    # Column mappings
    "AttributeColumnMapping",
    "MetaColumnMapping",
    "TranslatableAttribute",
    "AttributeName",
    "AttributeNameAccumulator",
    # Coverage
    "Row",
    "Partition",
    "TranslationCoverage",
    "ParseSummary",
    # Languages
    "LanguageCode",
    "LANGUAGE_NAMES",
    # Wizard
    "StepStatus",
    "WizardStepState",
]
