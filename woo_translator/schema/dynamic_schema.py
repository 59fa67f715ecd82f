from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from jsonschema import Draft202012Validator, FormatChecker

"""Row schema discovered from the export header.

WooCommerce exports have no fixed column set: plugins add columns, attributes
come in numbered groups and weight/dimension headers carry a unit suffix. The
schema is therefore built per file by classifying each header, in priority
order:

1. exact match against the known WooCommerce columns (``KNOWN_COLUMNS``)
2. weight/dimension prefix (``Weight (g)``, ``Length (in)`` ...) -> numeric
3. attribute group pattern (``Attribute 3 visible``) -> boolean / text
4. metadata prefix (``Meta:`` / ``Blocksy``) -> text
5. anything else -> optional text (never rejected)

Every ColumnRule carries a JSON Schema fragment for one cell. RowSchema holds
the per-header rules plus the assembled JSON Schema document (an object whose
properties are the headers, extra keys allowed) and validates rows with
jsonschema.
"""

__all__ = [
    "ColumnKind",
    "RuleSource",
    "ColumnRule",
    "ColumnViolation",
    "ValidationResult",
    "RowSchema",
    "InvalidSchema",
    "SchemaValidationFailed",
    "KNOWN_COLUMNS",
    "classify_header",
    "build_row_schema",
    "validate_first_row",
]


class InvalidSchema(Exception):
    """Raised when a schema cannot be built (empty header list)."""


class SchemaValidationFailed(Exception):
    """Aggregate error for all violations found in the sampled row."""

    def __init__(self, column_errors: list[ColumnViolation]) -> None:
        self.column_errors = column_errors
        details = "; ".join(f"{v.column}: {v.message}" for v in column_errors)
        super().__init__(f"schema validation failed ({len(column_errors)} column(s)): {details}")


class ColumnKind(Enum):
    IDENTIFIER = "identifier"
    ENUM = "enum"
    BOOLEAN = "boolean"
    NUMERIC = "numeric"
    TEXT = "text"
    URL = "url"


class RuleSource(Enum):
    EXACT = "exact"
    DIMENSION = "dimension"
    ATTRIBUTE = "attribute"
    META = "meta"
    FALLBACK = "fallback"


PRODUCT_TYPES = ("simple", "variable", "grouped", "external", "variation")
# Exports list secondary flags alongside the type, e.g. "simple, virtual"
PRODUCT_TYPE_FLAGS = ("downloadable", "virtual")

# Case-insensitive by character class; no inline flags in ECMA 262 patterns
_BOOLEAN_PATTERN = r"^(?:[01]|[Yy][Ee][Ss]|[Nn][Oo]|[Tt][Rr][Uu][Ee]|[Ff][Aa][Ll][Ss][Ee])?$"
# Same leniency as JavaScript parseFloat: a leading number is enough
_NUMBER_PATTERN = r"^(?:\s*[+-]?(?:\d|\.\d|Infinity)|$)"
_HTTP_URL_PATTERN = r"^[Hh][Tt][Tt][Pp][Ss]?://[^/\s?#]"
_PRODUCT_TYPE_PATTERN = r"^\s*(?:{types})\s*(?:,\s*(?:{types}|{flags})\s*)*$".format(
    types="|".join(PRODUCT_TYPES), flags="|".join(PRODUCT_TYPE_FLAGS)
)

_META_PREFIXES = ("Meta:", "Blocksy")

TEXT_SCHEMA: dict[str, Any] = {"type": "string"}
BOOLEAN_SCHEMA: dict[str, Any] = {"type": "string", "pattern": _BOOLEAN_PATTERN}
NUMERIC_SCHEMA: dict[str, Any] = {"type": "string", "pattern": _NUMBER_PATTERN}

_FORMAT_CHECKER = FormatChecker()


@dataclass(frozen=True)
class ColumnRule:
    kind: ColumnKind
    source: RuleSource = RuleSource.EXACT
    schema: Mapping[str, Any] = field(default_factory=lambda: TEXT_SCHEMA, hash=False)
    message: str = ""  # shown instead of the jsonschema message

    def check(self, value: str) -> str | None:
        """Return a violation message for ``value`` or None when it is accepted."""
        validator = Draft202012Validator(self.schema, format_checker=_FORMAT_CHECKER)
        for error in validator.iter_errors(value):
            return self.message or error.message
        return None


TEXT = ColumnRule(ColumnKind.TEXT)
BOOLEAN = ColumnRule(ColumnKind.BOOLEAN, schema=BOOLEAN_SCHEMA, message="must be 1, 0, yes, no, true or false")
NUMERIC = ColumnRule(ColumnKind.NUMERIC, schema=NUMERIC_SCHEMA, message="must be a valid number")


def _enum(*choices: str) -> ColumnRule:
    return ColumnRule(
        ColumnKind.ENUM,
        schema={"enum": list(choices)},
        message="expected one of: " + ", ".join(c or "''" for c in choices),
    )


KNOWN_COLUMNS: dict[str, ColumnRule] = {
    # Identity
    "ID": ColumnRule(
        ColumnKind.IDENTIFIER, schema={"type": "string", "pattern": r"\S"}, message="must not be empty"
    ),
    "Type": ColumnRule(
        ColumnKind.ENUM,
        schema={"type": "string", "pattern": _PRODUCT_TYPE_PATTERN},
        message="expected one of: " + ", ".join(PRODUCT_TYPES) + " (optionally with downloadable, virtual)",
    ),
    "SKU": TEXT,
    "Name": TEXT,
    "Published": BOOLEAN,
    "Is featured?": BOOLEAN,
    "Visibility in catalogue": _enum("visible", "catalog", "search", "hidden"),
    # Content
    "Short description": TEXT,
    "Description": TEXT,
    # Pricing & dates
    "Date sale price starts": TEXT,
    "Date sale price ends": TEXT,
    "Tax status": _enum("taxable", "shipping", "none", ""),
    "Tax class": TEXT,
    "Sale price": NUMERIC,
    "Regular price": NUMERIC,
    # Inventory
    "In stock?": BOOLEAN,
    "Stock": NUMERIC,
    "Low stock amount": NUMERIC,
    "Backorders allowed?": ColumnRule(
        ColumnKind.ENUM,
        schema={"anyOf": [BOOLEAN_SCHEMA, {"const": "notify"}]},
        message="must be boolean-like or notify",
    ),
    "Sold individually?": BOOLEAN,
    # Dimensions (other units are caught by the prefix rule)
    "Weight (g)": NUMERIC,
    "Weight (kg)": NUMERIC,
    "Weight (lbs)": NUMERIC,
    "Length (cm)": NUMERIC,
    "Width (cm)": NUMERIC,
    "Height (cm)": NUMERIC,
    # Reviews & notes
    "Allow customer reviews?": BOOLEAN,
    "Purchase note": TEXT,
    # Taxonomy & media
    "Categories": TEXT,
    "Tags": TEXT,
    "Shipping class": TEXT,
    "Images": TEXT,
    "Download limit": NUMERIC,
    "Download expiry days": NUMERIC,
    # Relations
    "Parent": TEXT,
    "Grouped products": TEXT,
    "Upsells": TEXT,
    "Cross-sells": TEXT,
    "External URL": ColumnRule(
        ColumnKind.URL,
        schema={
            "anyOf": [
                {"const": ""},
                {"type": "string", "format": "uri", "pattern": _HTTP_URL_PATTERN},
            ]
        },
        message="must be an absolute http(s) URL",
    ),
    "Button text": TEXT,
    "Position": NUMERIC,
}

_DIMENSION = re.compile(r"^(Weight|Length|Width|Height)", re.IGNORECASE)
_ATTRIBUTE = re.compile(r"^Attribute \d+ (name|value\(s\)|visible|global|default)$", re.IGNORECASE)


def classify_header(header: str) -> ColumnRule:
    """Return the rule for one header (first matching rule wins)."""
    rule = KNOWN_COLUMNS.get(header)
    if rule is not None:
        return rule
    if _DIMENSION.match(header):
        return replace(NUMERIC, source=RuleSource.DIMENSION)
    m = _ATTRIBUTE.match(header)
    if m:
        base = BOOLEAN if m.group(1).lower() in ("visible", "global") else TEXT
        return replace(base, source=RuleSource.ATTRIBUTE)
    if header.startswith(_META_PREFIXES):
        return replace(TEXT, source=RuleSource.META)
    return replace(TEXT, source=RuleSource.FALLBACK)


@dataclass(frozen=True)
class ColumnViolation:
    column: str
    value: str
    message: str


@dataclass(frozen=True)
class ValidationResult:
    violations: list[ColumnViolation] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.violations


@dataclass(frozen=True)
class RowSchema:
    columns: dict[str, ColumnRule]
    document: dict[str, Any]

    @property
    def headers(self) -> list[str]:
        return list(self.columns)

    def rule_for(self, header: str) -> ColumnRule:
        # Columns outside the header are passed through as text
        return self.columns.get(header, TEXT)

    def validate(self, row: Mapping[str, str | None]) -> ValidationResult:
        """Check one row. Missing or None cells are accepted (every column is optional).

        At most one violation is reported per column, in header order.
        """
        cells = {k: str(v) for k, v in row.items() if v is not None}
        validator = Draft202012Validator(self.document, format_checker=_FORMAT_CHECKER)
        found: dict[str, ColumnViolation] = {}
        for error in validator.iter_errors(cells):
            if not error.path:
                continue
            column = str(error.path[0])
            if column in found:
                continue
            message = self.rule_for(column).message or error.message
            found[column] = ColumnViolation(column=column, value=cells.get(column, ""), message=message)
        order = {h: i for i, h in enumerate(self.columns)}
        violations = sorted(found.values(), key=lambda v: order.get(v.column, len(order)))
        return ValidationResult(violations=violations)


def build_row_schema(headers: Sequence[str]) -> RowSchema:
    """Build a RowSchema for ``headers``.

    Raises:
        InvalidSchema: If the header list is empty
    """
    if not headers:
        raise InvalidSchema("cannot build a schema from an empty header list")
    columns = {h: classify_header(h) for h in headers}
    document = {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "type": "object",
        "properties": {h: dict(rule.schema) for h, rule in columns.items()},
        "additionalProperties": True,
    }
    return RowSchema(columns=columns, document=document)


def validate_first_row(schema: RowSchema, rows: Sequence[Mapping[str, str | None]]) -> ValidationResult:
    """Validate only the first row of ``rows``.

    Raises:
        SchemaValidationFailed: With every violation found in the sampled row
    """
    if not rows:
        return ValidationResult()
    result = schema.validate(rows[0])
    if not result.success:
        raise SchemaValidationFailed(result.violations)
    return result
