from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from ..models.attribute import AttributeColumnMapping, AttributeNameAccumulator
from ..models.coverage import Partition, Row, TranslationCoverage
from ..models.language import LanguageCode, parse_language
from ..models.wpml import ID_COLUMN, WPML_INTERNAL_COLUMNS, WpmlImportColumns
from .mapper import extract_attributes, extract_meta, map_meta_columns, row_values

"""Translation-group reconciliation.

Decides, per source row and language, whether a translation already exists in
the export (matched through the WPML translation group) or must be generated,
and builds the flattened rows that are sent for translation.

Flattened rows only ever contain ``ID``, the fixed columns, one compound
``Attribute N`` cell per attribute and the explicitly selected meta columns.
Nothing else from the catalog leaves the machine.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "ALL_LANGUAGES",
    "marker",
    "partition",
    "compute_coverage",
    "select_for_language",
    "flatten_row",
    "plan_languages",
]

ALL_LANGUAGES: frozenset[LanguageCode] = frozenset(LanguageCode)


def marker(row: Row, column: WpmlImportColumns) -> str:
    return (row.get(column.value) or "").strip()


def partition(rows: Iterable[Row]) -> Partition:
    """Split rows into source rows and existing-translation rows.

    source:   source-language marker empty, import-language marker set
    existing: both markers set
    Anything else is counted in ``ignored``.
    """
    source: list[Row] = []
    existing: list[Row] = []
    ignored = 0
    for row in rows:
        src = marker(row, WpmlImportColumns.SOURCE_LANGUAGE_CODE)
        imp = marker(row, WpmlImportColumns.IMPORT_LANGUAGE_CODE)
        if not imp:
            ignored += 1
        elif src:
            existing.append(row)
        else:
            source.append(row)
    if ignored:
        logger.debug(f"partition: ignored {ignored} row(s) without an import language marker")
    return Partition(source_rows=source, existing_rows=existing, ignored=ignored)


def _languages_by_group(existing_rows: Iterable[Row]) -> dict[str, set[LanguageCode]]:
    groups: dict[str, set[LanguageCode]] = {}
    for row in existing_rows:
        key = marker(row, WpmlImportColumns.TRANSLATION_GROUP)
        if not key:
            continue
        raw = marker(row, WpmlImportColumns.IMPORT_LANGUAGE_CODE)
        code = parse_language(raw)
        if code is None:
            logger.debug(f"coverage: ignoring unsupported language code {raw!r} in group {key!r}")
            continue
        groups.setdefault(key, set()).add(code)
    return groups


def compute_coverage(
    source_rows: Sequence[Row],
    existing_rows: Sequence[Row],
    override_languages: Iterable[LanguageCode] = (),
) -> list[TranslationCoverage]:
    """Coverage per source row, in source row order.

    A source row without a translation group cannot be correlated and is
    missing for every language. Overridden languages are always missing.
    """
    overridden = frozenset(override_languages)
    groups = _languages_by_group(existing_rows)
    coverage: list[TranslationCoverage] = []
    for row in source_rows:
        key = marker(row, WpmlImportColumns.TRANSLATION_GROUP)
        already = frozenset(groups.get(key, ())) - overridden if key else frozenset()
        coverage.append(
            TranslationCoverage(
                row=row,
                already_translated_into=already,
                missing_for=ALL_LANGUAGES - already,
            )
        )
    return coverage


def flatten_row(
    row: Row,
    headers: Sequence[str],
    fixed_columns: Sequence[str],
    chosen_meta_columns: Sequence[str],
    attribute_mappings: Sequence[AttributeColumnMapping],
    accumulator: AttributeNameAccumulator,
) -> tuple[Row, AttributeNameAccumulator]:
    """Reduce ``row`` to the translatable column subset."""
    values = row_values(row, headers)
    header_set = set(headers)

    flat: Row = {ID_COLUMN: row.get(ID_COLUMN, "") or ""}
    for column in fixed_columns:
        if column in header_set and column != ID_COLUMN:
            flat[column] = row.get(column, "") or ""

    attributes = extract_attributes(values, attribute_mappings)
    accumulator = accumulator.observe(a.key for a in attributes if a.key)
    for attribute in attributes:
        flat[f"Attribute {attribute.attribute_number}"] = attribute.compound()

    chosen = set(chosen_meta_columns) - WPML_INTERNAL_COLUMNS
    meta_mappings = [m for m in map_meta_columns(headers) if m.key in chosen]
    flat.update(extract_meta(values, meta_mappings))
    return flat, accumulator


def select_for_language(
    coverage: Sequence[TranslationCoverage],
    language: LanguageCode,
    override_languages: Iterable[LanguageCode],
    fixed_columns: Sequence[str],
    chosen_meta_columns: Sequence[str],
    attribute_mappings: Sequence[AttributeColumnMapping],
    headers: Sequence[str],
    accumulator: AttributeNameAccumulator | None = None,
) -> tuple[list[Row], AttributeNameAccumulator]:
    """Flattened rows to translate into ``language``.

    Every source row when ``language`` is overridden, otherwise only rows
    missing that language. Returns the rows and the updated accumulator.
    """
    acc = accumulator if accumulator is not None else AttributeNameAccumulator()
    if language in set(override_languages):
        selected = list(coverage)
    else:
        selected = [c for c in coverage if c.is_missing(language)]

    rows: list[Row] = []
    for item in selected:
        flat, acc = flatten_row(
            item.row, headers, fixed_columns, chosen_meta_columns, attribute_mappings, acc
        )
        rows.append(flat)
    return rows, acc


def plan_languages(
    coverage: Sequence[TranslationCoverage],
    languages: Sequence[LanguageCode],
    override_languages: Sequence[LanguageCode],
    fixed_columns: Sequence[str],
    chosen_meta_columns: Sequence[str],
    attribute_mappings: Sequence[AttributeColumnMapping],
    headers: Sequence[str],
) -> tuple[dict[LanguageCode, list[Row]], AttributeNameAccumulator]:
    """select_for_language for each target language, merging the accumulators."""
    rows_by_language: dict[LanguageCode, list[Row]] = {}
    merged = AttributeNameAccumulator()
    for language in languages:
        rows, acc = select_for_language(
            coverage,
            language,
            override_languages,
            fixed_columns,
            chosen_meta_columns,
            attribute_mappings,
            headers,
        )
        rows_by_language[language] = rows
        merged = merged.merge(acc)
        logger.debug(f"plan: {language.value} rows={len(rows)}")
    return rows_by_language, merged
