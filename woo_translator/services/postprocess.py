from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from ..models.attribute import AttributeNameAccumulator
from ..models.coverage import Row
from ..models.language import LanguageCode
from ..models.wpml import (
    ID_COLUMN,
    IDENTITY_COLUMNS,
    LOCAL_ATTRIBUTE_LABELS_COLUMN,
    SKU_COLUMN,
    WpmlImportColumns,
)
from .mapper import extract_attribute_labels

"""Merge translated rows back onto their source rows for WPML re-import.

For each decoded row the matching source row (by ID) is copied, the
translated cells are laid over it and the WPML markers are rewritten:

- import language    -> target language
- source language    -> the source row's import language
- translation group  -> the source row's group, else its SKU, else its ID
- local labels       -> JSON {attribute slug: translated label}

ID, Categories, Brands and Published are blanked so the importer creates
linked translations instead of overwriting the originals.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "PostProcessResult",
    "local_attribute_labels",
    "postprocess_rows",
]


@dataclass(frozen=True)
class PostProcessResult:
    rows: list[Row]
    unmatched_ids: list[str] = field(default_factory=list)


def local_attribute_labels(source_row: Row, accumulator: AttributeNameAccumulator) -> dict[str, str]:
    """slug -> translated label for the attribute names used by ``source_row``."""
    used = set(extract_attribute_labels(source_row).values())
    labels: dict[str, str] = {}
    for name in accumulator.names:
        if name.name in used and name.translated_name:
            labels[name.slug] = name.translated_name
    return labels


def _translation_group(source_row: Row) -> str:
    for column in (WpmlImportColumns.TRANSLATION_GROUP.value, SKU_COLUMN, ID_COLUMN):
        value = (source_row.get(column) or "").strip()
        if value:
            return value
    return ""


def postprocess_rows(
    source_rows: Sequence[Row],
    translated_rows: Sequence[Row],
    accumulator: AttributeNameAccumulator,
    language: LanguageCode,
) -> PostProcessResult:
    source_by_id: dict[str, Row] = {}
    for row in source_rows:
        source_id = row.get(ID_COLUMN) or ""
        # rows without an ID cannot be matched and are reported as unmatched
        if source_id.strip():
            source_by_id.setdefault(source_id, row)

    out: list[Row] = []
    unmatched: list[str] = []
    for translated in translated_rows:
        row_id = translated.get(ID_COLUMN, "")
        source = source_by_id.get(row_id)
        if source is None:
            logger.warning(f"postprocess: no source row with ID {row_id!r} ({language.value}), row skipped")
            unmatched.append(row_id)
            continue

        merged: Row = {**source, **translated}
        merged[LOCAL_ATTRIBUTE_LABELS_COLUMN] = json.dumps(
            local_attribute_labels(source, accumulator), ensure_ascii=False
        )
        merged[WpmlImportColumns.IMPORT_LANGUAGE_CODE.value] = language.value
        merged[WpmlImportColumns.SOURCE_LANGUAGE_CODE.value] = (
            source.get(WpmlImportColumns.IMPORT_LANGUAGE_CODE.value) or ""
        )
        merged[WpmlImportColumns.TRANSLATION_GROUP.value] = _translation_group(source)
        for column in IDENTITY_COLUMNS:
            if column in merged:
                merged[column] = ""
        out.append(merged)
    return PostProcessResult(rows=out, unmatched_ids=unmatched)
