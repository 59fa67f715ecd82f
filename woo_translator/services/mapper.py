from __future__ import annotations

import re
from collections.abc import Mapping, Sequence

from ..models.attribute import AttributeColumnMapping, MetaColumnMapping, TranslatableAttribute

"""Positional column mapping for attribute and meta columns.

Mappings are computed once per header and then applied to each row's value
list. Extraction never drops entries: an empty attribute value is returned as
"" so every batch keeps the same column set.
"""

__all__ = [
    "ATTR_VALUE_REGEX",
    "ATTR_NAME_REGEX",
    "META_REGEX",
    "map_attribute_columns",
    "extract_attributes",
    "map_meta_columns",
    "extract_meta",
    "extract_attribute_labels",
    "row_values",
]

ATTR_VALUE_REGEX = re.compile(r"^Attribute (\d+) value\(s\)$")
ATTR_NAME_REGEX = re.compile(r"^Attribute (\d+) name$")
META_REGEX = re.compile(r"^Meta: (.+)$")


def row_values(row: Mapping[str, str], headers: Sequence[str]) -> list[str]:
    """Row values in header order ("" for cells the row does not carry)."""
    return [row.get(h, "") or "" for h in headers]


def map_attribute_columns(headers: Sequence[str]) -> list[AttributeColumnMapping]:
    """One mapping per ``Attribute N value(s)`` header, in header order.

    The first occurrence of an attribute number wins if a header repeats.
    """
    mappings: list[AttributeColumnMapping] = []
    seen: set[str] = set()
    index_of = {h: i for i, h in reversed(list(enumerate(headers)))}
    for value_index, header in enumerate(headers):
        m = ATTR_VALUE_REGEX.match(header)
        if not m or m.group(1) in seen:
            continue
        number = m.group(1)
        seen.add(number)
        mappings.append(
            AttributeColumnMapping(
                attribute_number=number,
                value_index=value_index,
                name_index=index_of.get(f"Attribute {number} name", -1),
            )
        )
    return mappings


def extract_attributes(
    values: Sequence[str], mappings: Sequence[AttributeColumnMapping]
) -> list[TranslatableAttribute]:
    extracted: list[TranslatableAttribute] = []
    for mapping in mappings:
        value = _cell(values, mapping.value_index)
        if mapping.name_index > -1:
            key = _cell(values, mapping.name_index)
        else:
            key = mapping.label_column
        extracted.append(
            TranslatableAttribute(attribute_number=mapping.attribute_number, key=key, value=value)
        )
    return extracted


def map_meta_columns(headers: Sequence[str]) -> list[MetaColumnMapping]:
    return [
        MetaColumnMapping(key=header, value_index=i)
        for i, header in enumerate(headers)
        if META_REGEX.match(header)
    ]


def extract_meta(values: Sequence[str], mappings: Sequence[MetaColumnMapping]) -> dict[str, str]:
    return {m.key: _cell(values, m.value_index) for m in mappings}


def extract_attribute_labels(row: Mapping[str, str]) -> dict[str, str]:
    """``Attribute N name`` header -> label, for every non-empty name cell."""
    return {k: v for k, v in row.items() if v and ATTR_NAME_REGEX.match(k)}


def _cell(values: Sequence[str], index: int) -> str:
    if 0 <= index < len(values):
        return values[index] or ""
    return ""
