from __future__ import annotations

from woo_translator.models.attribute import AttributeNameAccumulator
from woo_translator.models.language import LanguageCode
from woo_translator.services.mapper import map_attribute_columns
from woo_translator.services.reconciler import (
    ALL_LANGUAGES,
    compute_coverage,
    flatten_row,
    partition,
    plan_languages,
    select_for_language,
)

SRC = "Meta: _wpml_import_source_language_code"
IMP = "Meta: _wpml_import_language_code"
GRP = "Meta: _wpml_import_translation_group"

HEADERS = [
    "ID",
    "Name",
    "Description",
    "Attribute 1 name",
    "Attribute 1 value(s)",
    "Meta: rank_math_description",
    "Meta: other",
    SRC,
    IMP,
    GRP,
]


def _row(id_, name, src, imp, grp, color="", meta="", label="Color"):
    return {
        "ID": id_,
        "Name": name,
        "Description": f"{name} description",
        "Attribute 1 name": label,
        "Attribute 1 value(s)": color,
        "Meta: rank_math_description": meta,
        "Meta: other": "x",
        SRC: src,
        IMP: imp,
        GRP: grp,
    }


ROWS = [
    _row("1", "Shirt", "", "en", "g1", color="Red", meta="Best"),
    _row("2", "Cap", "", "en", "g2", color="Blue"),
    _row("3", "Sock", "", "en", ""),
    _row("11", "Hemd", "en", "de", "g1"),
    _row("12", "Chemise", "en", "fr", "g1"),
    _row("13", "Kapa", "en", "hr", "g2"),
    _row("14", "???", "en", "xx", "g2"),
    _row("99", "stray", "", "", ""),
]


def test_partition_splits_by_markers():
    parts = partition(ROWS)
    assert [r["ID"] for r in parts.source_rows] == ["1", "2", "3"]
    assert [r["ID"] for r in parts.existing_rows] == ["11", "12", "13", "14"]
    assert parts.ignored == 1


def test_coverage_sets_are_disjoint_and_complete():
    parts = partition(ROWS)
    coverage = compute_coverage(parts.source_rows, parts.existing_rows)
    assert len(coverage) == len(parts.source_rows)
    for item in coverage:
        assert item.already_translated_into.isdisjoint(item.missing_for)
        assert item.already_translated_into | item.missing_for == ALL_LANGUAGES
    assert coverage[0].already_translated_into == {LanguageCode.GERMAN, LanguageCode.FRENCH}
    # unsupported code "xx" is ignored
    assert coverage[1].already_translated_into == {LanguageCode.CROATIAN}


def test_row_without_group_is_missing_everywhere():
    parts = partition(ROWS)
    coverage = compute_coverage(parts.source_rows, parts.existing_rows)
    assert coverage[2].already_translated_into == frozenset()
    assert coverage[2].missing_for == ALL_LANGUAGES


def test_override_removes_language_from_already_translated():
    parts = partition(ROWS)
    coverage = compute_coverage(parts.source_rows, parts.existing_rows, [LanguageCode.GERMAN])
    assert LanguageCode.GERMAN not in coverage[0].already_translated_into
    assert coverage[0].is_missing(LanguageCode.GERMAN)


def test_full_coverage_selects_nothing():
    source = [_row("1", "Shirt", "", "en", "g1")]
    existing = [_row(str(10 + i), "t", "en", lang.value, "g1") for i, lang in enumerate(LanguageCode)]
    coverage = compute_coverage(source, existing)
    assert coverage[0].missing_for == frozenset()
    rows, _ = select_for_language(
        coverage, LanguageCode.GERMAN, [], ["Name"], [], map_attribute_columns(HEADERS), HEADERS
    )
    assert rows == []


def test_select_for_language_only_missing_rows():
    parts = partition(ROWS)
    coverage = compute_coverage(parts.source_rows, parts.existing_rows)
    rows, _ = select_for_language(
        coverage, LanguageCode.GERMAN, [], ["Name"], [], map_attribute_columns(HEADERS), HEADERS
    )
    assert [r["ID"] for r in rows] == ["2", "3"]


def test_select_for_language_override_takes_every_row():
    parts = partition(ROWS)
    coverage = compute_coverage(parts.source_rows, parts.existing_rows)
    rows, _ = select_for_language(
        coverage,
        LanguageCode.GERMAN,
        [LanguageCode.GERMAN],
        ["Name"],
        [],
        map_attribute_columns(HEADERS),
        HEADERS,
    )
    assert [r["ID"] for r in rows] == ["1", "2", "3"]


def test_flatten_row_keeps_only_translatable_columns():
    flat, acc = flatten_row(
        ROWS[0],
        HEADERS,
        ["Name", "Description", "Tags"],
        ["Meta: rank_math_description", IMP],
        map_attribute_columns(HEADERS),
        AttributeNameAccumulator(),
    )
    assert flat == {
        "ID": "1",
        "Name": "Shirt",
        "Description": "Shirt description",
        "Attribute 1": "Color: Red",
        "Meta: rank_math_description": "Best",
    }
    assert [n.name for n in acc.names] == ["Color"]
    assert acc.get("Color").slug == "color"


def test_flatten_row_empty_attribute_keeps_column():
    flat, _ = flatten_row(
        ROWS[2], HEADERS, ["Name"], [], map_attribute_columns(HEADERS), AttributeNameAccumulator()
    )
    assert flat["Attribute 1"] == ""


def test_plan_languages_merges_attribute_names():
    source = [
        _row("1", "Shirt", "", "en", "g1", color="Red", label="Color"),
        _row("2", "Cap", "", "en", "g2", color="L", label="Size"),
    ]
    existing = [_row("11", "Hemd", "en", "de", "g1")]
    coverage = compute_coverage(source, existing)
    rows_by_language, names = plan_languages(
        coverage,
        [LanguageCode.GERMAN, LanguageCode.FRENCH],
        [],
        ["Name"],
        [],
        map_attribute_columns(HEADERS),
        HEADERS,
    )
    assert [r["ID"] for r in rows_by_language[LanguageCode.GERMAN]] == ["2"]
    assert [r["ID"] for r in rows_by_language[LanguageCode.FRENCH]] == ["1", "2"]
    assert [n.name for n in names.names] == ["Size", "Color"]
