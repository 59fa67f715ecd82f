from __future__ import annotations

from enum import Enum

"""WPML import column names and the default translatable column sets."""

__all__ = [
    "WpmlImportColumns",
    "LOCAL_ATTRIBUTE_LABELS_COLUMN",
    "FIXED_COLUMNS",
    "DEFAULT_SEO_META_COLUMNS",
    "IDENTITY_COLUMNS",
    "ID_COLUMN",
    "SKU_COLUMN",
    "WPML_INTERNAL_COLUMNS",
]


class WpmlImportColumns(str, Enum):
    SOURCE_LANGUAGE_CODE = "Meta: _wpml_import_source_language_code"
    IMPORT_LANGUAGE_CODE = "Meta: _wpml_import_language_code"
    TRANSLATION_GROUP = "Meta: _wpml_import_translation_group"


# JSON object of attribute slug -> translated attribute label
LOCAL_ATTRIBUTE_LABELS_COLUMN = "Meta: _wpml_import_wc_local_attribute_labels"

ID_COLUMN = "ID"
SKU_COLUMN = "SKU"

# Always translated, independent of the user's meta selection
FIXED_COLUMNS: tuple[str, ...] = ("Name", "Short description", "Description", "Tags")

DEFAULT_SEO_META_COLUMNS: tuple[str, ...] = (
    "Meta: rank_math_description",
    "Meta: rank_math_focus_keyword",
    "Meta: _yoast_wpseo_focuskw",
    "Meta: _yoast_wpseo_metadesc",
)

# Blanked on output so the importer creates linked translations instead of
# overwriting the originals
IDENTITY_COLUMNS: tuple[str, ...] = ("ID", "Categories", "Brands", "Published")

WPML_INTERNAL_COLUMNS: frozenset[str] = frozenset(
    [c.value for c in WpmlImportColumns] + [LOCAL_ATTRIBUTE_LABELS_COLUMN]
)
