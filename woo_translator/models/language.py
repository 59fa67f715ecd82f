from __future__ import annotations

from enum import Enum

"""Supported target languages.

The set is closed: the importer plugin only understands these language codes,
and coverage is always computed against the full set.
"""

__all__ = [
    "LanguageCode",
    "LANGUAGE_NAMES",
    "parse_language",
    "parse_languages",
]


class LanguageCode(str, Enum):
    """Language codes used in the WPML import marker columns."""
    ENGLISH = "en"
    SLOVENIAN = "sl"
    CROATIAN = "hr"
    SERBIAN = "sr"
    BOSNIAN = "bs"
    GERMAN = "de"
    FRENCH = "fr"
    POLISH = "pl"
    SPANISH = "es"
    CZECH = "cs"
    ITALIAN = "it"

    @property
    def display_name(self) -> str:
        return LANGUAGE_NAMES[self]


LANGUAGE_NAMES: dict[LanguageCode, str] = {
    LanguageCode.ENGLISH: "English",
    LanguageCode.SLOVENIAN: "Slovenian",
    LanguageCode.CROATIAN: "Croatian",
    LanguageCode.SERBIAN: "Serbian",
    LanguageCode.BOSNIAN: "Bosnian",
    LanguageCode.GERMAN: "German",
    LanguageCode.FRENCH: "French",
    LanguageCode.POLISH: "Polish",
    LanguageCode.SPANISH: "Spanish",
    LanguageCode.CZECH: "Czech",
    LanguageCode.ITALIAN: "Italian",
}


def parse_language(value: str) -> LanguageCode | None:
    """Return the LanguageCode for ``value`` or None when it is not supported."""
    try:
        return LanguageCode(value.strip().lower())
    except ValueError:
        return None


def parse_languages(values: str | list[str]) -> list[LanguageCode]:
    """Parse a comma separated list (or list of strings) into LanguageCodes.

    Order is preserved and duplicates are dropped.

    Raises:
        ValueError: If any entry is not a supported language code
    """
    if isinstance(values, str):
        values = values.split(",")
    result: list[LanguageCode] = []
    for raw in values:
        if not raw.strip():
            continue
        code = parse_language(raw)
        if code is None:
            raise ValueError(f"unsupported language code: {raw.strip()}")
        if code not in result:
            result.append(code)
    return result
