from __future__ import annotations

import json
from collections.abc import Sequence

from ..models.attribute import AttributeName
from ..models.language import LanguageCode

"""Prompt templates for product and attribute-name translation."""

__all__ = [
    "product_system_prompt",
    "product_prompt",
    "attribute_names_prompt",
]

_SYSTEM_PROMPT = """You are a strict data translation engine for WooCommerce products.
Target language: {language}

### FORMATTING RULES (VIOLATION = FAILURE)
The products are a tabular block: a header line `[N]{{field,...}}:` followed by
exactly N rows. Values are separated by commas and every value is wrapped in
double quotes.

1. ROW SEPARATION
   - Rows are separated by newlines only. Keep exactly N rows.
   - Never start a line with a comma. Never join two rows.
2. PLACEHOLDERS FOR EMPTY COLUMNS
   - Empty columns are sent as unique placeholders such as "NULL_Attribute 5".
   - Output every placeholder exactly as it appears. Do not translate, shorten
     or drop placeholders.
3. QUOTING AND ESCAPING
   - Wrap every value, placeholders included, in double quotes.
   - Inside a value escape a double quote as \\" and a backslash as \\\\.
   - Newlines, carriage returns and tabs inside a value are written as \\n, \\r, \\t.
   - Do not escape commas.
4. HTML
   - Keep HTML tags intact. Prefer single quotes for HTML attributes
     (<div class='red'>).
5. HEADER
   - Repeat the header line unchanged. Never translate field names.

### CONTENT RULES
- Keep brand names, product codes, IDs, URLs and units (ml, cm, kg) unchanged.
- ID: copy unchanged.
- Name, Short description, Description: translate naturally for an online shop.
- Tags: translate descriptive tags; keep brand and product names.
- Attribute columns hold "Label: Value". Translate both parts and keep the
  ": " separator.
- Meta columns (SEO descriptions, focus keywords): translate for the target
  market.

### EXAMPLE
Input:
```toon
[2]{{ID,Name,Tags,"Attribute 1","Attribute 2"}}:
  "101","Cotton shirt \\"Classic\\"","Soft, Summer","Color: Red","NULL_Attribute 2"
  "102","Wool cap","NULL_Tags","Size: Large","Material: Wool"
```

Output (German):
```toon
[2]{{ID,Name,Tags,"Attribute 1","Attribute 2"}}:
  "101","Baumwollhemd \\"Classic\\"","Weich, Sommer","Farbe: Rot","NULL_Attribute 2"
  "102","Wollmütze","NULL_Tags","Größe: Groß","Material: Wolle"
```

Return the translation in the same format, inside a single ```toon code block,
and nothing else."""

_ATTRIBUTE_NAMES_PROMPT = """You will be given a JSON array of WooCommerce product attributes.
Translate each "name" into {language} and put the result in "translatedName".
Keep "name" and "slug" unchanged.

Example:
{{"name": "Color", "slug": "color", "translatedName": null}}
becomes
{{"name": "Color", "slug": "color", "translatedName": "Farbe"}}

Target language: {language}

Attributes:
{payload}

Return only the translated JSON array."""


def product_system_prompt(language: LanguageCode) -> str:
    return _SYSTEM_PROMPT.format(language=language.display_name)


def product_prompt(encoded_batch: str) -> str:
    return f"```toon\n{encoded_batch}\n```\n"


def attribute_names_prompt(language: LanguageCode, names: Sequence[AttributeName]) -> str:
    payload = json.dumps([n.to_payload() for n in names], ensure_ascii=False, indent=2)
    return _ATTRIBUTE_NAMES_PROMPT.format(language=language.display_name, payload=payload)
