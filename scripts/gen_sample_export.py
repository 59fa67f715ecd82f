#!/usr/bin/env python3
"""Sample export generator.

Writes a synthetic WooCommerce product export (CSV) that carries the WPML
import marker columns, for trying out the translator and for timing runs:

- ``--products`` source products in the source language
- a share of them (``--translated``) already has a translation row for some
  of the ``--existing-languages``
- every product has ``--attributes`` attribute column groups, some left empty
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

import numpy as np
import pandas as pd

SOURCE_MARKER = "Meta: _wpml_import_source_language_code"
IMPORT_MARKER = "Meta: _wpml_import_language_code"
GROUP_MARKER = "Meta: _wpml_import_translation_group"

ATTRIBUTES = {
    "Color": ["Red", "Blue", "Green", "Black", "White"],
    "Size": ["S", "M", "L", "XL"],
    "Material": ["Cotton", "Wool", "Linen", "Polyester"],
    "Fit": ["Slim", "Regular", "Loose"],
}
NOUNS = ["shirt", "cap", "scarf", "jacket", "sock", "sweater", "dress"]
ADJECTIVES = ["soft", "warm", "light", "classic", "summer", "winter", "organic"]


def build_headers(attributes: int) -> list[str]:
    headers = [
        "ID", "Type", "SKU", "Name", "Published", "Short description", "Description",
        "Categories", "Tags", "Regular price", "Brands",
    ]
    for n in range(1, attributes + 1):
        headers += [
            f"Attribute {n} name",
            f"Attribute {n} value(s)",
            f"Attribute {n} visible",
            f"Attribute {n} global",
        ]
    headers += [
        "Meta: rank_math_description",
        "Meta: rank_math_focus_keyword",
        SOURCE_MARKER,
        IMPORT_MARKER,
        GROUP_MARKER,
    ]
    return headers


def generate_export(
    products: int,
    attributes: int,
    translated: float,
    existing_languages: list[str],
    source_language: str = "en",
    seed: int = 42,
) -> pd.DataFrame:
    """Build the export as a DataFrame of strings (source rows first, translations after)."""
    rng = np.random.default_rng(seed)
    names = list(ATTRIBUTES)
    rows: list[dict[str, str]] = []
    translations: list[dict[str, str]] = []
    next_id = 1

    for p in range(products):
        adjective = str(rng.choice(ADJECTIVES))
        noun = str(rng.choice(NOUNS))
        row = {
            "ID": str(next_id),
            "Type": "simple",
            "SKU": f"SKU-{p + 1:05d}",
            "Name": f"{adjective.title()} {noun}",
            "Published": "1",
            "Short description": f"A {adjective} {noun}." if rng.random() > 0.2 else "",
            "Description": f"<p>This {adjective} {noun} is made for everyday use.</p>",
            "Categories": "Clothing",
            "Tags": f"{adjective}, {noun}",
            "Regular price": f"{rng.uniform(5, 150):.2f}",
            "Brands": "Acme",
            "Meta: rank_math_description": f"Buy the {adjective} {noun} online.",
            "Meta: rank_math_focus_keyword": noun,
            SOURCE_MARKER: "",
            IMPORT_MARKER: source_language,
            GROUP_MARKER: f"product-{p + 1}",
        }
        for n in range(1, attributes + 1):
            label = names[(n - 1) % len(names)]
            empty = rng.random() < 0.25
            row[f"Attribute {n} name"] = label
            row[f"Attribute {n} value(s)"] = "" if empty else str(rng.choice(ATTRIBUTES[label]))
            row[f"Attribute {n} visible"] = "1"
            row[f"Attribute {n} global"] = "0"
        rows.append(row)
        next_id += 1

        if existing_languages and rng.random() < translated:
            for lang in existing_languages:
                copy = dict(row)
                copy["ID"] = str(next_id)
                copy["Name"] = f"[{lang}] {row['Name']}"
                copy[SOURCE_MARKER] = source_language
                copy[IMPORT_MARKER] = lang
                translations.append(copy)
                next_id += 1

    return pd.DataFrame(rows + translations, columns=build_headers(attributes))


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate a synthetic WooCommerce export with WPML markers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # 200 products, a third already translated into German
  %(prog)s data/sample.csv --products 200 --translated 0.33 --existing-languages de

  # wide export with many attribute groups
  %(prog)s data/wide.csv --products 50 --attributes 12
        """,
    )
    parser.add_argument("output", type=Path, help="Output CSV path")
    parser.add_argument("--products", type=int, default=100, help="Number of source products (default: 100)")
    parser.add_argument("--attributes", type=int, default=3, help="Attribute groups per product (default: 3)")
    parser.add_argument(
        "--translated",
        type=float,
        default=0.3,
        help="Share of products with existing translations (default: 0.3)",
    )
    parser.add_argument(
        "--existing-languages",
        default="de",
        help="Comma separated languages of the existing translations (default: de)",
    )
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    args = parser.parse_args()

    if args.products <= 0:
        print("Error: --products must be positive", file=sys.stderr)
        return 1
    if args.attributes < 0:
        print("Error: --attributes must not be negative", file=sys.stderr)
        return 1
    if not 0 <= args.translated <= 1:
        print("Error: --translated must be between 0 and 1", file=sys.stderr)
        return 1

    languages = [c.strip() for c in args.existing_languages.split(",") if c.strip()]
    df = generate_export(args.products, args.attributes, args.translated, languages, seed=args.seed)
    args.output.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(args.output, index=False, encoding="utf-8")

    print(f"Created export: {args.output}")
    print(f"  Rows: {len(df)} ({args.products} source, {len(df) - args.products} translations)")
    print(f"  Columns: {len(df.columns)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
