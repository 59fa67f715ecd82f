from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from ..models.coverage import Row

"""Product export reader.

The export is read with every cell as text (``dtype=str``) and without pandas'
NA conversion, so values like "NA", "null" or "" reach the pipeline exactly as
they appear in the file.
"""

__all__ = [
    "TableError",
    "TableFileNotFound",
    "EmptyInput",
    "MalformedTable",
    "ProductTable",
    "read_product_table",
]


class TableError(Exception):
    """Base class for export reading errors."""


class TableFileNotFound(TableError):
    pass


class EmptyInput(TableError):
    """The file has no content, no header or no data rows."""


class MalformedTable(TableError):
    """The delimited structure cannot be parsed."""


@dataclass(frozen=True)
class ProductTable:
    path: Path
    headers: list[str]
    rows: list[Row]


def read_product_table(path: Path, *, encoding: str = "utf-8") -> ProductTable:
    """Read a WooCommerce product export CSV.

    Raises:
        TableFileNotFound: path does not exist or is not a file
        EmptyInput: blank file or header without data rows
        MalformedTable: pandas cannot parse the file
    """
    if not path.exists() or not path.is_file():
        raise TableFileNotFound(f"file not found: {path}")

    try:
        text = path.read_text(encoding=encoding)
    except UnicodeDecodeError as e:
        raise MalformedTable(f"file is not valid {encoding}: {e}") from e
    if not text.strip():
        raise EmptyInput(f"file is empty: {path}")

    try:
        df = pd.read_csv(
            path,
            dtype=str,
            keep_default_na=False,
            encoding=encoding,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError as e:
        raise EmptyInput(f"no header found: {path}") from e
    except pd.errors.ParserError as e:
        raise MalformedTable(f"csv parsing error: {e}") from e

    headers = [str(c) for c in df.columns]
    if not headers:
        raise MalformedTable(f"no headers found: {path}")
    if df.empty:
        raise EmptyInput(f"no data rows found: {path}")

    df.columns = headers
    rows: list[Row] = df.to_dict(orient="records")
    return ProductTable(path=path, headers=headers, rows=rows)
