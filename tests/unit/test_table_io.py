from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pandas as pd
import pytest

from woo_translator.models.language import LanguageCode
from woo_translator.table.reader import (
    EmptyInput,
    MalformedTable,
    TableFileNotFound,
    read_product_table,
)
from woo_translator.table.writer import build_output_path, output_columns, write_translated_table


def test_read_keeps_every_cell_as_text(temp_workdir: Path):
    path = temp_workdir / "data" / "p.csv"
    path.write_text('ID,Name,Stock,Note\n007,"Shirt, blue",NA,\n', encoding="utf-8")
    table = read_product_table(path)
    assert table.headers == ["ID", "Name", "Stock", "Note"]
    assert table.rows == [{"ID": "007", "Name": "Shirt, blue", "Stock": "NA", "Note": ""}]


def test_read_missing_file(temp_workdir: Path):
    with pytest.raises(TableFileNotFound):
        read_product_table(temp_workdir / "nope.csv")


def test_read_blank_file(temp_workdir: Path):
    path = temp_workdir / "blank.csv"
    path.write_text("\n  \n", encoding="utf-8")
    with pytest.raises(EmptyInput):
        read_product_table(path)


def test_read_header_only(temp_workdir: Path):
    path = temp_workdir / "header.csv"
    path.write_text("ID,Name\n", encoding="utf-8")
    with pytest.raises(EmptyInput, match="no data rows"):
        read_product_table(path)


def test_read_malformed(temp_workdir: Path):
    path = temp_workdir / "bad.csv"
    path.write_text('ID,Name\n1,"unterminated\n', encoding="utf-8")
    with pytest.raises(MalformedTable):
        read_product_table(path)


def test_read_not_utf8(temp_workdir: Path):
    path = temp_workdir / "latin.csv"
    path.write_bytes("ID,Name\n1,Gr\xf6\xdfe\n".encode("latin-1"))
    with pytest.raises(MalformedTable, match="not valid utf-8"):
        read_product_table(path)


def test_build_output_path():
    path = build_output_path(
        Path("/data/products.csv"), LanguageCode.GERMAN, Path("out"), datetime(2024, 5, 1, 13, 4, 5)
    )
    assert path == Path("out/products-de-2024-05-01T13-04-05.csv")


def test_output_columns_append_new_keys():
    rows = [{"ID": "1", "Extra": "x"}, {"Name": "n", "Later": "y"}]
    assert output_columns(["ID", "Name"], rows) == ["ID", "Name", "Extra", "Later"]


def test_write_translated_table(temp_workdir: Path):
    path = temp_workdir / "output" / "nested" / "p-de.csv"
    rows = [{"ID": "", "Name": "Hemd", "Meta: x": '{"a": "b"}'}, {"Name": "Kappe"}]
    write_translated_table(rows, ["ID", "Name"], path)
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    assert list(df.columns) == ["ID", "Name", "Meta: x"]
    assert df.to_dict(orient="records") == [
        {"ID": "", "Name": "Hemd", "Meta: x": '{"a": "b"}'},
        {"ID": "", "Name": "Kappe", "Meta: x": ""},
    ]
