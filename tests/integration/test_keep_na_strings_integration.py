from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pandas as pd

from woo_translator.cli import main as cli_main
from woo_translator.logging.init import reset_logging

"""Cells such as "NA", "null" or "None" are product data, not missing values."""

SERVICE = "woo_translator.services.orchestrator.GeminiGenerationService"


def test_na_like_strings_survive_round_trip(
    temp_workdir: Path, write_config, export_writer, export_rows, fake_service, capsys
):
    reset_logging()
    export_rows[1][8] = "NA"  # Tags (translated column)
    export_rows[1][16] = "null"  # Meta: custom_note (untouched column)
    export_rows[1][3] = "None"  # Name
    path = export_writer(temp_workdir / "data" / "na.csv", export_rows)

    with patch(SERVICE, return_value=fake_service):
        code = cli_main(["--csv", str(path), "--languages", "hr", "--yes"])
    assert code == 0

    (out_file,) = (temp_workdir / "output").glob("na-hr-*.csv")
    rows = pd.read_csv(out_file, dtype=str, keep_default_na=False).to_dict(orient="records")
    cap = rows[1]
    assert cap["Tags"] == "NA"
    assert cap["Meta: custom_note"] == "null"
    assert cap["Name"] == "None"
    assert cap["Short description"] == ""
