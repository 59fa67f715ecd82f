# Shared pytest fixtures
from __future__ import annotations

import json
import tempfile
from pathlib import Path

import pandas as pd
import pytest

from woo_translator.services.bridge import extract_code
from woo_translator.services.generation import GenerationRequest, GenerationResponse, TokenUsage

SOURCE_MARKER = "Meta: _wpml_import_source_language_code"
IMPORT_MARKER = "Meta: _wpml_import_language_code"
GROUP_MARKER = "Meta: _wpml_import_translation_group"

EXPORT_HEADERS = [
    "ID",
    "Type",
    "SKU",
    "Name",
    "Published",
    "Short description",
    "Description",
    "Categories",
    "Tags",
    "Regular price",
    "Brands",
    "Attribute 1 name",
    "Attribute 1 value(s)",
    "Attribute 1 visible",
    "Attribute 1 global",
    "Meta: rank_math_description",
    "Meta: custom_note",
    SOURCE_MARKER,
    IMPORT_MARKER,
    GROUP_MARKER,
]

EXPORT_ROWS = [
    # source: shirt, already translated into German (row 201)
    ["101", "simple", "SH-1", "Shirt", "1", "Cotton shirt", "A soft cotton shirt", "Clothing", "shirt",
     "19.99", "Acme", "Color", "Red", "1", "0", "Best shirt", "internal", "", "en", "grp-1"],
    # source: cap, no translations
    ["102", "simple", "CAP-1", "Cap", "1", "", 'Warm "winter" cap', "Clothing", "",
     "9.5", "Acme", "Color", "Blue", "1", "0", "", "", "", "en", "grp-2"],
    # existing German translation of 101
    ["201", "simple", "SH-1", "Hemd", "1", "Baumwollhemd", "Ein weiches Hemd", "Kleidung", "hemd",
     "19.99", "Acme", "Farbe", "Rot", "1", "0", "", "", "en", "de", "grp-1"],
]


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("GOOGLE_GENERATIVE_AI_API_KEY", raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """model_id: gemini-2.5-pro
attribute_model_id: gemini-2.5-flash
api_key: test-key
batch_size: 5
output_dir: ./output
max_retries: 2
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "translate.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


def write_export(path: Path, rows: list[list[str]] | None = None, headers: list[str] | None = None) -> Path:
    df = pd.DataFrame(rows if rows is not None else EXPORT_ROWS, columns=headers or EXPORT_HEADERS)
    df.to_csv(path, index=False, encoding="utf-8")
    return path


@pytest.fixture()
def sample_export(temp_workdir: Path) -> Path:
    return write_export(temp_workdir / "data" / "products.csv")


class FakeGenerationService:
    """In-memory TextGenerationService.

    Product batches are echoed back unchanged (placeholders included) unless a
    scripted reply is queued in ``replies``; attribute names come back as
    ``"<lang>:<name>"``.
    """

    def __init__(self, replies: list[str | Exception] | None = None, language_tag: str = "xx") -> None:
        self.replies = list(replies or [])
        self.language_tag = language_tag
        self.requests: list[GenerationRequest] = []
        self.counted: list[tuple[str, str]] = []

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        self.requests.append(request)
        usage = TokenUsage(input_tokens=100, output_tokens=50)
        if '"translatedName"' in request.prompt:
            start, end = request.prompt.index("["), request.prompt.rindex("]") + 1
            names = json.loads(request.prompt[start:end])
            for item in names:
                item["translatedName"] = f"{self.language_tag}:{item['name']}"
            return GenerationResponse(text=json.dumps(names), usage=usage)
        if self.replies:
            reply = self.replies.pop(0)
            if isinstance(reply, Exception):
                raise reply
            return GenerationResponse(text=reply, usage=usage)
        return GenerationResponse(text="```toon\n" + extract_code(request.prompt) + "\n```", usage=usage)

    async def count_tokens(self, model_id: str, content: str) -> int:
        self.counted.append((model_id, content))
        return len(content.split())

    @property
    def product_requests(self) -> list[GenerationRequest]:
        return [r for r in self.requests if r.system_instructions]


@pytest.fixture()
def fake_service() -> FakeGenerationService:
    return FakeGenerationService()


@pytest.fixture()
def make_service():
    """Factory for FakeGenerationService with scripted replies."""
    return FakeGenerationService


@pytest.fixture()
def export_writer():
    """write_export(path, rows=None, headers=None) for tests that need a custom export."""
    return write_export


@pytest.fixture()
def export_rows() -> list[list[str]]:
    return [list(r) for r in EXPORT_ROWS]
