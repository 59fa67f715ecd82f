from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.wpml import DEFAULT_SEO_META_COLUMNS, FIXED_COLUMNS

"""Config loader.

Responsibilities:
- Load YAML config (default config/translate.yml)
- Validate against the bundled config_schema.json (no unknown keys)
- Apply defaults
- Resolve the API key: GOOGLE_GENERATIVE_AI_API_KEY wins over ``api_key``
"""

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/translate.yml")
API_KEY_ENV = "GOOGLE_GENERATIVE_AI_API_KEY"

DEFAULT_MODEL_ID = "gemini-2.5-pro"
DEFAULT_ATTRIBUTE_MODEL_ID = "gemini-2.5-flash"
DEFAULT_BATCH_SIZE = 5
DEFAULT_OUTPUT_DIR = "./output"
DEFAULT_MAX_RETRIES = 3


class ConfigError(Exception):
    pass


class MissingConfiguration(ConfigError):
    """A value required for the requested operation is absent (credential, model, targets)."""


@dataclass(frozen=True)
class AppConfig:
    model_id: str = DEFAULT_MODEL_ID
    attribute_model_id: str = DEFAULT_ATTRIBUTE_MODEL_ID
    token_model_id: str | None = None
    api_key: str = ""
    batch_size: int = DEFAULT_BATCH_SIZE
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    max_retries: int = DEFAULT_MAX_RETRIES
    fixed_columns: tuple[str, ...] = FIXED_COLUMNS
    default_meta_columns: tuple[str, ...] = DEFAULT_SEO_META_COLUMNS

    @property
    def counting_model_id(self) -> str:
        return self.token_model_id or self.model_id

    def require_api_key(self) -> str:
        if not self.api_key:
            raise MissingConfiguration(
                f"API key is not configured (set {API_KEY_ENV} or api_key in the config file)"
            )
        return self.api_key


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: If the schema file is missing or invalid, or the data
            fails validation (unknown keys, wrong types, out of range values)
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path = DEFAULT_CONFIG_PATH, env: Mapping[str, str] | None = None) -> AppConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config validation failed: top level must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    cfg = AppConfig(
        model_id=data.get("model_id", DEFAULT_MODEL_ID),
        attribute_model_id=data.get("attribute_model_id", DEFAULT_ATTRIBUTE_MODEL_ID),
        token_model_id=data.get("token_model_id"),
        api_key=data.get("api_key", ""),
        batch_size=data.get("batch_size", DEFAULT_BATCH_SIZE),
        output_dir=Path(data.get("output_dir", DEFAULT_OUTPUT_DIR)).expanduser(),
        max_retries=data.get("max_retries", DEFAULT_MAX_RETRIES),
        fixed_columns=tuple(data.get("fixed_columns", FIXED_COLUMNS)),
        default_meta_columns=tuple(data.get("default_meta_columns", DEFAULT_SEO_META_COLUMNS)),
    )
    return apply_env(cfg, os.environ if env is None else env)


def apply_env(cfg: AppConfig, env: Mapping[str, str]) -> AppConfig:
    """Environment (already populated from .env) overrides the file's api_key."""
    key = env.get(API_KEY_ENV, "").strip()
    if key:
        return replace(cfg, api_key=key)
    return cfg
