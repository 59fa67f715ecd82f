from __future__ import annotations

from pathlib import Path

import pytest

from woo_translator.config.loader import (
    API_KEY_ENV,
    AppConfig,
    ConfigError,
    MissingConfiguration,
    load_config,
)


def test_load_config_success(write_config: Path):
    cfg = load_config(write_config, env={})
    assert cfg.model_id == "gemini-2.5-pro"
    assert cfg.attribute_model_id == "gemini-2.5-flash"
    assert cfg.api_key == "test-key"
    assert cfg.batch_size == 5
    assert cfg.max_retries == 2
    assert cfg.output_dir == Path("output")
    assert cfg.fixed_columns == ("Name", "Short description", "Description", "Tags")


def test_defaults_for_minimal_config(temp_workdir: Path):
    path = temp_workdir / "config" / "translate.yml"
    path.write_text("{}\n", encoding="utf-8")
    cfg = load_config(path, env={})
    assert cfg == AppConfig()
    assert cfg.counting_model_id == "gemini-2.5-pro"


def test_token_model_overrides_counting_model(temp_workdir: Path):
    path = temp_workdir / "config" / "translate.yml"
    path.write_text("token_model_id: gemini-2.5-flash\n", encoding="utf-8")
    assert load_config(path, env={}).counting_model_id == "gemini-2.5-flash"


def test_env_api_key_wins(write_config: Path):
    cfg = load_config(write_config, env={API_KEY_ENV: " from-env "})
    assert cfg.api_key == "from-env"


def test_missing_file(temp_workdir: Path):
    with pytest.raises(ConfigError, match="config file not found"):
        load_config(temp_workdir / "config" / "nope.yml", env={})


def test_invalid_yaml(temp_workdir: Path):
    path = temp_workdir / "config" / "translate.yml"
    path.write_text("batch_size: [1,\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_config(path, env={})


def test_top_level_must_be_mapping(temp_workdir: Path):
    path = temp_workdir / "config" / "translate.yml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="top level must be a mapping"):
        load_config(path, env={})


@pytest.mark.parametrize(
    "content",
    [
        "batch_size: 0\n",
        "max_retries: 50\n",
        "unknown_key: 1\n",
        "default_meta_columns: [rank_math_title]\n",
        "model_id: ''\n",
    ],
)
def test_schema_violations(temp_workdir: Path, content: str):
    path = temp_workdir / "config" / "translate.yml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(path, env={})


def test_require_api_key():
    with pytest.raises(MissingConfiguration, match=API_KEY_ENV):
        AppConfig().require_api_key()
    assert AppConfig(api_key="k").require_api_key() == "k"
