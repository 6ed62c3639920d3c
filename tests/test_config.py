"""Config loading: YAML, env overrides, validation."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.exceptions import ConfigError
from utils.config import AppConfig, load_config

ENV_VARS = (
    "INVENTORY_PATH",
    "LOG_LEVEL",
    "LLM_PROVIDER",
    "LLM_BASE_URL",
    "OPENROUTER_API_KEY",
    "LLM_API_KEY",
    "LLM_VISION_MODEL",
    "LLM_PARSER_MODEL",
    "LLM_MAX_RETRIES",
    "LLM_TIMEOUT_SEC",
    "IMPORT_MAX_WORKERS",
    "IMPORT_PDF_DPI",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def _load(tmp_path: Path, yaml_text: str | None = None) -> AppConfig:
    path = tmp_path / "config.yaml"
    if yaml_text is not None:
        path.write_text(yaml_text, encoding="utf-8")
    return load_config(path, env_file=tmp_path / ".env")


def test_defaults_without_file(tmp_path: Path) -> None:
    cfg = _load(tmp_path)
    assert cfg.llm.provider == "openrouter"
    assert cfg.llm.max_retries == 3
    assert cfg.importing.max_workers == 1
    assert cfg.importing.serialize_by_name is True


def test_yaml_values(tmp_path: Path) -> None:
    cfg = _load(
        tmp_path,
        "inventory_path: data/inv.json\n"
        "llm:\n  provider: Ollama\n  parser_model: qwen2.5\n  max_retries: 5\n"
        "importing:\n  max_workers: 4\n  serialize_by_name: false\n  sku_seed: 42\n",
    )
    assert cfg.inventory_path == "data/inv.json"
    assert cfg.llm.provider == "ollama"
    assert cfg.llm.parser_model == "qwen2.5"
    assert cfg.llm.max_retries == 5
    assert cfg.importing.max_workers == 4
    assert cfg.importing.serialize_by_name is False
    assert cfg.importing.sku_seed == 42


def test_env_overrides_yaml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LLM_PROVIDER", "OpenAI")
    monkeypatch.setenv("LLM_API_KEY", "sk-test")
    monkeypatch.setenv("IMPORT_MAX_WORKERS", "3")
    cfg = _load(tmp_path, "llm:\n  provider: openrouter\nimporting:\n  max_workers: 1\n")
    assert cfg.llm.provider == "openai"
    assert cfg.llm.api_key == "sk-test"
    assert cfg.importing.max_workers == 3


def test_openrouter_key_wins_over_generic_key(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENROUTER_API_KEY", "or-key")
    monkeypatch.setenv("LLM_API_KEY", "generic")
    assert _load(tmp_path).llm.api_key == "or-key"


def test_dotenv_file_is_read(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / ".env").write_text("LLM_PARSER_MODEL=from-dotenv\n", encoding="utf-8")
    # registers the variable with monkeypatch so the value load_dotenv sets is removed afterwards
    monkeypatch.setenv("LLM_PARSER_MODEL", "")
    monkeypatch.delenv("LLM_PARSER_MODEL")
    assert _load(tmp_path).llm.parser_model == "from-dotenv"


def test_invalid_provider_rejected(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Unknown LLM provider"):
        _load(tmp_path, "llm:\n  provider: huggingface\n")


def test_with_overrides() -> None:
    cfg = AppConfig().with_overrides(llm__parser_model="m2", importing__pdf_dpi=300, log_level=None)
    assert cfg.llm.parser_model == "m2"
    assert cfg.importing.pdf_dpi == 300
    assert cfg.log_level == "INFO"
    with pytest.raises(ConfigError, match="Unknown config key"):
        AppConfig().with_overrides(workers=2)
    with pytest.raises(ConfigError):
        AppConfig().with_overrides(importing__max_workers=0)
