"""
Configuration loader: YAML + .env + env overrides.
No hardcoded model names in services; all from config.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from core.exceptions import ConfigError

PROVIDERS = ("openrouter", "openai", "ollama")


def _coerce_bool(s: Any) -> bool:
    if isinstance(s, bool):
        return s
    return (str(s).strip().lower() in ("1", "true", "yes")) if s else False


def _coerce_float(s: Any, default: float = 0.0) -> float:
    if s is None or s == "":
        return default
    try:
        return float(s)
    except (TypeError, ValueError):
        return default


def _coerce_int(s: Any, default: int = 0) -> int:
    if s is None or s == "":
        return default
    try:
        return int(s)
    except (TypeError, ValueError):
        return default


def _coerce_optional_int(s: Any) -> int | None:
    if s is None or s == "":
        return None
    try:
        return int(s)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class LLMConfig:
    """LLM endpoint and model configuration (vision + parsing share one endpoint)."""

    provider: str = "openrouter"
    base_url: str = ""  # empty -> provider default
    api_key: str = ""
    vision_model: str = "google/gemma-3-27b-it:free"
    parser_model: str = "arcee-ai/trinity-large-preview:free"
    max_retries: int = 3
    retry_delay_sec: float = 2.0
    timeout_sec: int = 120
    app_referer: str = "https://github.com/pharmacy-pos-saas"
    app_title: str = "Pharmacy POS Bill Import"


@dataclass(frozen=True)
class ImportConfig:
    """Extraction and reconciliation settings."""

    pdf_dpi: int = 200
    max_workers: int = 1
    vision_image_max_px: int = 0  # 0 -> send original image bytes
    serialize_by_name: bool = True
    expiry_dayfirst: bool = True
    default_category: str = "MEDICINE"
    default_unit: str = "pcs"
    default_reorder_level: int = 10
    sku_seed: int | None = None


@dataclass(frozen=True)
class AppConfig:
    """Immutable application configuration. Built from YAML + env."""

    inventory_path: str = "inventory.json"
    log_level: str = "INFO"
    llm: LLMConfig = field(default_factory=LLMConfig)
    importing: ImportConfig = field(default_factory=ImportConfig)

    def with_overrides(self, **overrides: Any) -> AppConfig:
        """Return new config with replaced keys. Nested keys use `llm__x` / `importing__x`."""
        top: dict[str, Any] = {}
        llm: dict[str, Any] = {}
        imp: dict[str, Any] = {}
        for k, v in overrides.items():
            if v is None:
                continue
            if k.startswith("llm__"):
                llm[k[len("llm__"):]] = v
            elif k.startswith("importing__"):
                imp[k[len("importing__"):]] = v
            elif k in ("inventory_path", "log_level"):
                top[k] = v
            else:
                raise ConfigError(f"Unknown config key: {k}")
        cfg = replace(
            self,
            llm=replace(self.llm, **llm) if llm else self.llm,
            importing=replace(self.importing, **imp) if imp else self.importing,
            **top,
        )
        validate_config(cfg)
        return cfg


def validate_config(cfg: AppConfig) -> None:
    """Raise ConfigError for settings that would break the pipeline at runtime."""
    if cfg.llm.provider.strip().lower() not in PROVIDERS:
        raise ConfigError(f"Unknown LLM provider: {cfg.llm.provider}")
    if cfg.llm.max_retries < 1:
        raise ConfigError("llm.max_retries must be >= 1")
    if cfg.importing.max_workers < 1:
        raise ConfigError("importing.max_workers must be >= 1")
    if cfg.importing.pdf_dpi <= 0:
        raise ConfigError("importing.pdf_dpi must be > 0")
    if cfg.importing.vision_image_max_px < 0:
        raise ConfigError("importing.vision_image_max_px must be >= 0")


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return data if isinstance(data, dict) else {}


def _config_from_dict(data: dict[str, Any]) -> AppConfig:
    """Build AppConfig from nested dict. Env overrides applied in load_config."""
    defaults_llm = LLMConfig()
    defaults_imp = ImportConfig()
    llm_data = data.get("llm") or {}
    imp_data = data.get("importing") or {}
    return AppConfig(
        inventory_path=str(data.get("inventory_path", "inventory.json")),
        log_level=str(data.get("log_level", "INFO")),
        llm=LLMConfig(
            provider=str(llm_data.get("provider", defaults_llm.provider)).strip().lower(),
            base_url=str(llm_data.get("base_url", defaults_llm.base_url) or ""),
            api_key=str(llm_data.get("api_key", "") or ""),
            vision_model=str(llm_data.get("vision_model", defaults_llm.vision_model)),
            parser_model=str(llm_data.get("parser_model", defaults_llm.parser_model)),
            max_retries=_coerce_int(llm_data.get("max_retries"), defaults_llm.max_retries),
            retry_delay_sec=_coerce_float(llm_data.get("retry_delay_sec"), defaults_llm.retry_delay_sec),
            timeout_sec=_coerce_int(llm_data.get("timeout_sec"), defaults_llm.timeout_sec),
            app_referer=str(llm_data.get("app_referer", defaults_llm.app_referer)),
            app_title=str(llm_data.get("app_title", defaults_llm.app_title)),
        ),
        importing=ImportConfig(
            pdf_dpi=_coerce_int(imp_data.get("pdf_dpi"), defaults_imp.pdf_dpi),
            max_workers=_coerce_int(imp_data.get("max_workers"), defaults_imp.max_workers),
            vision_image_max_px=_coerce_int(imp_data.get("vision_image_max_px"), defaults_imp.vision_image_max_px),
            serialize_by_name=_coerce_bool(imp_data.get("serialize_by_name", defaults_imp.serialize_by_name)),
            expiry_dayfirst=_coerce_bool(imp_data.get("expiry_dayfirst", defaults_imp.expiry_dayfirst)),
            default_category=str(imp_data.get("default_category", defaults_imp.default_category)),
            default_unit=str(imp_data.get("default_unit", defaults_imp.default_unit)),
            default_reorder_level=_coerce_int(
                imp_data.get("default_reorder_level"), defaults_imp.default_reorder_level
            ),
            sku_seed=_coerce_optional_int(imp_data.get("sku_seed")),
        ),
    )


def load_config(config_path: str | Path | None = None, *, env_file: str | Path | None = None) -> AppConfig:
    """
    Load config from YAML file, then apply .env / env overrides.
    Env vars: INVENTORY_PATH, LOG_LEVEL, LLM_PROVIDER, LLM_BASE_URL, OPENROUTER_API_KEY / LLM_API_KEY,
    LLM_VISION_MODEL, LLM_PARSER_MODEL, LLM_MAX_RETRIES, LLM_TIMEOUT_SEC, IMPORT_MAX_WORKERS, IMPORT_PDF_DPI.
    """
    load_dotenv(dotenv_path=env_file, override=False)
    path = Path(config_path) if config_path else Path("config.yaml")
    cfg = _config_from_dict(_load_yaml(path))

    overrides: dict[str, Any] = {}
    if os.getenv("INVENTORY_PATH"):
        overrides["inventory_path"] = os.getenv("INVENTORY_PATH")
    if os.getenv("LOG_LEVEL"):
        overrides["log_level"] = os.getenv("LOG_LEVEL")
    if os.getenv("LLM_PROVIDER"):
        overrides["llm__provider"] = os.getenv("LLM_PROVIDER", "").strip().lower()
    if os.getenv("LLM_BASE_URL"):
        overrides["llm__base_url"] = os.getenv("LLM_BASE_URL")
    api_key = os.getenv("OPENROUTER_API_KEY") or os.getenv("LLM_API_KEY")
    if api_key:
        overrides["llm__api_key"] = api_key
    if os.getenv("LLM_VISION_MODEL"):
        overrides["llm__vision_model"] = os.getenv("LLM_VISION_MODEL")
    if os.getenv("LLM_PARSER_MODEL"):
        overrides["llm__parser_model"] = os.getenv("LLM_PARSER_MODEL")
    if os.getenv("LLM_MAX_RETRIES"):
        overrides["llm__max_retries"] = _coerce_int(os.getenv("LLM_MAX_RETRIES"), cfg.llm.max_retries)
    if os.getenv("LLM_TIMEOUT_SEC"):
        overrides["llm__timeout_sec"] = _coerce_int(os.getenv("LLM_TIMEOUT_SEC"), cfg.llm.timeout_sec)
    if os.getenv("IMPORT_MAX_WORKERS"):
        overrides["importing__max_workers"] = _coerce_int(
            os.getenv("IMPORT_MAX_WORKERS"), cfg.importing.max_workers
        )
    if os.getenv("IMPORT_PDF_DPI"):
        overrides["importing__pdf_dpi"] = _coerce_int(os.getenv("IMPORT_PDF_DPI"), cfg.importing.pdf_dpi)
    if not overrides:
        validate_config(cfg)
        return cfg
    return cfg.with_overrides(**overrides)
