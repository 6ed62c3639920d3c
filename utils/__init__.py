"""Shared utilities: config, logger, retry, image_utils, sku, locks."""

from utils.config import AppConfig, ImportConfig, LLMConfig, load_config
from utils.logger import get_logger, setup_logging, log_structured
from utils.retry import with_retry
from utils.image_utils import image_to_data_url, media_type_for_path
from utils.sku import SkuGenerator
from utils.locks import NameLockRegistry
from utils.name_normalize import normalize_medicine_name

__all__ = [
    "AppConfig",
    "ImportConfig",
    "LLMConfig",
    "load_config",
    "get_logger",
    "setup_logging",
    "log_structured",
    "with_retry",
    "image_to_data_url",
    "media_type_for_path",
    "SkuGenerator",
    "NameLockRegistry",
    "normalize_medicine_name",
]
