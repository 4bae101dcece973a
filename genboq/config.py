# genboq/config.py

import logging
import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from genboq.gemini_handler import DEFAULT_MODEL, DEFAULT_TIMEOUT_SECONDS
from genboq.utils import USD_TO_INR_FALLBACK

LOG_FILE = 'boq_generator.log'
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


@dataclass(frozen=True)
class Settings:
    gemini_api_key: str = ''
    gemini_model: str = DEFAULT_MODEL
    oracle_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    oracle_max_retries: int = 3
    catalog_path: str = 'productDatabase.json'
    default_margin: float = 0.0
    default_currency: str = 'INR'
    usd_to_inr_rate: float = USD_TO_INR_FALLBACK
    activity_log_backend: str = 'logging'  # logging | firestore


def _lookup(secrets: Optional[Mapping[str, Any]], key: str, default=None):
    if secrets is not None and key in secrets:
        return secrets[key]
    return os.environ.get(key, default)


def load_settings(secrets: Optional[Mapping[str, Any]] = None) -> Settings:
    """
    Read settings from Streamlit secrets (or any mapping), falling back to
    environment variables, then to defaults.
    """
    defaults = Settings()
    return Settings(
        gemini_api_key=str(_lookup(secrets, 'GEMINI_API_KEY', '') or ''),
        gemini_model=str(_lookup(secrets, 'GEMINI_MODEL', defaults.gemini_model)),
        oracle_timeout_seconds=float(_lookup(secrets, 'ORACLE_TIMEOUT_SECONDS', defaults.oracle_timeout_seconds)),
        oracle_max_retries=int(_lookup(secrets, 'ORACLE_MAX_RETRIES', defaults.oracle_max_retries)),
        catalog_path=str(_lookup(secrets, 'CATALOG_PATH', defaults.catalog_path)),
        default_margin=max(0.0, float(_lookup(secrets, 'DEFAULT_MARGIN', defaults.default_margin))),
        default_currency=str(_lookup(secrets, 'DEFAULT_CURRENCY', defaults.default_currency)).upper(),
        usd_to_inr_rate=float(_lookup(secrets, 'USD_TO_INR_RATE', defaults.usd_to_inr_rate)),
        activity_log_backend=str(_lookup(secrets, 'ACTIVITY_LOG_BACKEND', defaults.activity_log_backend)).lower(),
    )


def configure_logging(level=logging.INFO, log_file: Optional[str] = LOG_FILE):
    """File + console logging for the app."""
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.insert(0, logging.FileHandler(log_file))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers)
