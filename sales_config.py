"""
Sales Metrics Configuration

Settings for the sales metrics service, read from the process environment.
Entry points call load_dotenv() first so a local .env file can supply values.

Usage:
    from sales_config import load_settings, configure_logging

    settings = load_settings()
    configure_logging(settings.log_level)
"""

import logging
import os
from typing import Any, Mapping, NamedTuple, Optional

from shop_registry import ConfigurationError


DEFAULT_API_VERSION = '2023-10'


class Settings(NamedTuple):
    api_version: str = DEFAULT_API_VERSION
    port: int = 3001
    request_timeout: float = 30.0
    fetch_deadline: float = 120.0
    max_pages: int = 25
    page_size: int = 100
    pacing_delay: float = 0.05
    max_daily_days: int = 93
    catalog_path: Optional[str] = None
    log_level: str = 'INFO'
    default_shop: str = 'ecommerce'


def _number(environ: Mapping[str, str], key: str, default: Any, cast):
    raw = environ.get(key)
    if raw is None or raw.strip() == '':
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be a number, got {raw!r}")
    if value < 0:
        raise ConfigurationError(f"{key} must not be negative, got {raw!r}")
    return value


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from environment variables.

    Args:
        environ: Mapping to read from (default: os.environ)

    Raises:
        ConfigurationError: If a numeric setting is malformed
    """
    env = os.environ if environ is None else environ
    max_pages = _number(env, 'SHOPIFY_MAX_PAGES', 25, int)
    if max_pages < 1:
        raise ConfigurationError('SHOPIFY_MAX_PAGES must be at least 1')

    return Settings(
        api_version=env.get('SHOPIFY_API_VERSION') or DEFAULT_API_VERSION,
        port=_number(env, 'PORT', 3001, int),
        request_timeout=_number(env, 'SHOPIFY_TIMEOUT', 30.0, float),
        fetch_deadline=_number(env, 'SHOPIFY_FETCH_DEADLINE', 120.0, float),
        max_pages=max_pages,
        pacing_delay=_number(env, 'SALES_PACING_DELAY', 0.05, float),
        max_daily_days=_number(env, 'SALES_MAX_DAILY_DAYS', 93, int),
        catalog_path=env.get('CAPSULE_CATALOG_PATH') or None,
        log_level=(env.get('LOG_LEVEL') or 'INFO').upper(),
        default_shop=env.get('DEFAULT_SHOP') or 'ecommerce',
    )


def configure_logging(level: str = 'INFO') -> None:
    """Send log lines for every module to stderr, once."""
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s [%(name)s] %(message)s'))
        root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
