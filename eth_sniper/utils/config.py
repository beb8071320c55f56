"""
Configuration loading for eth_sniper.

Settings come from three layers, later ones winning: field defaults, an
optional ``config.yaml`` next to the working directory (or ``CONFIG_PATH``),
and environment variables (a ``.env`` file is loaded by ``main``). Each
``AppConfig`` field maps to the upper-cased environment variable of the same
name, e.g. ``poll_interval_sec`` ← ``POLL_INTERVAL_SEC``.
"""

from __future__ import annotations

import os
from typing import Any, Dict, Mapping, Optional

import yaml  # type: ignore
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from eth_sniper.utils.errors import ConfigError

REQUIRED_FIELDS = ("telegram_token", "eth_address", "alchemy_api", "etherscan_api")


class AppConfig(BaseModel):
    # credentials / operator
    telegram_token: str = ""
    eth_address: str = ""
    alchemy_api: str = ""
    etherscan_api: str = ""
    moralis_api: str = ""
    goplus_access_token: str = ""
    # operator chat; when set the bot ignores every other chat
    telegram_chat_id: Optional[int] = None

    # wallet monitor
    poll_interval_sec: float = Field(30.0, gt=0)
    poll_jitter_pct: float = Field(0.2, ge=0, lt=1)
    monitor_max_workers: int = Field(4, ge=1)
    max_watches_per_chat: int = Field(10, ge=1)

    # conversation
    session_timeout_sec: float = Field(300.0, gt=0)

    # gateway
    http_timeout_sec: float = Field(5.0, gt=0)
    http_retries: int = Field(3, ge=0)
    retry_backoff_sec: float = Field(0.5, ge=0)
    price_ttl_sec: float = Field(60.0, ge=0)

    # risk scanner
    scan_ttl_sec: float = Field(600.0, ge=0)
    min_liquidity_usd: float = Field(10_000.0, ge=0)
    holder_concentration_pct: float = Field(50.0, gt=0, le=100)
    risk_block_score: int = Field(70, ge=0, le=100)

    def missing_required(self) -> list[str]:
        return [name.upper() for name in REQUIRED_FIELDS if not getattr(self, name)]

    def require(self) -> "AppConfig":
        """Raise ``ConfigError`` if any required setting is empty."""
        missing = self.missing_required()
        if missing:
            raise ConfigError(f"Missing required configuration: {', '.join(missing)}")
        return self


def load_config(path: str | None = None) -> Dict[str, Any]:
    """Load optional overrides from ``config.yaml``.

    :returns: A dictionary representing the configuration. Missing files
        quietly yield an empty dictionary.
    """
    config_path = path or os.getenv("CONFIG_PATH") or os.path.join(os.getcwd(), "config.yaml")
    if os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigError(f"{config_path} must contain a mapping")
        return {str(k).lower(): v for k, v in data.items()}
    return {}


def load_app_config(env: Mapping[str, str] | None = None, yaml_path: str | None = None) -> AppConfig:
    """Build the runtime ``AppConfig`` from yaml defaults and the environment."""
    env = os.environ if env is None else env
    values: Dict[str, Any] = {k: v for k, v in load_config(yaml_path).items() if k in AppConfig.model_fields}
    for name in AppConfig.model_fields:
        raw = env.get(name.upper())
        if raw is not None and raw.strip() != "":
            values[name] = raw.strip()
    try:
        return AppConfig(**values)
    except PydanticValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
