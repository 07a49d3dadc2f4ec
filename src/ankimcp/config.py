"""Configuration management for ankimcp."""

import logging
import os
from dataclasses import dataclass
from typing import Mapping

from dotenv import load_dotenv

from .client import ANKI_CONNECT_URL
from .decks import DEFAULT_INBOX_PREFIX

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass
class Config:
    """Server configuration."""

    inbox_prefix: str = DEFAULT_INBOX_PREFIX
    anki_connect_url: str = ANKI_CONNECT_URL
    timeout: float = 10
    clone_deck_config: bool = False
    default_config_id: int = 1
    log_level: str = "WARNING"


def _get_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a number", key, raw)
        return default


def _get_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer", key, raw)
        return default


def _get_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    logger.warning("Ignoring %s=%r: expected true or false", key, raw)
    return default


def config_from_env(env: Mapping[str, str]) -> Config:
    """Build a Config from environment-style variables."""
    defaults = Config()
    return Config(
        inbox_prefix=env.get("ANKI_INBOX_PREFIX") or defaults.inbox_prefix,
        anki_connect_url=env.get("ANKI_CONNECT_URL") or defaults.anki_connect_url,
        timeout=_get_float(env, "ANKI_CONNECT_TIMEOUT", defaults.timeout),
        clone_deck_config=_get_bool(env, "ANKI_INBOX_CLONE_CONFIG", defaults.clone_deck_config),
        default_config_id=_get_int(env, "ANKI_DEFAULT_CONFIG_ID", defaults.default_config_id),
        log_level=(env.get("ANKI_MCP_LOG_LEVEL") or defaults.log_level).upper(),
    )


def load_config() -> Config:
    """Load config from the environment, reading a .env file if present."""
    load_dotenv()
    return config_from_env(os.environ)
