"""Application configuration read from the environment."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_FETCH_HOURS = 24

_INTEGER = re.compile(r"[+-]?\d+")


@dataclass(frozen=True)
class Config:
    """Settings the import job runs with."""

    vestro_base_url: str
    grails_app_url: str
    agriwin_users_url: str
    fetch_data_since: timedelta


def get_env(key: str, fallback: str) -> str:
    """Return the environment variable ``key``, or ``fallback`` when unset."""
    value = os.environ.get(key)
    if value is not None:
        return value
    logger.info("Environment variable %s not set, using fallback: '%s'", key, fallback)
    return fallback


def _parse_hours(text: str) -> int:
    if not _INTEGER.fullmatch(text):
        raise ValueError(f"invalid integer: {text!r}")
    return int(text)


def load() -> Config:
    """Load settings from a ``.env`` file in the working directory and the environment.

    Variables already present in the environment win over the ``.env`` file.
    """
    load_dotenv(Path.cwd() / ".env", override=False)

    raw_hours = get_env("FETCH_DATA_SINCE_HOURS", str(DEFAULT_FETCH_HOURS))
    try:
        fetch_hours = _parse_hours(raw_hours)
    except ValueError as exc:
        logger.warning(
            "Invalid FETCH_DATA_SINCE_HOURS, using default %dh. Error: %s",
            DEFAULT_FETCH_HOURS,
            exc,
        )
        fetch_hours = DEFAULT_FETCH_HOURS

    return Config(
        vestro_base_url=get_env("VESTRO_API_URL", ""),
        grails_app_url=get_env("GRAILS_APP_URL", ""),
        agriwin_users_url=get_env("AGRIWIN_USERS_URL", ""),
        fetch_data_since=timedelta(hours=fetch_hours),
    )