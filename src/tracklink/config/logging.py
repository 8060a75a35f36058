"""Root logger setup for the tracklink CLI."""

from __future__ import annotations

import logging

from .env import optional_env_var
from .errors import ConfigurationError

LOG_LEVEL_ENV = "TRACKLINK_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _level_from_env(default: int) -> int:
    name = optional_env_var(LOG_LEVEL_ENV)
    if name is None:
        return default
    level = logging.getLevelNamesMapping().get(name.upper())
    if level is None:
        raise ConfigurationError(f"{LOG_LEVEL_ENV} must be a logging level name, got {name!r}")
    return level


def configure_logging(*, level: int | None = None, force: bool = False) -> int:
    """Log task progress to stderr; returns the level in effect.

    ``level`` wins over ``TRACKLINK_LOG_LEVEL``, which wins over INFO. httpx is
    kept at WARNING or above since it logs each song.link request at INFO.
    """

    effective = level if level is not None else _level_from_env(logging.INFO)
    logging.basicConfig(level=effective, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
    logging.getLogger("httpx").setLevel(max(effective, logging.WARNING))
    return effective
