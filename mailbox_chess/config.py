from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional


ENV_PREFIX = "MAILBOX_CHESS_"

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass(frozen=True)
class Settings:
    """Process configuration, read once from the environment.

    Attributes:
        log_level (str): Root logging level name.
        hash_mb (int): Transposition table size per search service.
        default_depth (int): Search depth used when a request gives none.
        max_depth (int): Upper bound accepted for search requests.
        quiescence_depth (int): Capture-only plies searched past the horizon.
    """

    log_level: str = "INFO"
    hash_mb: int = 16
    default_depth: int = 3
    max_depth: int = 8
    quiescence_depth: int = 6

    def __post_init__(self) -> None:
        if self.log_level not in _LOG_LEVELS:
            raise ValueError(f"{ENV_PREFIX}LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}")
        if self.hash_mb < 1:
            raise ValueError(f"{ENV_PREFIX}HASH_MB must be >= 1")
        if self.max_depth < 1:
            raise ValueError(f"{ENV_PREFIX}MAX_DEPTH must be >= 1")
        if not 1 <= self.default_depth <= self.max_depth:
            raise ValueError(f"{ENV_PREFIX}DEFAULT_DEPTH must be between 1 and MAX_DEPTH")
        if self.quiescence_depth < 0:
            raise ValueError(f"{ENV_PREFIX}QUIESCENCE_DEPTH must be >= 0")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``MAILBOX_CHESS_*`` variables.

        Raises:
            ValueError: If a variable is present but not a valid value.
        """
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            log_level=env.get(ENV_PREFIX + "LOG_LEVEL", defaults.log_level).upper(),
            hash_mb=_int(env, "HASH_MB", defaults.hash_mb),
            default_depth=_int(env, "DEFAULT_DEPTH", defaults.default_depth),
            max_depth=_int(env, "MAX_DEPTH", defaults.max_depth),
            quiescence_depth=_int(env, "QUIESCENCE_DEPTH", defaults.quiescence_depth),
        )

    def configure_logging(self) -> None:
        logging.basicConfig(level=getattr(logging, self.log_level))


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from None
