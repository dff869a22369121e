"""Environment-driven settings."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping, Optional, TypeVar


logger = logging.getLogger(__name__)

ENV_PREFIX = "TICTACTOUCH_"
DEFAULT_DATA_FILE = Path("~/.tictactouch/state.json")

_TRUTHY = {"1", "true", "yes", "on"}

T = TypeVar("T", int, float)


def _number(
    env: Mapping[str, str], name: str, default: T, cast: Callable[[str], T]
) -> T:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning("Ignoring %s%s=%r; using %r", ENV_PREFIX, name, raw, default)
        return default


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 8000
    data_file: Optional[Path] = DEFAULT_DATA_FILE
    think_delay: float = 0.5
    tiered_ai: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Read ``TICTACTOUCH_*`` variables, falling back to defaults.

        An empty ``TICTACTOUCH_DATA_FILE`` keeps everything in memory.
        """
        env = os.environ if env is None else env
        log_level = env.get(ENV_PREFIX + "LOG_LEVEL", cls.log_level).strip().upper()
        if not isinstance(logging.getLevelName(log_level), int):
            logger.warning("Unknown log level %r; using %s", log_level, cls.log_level)
            log_level = cls.log_level
        data_file: Optional[Path] = DEFAULT_DATA_FILE
        raw_path = env.get(ENV_PREFIX + "DATA_FILE")
        if raw_path is not None:
            data_file = Path(raw_path) if raw_path.strip() else None
        return cls(
            host=env.get(ENV_PREFIX + "HOST", cls.host),
            port=_number(env, "PORT", cls.port, int),
            data_file=data_file,
            think_delay=max(0.0, _number(env, "THINK_DELAY", cls.think_delay, float)),
            tiered_ai=env.get(ENV_PREFIX + "TIERED_AI", "").strip().lower() in _TRUTHY,
            log_level=log_level,
        )
