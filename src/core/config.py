"""Process configuration, read from environment variables."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional, Self

from src.core.exceptions import ConfigurationError

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

ENV_PREFIX = "CHESS_SESSION_"


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    starting_fen: str = STARTING_FEN

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> Self:
        """
        Build settings from the environment.
        ---

        `PORT` is honoured as a fallback for the listen port (common convention on hosting platforms).
        """
        env = os.environ if environ is None else environ

        host = env.get(f"{ENV_PREFIX}HOST", cls.host)
        port_value = env.get(f"{ENV_PREFIX}PORT", env.get("PORT", str(cls.port)))
        log_level = env.get(f"{ENV_PREFIX}LOG_LEVEL", cls.log_level).upper()
        starting_fen = env.get(f"{ENV_PREFIX}STARTING_FEN", cls.starting_fen).strip()

        if not port_value.isdigit() or not (0 < int(port_value) < 65536):
            raise ConfigurationError(f"Invalid port: {port_value!r}")

        if log_level not in LOG_LEVELS:
            raise ConfigurationError(
                f"Invalid log level: {log_level!r}. Pick one from {','.join(LOG_LEVELS)}"
            )

        # structural check only. The rules engine validates the position itself.
        if len(starting_fen.split(" ")) != 6:
            raise ConfigurationError(
                "Starting FEN must contain 6 space-separated parts."
            )

        return cls(
            host=host,
            port=int(port_value),
            log_level=log_level,
            starting_fen=starting_fen,
        )
