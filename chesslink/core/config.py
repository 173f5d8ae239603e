"""
Connection settings.

Values default to what a local two-process game needs, and can be overridden through CHESSLINK_* environment variables.
"""

import logging
import os
from typing import Mapping, Optional, Self

from pydantic import BaseModel, Field, field_validator

from chesslink.board.moves import Move
from chesslink.core.exceptions import ConfigurationError
from chesslink.core.shared_types import Color

ENV_PREFIX = "CHESSLINK_"
DEFAULT_PORT = 5000
DEFAULT_MAX_REJECTIONS = 100
DEFAULT_HOST_OPENING = "e2e4"


class Settings(BaseModel):
    # host side: where to listen for the single client
    listen_address: str = "0.0.0.0"
    # client side: where to find the host
    host_address: str = "127.0.0.1"
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    requested_host_color: Color = Color.BLACK
    # UCI move the host opens with when it is asked to play white
    host_opening: str = DEFAULT_HOST_OPENING
    # consecutive illegal proposals tolerated within one turn (None: no limit)
    max_rejections: Optional[int] = Field(default=DEFAULT_MAX_REJECTIONS, ge=1)
    # journal of the game on the host side (None: not recorded)
    database_url: Optional[str] = None
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ConfigurationError(f"Unknown log level: {value!r}")
        return level

    @field_validator("host_opening")
    @classmethod
    def validate_host_opening(cls, value: str) -> str:
        """Only the notation is checked here. Whether the move is legal is up to the rules oracle."""
        uci = value.strip().lower()
        if len(uci) not in (4, 5):
            raise ConfigurationError(f"Not a UCI move: {value!r}")
        try:
            move = Move.from_uci(uci)
        except (KeyError, ValueError):
            raise ConfigurationError(f"Not a UCI move: {value!r}") from None
        if not (move.from_square.is_within_bounds() and move.to_square.is_within_bounds()):
            raise ConfigurationError(f"Move leaves the board: {value!r}")
        return uci

    @field_validator("max_rejections", "database_url", mode="before")
    @classmethod
    def allow_none_keyword(cls, value: object) -> object:
        """Environment variables are always strings. Let 'none' switch an optional setting off."""
        if isinstance(value, str) and value.strip().lower() in ("", "none"):
            return None
        return value

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> Self:
        """
        Build settings from environment variables.
        ---
        ex. CHESSLINK_PORT=6000 CHESSLINK_REQUESTED_HOST_COLOR=white
        Unknown CHESSLINK_* variables are ignored.
        """
        environ = os.environ if environ is None else environ
        values = {
            name: environ[ENV_PREFIX + name.upper()]
            for name in cls.model_fields
            if ENV_PREFIX + name.upper() in environ
        }
        return cls.model_validate(values)
