from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

# Defaults
_DEFAULT_LOG_LEVEL = 'INFO'
_TRUE = ('1', 'true', 'yes', 'on')


def flag_from_env(var: str, default: bool = False, environ: Optional[Mapping[str, str]] = None) -> bool:
    raw = (environ if environ is not None else os.environ).get(var)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUE


def level_from_env(var: str, default: str = _DEFAULT_LOG_LEVEL, environ: Optional[Mapping[str, str]] = None) -> str:
    raw = (environ if environ is not None else os.environ).get(var)
    if not raw or not raw.strip():
        return default
    return raw.strip().upper()


@dataclass(frozen=True)
class ServerOptions:
    """Process-level switches; `debug` echoes handled requests to the client log."""

    debug: bool = False
    log_level: str = _DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> ServerOptions:
        return cls(
            debug=flag_from_env('PHPLITE_LS_DEBUG', environ=environ),
            log_level=level_from_env('PHPLITE_LS_LOG_LEVEL', environ=environ),
        )

    def with_overrides(self, debug: Optional[bool] = None, log_level: Optional[str] = None) -> ServerOptions:
        return ServerOptions(
            debug=self.debug if debug is None else debug,
            log_level=self.log_level if log_level is None else log_level.upper(),
        )

    @property
    def logging_level(self) -> int:
        level = logging.getLevelName(self.log_level)
        return level if isinstance(level, int) else logging.INFO
