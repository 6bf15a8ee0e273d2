"""
Runtime Settings

Read from the environment:
- JWS_ALLOWED_ALGORITHMS  comma-separated allow-list, empty means all supported
- JWS_ENFORCE_CRITICAL    reject unknown critical extensions (default true)
- JWS_UNDERSTOOD_CRITICAL comma-separated extension names the caller handles
- JWS_JSON_PRETTY         indent general JSON output (default false)
"""

import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

import structlog

logger = structlog.get_logger()

_TRUE = ("1", "true", "yes", "on")


def _split(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass(frozen=True)
class JWSSettings:
    """Defaults applied when a caller does not pass explicit options."""
    allowed_algorithms: List[str] = field(default_factory=list)
    enforce_critical: bool = True
    understood_critical: List[str] = field(default_factory=list)
    json_pretty: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "JWSSettings":
        env = os.environ if environ is None else environ
        settings = cls(
            allowed_algorithms=_split(env.get("JWS_ALLOWED_ALGORITHMS", "")),
            enforce_critical=env.get("JWS_ENFORCE_CRITICAL", "true").lower() in _TRUE,
            understood_critical=_split(env.get("JWS_UNDERSTOOD_CRITICAL", "")),
            json_pretty=env.get("JWS_JSON_PRETTY", "false").lower() in _TRUE,
        )
        logger.debug(
            "jws_settings_loaded",
            allowed_algorithms=settings.allowed_algorithms,
            enforce_critical=settings.enforce_critical,
        )
        return settings


_settings: Optional[JWSSettings] = None


def get_settings() -> JWSSettings:
    """Cached settings, loaded from the environment on first use."""
    global _settings
    if _settings is None:
        _settings = JWSSettings.from_env()
    return _settings


def reset_settings() -> None:
    """Drop cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None
