"""Environment-driven settings.

Every knob is read from the process environment (a ``.env`` file is loaded by
the entrypoint through python-dotenv). ``load_settings`` also accepts a plain
mapping so tests never have to touch ``os.environ``.
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from mcp_demo.errors import ConfigError


class ResponseMode(str, Enum):
    """How ``POST /mcp`` answers: one buffered JSON body or an SSE stream."""

    JSON = "json"
    STREAM = "stream"


class SessionIdPolicy(str, Enum):
    """Whether each inbound connection gets its own generated identifier."""

    NONE = "none"
    GENERATED = "generated"


_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    response_mode: ResponseMode = ResponseMode.JSON
    session_ids: SessionIdPolicy = SessionIdPolicy.NONE
    enable_sse: bool = True
    server_name: str = "mcp-demo"
    server_version: str = "1.0.0"


def _parse_port(raw: str) -> int:
    try:
        port = int(raw, 10)
    except ValueError as e:
        raise ConfigError(f"PORT must be an integer, got {raw!r}") from e
    if not 0 < port < 65536:
        raise ConfigError(f"PORT out of range: {port}")
    return port


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}")


def _parse_enum(name: str, enum_cls, raw: str):
    try:
        return enum_cls(raw.strip().lower())
    except ValueError as e:
        allowed = "|".join(m.value for m in enum_cls)
        raise ConfigError(f"{name} must be one of {allowed}, got {raw!r}") from e


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ
    defaults = Settings()
    return Settings(
        host=env.get("HOST", defaults.host),
        port=_parse_port(env.get("PORT", str(defaults.port))),
        log_level=env.get("MCP_LOG_LEVEL", defaults.log_level).upper(),
        response_mode=_parse_enum(
            "MCP_RESPONSE_MODE", ResponseMode, env.get("MCP_RESPONSE_MODE", defaults.response_mode.value)
        ),
        session_ids=_parse_enum(
            "MCP_SESSION_IDS", SessionIdPolicy, env.get("MCP_SESSION_IDS", defaults.session_ids.value)
        ),
        enable_sse=_parse_bool("MCP_ENABLE_SSE", env.get("MCP_ENABLE_SSE", "true")),
        server_name=env.get("MCP_SERVER_NAME", defaults.server_name),
        server_version=env.get("MCP_SERVER_VERSION", defaults.server_version),
    )
