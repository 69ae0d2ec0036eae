from __future__ import annotations

import pytest

from mcp_demo.config import ResponseMode, SessionIdPolicy, Settings, load_settings
from mcp_demo.errors import ConfigError


def test_defaults() -> None:
    settings = load_settings({})
    assert settings == Settings()
    assert settings.port == 3000
    assert settings.response_mode is ResponseMode.JSON
    assert settings.session_ids is SessionIdPolicy.NONE
    assert settings.enable_sse


def test_environment_overrides() -> None:
    settings = load_settings(
        {
            "PORT": "8080",
            "HOST": "127.0.0.1",
            "MCP_LOG_LEVEL": "debug",
            "MCP_RESPONSE_MODE": "STREAM",
            "MCP_SESSION_IDS": "generated",
            "MCP_ENABLE_SSE": "off",
        }
    )
    assert settings.port == 8080
    assert settings.host == "127.0.0.1"
    assert settings.log_level == "DEBUG"
    assert settings.response_mode is ResponseMode.STREAM
    assert settings.session_ids is SessionIdPolicy.GENERATED
    assert settings.enable_sse is False


@pytest.mark.parametrize(
    "environ",
    [
        {"PORT": "abc"},
        {"PORT": "70000"},
        {"MCP_RESPONSE_MODE": "xml"},
        {"MCP_SESSION_IDS": "sometimes"},
        {"MCP_ENABLE_SSE": "maybe"},
    ],
)
def test_invalid_values_raise(environ) -> None:
    with pytest.raises(ConfigError):
        load_settings(environ)
