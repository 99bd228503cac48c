"""Tests for the MCP tool layer."""

from __future__ import annotations

import json
import sys
from unittest.mock import MagicMock, patch

import pytest

from bird_socket_mcp.transport.errors import BirdConnectionError, ReadError


def _get_server_module():
    """Import server module with FastMCP mocked to avoid init issues."""
    mock_fastmcp_cls = MagicMock()
    mock_fastmcp_instance = MagicMock()
    # Make the decorators no-ops that return the function unchanged
    mock_fastmcp_instance.tool.return_value = lambda fn: fn
    mock_fastmcp_instance.resource.return_value = lambda fn: fn
    mock_fastmcp_instance.prompt.return_value = lambda fn: fn
    mock_fastmcp_cls.return_value = mock_fastmcp_instance

    with patch("mcp.server.fastmcp.FastMCP", mock_fastmcp_cls):
        # Remove cached server module so it re-imports with our mock
        sys.modules.pop("bird_socket_mcp.server", None)
        import bird_socket_mcp.server as server_mod

    return server_mod


@pytest.fixture
def server():
    server_mod = _get_server_module()
    yield server_mod
    server_mod._connection = None


def _mock_session(greeting=b"0001 BIRD 2.15 ready.\n"):
    session = MagicMock()
    session.connect.return_value = greeting
    session.connected = True
    session.socket_path = "/run/bird/bird.ctl"
    return session


def test_connect_reports_greeting(server):
    session = _mock_session()
    with patch.object(server, "BirdSocket", return_value=session) as cls:
        result = server.connect("/tmp/bird.ctl", read_deadline=2.0)

    assert result["connected"] is True
    assert result["greeting"] == "0001 BIRD 2.15 ready."
    path, options = cls.call_args.args
    assert path == "/tmp/bird.ctl"
    assert options.read_deadline == 2.0


def test_connect_uses_environment_socket(server, monkeypatch):
    monkeypatch.setenv("BIRD_SOCKET", "/var/run/bird6.ctl")
    with patch.object(server, "BirdSocket", return_value=_mock_session()) as cls:
        server.connect()
    assert cls.call_args.args[0] == "/var/run/bird6.ctl"


def test_connect_when_already_connected(server):
    with patch.object(server, "BirdSocket", return_value=_mock_session()) as cls:
        server.connect()
        result = server.connect()
    assert result["message"] == "Already connected"
    assert cls.call_count == 1


def test_connect_failure_returns_error(server):
    session = _mock_session()
    session.connect.side_effect = BirdConnectionError("Cannot connect")
    with patch.object(server, "BirdSocket", return_value=session):
        result = server.connect()
    assert result == {"error": "Cannot connect"}
    assert server._connection is None


def test_query_requires_connection(server):
    with pytest.raises(RuntimeError):
        server.query("show status")


def test_query_returns_reply_text(server):
    session = _mock_session()
    session.query.return_value = b"1000-BIRD 2.15\n0013 Daemon is up and running\n"
    with patch.object(server, "BirdSocket", return_value=session):
        server.connect()
        result = server.query("show status")

    session.query.assert_called_once_with("show status")
    assert result["reply"].startswith("1000-BIRD 2.15")
    assert result["lines"] == 2


def test_query_read_error(server):
    session = _mock_session()
    session.query.side_effect = ReadError("Connection closed before the reply completed")
    with patch.object(server, "BirdSocket", return_value=session):
        server.connect()
        result = server.query("show route")
    assert "error" in result


def test_show_status_uses_session(server):
    session = _mock_session()
    session.query.return_value = b"0013 Daemon is up and running\n"
    with patch.object(server, "BirdSocket", return_value=session):
        server.connect()
        result = server.show_status()
    assert result["command"] == "show status"
    session.query.assert_called_once_with("show status")


def test_ask_is_one_shot(server):
    with patch.object(server, "query_once", return_value=b"0000 \n") as helper:
        result = server.ask("configure check", socket_path="/tmp/bird.ctl")
    helper.assert_called_once_with("/tmp/bird.ctl", "configure check")
    assert result["reply"] == "0000 \n"


def test_ask_unreachable(server):
    with patch.object(server, "query_once", side_effect=BirdConnectionError("nope")):
        result = server.ask("show status")
    assert result == {"error": "nope"}


def test_disconnect_closes_session(server):
    session = _mock_session()
    with patch.object(server, "BirdSocket", return_value=session):
        server.connect()
    assert server.disconnect() == {"disconnected": True}
    session.close.assert_called_once()
    assert server._connection is None
    assert server.disconnect() == {"disconnected": True}


def test_session_resource(server):
    assert json.loads(server.session_info()) == {"connected": False}


def test_diagnose_prompt_names_protocol(server):
    assert "bgp_uplink" in server.diagnose_protocol("bgp_uplink")
