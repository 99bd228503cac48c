"""MCP server entry point for the BIRD control socket.

Exposes tools, resources, and prompts via the Model Context Protocol
using the official Python MCP SDK with stdio transport. Replies are
handed back as text; interpreting them is left to the model.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any

from mcp.server.fastmcp import FastMCP

from .transport.errors import BirdSocketError
from .transport.socket_connection import (
    DEFAULT_SOCKET_PATH,
    BirdSocket,
    SocketOptions,
    query as query_once,
)

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "bird-socket",
    instructions="MCP server for the BIRD routing daemon control socket",
)

# Global connection state
_connection: BirdSocket | None = None


def _socket_path(socket_path: str | None) -> str:
    return socket_path or os.environ.get("BIRD_SOCKET", DEFAULT_SOCKET_PATH)


def _get_connection() -> BirdSocket:
    """Get the active session, raising if not connected."""
    if _connection is None or not _connection.connected:
        raise RuntimeError(
            "Not connected to BIRD. Use the 'connect' tool first."
        )
    return _connection


def _reply(command: str, data: bytes) -> dict[str, Any]:
    text = data.decode("utf-8", errors="replace")
    return {
        "command": command,
        "reply": text,
        "lines": len(text.splitlines()),
    }


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def connect(
    socket_path: str | None = None,
    read_deadline: float | None = None,
) -> dict[str, Any]:
    """Open a session on the BIRD control socket.

    Args:
        socket_path: Control socket path. Defaults to $BIRD_SOCKET or
                     /run/bird/bird.ctl.
        read_deadline: Optional seconds to wait for each reply before
                       returning what has arrived.
    """
    global _connection
    if _connection is not None and _connection.connected:
        return {
            "connected": True,
            "message": "Already connected",
            "socket_path": str(_connection.socket_path),
        }

    try:
        session = BirdSocket(
            _socket_path(socket_path),
            SocketOptions(read_deadline=read_deadline),
        )
        greeting = session.connect()
    except (BirdSocketError, ValueError) as e:
        return {"error": str(e)}

    _connection = session
    return {
        "connected": True,
        "socket_path": str(session.socket_path),
        "greeting": greeting.decode("utf-8", errors="replace").strip(),
    }


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Close the session on the BIRD control socket."""
    global _connection
    if _connection is None:
        return {"disconnected": True}
    _connection.close()
    _connection = None
    return {"disconnected": True}


# ─── QUERY TOOLS ─────────────────────────────────────────────────────

@mcp.tool()
def query(command: str) -> dict[str, Any]:
    """Send a command on the open session and return the raw reply.

    Args:
        command: A single-line BIRD command, e.g. "show protocols all".
    """
    conn = _get_connection()
    try:
        data = conn.query(command)
    except (BirdSocketError, ValueError) as e:
        return {"error": str(e)}
    return _reply(command, data)


@mcp.tool()
def ask(command: str, socket_path: str | None = None) -> dict[str, Any]:
    """Run one command on a fresh connection that is closed afterwards.

    Args:
        command: A single-line BIRD command.
        socket_path: Control socket path (defaults as for connect).
    """
    try:
        data = query_once(_socket_path(socket_path), command)
    except (BirdSocketError, ValueError) as e:
        return {"error": str(e)}
    return _reply(command, data)


@mcp.tool()
def show_status() -> dict[str, Any]:
    """Show daemon version, router ID and uptime on the open session."""
    return query("show status")


# ─── RESOURCES ───────────────────────────────────────────────────────

@mcp.resource("bird://session")
def session_info() -> str:
    """Current session state as JSON."""
    if _connection is None or not _connection.connected:
        return json.dumps({"connected": False})
    options = _connection.options
    return json.dumps({
        "connected": True,
        "socket_path": str(_connection.socket_path),
        "buffer_size": options.buffer_size,
        "read_deadline": options.read_deadline,
    })


# ─── PROMPTS ─────────────────────────────────────────────────────────

@mcp.prompt()
def diagnose_protocol(name: str) -> str:
    """Investigate why a routing protocol instance is not established.

    Args:
        name: BIRD protocol instance name (e.g. "bgp_uplink").
    """
    return f"""Use the query tool to run "show protocols all {name}".
Explain the protocol state, the last error if any, and how long it has
been in that state.

Then run "show route protocol {name} count" to see how many routes it
contributes, and suggest next steps."""


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
