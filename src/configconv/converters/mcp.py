"""
MCP server translation from the canonical McpServer to each target's JSON shape.

Claude Code: {command, args, env} | {type: "sse"|"http", url, headers}
OpenCode:    {type: "local", command: [...], environment} | {type: "remote", url, headers, oauth}
Cursor:      {command, args, env} | {url, headers, auth}
"""

import re
from typing import Any, Dict, List

from configconv.core.errors import ConversionError
from configconv.core.types import McpServer

_RE_URL_SECRET = re.compile(r"[?&](token|key|secret|api_key)=", re.IGNORECASE)
_RE_ENV_SECRET = re.compile(r"key|token|secret|password", re.IGNORECASE)


def check_server(server: McpServer) -> None:
    if server.type == "remote" and not server.url:
        raise ConversionError(f'MCP server "{server.name}": remote server missing url')
    if server.type != "remote" and not server.command:
        raise ConversionError(f'MCP server "{server.name}": local server missing command')


def secret_warnings(server: McpServer, hint: str = "{env:VAR}") -> List[str]:
    warnings = []
    if server.url and _RE_URL_SECRET.search(server.url):
        warnings.append(
            f'MCP server "{server.name}": URL contains embedded credentials. '
            f"Consider using {hint} interpolation."
        )
    for key, value in server.env.items():
        if _RE_ENV_SECRET.search(key) and len(str(value)) > 8:
            warnings.append(
                f'MCP server "{server.name}": environment variable "{key}" may contain a secret. '
                f"Consider using {hint} interpolation."
            )
    return warnings


def _with_extra(data: Dict[str, Any], server: McpServer, identity: bool) -> Dict[str, Any]:
    if identity:
        for key, value in server.extra.items():
            data.setdefault(key, value)
    return data


def to_opencode(server: McpServer, disabled: bool = False, identity: bool = False) -> Dict[str, Any]:
    check_server(server)
    if server.type == "remote":
        data: Dict[str, Any] = {"type": "remote", "url": server.url}
        if server.headers:
            data["headers"] = dict(server.headers)
        if server.oauth is not None:
            data["oauth"] = dict(server.oauth)
    else:
        data = {"type": "local", "command": [server.command, *server.args]}
        if server.env:
            data["environment"] = dict(server.env)
    if disabled or not server.enabled:
        data["enabled"] = False
    return _with_extra(data, server, identity)


def to_claude(server: McpServer, identity: bool = False) -> Dict[str, Any]:
    check_server(server)
    if server.type == "remote":
        data: Dict[str, Any] = {
            "type": "sse" if "/sse" in (server.url or "") else "http",
            "url": server.url,
        }
        if server.headers:
            data["headers"] = dict(server.headers)
    else:
        data = {"command": server.command, "args": list(server.args)}
        if server.env:
            data["env"] = dict(server.env)
    return _with_extra(data, server, identity)


def to_cursor(server: McpServer, identity: bool = False) -> Dict[str, Any]:
    check_server(server)
    if server.type == "remote":
        data: Dict[str, Any] = {"url": server.url}
        if server.headers:
            data["headers"] = dict(server.headers)
        if server.oauth:
            auth: Dict[str, Any] = {}
            if "clientId" in server.oauth:
                auth["CLIENT_ID"] = server.oauth["clientId"]
            if server.oauth.get("clientSecret"):
                auth["CLIENT_SECRET"] = server.oauth["clientSecret"]
            if server.oauth.get("scopes"):
                auth["scopes"] = server.oauth["scopes"]
            data["auth"] = auth
    else:
        data = {"command": server.command, "args": list(server.args)}
        if server.env:
            data["env"] = dict(server.env)
    return _with_extra(data, server, identity)
