"""MCP server wiring for devflow-mcp.

Two services share this wiring: `github` (REST + local git tools and the rate-limit resource) and
`slack` (webhook tools). Configuration, including an optional `.env` file, is loaded once in
`build_gateway` and handed to the gateway.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

from mcp.server import Server
from mcp.types import CallToolResult, Resource, TextContent, Tool

from . import __version__
from .audit import AuditLogger
from .config import (
    load_audit_path_from_env,
    load_env_file,
    load_hosting_config_from_env,
    load_webhook_config_from_env,
)
from .errors import AdapterError, ErrorKind, normalize_error
from .github_tools import GITHUB_TOOLS, RATE_LIMIT_URI, GitHubGateway, build_github_gateway
from .slack_tools import SLACK_TOOLS, build_slack_gateway
from .tools import Gateway, ToolSpec

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stderr)],
)
logger = logging.getLogger(__name__)

SERVICES: dict[str, dict[str, ToolSpec]] = {"github": GITHUB_TOOLS, "slack": SLACK_TOOLS}

_RATE_LIMIT_RESOURCE = {
    "uri": RATE_LIMIT_URI,
    "name": "Rate Limit",
    "description": "Current GitHub REST API rate limits",
    "mimeType": "text/plain",
}


def _tool_listing(tools: dict[str, ToolSpec]) -> list[Tool]:
    out: list[Tool] = []
    for tool_name, spec in tools.items():
        meta = spec.metadata()
        out.append(Tool(name=tool_name, description=meta["description"], inputSchema=meta["inputSchema"]))
    return out


def list_resources_for(gateway: Gateway) -> list[Resource]:
    if isinstance(gateway, GitHubGateway):
        return [Resource(**_RATE_LIMIT_RESOURCE)]
    return []


async def call_tool_for(gateway: Gateway, name: str, arguments: dict[str, Any] | None) -> CallToolResult:
    """Execute a tool and return an MCP result whose isError mirrors the outcome."""
    logger.info("Tool called: %s", name)
    outcome = await gateway.dispatch(name, arguments)
    return CallToolResult(
        content=[TextContent(type="text", text=outcome.message)],
        isError=outcome.is_error,
    )


async def read_resource_for(gateway: Gateway, uri: Any) -> str:
    uri_s = (uri if isinstance(uri, str) else str(uri)).rstrip("/")
    if uri_s == RATE_LIMIT_URI and isinstance(gateway, GitHubGateway):
        outcome = await gateway.read_rate_limit()
        return outcome.message
    return normalize_error(AdapterError(kind=ErrorKind.NOT_FOUND, message=f"Unknown resource: {uri_s}")).message


def create_server(gateway: Gateway) -> Server:
    """Build an MCP server around a gateway."""
    server = Server(gateway.name, version=__version__, instructions=gateway.instructions or None)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        tools = _tool_listing(dict(gateway.tools))
        logger.info("Listed %s tools", len(tools))
        return tools

    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict[str, Any] | None) -> CallToolResult:
        return await call_tool_for(gateway, name, arguments)

    @server.list_resources()
    async def list_resources() -> list[Resource]:
        return list_resources_for(gateway)

    @server.read_resource()
    async def read_resource(uri: Any) -> str:
        return await read_resource_for(gateway, uri)

    return server


def build_gateway(service: str) -> Gateway:
    """Load configuration for `service` from the environment (and `.env`) and wire its gateway."""
    load_env_file()
    audit = AuditLogger(sink_path=load_audit_path_from_env())
    if service == "github":
        return build_github_gateway(load_hosting_config_from_env(), audit=audit)
    if service == "slack":
        return build_slack_gateway(load_webhook_config_from_env(), audit=audit)
    raise ValueError(f"Unknown service: {service}")


async def run_server(service: str) -> None:
    """Run one service over stdio."""
    # Fail fast on invalid/missing host configuration.
    try:
        gateway = build_gateway(service)
    except AdapterError as exc:
        logger.error("Startup configuration error: %s", exc.message)
        raise

    from mcp.server.stdio import stdio_server

    server = create_server(gateway)
    logger.info("%s server ready", gateway.name)
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


async def test_server() -> None:
    """Lightweight self-test to ensure tool/resource listing works without configuration."""
    for tools in SERVICES.values():
        _ = _tool_listing(tools)
    _ = Resource(**_RATE_LIMIT_RESOURCE)
