"""devflow-mcp: GitHub, Slack webhook and local git tools over MCP."""

__version__ = "0.1.0"
