#!/usr/bin/env python3
"""devflow-mcp entry point.

Run:
  python -m devflow_mcp github            # GitHub REST + local git tools over stdio
  python -m devflow_mcp slack             # Slack webhook tools over stdio
  python -m devflow_mcp slack --test      # list tools and resources, then exit
"""

import argparse
import asyncio
import sys

from devflow_mcp.errors import AdapterError
from devflow_mcp.server import SERVICES, run_server, test_server


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="devflow-mcp", description="Serve devflow tools over MCP stdio.")
    parser.add_argument("service", choices=sorted(SERVICES), help="tool set to serve")
    parser.add_argument("--test", action="store_true", help="build the tool and resource listings, then exit")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    entry = test_server() if args.test else run_server(args.service)
    try:
        asyncio.run(entry)
    except KeyboardInterrupt:
        print("\nServer stopped by user", file=sys.stderr)
    except AdapterError as exc:
        print(f"Startup failed: {exc.message}", file=sys.stderr)
        sys.exit(1)
    except Exception as exc:  # pylint: disable=broad-exception-caught
        print(f"Server error: {exc}", file=sys.stderr)
        raise


if __name__ == "__main__":
    main()
