#!/usr/bin/env python3
"""
Startup script for the MCP Forwarded-For server.

Prints the effective environment before handing over to the server so that
client-side configuration problems show up in the MCP host's stderr log.
"""

import os
import sys
from pathlib import Path


def describe_environment():
    """Print the XFF_* variables the server will pick up."""
    print("[MCP Startup] Environment:", file=sys.stderr)
    print(f"  - Working directory: {Path.cwd()}", file=sys.stderr)

    overrides = {key: value for key, value in os.environ.items() if key.upper().startswith("XFF_")}
    if not overrides:
        print("  - No XFF_* overrides, using defaults", file=sys.stderr)
    for key, value in sorted(overrides.items()):
        print(f"  - {key}={value}", file=sys.stderr)


def main():
    """Main startup function."""
    print("[MCP Startup] Starting Forwarded-For MCP server...", file=sys.stderr)
    describe_environment()

    try:
        from mcp_forwarded_for.server import main as server_main
        server_main()
    except KeyboardInterrupt:
        print("[MCP Startup] Server stopped by user", file=sys.stderr)
    except Exception as e:
        print(f"[MCP Startup] Server error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
