"""Task Journal Server - Main entry point."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from .config import JournalConfig, default_data_dir, load_config
from .engine import JournalEngine
from .tools import execute_tool, make_tools

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def create_server(config: JournalConfig) -> Server:
    """Create and configure the MCP server.

    Args:
        config: Journal configuration

    Returns:
        Configured MCP Server instance
    """
    server = Server("task-journal")
    engine = JournalEngine(config)
    tool_defs = make_tools(engine)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """Return list of available tools."""
        return [
            Tool(
                name=t["name"],
                description=t["description"],
                inputSchema=t["inputSchema"],
            )
            for t in tool_defs.values()
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
        """Handle tool invocation."""
        result = await execute_tool(engine, name, arguments or {})
        return [TextContent(type="text", text=json.dumps(result, indent=2, default=str))]

    return server


async def run_server(config: JournalConfig) -> None:
    """Run the MCP server with stdio transport."""
    server = create_server(config)
    logger.info("Serving task journal from %s", config.data_dir)

    async with stdio_server() as (read_stream, write_stream):  # pragma: no cover
        await server.run(  # pragma: no cover
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


def configure_logging(level: str) -> None:
    # stdout carries the MCP protocol, so logs go to stderr
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Task Journal Server - Timestamped task journaling over MCP"
    )
    parser.add_argument(
        "--data-dir",
        "-d",
        type=Path,
        default=default_data_dir(),
        help="Journal data directory (default: ~/.journal-mcp)",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        help="Path to config file (default: auto-detect in data directory)",
    )
    parser.add_argument(
        "--init",
        action="store_true",
        help="Initialize journal directories and exit",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default="INFO",
        help="Logging verbosity on stderr (default: INFO)",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    data_dir = args.data_dir.expanduser().resolve()

    # Load configuration
    try:
        config = load_config(data_dir, args.config)
    except Exception as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    if args.init:
        JournalEngine(config)
        print(f"Initialized journal directories in {data_dir}")
        print(f"  - {config.tasks_dir}/")
        print(f"  - {config.daily_dir}/")
        print(f"  - {config.one_on_ones_dir}/")
        return

    # Run server
    asyncio.run(run_server(config))


if __name__ == "__main__":  # pragma: no cover
    main()
