# src/money_manager/server.py
"""
MCP server over stdio.

stdout carries the protocol stream, so everything else (logs, startup
errors) goes to stderr.
"""
import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, List, Optional, Sequence

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from . import __version__
from .core.config import ClientConfig
from .core.env_config import config_summary, load_config
from .core.exceptions import ConfigurationError
from .core.http_client import MoneyManagerClient
from .core.logging import LoggingConfig, configure_logging
from .tools import execute_tool, list_tool_definitions

logger = logging.getLogger(__name__)

SERVER_NAME = "money-manager"


def create_server(client: MoneyManagerClient, include_dangerous: Optional[bool] = None) -> Server:
    """
    Build the MCP server for a client.

    Args:
        client: Money Manager client shared by all tool calls
        include_dangerous: Publish backup tools
            (default: client.config.enable_backup_tools)
    """
    if include_dangerous is None:
        include_dangerous = client.config.enable_backup_tools

    server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()
    async def list_tools() -> List[Tool]:
        return [
            Tool(
                name=tool.name,
                description=tool.description,
                inputSchema=tool.input_schema(),
            )
            for tool in list_tool_definitions(include_dangerous)
        ]

    # Arguments are validated by the tool schemas, with structured errors
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> List[TextContent]:
        result = await asyncio.to_thread(
            execute_tool, client, name, arguments, include_dangerous
        )
        return [TextContent(type="text", text=json.dumps(result, ensure_ascii=False, indent=2))]

    return server


async def run_server(client: MoneyManagerClient, include_dangerous: Optional[bool] = None) -> None:
    """Serve over stdio until the client disconnects."""
    server = create_server(client, include_dangerous)
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="money-manager-mcp",
        description="MCP server for a self-hosted Money Manager web app.",
    )
    parser.add_argument(
        "--base-url", "--baseUrl", dest="base_url",
        help="Money Manager server URL (default: MONEY_MANAGER_BASE_URL or config file)",
    )
    parser.add_argument(
        "--config", dest="config_file",
        help="Config file (.json/.yaml); default: .money-manager-mcp.json in cwd",
    )
    parser.add_argument(
        "--log-level", dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
    )
    parser.add_argument(
        "--enable-backup-tools", dest="enable_backup_tools", action="store_true",
        help="Publish backup_download and backup_restore (backup_restore replaces the server database)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def load_server_config(args: argparse.Namespace) -> ClientConfig:
    """CLI flags override environment and config file."""
    return load_config(
        args.config_file,
        base_url=args.base_url,
        log_level=args.log_level,
        enable_backup_tools=True if args.enable_backup_tools else None,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Console entry point.

    Returns:
        Exit code (0 on normal shutdown, 2 on configuration error)
    """
    args = build_parser().parse_args(argv)

    try:
        config = load_server_config(args)
    except ConfigurationError as e:
        print(f"money-manager-mcp: configuration error: {e.message}", file=sys.stderr)
        for item in e.details.get("errors") or []:
            print(f"  {item['field']}: {item['message']}", file=sys.stderr)
        return 2

    configure_logging(config.logging or LoggingConfig())
    logger.info("Starting Money Manager MCP server", extra=config_summary(config))

    client = MoneyManagerClient(config)
    try:
        asyncio.run(run_server(client))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    finally:
        client.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
