"""Command line entry point: HTTP server by default, MCP over stdio on request."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from blockchain_mcp import __version__
from blockchain_mcp.config import BlockchainMcpConfig, load_config
from blockchain_mcp.context import build_context

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="blockchain-mcp",
        description="MCP server for blockchain RPC gateways and the Data API.",
    )
    parser.add_argument("--api-key", help="API key; overrides TATUM_API_KEY and the key file.")
    parser.add_argument("--host", default=DEFAULT_HOST, help=f"HTTP bind address (default {DEFAULT_HOST}).")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help=f"HTTP port (default {DEFAULT_PORT}).")
    parser.add_argument("--stdio", action="store_true", help="Serve MCP on stdin/stdout instead of HTTP.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _resolve_config(args: argparse.Namespace) -> BlockchainMcpConfig:
    config = load_config()
    if args.api_key:
        config = config.with_api_key(args.api_key)
    return config


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = _resolve_config(args)

    from blockchain_mcp.server import configure_logging, create_app

    configure_logging(config, force=True)
    if not config.api_key:
        logger.warning("No API key configured; vendor gateways may reject requests")
    if config.custom_rpc_urls:
        logger.info("Custom RPC overrides configured for: %s", ", ".join(sorted(config.custom_rpc_urls)))

    if args.stdio:
        from blockchain_mcp.stdio import serve_stdio

        asyncio.run(serve_stdio(build_context(config)))
        return 0

    import uvicorn

    uvicorn.run(create_app(config), host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
