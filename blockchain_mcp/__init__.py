"""
Blockchain MCP server package.

This package exposes LLM-friendly tools over the vendor's RPC gateways and Data
API: chain discovery, gateway routing with JSON-RPC and REST normalization, and
wallet, token and transaction lookups. See DESIGN.md for full details.
"""

__version__ = "1.0.0"

__all__ = ["config", "__version__"]
