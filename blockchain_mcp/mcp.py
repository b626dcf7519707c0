"""
JSON-RPC surface for MCP-style tooling.

This keeps the mapping of tool names to implementations plus the message
handler behind the HTTP ``/mcp`` route. The stdio transport serves the same
registry through the MCP SDK. Everything here is stateless apart from the
services carried by :class:`ToolContext`.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from blockchain_mcp import __version__
from blockchain_mcp.chains import CHAIN_ID_MAX_LENGTH, CHAIN_ID_MIN_LENGTH, CHAIN_ID_REGEX
from blockchain_mcp.context import ToolContext
from blockchain_mcp.tools import (
    check_malicious_address,
    check_owner,
    gateway_execute_rpc,
    gateway_get_supported_chains,
    gateway_get_supported_methods,
    get_block_by_time,
    get_exchange_rate,
    get_metadata,
    get_owners,
    get_tokens,
    get_transaction_history,
    get_wallet_balance_by_time,
    get_wallet_portfolio,
)

logger = logging.getLogger(__name__)

SERVER_NAME = "blockchain-mcp-server"
SERVER_VERSION = __version__

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602

CHAIN_SCHEMA: Dict[str, Any] = {
    "type": "string",
    "description": (
        "The blockchain network identifier, e.g. 'ethereum-mainnet', 'bitcoin-mainnet', "
        "'polygon-mainnet', 'cardano-mainnet'. Use gateway_get_supported_chains to see "
        "all available networks."
    ),
    "pattern": CHAIN_ID_REGEX.pattern,
    "minLength": CHAIN_ID_MIN_LENGTH,
    "maxLength": CHAIN_ID_MAX_LENGTH,
}
DATA_CHAIN_SCHEMA: Dict[str, Any] = {
    "type": "string",
    "description": "The blockchain to work with.",
    "examples": ["ethereum-mainnet"],
}
TOKEN_ADDRESS_SCHEMA: Dict[str, Any] = {
    "type": "string",
    "description": "The blockchain address of the token (NFT collection or fungible token).",
}
PAGE_SCHEMA: Dict[str, Any] = {"type": "string", "description": "Page size (default 50)."}
OFFSET_SCHEMA: Dict[str, Any] = {"type": "string", "description": "Offset of the next page."}

ToolCallable = Callable[..., Awaitable[Any]]


@dataclass(slots=True)
class ToolDefinition:
    name: str
    description: str
    category: str  # "gateway" or "data"
    input_schema: Dict[str, Any]
    callable: ToolCallable

    def bind(self, context: ToolContext) -> Dict[str, Any]:
        if self.category == "gateway":
            return {"gateway": context.gateway}
        return {"client": context.data_client}


def _object_schema(properties: Dict[str, Any], required: List[str]) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": properties,
        "required": required,
        "additionalProperties": False,
    }


_GATEWAY_TOOLS = [
    ToolDefinition(
        name="gateway_get_supported_chains",
        description="Get a list of all supported blockchain networks available through the RPC gateways.",
        category="gateway",
        input_schema=_object_schema({}, []),
        callable=gateway_get_supported_chains,
    ),
    ToolDefinition(
        name="gateway_get_supported_methods",
        description="Get supported RPC methods for a specific blockchain chain.",
        category="gateway",
        input_schema=_object_schema({"chain": CHAIN_SCHEMA}, ["chain"]),
        callable=gateway_get_supported_methods,
    ),
    ToolDefinition(
        name="gateway_execute_rpc",
        description=(
            "Execute blockchain RPC calls through the gateway infrastructure. JSON-RPC chains "
            "take method names like 'getblockcount' or 'eth_getBalance' with positional params. "
            "REST chains take a path like 'blocks/latest' or an HTTP method plus path like "
            "'GET /blocks/latest'; pass query values as a single object inside params."
        ),
        category="gateway",
        input_schema=_object_schema(
            {
                "chain": CHAIN_SCHEMA,
                "method": {
                    "type": "string",
                    "description": "RPC method name or REST endpoint ('<VERB> /path').",
                    "examples": ["getblockcount", "eth_getBalance", "eth_blockNumber", "GET /blocks/latest"],
                },
                "params": {
                    "description": (
                        "Parameters: an array for JSON-RPC (e.g. ['0x742d...', 'latest']) or an "
                        "array with a single object for REST query values."
                    ),
                    "type": ["array", "object"],
                    "default": [],
                },
            },
            ["chain", "method"],
        ),
        callable=gateway_execute_rpc,
    ),
]

_DATA_TOOLS = [
    ToolDefinition(
        name="get_metadata",
        description="Fetch metadata of NFTs or multitokens by token address and IDs.",
        category="data",
        input_schema=_object_schema(
            {
                "chain": DATA_CHAIN_SCHEMA,
                "token_address": TOKEN_ADDRESS_SCHEMA,
                "token_ids": {"type": "string", "description": "Comma separated token IDs."},
            },
            ["chain", "token_address", "token_ids"],
        ),
        callable=get_metadata,
    ),
    ToolDefinition(
        name="get_wallet_balance_by_time",
        description="Get native wallet balances at specific time or block.",
        category="data",
        input_schema=_object_schema(
            {
                "chain": DATA_CHAIN_SCHEMA,
                "addresses": {"type": "string", "description": "Up to 10 comma separated addresses."},
                "block_number": {"type": "string"},
                "time": {"type": "string"},
                "unix": {"type": "number"},
            },
            ["chain", "addresses"],
        ),
        callable=get_wallet_balance_by_time,
    ),
    ToolDefinition(
        name="get_wallet_portfolio",
        description="Get detailed portfolio of native, fungible, and NFT tokens for a wallet.",
        category="data",
        input_schema=_object_schema(
            {
                "chain": DATA_CHAIN_SCHEMA,
                "addresses": {"type": "string", "description": "A single wallet address."},
                "token_types": {"type": "string", "enum": ["native", "fungible", "nft,multitoken"]},
                "exclude_metadata": {"type": ["string", "boolean"]},
                "page_size": PAGE_SCHEMA,
                "offset": OFFSET_SCHEMA,
            },
            ["chain", "addresses", "token_types"],
        ),
        callable=get_wallet_portfolio,
    ),
    ToolDefinition(
        name="get_owners",
        description="Get all addresses owning a specific NFT, multitoken, or ERC-20.",
        category="data",
        input_schema=_object_schema(
            {
                "chain": DATA_CHAIN_SCHEMA,
                "token_address": TOKEN_ADDRESS_SCHEMA,
                "token_id": {"type": "string"},
                "page_size": PAGE_SCHEMA,
                "offset": OFFSET_SCHEMA,
            },
            ["chain", "token_address"],
        ),
        callable=get_owners,
    ),
    ToolDefinition(
        name="check_owner",
        description="Check whether an address owns a specific token.",
        category="data",
        input_schema=_object_schema(
            {
                "chain": DATA_CHAIN_SCHEMA,
                "address": {"type": "string"},
                "token_address": TOKEN_ADDRESS_SCHEMA,
                "token_id": {"type": "string"},
            },
            ["chain", "address", "token_address"],
        ),
        callable=check_owner,
    ),
    ToolDefinition(
        name="get_transaction_history",
        description="Get transaction history for addresses or tokens.",
        category="data",
        input_schema=_object_schema(
            {
                "chain": DATA_CHAIN_SCHEMA,
                "addresses": {"type": "string"},
                "transaction_types": {"type": "string", "enum": ["fungible", "nft", "multitoken", "native"]},
                "transaction_subtype": {"type": "string", "enum": ["incoming", "outgoing", "zero-transfer"]},
                "token_address": TOKEN_ADDRESS_SCHEMA,
                "token_id": {"type": "string"},
                "block_from": {"type": "string"},
                "block_to": {"type": "string"},
                "page_size": PAGE_SCHEMA,
                "offset": OFFSET_SCHEMA,
                "cursor": {"type": "string"},
                "sort": {"type": "string", "enum": ["ASC", "DESC"]},
            },
            ["chain"],
        ),
        callable=get_transaction_history,
    ),
    ToolDefinition(
        name="get_block_by_time",
        description="Get block information by timestamp.",
        category="data",
        input_schema=_object_schema(
            {"chain": DATA_CHAIN_SCHEMA, "time": {"type": "string"}, "unix": {"type": "number"}},
            ["chain"],
        ),
        callable=get_block_by_time,
    ),
    ToolDefinition(
        name="get_tokens",
        description="Get information about a fungible token, NFT or multitoken.",
        category="data",
        input_schema=_object_schema(
            {"chain": DATA_CHAIN_SCHEMA, "token_address": TOKEN_ADDRESS_SCHEMA, "token_id": {"type": "string"}},
            ["chain", "token_address"],
        ),
        callable=get_tokens,
    ),
    ToolDefinition(
        name="check_malicious_address",
        description="Check whether an address is flagged as malicious.",
        category="data",
        input_schema=_object_schema({"address": {"type": "string"}}, ["address"]),
        callable=check_malicious_address,
    ),
    ToolDefinition(
        name="get_exchange_rate",
        description="Get the exchange rate of a crypto asset against a base pair.",
        category="data",
        input_schema=_object_schema(
            {
                "symbol": {"type": "string", "examples": ["ETH"]},
                "base_pair": {"type": "string", "examples": ["USD"]},
            },
            ["symbol", "base_pair"],
        ),
        callable=get_exchange_rate,
    ),
]

TOOL_REGISTRY: Dict[str, ToolDefinition] = {tool.name: tool for tool in [*_GATEWAY_TOOLS, *_DATA_TOOLS]}


def list_tools() -> List[Dict[str, Any]]:
    """Return the available tools, descriptions tagged with their category."""
    return [
        {
            "name": tool.name,
            "description": f"[{tool.category}] {tool.description}",
            "inputSchema": tool.input_schema,
        }
        for tool in TOOL_REGISTRY.values()
    ]


async def call_tool(tool_name: str, params: Optional[Dict[str, Any]], context: ToolContext) -> Any:
    """Dispatch to a tool by name."""
    params = params or {}
    tool = TOOL_REGISTRY.get(tool_name)
    if tool is None:
        return {"error": f"Unknown tool: {tool_name}"}

    # Match parameters by name; tools already handle validation and error shaping.
    try:
        return await tool.callable(**params, **tool.bind(context))
    except TypeError:
        return {"error": "Invalid parameters."}
    except Exception:
        logger.exception("Unexpected error calling tool %s", tool_name)
        return {"error": "Unexpected error while calling tool."}


def jsonrpc_success(rpc_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": rpc_id, "result": result}


def jsonrpc_error(rpc_id: Any, code: int, message: str) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": rpc_id, "error": {"code": code, "message": message}}


def wrap_tool_result(result: Any) -> Dict[str, Any]:
    """Shape tool outputs into an MCP content array."""
    # Tool-level errors are returned in-band with isError flag.
    if isinstance(result, dict) and result.get("error"):
        return {
            "content": [{"type": "text", "text": json.dumps(result, indent=2, default=str)}],
            "isError": True,
            "structuredContent": result,
        }

    if isinstance(result, str):
        return {"content": [{"type": "text", "text": result}]}

    text_repr = json.dumps(result, indent=2, default=str)
    wrapped: Dict[str, Any] = {"content": [{"type": "text", "text": text_repr}]}
    if isinstance(result, dict):
        wrapped["structuredContent"] = result
    else:
        wrapped["structuredContent"] = {"items": result} if isinstance(result, list) else {"value": result}
    return wrapped


@dataclass(slots=True)
class RpcOutcome:
    payload: Optional[Dict[str, Any]]
    status_code: int = 200
    tool: Optional[str] = None
    tool_result: Any = None


async def handle_message(body: Any, context: ToolContext) -> RpcOutcome:
    """
    Handle one decoded JSON-RPC message.

    Supported methods:
      - initialize
      - list_tools / tools/list
      - call_tool / tools/call
      - ping
      - notifications/* and other id-less messages (no response body)
    """
    if not isinstance(body, dict):
        return RpcOutcome(jsonrpc_error(None, INVALID_REQUEST, "Invalid request"), status_code=400)

    method = body.get("method")
    rpc_id = body.get("id")
    if isinstance(method, str) and (method.startswith("notifications/") or "id" not in body):
        # Notifications do not get a JSON-RPC response body.
        return RpcOutcome(None, status_code=204)

    raw_params = body.get("params")
    if raw_params is None:
        params: Dict[str, Any] = {}
    elif isinstance(raw_params, dict):
        params = raw_params
    else:
        return RpcOutcome(jsonrpc_error(rpc_id, INVALID_PARAMS, "Invalid params"))

    if not method:
        return RpcOutcome(jsonrpc_error(rpc_id, INVALID_REQUEST, "Invalid request"))

    if method == "initialize":
        protocol_version = params.get("protocolVersion")
        if not isinstance(protocol_version, str) or not protocol_version:
            return RpcOutcome(jsonrpc_error(rpc_id, INVALID_PARAMS, "Invalid params"))
        result = {
            "protocolVersion": protocol_version,
            "serverInfo": {"name": SERVER_NAME, "version": SERVER_VERSION},
            "capabilities": {"tools": {"listChanged": False}},
        }
        return RpcOutcome(jsonrpc_success(rpc_id, result))

    if method in ("list_tools", "tools/list"):
        return RpcOutcome(jsonrpc_success(rpc_id, {"tools": list_tools()}))

    if method in ("call_tool", "tools/call"):
        tool_name = params.get("tool") or params.get("name")
        tool_params = params.get("params")
        if tool_params is None:
            tool_params = params.get("arguments") or {}
        if not isinstance(tool_name, str) or not tool_name.strip():
            return RpcOutcome(jsonrpc_error(rpc_id, INVALID_PARAMS, "Invalid params"))
        if not isinstance(tool_params, dict):
            return RpcOutcome(jsonrpc_error(rpc_id, INVALID_PARAMS, "Invalid params"), tool=tool_name)
        result = await call_tool(tool_name, tool_params, context)
        return RpcOutcome(
            jsonrpc_success(rpc_id, wrap_tool_result(result)),
            tool=tool_name,
            tool_result=result,
        )

    if method == "ping":
        return RpcOutcome(jsonrpc_success(rpc_id, {}))

    return RpcOutcome(jsonrpc_error(rpc_id, METHOD_NOT_FOUND, "Method not found"))


def parse_message(raw: str | bytes) -> Tuple[Any, Optional[Dict[str, Any]]]:
    """Decode a raw message; returns ``(body, error_payload)``."""
    try:
        return json.loads(raw), None
    except ValueError:
        return None, jsonrpc_error(None, PARSE_ERROR, "Parse error")
