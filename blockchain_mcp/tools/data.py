"""Data API tools: balances, portfolios, NFT ownership, transactions and rates."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from blockchain_mcp.data_api import DataApiClient
from blockchain_mcp.tools.validators import missing_fields, missing_fields_error

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DataEndpoint:
    path: str
    required: Tuple[str, ...]
    optional: Tuple[str, ...] = ()


DATA_ENDPOINTS: Dict[str, DataEndpoint] = {
    "get_metadata": DataEndpoint("/v4/data/metadata", ("chain", "token_address", "token_ids")),
    "get_wallet_balance_by_time": DataEndpoint(
        "/v4/data/wallet/balance/time",
        ("chain", "addresses"),
        ("block_number", "time", "unix"),
    ),
    "get_wallet_portfolio": DataEndpoint(
        "/v4/data/wallet/portfolio",
        ("chain", "addresses", "token_types"),
        ("exclude_metadata", "page_size", "offset"),
    ),
    "get_owners": DataEndpoint(
        "/v4/data/owners",
        ("chain", "token_address"),
        ("token_id", "page_size", "offset"),
    ),
    "check_owner": DataEndpoint(
        "/v4/data/owners/address",
        ("chain", "address", "token_address"),
        ("token_id",),
    ),
    "get_transaction_history": DataEndpoint(
        "/v4/data/transactions",
        ("chain",),
        (
            "addresses",
            "transaction_types",
            "transaction_subtype",
            "token_address",
            "token_id",
            "block_from",
            "block_to",
            "page_size",
            "offset",
            "cursor",
            "sort",
        ),
    ),
    "get_block_by_time": DataEndpoint("/v4/data/block/time", ("chain",), ("time", "unix")),
    "get_tokens": DataEndpoint("/v4/data/tokens", ("chain", "token_address"), ("token_id",)),
    "check_malicious_address": DataEndpoint("/v3/security/address/{address}", ("address",)),
    "get_exchange_rate": DataEndpoint("/v3/tatum/rate/{symbol}", ("symbol", "base_pair")),
}


def _api_name(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


async def _call_endpoint(tool: str, args: Dict[str, Any], client: DataApiClient) -> Dict[str, Any]:
    endpoint = DATA_ENDPOINTS[tool]
    error = missing_fields_error(missing_fields(args, endpoint.required))
    if error:
        return {"data": None, "error": error, "status": 400, "statusText": "Bad Request"}

    parameters: Dict[str, Any] = {_api_name(name): args[name] for name in endpoint.required}
    for name in endpoint.optional:
        value = args.get(name)
        if value is None or value == "":
            continue
        parameters[_api_name(name)] = value

    try:
        envelope = await client.execute_request("GET", endpoint.path, parameters)
    except Exception:
        logger.exception("Unexpected error calling %s", tool)
        return {"data": None, "error": f"Unexpected error while calling {tool}.", "status": 500, "statusText": "Error"}
    return envelope.to_dict()


async def get_metadata(
    chain: Optional[str] = None,
    token_address: Optional[str] = None,
    token_ids: Optional[str] = None,
    *,
    client: DataApiClient,
) -> Dict[str, Any]:
    return await _call_endpoint("get_metadata", locals(), client)


async def get_wallet_balance_by_time(
    chain: Optional[str] = None,
    addresses: Optional[str] = None,
    block_number: Optional[str] = None,
    time: Optional[str] = None,
    unix: Optional[int] = None,
    *,
    client: DataApiClient,
) -> Dict[str, Any]:
    return await _call_endpoint("get_wallet_balance_by_time", locals(), client)


async def get_wallet_portfolio(
    chain: Optional[str] = None,
    addresses: Optional[str] = None,
    token_types: Optional[str] = None,
    exclude_metadata: Optional[Any] = None,
    page_size: Optional[str] = None,
    offset: Optional[str] = None,
    *,
    client: DataApiClient,
) -> Dict[str, Any]:
    return await _call_endpoint("get_wallet_portfolio", locals(), client)


async def get_owners(
    chain: Optional[str] = None,
    token_address: Optional[str] = None,
    token_id: Optional[str] = None,
    page_size: Optional[str] = None,
    offset: Optional[str] = None,
    *,
    client: DataApiClient,
) -> Dict[str, Any]:
    return await _call_endpoint("get_owners", locals(), client)


async def check_owner(
    chain: Optional[str] = None,
    address: Optional[str] = None,
    token_address: Optional[str] = None,
    token_id: Optional[str] = None,
    *,
    client: DataApiClient,
) -> Dict[str, Any]:
    return await _call_endpoint("check_owner", locals(), client)


async def get_transaction_history(
    chain: Optional[str] = None,
    addresses: Optional[str] = None,
    transaction_types: Optional[str] = None,
    transaction_subtype: Optional[str] = None,
    token_address: Optional[str] = None,
    token_id: Optional[str] = None,
    block_from: Optional[str] = None,
    block_to: Optional[str] = None,
    page_size: Optional[str] = None,
    offset: Optional[str] = None,
    cursor: Optional[str] = None,
    sort: Optional[str] = None,
    *,
    client: DataApiClient,
) -> Dict[str, Any]:
    return await _call_endpoint("get_transaction_history", locals(), client)


async def get_block_by_time(
    chain: Optional[str] = None,
    time: Optional[str] = None,
    unix: Optional[int] = None,
    *,
    client: DataApiClient,
) -> Dict[str, Any]:
    return await _call_endpoint("get_block_by_time", locals(), client)


async def get_tokens(
    chain: Optional[str] = None,
    token_address: Optional[str] = None,
    token_id: Optional[str] = None,
    *,
    client: DataApiClient,
) -> Dict[str, Any]:
    return await _call_endpoint("get_tokens", locals(), client)


async def check_malicious_address(address: Optional[str] = None, *, client: DataApiClient) -> Dict[str, Any]:
    return await _call_endpoint("check_malicious_address", locals(), client)


async def get_exchange_rate(
    symbol: Optional[str] = None,
    base_pair: Optional[str] = None,
    *,
    client: DataApiClient,
) -> Dict[str, Any]:
    return await _call_endpoint("get_exchange_rate", locals(), client)
