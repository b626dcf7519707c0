"""RPC gateway tools."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from blockchain_mcp.gateway import GatewayFacade
from blockchain_mcp.tools.validators import is_valid_chain_id, parse_rpc_params

logger = logging.getLogger(__name__)


async def gateway_get_supported_chains(*, gateway: GatewayFacade) -> Dict[str, Any]:
    """
    List every chain reachable through the gateways.

    Args:
        gateway: Gateway facade (override for testing).

    Returns:
        ``{"chains": [...], "count": n}`` or an error dict.
    """
    try:
        chains = await gateway.list_supported_chains()
    except Exception:
        logger.exception("Unexpected error listing supported chains")
        return {"error": "Unexpected error while retrieving supported chains."}
    return {"chains": chains, "count": len(chains)}


async def gateway_get_supported_methods(chain: Optional[str] = None, *, gateway: GatewayFacade) -> Dict[str, Any]:
    """Return the method catalog for ``chain``; advisory, never fails for a well-formed chain."""
    if not chain:
        return {"error": "Missing required parameter: chain"}
    if not is_valid_chain_id(chain):
        return {"error": f"Invalid chain identifier: {chain}"}
    try:
        methods = await gateway.list_supported_methods(chain)
    except Exception:
        logger.exception("Unexpected error listing methods for %s", chain)
        return {"error": "Unexpected error while retrieving supported methods."}
    return {"chain": chain, "methods": methods}


async def gateway_execute_rpc(
    chain: Optional[str] = None,
    method: Optional[str] = None,
    params: Any = None,
    *,
    gateway: GatewayFacade,
) -> Dict[str, Any]:
    """
    Execute a JSON-RPC or REST call on ``chain``.

    Returns:
        The response envelope as a dict with ``data``, ``error``, ``status`` and
        ``statusText`` always present.
    """
    parsed, error = parse_rpc_params(params)
    if error:
        return {"data": None, "error": error, "status": 400, "statusText": "Bad Request"}
    envelope = await gateway.execute(chain or "", method or "", parsed)
    return envelope.to_dict()
