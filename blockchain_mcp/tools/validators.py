"""Shared validation helpers for blockchain MCP tools."""

from __future__ import annotations

import json
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from blockchain_mcp.chains import is_valid_chain_id

__all__ = ["is_valid_chain_id", "missing_fields", "missing_fields_error", "parse_rpc_params"]


def missing_fields(values: Mapping[str, Any], required: Iterable[str]) -> List[str]:
    """Names in ``required`` whose value is absent, None or an empty string."""
    missing: List[str] = []
    for name in required:
        value = values.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(name)
    return missing


def missing_fields_error(missing: List[str]) -> Optional[str]:
    if not missing:
        return None
    noun = "parameter" if len(missing) == 1 else "parameters"
    return f"Missing required {noun}: {', '.join(missing)}"


def parse_rpc_params(value: Any) -> Tuple[Any, Optional[str]]:
    """
    Normalize the ``params`` argument of an RPC call.

    Accepts an array, an object, None, or a JSON string encoding one of those
    (some clients send arguments pre-serialized). Returns ``(params, error)``.
    """
    if value is None:
        return [], None
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return [], None
        try:
            value = json.loads(stripped)
        except ValueError:
            return None, "Invalid params: expected an array or an object."
    if isinstance(value, (list, tuple, dict)):
        return value, None
    return None, "Invalid params: expected an array or an object."
