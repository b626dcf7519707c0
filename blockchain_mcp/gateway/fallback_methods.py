"""
Placeholder method catalogs.

These lists are approximate and hand-maintained. They are served only when a
chain's gateway offers no live ``/_methods`` discovery, so the advertised
method list is advisory rather than authoritative.
"""

from __future__ import annotations

import copy
from typing import Any, Dict

from blockchain_mcp.chains import ChainProtocolRegistry, ProtocolKind

MethodCatalog = Dict[str, Dict[str, Any]]

GENERIC_EVM_METHOD_CATALOG: MethodCatalog = {
    "/jsonrpc": {
        "protocol": "json-rpc",
        "methods": [
            "eth_getBalance",
            "eth_getTransactionByHash",
            "eth_getBlockByNumber",
            "eth_call",
            "eth_sendRawTransaction",
            "eth_gasPrice",
            "eth_estimateGas",
        ],
    }
}

PLACEHOLDER_METHOD_CATALOGS: Dict[str, MethodCatalog] = {
    "ethereum-mainnet": {
        "/jsonrpc": {
            "protocol": "json-rpc",
            "methods": [
                "eth_getBalance",
                "eth_getTransactionByHash",
                "eth_getBlockByNumber",
                "eth_call",
                "eth_sendRawTransaction",
                "eth_gasPrice",
                "eth_estimateGas",
                "debug_traceTransaction",
            ],
        }
    },
    "bitcoin-mainnet": {
        "/jsonrpc": {
            "protocol": "json-rpc",
            "methods": [
                "getblockchaininfo",
                "getblock",
                "gettransaction",
                "getrawmempool",
                "sendrawtransaction",
                "estimatesmartfee",
            ],
        }
    },
    "tron-mainnet": {
        "/wallet": {
            "protocol": "rest",
            "methods": [
                "POST /getnowblock",
                "POST /getblockbynum",
                "POST /getaccount",
                "POST /gettransactionbyid",
            ],
        },
        "/walletsolidity": {
            "protocol": "rest",
            "methods": ["POST /getblockbylatestnum", "POST /getaccountbyid"],
        },
        "/jsonrpc": {
            "protocol": "json-rpc",
            "methods": ["buildTransaction", "debug_storageRangeAt"],
        },
    },
    "polygon-mainnet": {
        "/jsonrpc": {
            "protocol": "json-rpc",
            "methods": [
                "eth_getBalance",
                "eth_getTransactionByHash",
                "eth_getBlockByNumber",
                "eth_call",
                "eth_sendRawTransaction",
                "bor_getAuthor",
                "bor_getCurrentValidators",
            ],
        }
    },
}


def fallback_method_catalog(chain: str, registry: ChainProtocolRegistry) -> MethodCatalog:
    """
    Best-effort method catalog for ``chain``.

    Lookup order: the per-chain placeholder, then a REST catalog derived from the
    chain's default endpoints, then the generic EVM JSON-RPC list. Always returns
    a fresh copy.
    """
    placeholder = PLACEHOLDER_METHOD_CATALOGS.get(chain)
    if placeholder is not None:
        return copy.deepcopy(placeholder)

    if registry.protocol_of(chain) is ProtocolKind.REST:
        api_config = registry.config_of(chain)
        if api_config.default_endpoints:
            root = api_config.base_path_prefix or "/"
            return {
                root: {
                    "protocol": "rest",
                    "methods": [f"GET {endpoint}" for endpoint in api_config.default_endpoints],
                }
            }

    return copy.deepcopy(GENERIC_EVM_METHOD_CATALOG)
