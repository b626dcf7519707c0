"""LLM-facing tool implementations."""

from .gateway import gateway_execute_rpc, gateway_get_supported_chains, gateway_get_supported_methods
from .data import (
    check_malicious_address,
    check_owner,
    get_block_by_time,
    get_exchange_rate,
    get_metadata,
    get_owners,
    get_tokens,
    get_transaction_history,
    get_wallet_balance_by_time,
    get_wallet_portfolio,
)

__all__ = [
    "gateway_get_supported_chains",
    "gateway_get_supported_methods",
    "gateway_execute_rpc",
    "get_metadata",
    "get_wallet_balance_by_time",
    "get_wallet_portfolio",
    "get_owners",
    "check_owner",
    "get_transaction_history",
    "get_block_by_time",
    "get_tokens",
    "check_malicious_address",
    "get_exchange_rate",
]
