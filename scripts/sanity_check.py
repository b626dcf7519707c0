"""Minimal sanity checks for the blockchain MCP tools against the live gateways."""

from __future__ import annotations

import asyncio
import os
import sys

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from blockchain_mcp.config import load_config  # noqa: E402
from blockchain_mcp.context import build_context  # noqa: E402
from blockchain_mcp.tools import (  # noqa: E402
    gateway_execute_rpc,
    gateway_get_supported_chains,
    gateway_get_supported_methods,
    get_exchange_rate,
    get_wallet_portfolio,
)

# Public address with a long history; override via env.
SAMPLE_ADDRESS = os.getenv("SAMPLE_EVM_ADDRESS", "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045")
SAMPLE_CHAIN = os.getenv("SAMPLE_CHAIN", "ethereum-mainnet")
# Opt-in to a REST chain call (Cardano) in the sanity check.
RUN_REST_SANITY = os.getenv("RUN_REST_SANITY", "false").lower() in {"1", "true", "yes"}


async def main() -> None:
    context = build_context(load_config())
    try:
        chains = await gateway_get_supported_chains(gateway=context.gateway)
        print("Supported chains:", chains.get("count", chains))
        print("Methods:", await gateway_get_supported_methods(SAMPLE_CHAIN, gateway=context.gateway))

        print(
            "Block number:",
            await gateway_execute_rpc(SAMPLE_CHAIN, "eth_blockNumber", [], gateway=context.gateway),
        )
        print(
            "Balance:",
            await gateway_execute_rpc(
                SAMPLE_CHAIN, "eth_getBalance", [SAMPLE_ADDRESS, "latest"], gateway=context.gateway
            ),
        )

        if RUN_REST_SANITY:
            print(
                "Cardano latest block:",
                await gateway_execute_rpc("cardano-mainnet", "blocks/latest", [], gateway=context.gateway),
            )

        print("ETH/USD:", await get_exchange_rate(symbol="ETH", base_pair="USD", client=context.data_client))
        print(
            "Portfolio:",
            await get_wallet_portfolio(
                chain=SAMPLE_CHAIN,
                addresses=SAMPLE_ADDRESS,
                token_types="native",
                client=context.data_client,
            ),
        )
    finally:
        await context.aclose()


if __name__ == "__main__":
    asyncio.run(main())
