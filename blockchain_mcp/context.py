"""Service wiring shared by the HTTP server, the stdio loop and the tools."""

from __future__ import annotations

from dataclasses import dataclass

from blockchain_mcp.config import BlockchainMcpConfig
from blockchain_mcp.data_api import DataApiClient
from blockchain_mcp.gateway import GatewayFacade


@dataclass(slots=True)
class ToolContext:
    config: BlockchainMcpConfig
    gateway: GatewayFacade
    data_client: DataApiClient

    async def aclose(self) -> None:
        await self.gateway.aclose()
        await self.data_client.aclose()


def build_context(config: BlockchainMcpConfig) -> ToolContext:
    return ToolContext(
        config=config,
        gateway=GatewayFacade(config),
        data_client=DataApiClient(config),
    )
