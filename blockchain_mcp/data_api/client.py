"""
Thin client for the vendor's Data API.

Requests go to the configured API base URL with path templates such as
``/v3/security/address/{address}``; results come back as response envelopes,
like every gateway call.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from blockchain_mcp.config import BlockchainMcpConfig
from blockchain_mcp.gateway.errors import RequestBuildError
from blockchain_mcp.gateway.request_builder import build_api_request
from blockchain_mcp.gateway.transport import ResponseEnvelope, TransportExecutor

logger = logging.getLogger(__name__)

CONNECTION_CHECK_PATH = "/v4/data/supported-chains"


class DataApiClient:
    """Async client for the Data API surface."""

    def __init__(
        self,
        config: BlockchainMcpConfig,
        *,
        async_client: Optional[httpx.AsyncClient] = None,
        transport: Optional[TransportExecutor] = None,
    ) -> None:
        self.config = config
        self._transport = transport or TransportExecutor(
            api_key=config.api_key,
            timeout=config.timeout,
            async_client=async_client,
        )

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def execute_request(
        self,
        method: str,
        path: str,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> ResponseEnvelope:
        try:
            request = build_api_request(
                self.config.api_base_url,
                method,
                path,
                parameters,
                api_key=self.config.api_key,
            )
        except RequestBuildError as exc:
            return ResponseEnvelope.failure(str(exc), exc.status_code, exc.status_text)

        envelope = await self._transport.send(request)
        if envelope.error:
            logger.info("Data API request failed: %s %s status=%s", method, path, envelope.status)
        return envelope

    async def get(self, path: str, parameters: Optional[Dict[str, Any]] = None) -> ResponseEnvelope:
        return await self.execute_request("GET", path, parameters)

    async def test_connection(self) -> bool:
        """True when the API answers below 500, even if it rejects the key."""
        envelope = await self.get(CONNECTION_CHECK_PATH)
        return 200 <= envelope.status < 500
