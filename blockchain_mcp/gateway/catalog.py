"""
Vendor gateway catalog.

The vendor publishes a JSON document listing every blockchain, its networks and
the gateway URL serving each network. It is fetched once, lazily, and treated as
read-only afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, FrozenSet, Iterable, List, Optional, Tuple

import httpx

from blockchain_mcp.gateway.errors import GatewayCatalogError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GatewayEndpoint:
    chain: str
    gateway_name: str
    gateway_url: str
    alias_names: FrozenSet[str] = field(default_factory=frozenset)

    def matches(self, identifier: str) -> bool:
        return identifier == self.chain or identifier in self.alias_names


@dataclass(frozen=True, slots=True)
class GatewayBlockchain:
    name: str
    docs: str = ""
    endpoints: Tuple[GatewayEndpoint, ...] = ()


class GatewayCatalog:
    """Ordered, immutable view of the vendor's gateway entries."""

    def __init__(self, blockchains: Iterable[GatewayBlockchain] = ()) -> None:
        self._blockchains: Tuple[GatewayBlockchain, ...] = tuple(blockchains)

    @classmethod
    def from_payload(cls, payload: Any) -> "GatewayCatalog":
        """Transform the vendor's ``blockchains.json`` document."""
        if not isinstance(payload, list):
            raise GatewayCatalogError("Unexpected gateway catalog format.")
        blockchains: List[GatewayBlockchain] = []
        for raw in payload:
            if not isinstance(raw, dict):
                continue
            endpoints: List[GatewayEndpoint] = []
            for raw_chain in raw.get("chains") or []:
                endpoint = _parse_endpoint(raw_chain)
                if endpoint is not None:
                    endpoints.append(endpoint)
            blockchains.append(
                GatewayBlockchain(
                    name=str(raw.get("name") or ""),
                    docs=str(raw.get("docs") or ""),
                    endpoints=tuple(endpoints),
                )
            )
        return cls(blockchains)

    @property
    def blockchains(self) -> Tuple[GatewayBlockchain, ...]:
        return self._blockchains

    def endpoints(self) -> List[GatewayEndpoint]:
        return [endpoint for chain in self._blockchains for endpoint in chain.endpoints]

    def chain_names(self) -> List[str]:
        return [endpoint.gateway_name for endpoint in self.endpoints()]

    def find(self, identifier: str) -> Optional[GatewayEndpoint]:
        """First endpoint, in catalog order, known under ``identifier``."""
        for endpoint in self.endpoints():
            if endpoint.matches(identifier):
                return endpoint
        return None


def _parse_endpoint(raw: Any) -> Optional[GatewayEndpoint]:
    if not isinstance(raw, dict):
        return None
    gateway_url = raw.get("gatewayUrl")
    gateway_name = raw.get("gatewayName")
    if not isinstance(gateway_url, str) or not gateway_url:
        return None
    if not isinstance(gateway_name, str) or not gateway_name:
        return None
    aliases = {gateway_name}
    for alias in raw.get("slugAliases") or []:
        if isinstance(alias, str) and alias:
            aliases.add(alias)
    return GatewayEndpoint(
        chain=str(raw.get("chain") or gateway_name),
        gateway_name=gateway_name,
        gateway_url=gateway_url,
        alias_names=frozenset(aliases),
    )


class CatalogLoader:
    """Fetch the vendor catalog on first use and keep it for the process lifetime."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 30.0,
        async_client: Optional[httpx.AsyncClient] = None,
        catalog: Optional[GatewayCatalog] = None,
    ) -> None:
        self.url = url
        self._timeout = timeout
        self._client = async_client
        self._owns_client = async_client is None
        self._catalog = catalog

    @property
    def loaded(self) -> bool:
        return self._catalog is not None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
            self._owns_client = True
        return self._client

    async def get(self) -> GatewayCatalog:
        if self._catalog is not None:
            return self._catalog

        logger.info("Fetching gateway catalog from %s", self.url)
        client = await self._get_client()
        try:
            response = await client.get(self.url)
        except httpx.RequestError as exc:
            logger.warning("Gateway catalog unreachable: %s", exc)
            raise GatewayCatalogError(f"Failed to load gateway catalog: {exc}") from exc
        if response.status_code >= 400:
            raise GatewayCatalogError(
                f"Failed to load gateway catalog: HTTP {response.status_code}"
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise GatewayCatalogError("Failed to load gateway catalog: invalid JSON") from exc

        # A failed fetch is not cached, so the next call retries.
        catalog = GatewayCatalog.from_payload(payload)
        self._catalog = catalog
        logger.info(
            "Loaded %d networks from %d blockchains",
            len(catalog.chain_names()),
            len(catalog.blockchains),
        )
        return catalog

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
