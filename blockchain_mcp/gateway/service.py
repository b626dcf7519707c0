"""Gateway facade: list chains, list methods, execute calls."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from blockchain_mcp.chains import ChainProtocolRegistry, ProtocolKind, default_registry, is_valid_chain_id
from blockchain_mcp.config import BlockchainMcpConfig
from blockchain_mcp.gateway.catalog import CatalogLoader
from blockchain_mcp.gateway.errors import GatewayCatalogError, GatewayError
from blockchain_mcp.gateway.fallback_methods import MethodCatalog, fallback_method_catalog
from blockchain_mcp.gateway.request_builder import OutboundRequest, RequestBuilder
from blockchain_mcp.gateway.resolver import GatewayURLResolver
from blockchain_mcp.gateway.transport import ResponseEnvelope, TransportExecutor

logger = logging.getLogger(__name__)

METHODS_DISCOVERY_PATH = "/_methods"


class GatewayFacade:
    """
    Compose resolver, builder and transport behind three operations.

    ``execute`` never raises; every failure becomes a :class:`ResponseEnvelope`.
    """

    def __init__(
        self,
        config: BlockchainMcpConfig,
        *,
        registry: Optional[ChainProtocolRegistry] = None,
        catalog_loader: Optional[CatalogLoader] = None,
        transport: Optional[TransportExecutor] = None,
    ) -> None:
        self.config = config
        self.registry = registry or default_registry
        self.catalog_loader = catalog_loader or CatalogLoader(
            config.blockchains_url, timeout=config.timeout
        )
        self.resolver = GatewayURLResolver(config.custom_rpc_urls, self.catalog_loader)
        self.builder = RequestBuilder(self.registry)
        self.transport = transport or TransportExecutor(
            api_key=config.api_key, timeout=config.timeout
        )
        # Keyed by gateway URL; concurrent fills compute the same value, last write wins.
        self._methods_cache: Dict[str, Any] = {}

    async def aclose(self) -> None:
        await self.transport.aclose()
        await self.catalog_loader.aclose()

    async def list_supported_chains(self) -> List[str]:
        """
        Vendor catalog chain names followed by override-only chains.

        Never raises: while the vendor catalog is unavailable only the
        override chains are listed.
        """
        try:
            catalog_chains = (await self.catalog_loader.get()).chain_names()
        except GatewayCatalogError as exc:
            logger.warning("catalog unavailable, listing override chains only: %s", exc)
            catalog_chains = []
        chains: List[str] = []
        seen = set()
        for chain in [*catalog_chains, *self.resolver.override_chains()]:
            if chain not in seen:
                seen.add(chain)
                chains.append(chain)
        return chains

    async def list_supported_methods(self, chain: str) -> MethodCatalog:
        try:
            resolved = await self.resolver.resolve(chain)
        except GatewayCatalogError as exc:
            logger.warning("chain=%s catalog unavailable, serving fallback methods: %s", chain, exc)
            resolved = None

        if resolved is None or resolved.is_custom_override:
            return fallback_method_catalog(chain, self.registry)

        cached = self._methods_cache.get(resolved.url)
        if cached is not None:
            return cached

        request = OutboundRequest(
            protocol=ProtocolKind.REST,
            http_method="GET",
            base_url=resolved.url,
            path=METHODS_DISCOVERY_PATH,
        )
        envelope = await self.transport.send(request)
        if envelope.ok and isinstance(envelope.data, (dict, list)):
            self._methods_cache[resolved.url] = envelope.data
            return envelope.data

        logger.info(
            "chain=%s methods discovery unavailable (status=%s), serving fallback",
            chain,
            envelope.status,
        )
        return fallback_method_catalog(chain, self.registry)

    async def execute(self, chain: str, method: str, params: Any = None) -> ResponseEnvelope:
        if not chain:
            return ResponseEnvelope.failure("Missing required parameter: chain", 400, "Bad Request")
        if not is_valid_chain_id(chain):
            return ResponseEnvelope.failure(f"Invalid chain identifier: {chain}", 400, "Bad Request")
        if not isinstance(method, str) or not method.strip():
            return ResponseEnvelope.failure("Missing required parameter: method", 400, "Bad Request")

        try:
            resolved = await self.resolver.resolve(chain)
            if resolved is None:
                return ResponseEnvelope.failure(
                    f"Gateway URL not found for chain: {chain}", 404, "Not Found"
                )
            request = self.builder.build(chain, method, params, gateway=resolved)
        except GatewayError as exc:
            return ResponseEnvelope.failure(str(exc), exc.status_code, exc.status_text)
        except Exception as exc:
            logger.exception("Unexpected error preparing %s on %s", method, chain)
            return ResponseEnvelope.failure(f"Request failed: {exc}", 500, "Error")

        logger.debug(
            "chain=%s protocol=%s verb=%s override=%s",
            chain,
            request.protocol.value,
            request.http_method,
            request.is_custom_override,
        )
        return await self.transport.send(request, self.registry.config_of(chain))
