"""Chain identifier to gateway base URL resolution."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Mapping, Optional

from blockchain_mcp.gateway.catalog import CatalogLoader

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ResolvedGateway:
    url: str
    is_custom_override: bool = False


class GatewayURLResolver:
    """
    Resolve chains against the caller's override table first, then the vendor
    catalog.

    Overrides match on the exact chain identifier only. Catalog entries match on
    their canonical chain name or any alias; the first entry in catalog order
    wins. An unknown chain resolves to ``None``.
    """

    def __init__(self, overrides: Mapping[str, str], catalog_loader: CatalogLoader) -> None:
        self._overrides = MappingProxyType(dict(overrides))
        self._catalog_loader = catalog_loader

    @property
    def overrides(self) -> Mapping[str, str]:
        return self._overrides

    def override_chains(self) -> List[str]:
        return list(self._overrides)

    async def resolve(self, chain: str) -> Optional[ResolvedGateway]:
        """
        Raises:
            GatewayCatalogError: when the chain has no override and the vendor
                catalog cannot be loaded.
        """
        override_url = self._overrides.get(chain)
        if override_url:
            logger.debug("chain=%s resolved via custom override", chain)
            return ResolvedGateway(url=override_url, is_custom_override=True)

        catalog = await self._catalog_loader.get()
        endpoint = catalog.find(chain)
        if endpoint is None:
            return None
        return ResolvedGateway(url=endpoint.gateway_url, is_custom_override=False)
