"""
Static chain metadata: transport protocol per chain, per-chain REST API
configuration and the per-family path rewrite table.

Everything here is a pure lookup; nothing performs I/O.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, Mapping, Optional, Tuple

CHAIN_ID_REGEX = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")
CHAIN_ID_MIN_LENGTH = 3
CHAIN_ID_MAX_LENGTH = 50


class ProtocolKind(str, enum.Enum):
    JSONRPC = "jsonrpc"
    REST = "rest"


class ErrorHandling(str, enum.Enum):
    STRICT = "strict"
    LENIENT = "lenient"


class ResponseFormat(str, enum.Enum):
    JSON = "json"
    TEXT = "text"
    BINARY = "binary"


@dataclass(frozen=True, slots=True)
class ChainApiConfig:
    base_path_prefix: Optional[str] = None
    default_endpoints: Tuple[str, ...] = ()
    error_handling: ErrorHandling = ErrorHandling.LENIENT
    response_format: ResponseFormat = ResponseFormat.JSON


DEFAULT_API_CONFIG = ChainApiConfig()


@dataclass(frozen=True, slots=True)
class PathRewriteRule:
    """
    Root path required by every REST call of a chain family.

    ``root`` may contain a ``{network}`` token, resolved to the mainnet or
    testnet segment depending on the chain identifier. A method that already
    contains ``marker`` is left untouched.
    """

    family: str
    marker: str
    root: str
    mainnet_segment: Optional[str] = None
    testnet_segment: Optional[str] = None

    def applies_to(self, chain: str) -> bool:
        return chain.startswith(self.family)

    def root_for(self, chain: str) -> str:
        if "{network}" not in self.root:
            return self.root
        segment = self.testnet_segment if "testnet" in chain else self.mainnet_segment
        return self.root.replace("{network}", segment or "")


# Evaluated in order; the first matching family wins.
PATH_REWRITE_RULES: Tuple[PathRewriteRule, ...] = (
    PathRewriteRule(
        family="kadena-",
        marker="chainweb",
        root="/chainweb/0.0/{network}",
        mainnet_segment="mainnet01",
        testnet_segment="testnet04",
    ),
    PathRewriteRule(family="cardano-", marker="api/v0", root="/api/v0"),
    PathRewriteRule(family="flow-", marker="v1", root="/v1"),
)


CHAIN_PROTOCOLS: Dict[str, ProtocolKind] = {
    # REST-based chains
    "ton-mainnet": ProtocolKind.REST,
    "ton-testnet": ProtocolKind.REST,
    "stellar-mainnet": ProtocolKind.REST,
    "stellar-testnet": ProtocolKind.REST,
    "algorand-mainnet": ProtocolKind.REST,
    "algorand-testnet": ProtocolKind.REST,
    "cardano-mainnet": ProtocolKind.REST,
    "cardano-testnet": ProtocolKind.REST,
    "flow-mainnet": ProtocolKind.REST,
    "flow-testnet": ProtocolKind.REST,
    "kadena-mainnet": ProtocolKind.REST,
    "kadena-testnet": ProtocolKind.REST,
    "tezos-mainnet": ProtocolKind.REST,
    "tezos-testnet": ProtocolKind.REST,
    "vechain-mainnet": ProtocolKind.REST,
    "vechain-testnet": ProtocolKind.REST,
    # JSON-RPC based chains
    "ethereum-mainnet": ProtocolKind.JSONRPC,
    "ethereum-sepolia": ProtocolKind.JSONRPC,
    "ethereum-holesky": ProtocolKind.JSONRPC,
    "polygon-mainnet": ProtocolKind.JSONRPC,
    "polygon-amoy": ProtocolKind.JSONRPC,
    "bsc-mainnet": ProtocolKind.JSONRPC,
    "bsc-testnet": ProtocolKind.JSONRPC,
    "avalanche-mainnet": ProtocolKind.JSONRPC,
    "avalanche-testnet": ProtocolKind.JSONRPC,
    "fantom-mainnet": ProtocolKind.JSONRPC,
    "fantom-testnet": ProtocolKind.JSONRPC,
    "celo-mainnet": ProtocolKind.JSONRPC,
    "celo-testnet": ProtocolKind.JSONRPC,
    "cronos-mainnet": ProtocolKind.JSONRPC,
    "cronos-testnet": ProtocolKind.JSONRPC,
    "klaytn-mainnet": ProtocolKind.JSONRPC,
    "klaytn-testnet": ProtocolKind.JSONRPC,
    "flare-mainnet": ProtocolKind.JSONRPC,
    "flare-testnet": ProtocolKind.JSONRPC,
    "haqq-mainnet": ProtocolKind.JSONRPC,
    "haqq-testnet": ProtocolKind.JSONRPC,
    "arbitrum-mainnet": ProtocolKind.JSONRPC,
    "arbitrum-testnet": ProtocolKind.JSONRPC,
    "optimism-mainnet": ProtocolKind.JSONRPC,
    "optimism-testnet": ProtocolKind.JSONRPC,
    "base-mainnet": ProtocolKind.JSONRPC,
    "base-testnet": ProtocolKind.JSONRPC,
    "bitcoin-mainnet": ProtocolKind.JSONRPC,
    "bitcoin-testnet": ProtocolKind.JSONRPC,
    "litecoin-mainnet": ProtocolKind.JSONRPC,
    "litecoin-testnet": ProtocolKind.JSONRPC,
    "dogecoin-mainnet": ProtocolKind.JSONRPC,
    "dogecoin-testnet": ProtocolKind.JSONRPC,
    "zcash-mainnet": ProtocolKind.JSONRPC,
    "zcash-testnet": ProtocolKind.JSONRPC,
    "solana-mainnet": ProtocolKind.JSONRPC,
    "solana-testnet": ProtocolKind.JSONRPC,
    "tron-mainnet": ProtocolKind.JSONRPC,
    "tron-testnet": ProtocolKind.JSONRPC,
}

_CARDANO = ChainApiConfig(
    base_path_prefix="/api/v0",
    default_endpoints=("/blocks/latest", "/epochs/latest", "/network"),
    error_handling=ErrorHandling.STRICT,
)
_FLOW = ChainApiConfig(
    base_path_prefix="/v1",
    default_endpoints=("/blocks", "/network/parameters", "/node/version_info"),
)

CHAIN_API_CONFIGS: Dict[str, ChainApiConfig] = {
    "cardano-mainnet": _CARDANO,
    "cardano-testnet": _CARDANO,
    "flow-mainnet": _FLOW,
    "flow-testnet": _FLOW,
    "kadena-mainnet": ChainApiConfig(
        base_path_prefix="/chainweb/0.0/mainnet01",
        default_endpoints=("/config", "/cut", "/chain/0/header"),
    ),
    "kadena-testnet": ChainApiConfig(
        base_path_prefix="/chainweb/0.0/testnet04",
        default_endpoints=("/config", "/cut", "/chain/0/header"),
    ),
}


def is_valid_chain_id(chain: Optional[str]) -> bool:
    """Format check for chain identifiers such as ``ethereum-mainnet``."""
    if not chain or not isinstance(chain, str):
        return False
    if not CHAIN_ID_MIN_LENGTH <= len(chain) <= CHAIN_ID_MAX_LENGTH:
        return False
    return bool(CHAIN_ID_REGEX.fullmatch(chain))


class ChainProtocolRegistry:
    """Read-only lookup of protocol, API config and rewrite rule per chain."""

    def __init__(
        self,
        protocols: Optional[Mapping[str, ProtocolKind]] = None,
        api_configs: Optional[Mapping[str, ChainApiConfig]] = None,
        rewrite_rules: Optional[Tuple[PathRewriteRule, ...]] = None,
    ) -> None:
        self._protocols: Dict[str, ProtocolKind] = dict(
            CHAIN_PROTOCOLS if protocols is None else protocols
        )
        self._api_configs: Dict[str, ChainApiConfig] = dict(
            CHAIN_API_CONFIGS if api_configs is None else api_configs
        )
        self._rewrite_rules = PATH_REWRITE_RULES if rewrite_rules is None else tuple(rewrite_rules)

    def protocol_of(self, chain: str) -> Optional[ProtocolKind]:
        """Return the chain's protocol, or None when the chain is unknown."""
        return self._protocols.get(chain)

    def config_of(self, chain: str) -> ChainApiConfig:
        return self._api_configs.get(chain, DEFAULT_API_CONFIG)

    def rewrite_rule_for(self, chain: str) -> Optional[PathRewriteRule]:
        for rule in self._rewrite_rules:
            if rule.applies_to(chain):
                return rule
        return None

    def all_chains(self) -> FrozenSet[str]:
        return frozenset(self._protocols)

    def chains_by_protocol(self, kind: ProtocolKind) -> FrozenSet[str]:
        return frozenset(chain for chain, proto in self._protocols.items() if proto == kind)


default_registry = ChainProtocolRegistry()
