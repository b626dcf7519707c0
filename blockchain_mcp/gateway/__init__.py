"""Gateway routing and protocol normalization for blockchain RPC gateways."""

from .catalog import CatalogLoader, GatewayCatalog, GatewayEndpoint
from .errors import GatewayCatalogError, GatewayError, RequestBuildError
from .request_builder import (
    KeyedParams,
    OutboundRequest,
    RequestBuilder,
    SequenceParams,
    build_api_request,
    coerce_params,
    parse_jsonrpc_request,
)
from .resolver import GatewayURLResolver, ResolvedGateway
from .service import GatewayFacade
from .transport import ResponseEnvelope, TransportExecutor

__all__ = [
    "CatalogLoader",
    "GatewayCatalog",
    "GatewayEndpoint",
    "GatewayError",
    "GatewayCatalogError",
    "RequestBuildError",
    "KeyedParams",
    "SequenceParams",
    "OutboundRequest",
    "RequestBuilder",
    "build_api_request",
    "coerce_params",
    "parse_jsonrpc_request",
    "GatewayURLResolver",
    "ResolvedGateway",
    "GatewayFacade",
    "ResponseEnvelope",
    "TransportExecutor",
]
