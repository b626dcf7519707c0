"""
Outbound request construction.

Given a chain, a method string and parameters this module decides the transport
protocol, applies the chain's REST path rules and serializes the request as
either a JSON-RPC envelope or an HTTP verb, path, query and optional body.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
from urllib.parse import quote, urlencode

from blockchain_mcp.chains import ChainProtocolRegistry, ProtocolKind, default_registry
from blockchain_mcp.gateway.errors import RequestBuildError
from blockchain_mcp.gateway.resolver import ResolvedGateway

logger = logging.getLogger(__name__)

HTTP_VERBS = frozenset({"GET", "POST", "PUT", "DELETE", "PATCH"})
BODY_VERBS = frozenset({"POST", "PUT", "PATCH"})
JSONRPC_VERSION = "2.0"
JSONRPC_REQUEST_ID = 1
API_KEY_PLACEHOLDER = "xApiKey"


@dataclass(frozen=True, slots=True)
class SequenceParams:
    """Positional parameters, e.g. ``["0xabc", "latest"]``."""

    values: Tuple[Any, ...] = ()

    def __len__(self) -> int:
        return len(self.values)

    def to_json(self) -> List[Any]:
        return list(self.values)


@dataclass(frozen=True, slots=True)
class KeyedParams:
    """Named parameters, e.g. ``{"address": "0xabc"}``."""

    values: Dict[str, Any] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.values)

    def to_json(self) -> Dict[str, Any]:
        return dict(self.values)


Params = Union[SequenceParams, KeyedParams]


def coerce_params(raw: Any) -> Params:
    """Turn a caller-supplied params value into a :data:`Params` variant."""
    if raw is None:
        return SequenceParams()
    if isinstance(raw, (SequenceParams, KeyedParams)):
        return raw
    if isinstance(raw, Mapping):
        return KeyedParams({str(key): value for key, value in raw.items()})
    if isinstance(raw, (list, tuple)):
        return SequenceParams(tuple(raw))
    raise RequestBuildError("Invalid params: expected an array or an object.")


def query_mapping(params: Params) -> Optional[Mapping[str, Any]]:
    """
    Named values usable as a query string.

    Keyed params qualify directly; positional params only in the legacy
    ``[{...}]`` shape, a single mapping wrapped in a one-element array.
    """
    if isinstance(params, KeyedParams):
        return params.values
    if len(params.values) == 1 and isinstance(params.values[0], Mapping):
        return params.values[0]
    return None


def _format_query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


def query_pairs(values: Mapping[str, Any]) -> Tuple[Tuple[str, str], ...]:
    return tuple(
        (str(key), _format_query_value(value)) for key, value in values.items() if value is not None
    )


def append_query(url: str, query_string: str) -> str:
    if not query_string:
        return url
    return url + ("&" if "?" in url else "?") + query_string


def substitute_path_params(template: str, values: Mapping[str, Any]) -> Tuple[str, Dict[str, Any]]:
    """
    Replace ``{name}`` tokens from ``values``.

    Returns the path and the values that were not consumed by a token, so each
    parameter lands either in the path or in the query string, never both.
    """
    path = template
    remaining: Dict[str, Any] = {}
    for key, value in values.items():
        token = "{" + key + "}"
        if token in path and value is not None:
            path = path.replace(token, quote(_format_query_value(value), safe="!*'()"))
        else:
            remaining[key] = value
    return path, remaining


def _join_url(base_url: str, path: str) -> str:
    if not path:
        return base_url
    return base_url.rstrip("/") + path


@dataclass(frozen=True, slots=True)
class OutboundRequest:
    protocol: ProtocolKind
    http_method: str
    base_url: str
    path: str = ""
    query: Tuple[Tuple[str, str], ...] = ()
    body: Optional[str] = None
    is_custom_override: bool = False

    @property
    def url(self) -> str:
        return append_query(_join_url(self.base_url, self.path), urlencode(self.query))


def looks_like_rest_call(method: str) -> bool:
    """
    Heuristic: a method written as ``"<VERB> <path>"`` is a REST call.

    Only consulted when the registry does not know the chain; JSON-RPC method
    names never contain spaces.
    """
    return " " in method.strip()


def _strip_leading_slash(value: str) -> str:
    return value[1:] if value.startswith("/") else value


def _split_rest_method(method: str) -> Tuple[str, str]:
    verb, _, path = method.strip().partition(" ")
    verb = verb.upper()
    path = path.strip()
    if verb not in HTTP_VERBS:
        raise RequestBuildError(f"Unsupported HTTP method: {verb}")
    if not path:
        raise RequestBuildError("Missing REST path.")
    if not path.startswith("/"):
        path = "/" + path
    return verb, path


def parse_jsonrpc_request(body: Union[str, bytes]) -> Tuple[str, Params]:
    """Recover the method and params from a serialized JSON-RPC request."""
    try:
        payload = json.loads(body)
    except ValueError as exc:
        raise RequestBuildError("Invalid JSON-RPC body.") from exc
    if not isinstance(payload, dict) or payload.get("jsonrpc") != JSONRPC_VERSION:
        raise RequestBuildError("Not a JSON-RPC 2.0 request.")
    method = payload.get("method")
    if not isinstance(method, str) or not method:
        raise RequestBuildError("JSON-RPC request has no method.")
    return method, coerce_params(payload.get("params"))


class RequestBuilder:
    """Build gateway requests for a chain from a method string and params."""

    def __init__(self, registry: Optional[ChainProtocolRegistry] = None) -> None:
        self.registry = registry or default_registry

    def protocol_for(self, chain: str, method: str) -> ProtocolKind:
        protocol = self.registry.protocol_of(chain)
        if protocol is not None:
            return protocol
        # Unknown chains default to EVM-style JSON-RPC unless the caller wrote a REST call.
        if looks_like_rest_call(method):
            return ProtocolKind.REST
        return ProtocolKind.JSONRPC

    def rest_target(self, chain: str, method: str) -> Tuple[str, str]:
        """Return the HTTP verb and path for a REST call on ``chain``."""
        if looks_like_rest_call(method):
            verb, raw_path = _split_rest_method(method)
            path = raw_path
        else:
            verb = "GET"
            raw_path = "/" + _strip_leading_slash(method)
            bare = raw_path[1:]
            prefix = self.registry.config_of(chain).base_path_prefix
            if prefix and not bare.startswith(prefix.strip("/")):
                path = f"{prefix.rstrip('/')}/{bare}"
            else:
                path = raw_path

        rule = self.registry.rewrite_rule_for(chain)
        if rule is not None and rule.marker not in method:
            path = f"{rule.root_for(chain)}/{_strip_leading_slash(raw_path)}"
        return verb, path

    def build(
        self,
        chain: str,
        method: str,
        params: Any = None,
        *,
        gateway: ResolvedGateway,
    ) -> OutboundRequest:
        if not isinstance(method, str) or not method.strip():
            raise RequestBuildError("Missing required parameter: method")
        method = method.strip()
        bag = coerce_params(params)

        if self.protocol_for(chain, method) is ProtocolKind.REST:
            return self._build_rest(chain, method, bag, gateway)
        return self._build_jsonrpc(method, bag, gateway)

    def _build_jsonrpc(self, method: str, params: Params, gateway: ResolvedGateway) -> OutboundRequest:
        envelope = {
            "jsonrpc": JSONRPC_VERSION,
            "id": JSONRPC_REQUEST_ID,
            "method": method,
            "params": params.to_json(),
        }
        return OutboundRequest(
            protocol=ProtocolKind.JSONRPC,
            http_method="POST",
            base_url=gateway.url,
            body=json.dumps(envelope),
            is_custom_override=gateway.is_custom_override,
        )

    def _build_rest(
        self, chain: str, method: str, params: Params, gateway: ResolvedGateway
    ) -> OutboundRequest:
        verb, path = self.rest_target(chain, method)
        query: Tuple[Tuple[str, str], ...] = ()
        body: Optional[str] = None
        if verb == "GET":
            values = query_mapping(params)
            if values:
                query = query_pairs(values)
            elif len(params):
                logger.debug("chain=%s ignoring positional params for GET %s", chain, path)
        elif verb in BODY_VERBS and len(params):
            body = json.dumps(params.to_json())
        return OutboundRequest(
            protocol=ProtocolKind.REST,
            http_method=verb,
            base_url=gateway.url,
            path=path,
            query=query,
            body=body,
            is_custom_override=gateway.is_custom_override,
        )


def build_api_request(
    base_url: str,
    http_method: str,
    path_template: str,
    parameters: Optional[Mapping[str, Any]] = None,
    *,
    api_key: Optional[str] = None,
) -> OutboundRequest:
    """
    Build a Data API request from a path template such as
    ``/v3/security/address/{address}``.

    Parameters consumed by a placeholder are removed from the query string. For
    POST and PUT the full parameter mapping is also sent as the JSON body.
    """
    verb = (http_method or "").upper()
    if not path_template or verb not in HTTP_VERBS:
        raise RequestBuildError("Invalid method or path")

    values: Dict[str, Any] = dict(parameters or {})
    placeholder = "{" + API_KEY_PLACEHOLDER + "}"
    if placeholder in path_template and not values.get(API_KEY_PLACEHOLDER) and api_key:
        values[API_KEY_PLACEHOLDER] = api_key

    path, remaining = substitute_path_params(path_template, values)
    body = json.dumps(values) if verb in {"POST", "PUT"} else None
    return OutboundRequest(
        protocol=ProtocolKind.REST,
        http_method=verb,
        base_url=base_url,
        path=path,
        query=query_pairs(remaining),
        body=body,
    )
