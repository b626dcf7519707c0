import json

import pytest

from blockchain_mcp.chains import ProtocolKind, default_registry
from blockchain_mcp.gateway import (
    KeyedParams,
    RequestBuildError,
    RequestBuilder,
    ResolvedGateway,
    SequenceParams,
    build_api_request,
    coerce_params,
    parse_jsonrpc_request,
)
from blockchain_mcp.gateway.request_builder import looks_like_rest_call, substitute_path_params

GATEWAY = ResolvedGateway(url="https://gw.example")
builder = RequestBuilder()


def test_jsonrpc_envelope_for_every_jsonrpc_chain():
    for chain in default_registry.chains_by_protocol(ProtocolKind.JSONRPC):
        request = builder.build(chain, "eth_blockNumber", [], gateway=GATEWAY)
        assert request.protocol is ProtocolKind.JSONRPC
        assert request.http_method == "POST"
        assert request.url == "https://gw.example"
        assert json.loads(request.body) == {"jsonrpc": "2.0", "id": 1, "method": "eth_blockNumber", "params": []}


def test_rest_paths_carry_chain_prefix():
    for chain in default_registry.chains_by_protocol(ProtocolKind.REST):
        prefix = default_registry.config_of(chain).base_path_prefix
        request = builder.build(chain, "status", None, gateway=GATEWAY)
        assert request.protocol is ProtocolKind.REST
        assert request.http_method == "GET"
        assert request.body is None
        if prefix:
            assert request.path.startswith(prefix)
        assert request.path.endswith("/status")


def test_cardano_bare_and_explicit_forms_agree():
    bare = builder.build("cardano-mainnet", "blocks/latest", [], gateway=GATEWAY)
    explicit = builder.build("cardano-mainnet", "GET /api/v0/blocks/latest", [], gateway=GATEWAY)
    prefixed = builder.build("cardano-mainnet", "api/v0/blocks/latest", [], gateway=GATEWAY)
    assert bare.path == explicit.path == prefixed.path == "/api/v0/blocks/latest"
    assert bare.url == "https://gw.example/api/v0/blocks/latest"


def test_kadena_network_segment():
    mainnet = builder.build("kadena-mainnet", "GET /cut", [], gateway=GATEWAY)
    testnet = builder.build("kadena-testnet", "cut", [], gateway=GATEWAY)
    untouched = builder.build("kadena-mainnet", "GET /chainweb/0.0/mainnet01/cut", [], gateway=GATEWAY)
    assert mainnet.path == "/chainweb/0.0/mainnet01/cut"
    assert testnet.path == "/chainweb/0.0/testnet04/cut"
    assert untouched.path == "/chainweb/0.0/mainnet01/cut"


def test_flow_rewrite_keeps_verb():
    request = builder.build("flow-mainnet", "POST /scripts", {"script": "abc"}, gateway=GATEWAY)
    assert request.http_method == "POST"
    assert request.path == "/v1/scripts"
    assert json.loads(request.body) == {"script": "abc"}
    assert builder.build("flow-testnet", "GET /v1/blocks", [], gateway=GATEWAY).path == "/v1/blocks"


def test_registry_verdict_wins_over_method_shape():
    request = builder.build("ethereum-mainnet", "GET /status", [], gateway=GATEWAY)
    assert request.protocol is ProtocolKind.JSONRPC
    assert json.loads(request.body)["method"] == "GET /status"


def test_unknown_chain_protocol_sniffing():
    rest = builder.build("my-private-chain", "GET /status", [], gateway=GATEWAY)
    rpc = builder.build("my-private-chain", "eth_chainId", [], gateway=GATEWAY)
    assert rest.protocol is ProtocolKind.REST
    assert rest.path == "/status"
    assert rpc.protocol is ProtocolKind.JSONRPC
    assert looks_like_rest_call("GET /x")
    assert not looks_like_rest_call("eth_call")


def test_get_flattens_single_object_into_query():
    request = builder.build(
        "ton-mainnet",
        "GET /getAddressBalance",
        [{"address": "EQabc", "archival": True, "skip": None}],
        gateway=GATEWAY,
    )
    assert request.query == (("address", "EQabc"), ("archival", "true"))
    assert request.url == "https://gw.example/getAddressBalance?address=EQabc&archival=true"
    assert request.body is None


def test_get_accepts_keyed_params():
    request = builder.build("algorand-mainnet", "GET /v2/status", {"format": "json"}, gateway=GATEWAY)
    assert request.url == "https://gw.example/v2/status?format=json"


def test_post_body_only_when_params_present():
    with_body = builder.build("tezos-mainnet", "POST /injection/operation", ["deadbeef"], gateway=GATEWAY)
    without = builder.build("tezos-mainnet", "POST /injection/operation", [], gateway=GATEWAY)
    assert json.loads(with_body.body) == ["deadbeef"]
    assert without.body is None


def test_override_flag_propagates():
    override = ResolvedGateway(url="http://localhost:8545", is_custom_override=True)
    request = builder.build("ethereum-mainnet", "eth_blockNumber", [], gateway=override)
    assert request.is_custom_override is True


def test_invalid_inputs_raise_build_errors():
    with pytest.raises(RequestBuildError):
        builder.build("ton-mainnet", "FETCH /x", [], gateway=GATEWAY)
    with pytest.raises(RequestBuildError):
        builder.build("ethereum-mainnet", "eth_call", 5, gateway=GATEWAY)
    with pytest.raises(RequestBuildError):
        builder.build("ethereum-mainnet", "   ", [], gateway=GATEWAY)


def test_coerce_params_variants():
    assert coerce_params(None) == SequenceParams()
    assert coerce_params(("a", 1)) == SequenceParams(("a", 1))
    assert coerce_params({"k": "v"}) == KeyedParams({"k": "v"})
    assert len(coerce_params([])) == 0


def test_jsonrpc_body_round_trips():
    request = builder.build("bitcoin-mainnet", "getblock", ["00ff", 2], gateway=GATEWAY)
    method, params = parse_jsonrpc_request(request.body)
    assert method == "getblock"
    assert params == SequenceParams(("00ff", 2))
    with pytest.raises(RequestBuildError):
        parse_jsonrpc_request("not json")
    with pytest.raises(RequestBuildError):
        parse_jsonrpc_request(json.dumps({"jsonrpc": "1.0", "method": "x"}))


def test_substitute_path_params_consumes_tokens():
    path, remaining = substitute_path_params("/v3/tatum/rate/{symbol}", {"symbol": "ETH", "basePair": "USD"})
    assert path == "/v3/tatum/rate/ETH"
    assert remaining == {"basePair": "USD"}


def test_build_api_request_placeholders_and_query():
    request = build_api_request(
        "https://api.tatum.io",
        "get",
        "/v3/tatum/rate/{symbol}",
        {"symbol": "ETH", "basePair": "USD"},
    )
    assert request.http_method == "GET"
    assert request.url == "https://api.tatum.io/v3/tatum/rate/ETH?basePair=USD"
    assert request.body is None


def test_build_api_request_fills_api_key_placeholder():
    request = build_api_request("https://api.tatum.io", "GET", "/v3/node/{xApiKey}/info", {}, api_key="secret")
    assert request.path == "/v3/node/secret/info"
    assert request.query == ()


def test_build_api_request_post_sends_body():
    request = build_api_request("https://api.tatum.io", "POST", "/v4/data/things", {"a": 1})
    assert json.loads(request.body) == {"a": 1}
    assert request.query == (("a", "1"),)


def test_build_api_request_rejects_bad_method_or_path():
    with pytest.raises(RequestBuildError, match="Invalid method or path"):
        build_api_request("https://api.tatum.io", "FETCH", "/x")
    with pytest.raises(RequestBuildError, match="Invalid method or path"):
        build_api_request("https://api.tatum.io", "GET", "")
