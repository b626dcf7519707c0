import httpx
import pytest
from fastapi.testclient import TestClient

from blockchain_mcp import mcp
from blockchain_mcp.config import BlockchainMcpConfig
from blockchain_mcp.context import ToolContext
from blockchain_mcp.data_api import DataApiClient
from blockchain_mcp.gateway import CatalogLoader, GatewayCatalog, GatewayFacade, TransportExecutor
from blockchain_mcp.server import create_app

CATALOG = GatewayCatalog.from_payload(
    [{"name": "Ethereum", "chains": [{"gatewayName": "ethereum-mainnet", "gatewayUrl": "https://eth.gw"}]}]
)


class StubHttp:
    def __init__(self, responses):
        self.responses = responses

    async def request(self, method, url, headers=None, content=None):
        return self.responses.get(url, httpx.Response(404, json={"message": "not found"}))

    async def aclose(self):
        return None


def _context(responses=None):
    config = BlockchainMcpConfig(api_key="k", api_base_url="https://api.example")
    http = StubHttp(responses or {})
    gateway = GatewayFacade(
        config,
        catalog_loader=CatalogLoader(config.blockchains_url, catalog=CATALOG),
        transport=TransportExecutor(api_key="k", async_client=http),
    )
    return ToolContext(config=config, gateway=gateway, data_client=DataApiClient(config, async_client=http))


@pytest.fixture
def client():
    responses = {
        "https://eth.gw": httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": "0x1234"}),
        "https://api.example/v3/tatum/rate/BTC?basePair=EUR": httpx.Response(200, json={"value": "60000"}),
    }
    return TestClient(create_app(context=_context(responses)))


def test_mcp_list_tools(client):
    resp = client.post("/mcp", json={"jsonrpc": "2.0", "id": 1, "method": "list_tools"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["jsonrpc"] == "2.0"
    assert data["id"] == 1
    tools = {tool["name"]: tool for tool in data["result"]["tools"]}
    assert len(tools) == 13
    execute = tools["gateway_execute_rpc"]
    assert execute["description"].startswith("[gateway] ")
    assert execute["inputSchema"]["required"] == ["chain", "method"]
    assert execute["inputSchema"]["properties"]["chain"]["pattern"] == "^[a-z0-9]+(-[a-z0-9]+)*$"
    assert tools["get_exchange_rate"]["description"].startswith("[data] ")


def test_mcp_initialize(client):
    resp = client.post(
        "/mcp",
        json={
            "jsonrpc": "2.0",
            "id": 10,
            "method": "initialize",
            "params": {"protocolVersion": "2025-03-26", "capabilities": {}},
        },
    )
    result = resp.json()["result"]
    assert result["protocolVersion"] == "2025-03-26"
    assert result["serverInfo"] == {"name": mcp.SERVER_NAME, "version": mcp.SERVER_VERSION}
    assert result["capabilities"]["tools"]["listChanged"] is False


def test_mcp_initialize_requires_protocol_version(client):
    resp = client.post("/mcp", json={"jsonrpc": "2.0", "id": 11, "method": "initialize", "params": {}})
    assert resp.json()["error"]["code"] == -32602


def test_mcp_tools_call_execute_rpc(client):
    resp = client.post(
        "/mcp",
        json={
            "jsonrpc": "2.0",
            "id": 2,
            "method": "tools/call",
            "params": {
                "name": "gateway_execute_rpc",
                "arguments": {"chain": "ethereum-mainnet", "method": "eth_blockNumber", "params": []},
            },
        },
    )
    result = resp.json()["result"]
    assert "isError" not in result
    assert result["structuredContent"]["data"]["result"] == "0x1234"
    assert result["structuredContent"]["status"] == 200


def test_mcp_tool_error_sets_is_error(client):
    resp = client.post(
        "/mcp",
        json={
            "jsonrpc": "2.0",
            "id": 3,
            "method": "call_tool",
            "params": {"tool": "gateway_execute_rpc", "params": {"chain": "nowhere-chain", "method": "x"}},
        },
    )
    result = resp.json()["result"]
    assert result["isError"] is True
    assert result["structuredContent"]["status"] == 404
    assert "Gateway URL not found for chain: nowhere-chain" in result["content"][0]["text"]


def test_mcp_data_tool_call(client):
    resp = client.post(
        "/mcp",
        json={
            "jsonrpc": "2.0",
            "id": 4,
            "method": "tools/call",
            "params": {"name": "get_exchange_rate", "arguments": {"symbol": "BTC", "base_pair": "EUR"}},
        },
    )
    assert resp.json()["result"]["structuredContent"]["data"] == {"value": "60000"}


def test_mcp_unknown_tool_and_bad_arguments(client):
    unknown = client.post(
        "/mcp",
        json={"jsonrpc": "2.0", "id": 5, "method": "tools/call", "params": {"name": "nope", "arguments": {}}},
    ).json()
    assert unknown["result"]["isError"] is True
    assert unknown["result"]["structuredContent"] == {"error": "Unknown tool: nope"}

    bad = client.post(
        "/mcp",
        json={
            "jsonrpc": "2.0",
            "id": 6,
            "method": "tools/call",
            "params": {"name": "gateway_get_supported_chains", "arguments": {"unexpected": 1}},
        },
    ).json()
    assert bad["result"]["structuredContent"] == {"error": "Invalid parameters."}


def test_mcp_protocol_errors(client):
    parse = client.post("/mcp", content=b"{not json", headers={"content-type": "application/json"})
    assert parse.status_code == 400
    assert parse.json()["error"]["code"] == -32700

    invalid = client.post("/mcp", json=[1, 2])
    assert invalid.status_code == 400
    assert invalid.json()["error"]["code"] == -32600

    unknown = client.post("/mcp", json={"jsonrpc": "2.0", "id": 7, "method": "does/not/exist"})
    assert unknown.json()["error"] == {"code": -32601, "message": "Method not found"}

    bad_params = client.post("/mcp", json={"jsonrpc": "2.0", "id": 8, "method": "tools/call", "params": [1]})
    assert bad_params.json()["error"]["code"] == -32602


def test_mcp_initialized_notification_has_no_body(client):
    resp = client.post("/mcp", json={"jsonrpc": "2.0", "method": "notifications/initialized"})
    assert resp.status_code == 204
    assert resp.content == b""


def test_mcp_ping_and_cancel_notification(client):
    ping = client.post("/mcp", json={"jsonrpc": "2.0", "id": 11, "method": "ping"})
    assert ping.json() == {"jsonrpc": "2.0", "id": 11, "result": {}}

    cancelled = client.post(
        "/mcp",
        json={"jsonrpc": "2.0", "method": "notifications/cancelled", "params": {"requestId": 3, "reason": "user"}},
    )
    assert cancelled.status_code == 204
    assert cancelled.content == b""


def test_wrap_tool_result_shapes():
    assert mcp.wrap_tool_result("hi") == {"content": [{"type": "text", "text": "hi"}]}
    wrapped = mcp.wrap_tool_result({"data": 1, "error": None, "status": 200, "statusText": "OK"})
    assert "isError" not in wrapped
    assert mcp.wrap_tool_result([1, 2])["structuredContent"] == {"items": [1, 2]}
