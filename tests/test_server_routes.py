import httpx
import pytest
from fastapi.testclient import TestClient

from blockchain_mcp import server
from blockchain_mcp.config import BlockchainMcpConfig
from blockchain_mcp.context import ToolContext
from blockchain_mcp.data_api import DataApiClient
from blockchain_mcp.gateway import CatalogLoader, GatewayCatalog, GatewayFacade, TransportExecutor
from blockchain_mcp.metrics import default_metrics


class StubHttp:
    def __init__(self, response):
        self.response = response

    async def request(self, method, url, headers=None, content=None):
        if isinstance(self.response, Exception):
            raise self.response
        return self.response

    async def aclose(self):
        return None


def _app(response=None):
    config = BlockchainMcpConfig(api_key="k", custom_rpc_urls={"my-devnet": "http://localhost:9000"})
    http = StubHttp(response or httpx.Response(200, json={"result": "ok"}))
    catalog = GatewayCatalog.from_payload(
        [{"name": "Bitcoin", "chains": [{"gatewayName": "bitcoin-mainnet", "gatewayUrl": "https://btc.gw"}]}]
    )
    gateway = GatewayFacade(
        config,
        catalog_loader=CatalogLoader(config.blockchains_url, catalog=catalog),
        transport=TransportExecutor(api_key="k", async_client=http),
    )
    context = ToolContext(config=config, gateway=gateway, data_client=DataApiClient(config, async_client=http))
    return server.create_app(context=context)


@pytest.fixture
def client():
    return TestClient(_app())


def test_health_route(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
    assert "X-Request-ID" in resp.headers


def test_metrics_counts_requests(client):
    client.get("/health")
    data = client.get("/metrics").json()
    assert data["requests"] >= 2
    assert "upstream_status" in data


def test_supported_chains_route(client):
    resp = client.get("/tools/gateway/chains")
    assert resp.json() == {"chains": ["bitcoin-mainnet", "my-devnet"], "count": 2}


def test_supported_methods_route(client):
    resp = client.get("/tools/gateway/methods/my-devnet")
    body = resp.json()
    assert body["chain"] == "my-devnet"
    assert "/jsonrpc" in body["methods"]

    invalid = client.get("/tools/gateway/methods/BAD_CHAIN").json()
    assert invalid == {"error": "Invalid chain identifier: BAD_CHAIN"}


def test_execute_route_records_metrics(client):
    resp = client.post("/tools/gateway/execute", json={"chain": "bitcoin-mainnet", "method": "getblockcount"})
    assert resp.json() == {"data": {"result": "ok"}, "error": None, "status": 200, "statusText": "OK"}
    snapshot = default_metrics.snapshot()
    assert snapshot["tool_success"]["gateway_execute_rpc"] == 1
    assert snapshot["upstream_status"] == {"2xx": 1}


def test_execute_route_network_failure():
    client = TestClient(_app(httpx.ConnectError("refused")))
    resp = client.post("/tools/gateway/execute", json={"chain": "bitcoin-mainnet", "method": "getblockcount"})
    body = resp.json()
    assert body["status"] == 500
    assert body["statusText"] == "Network Error"
    snapshot = default_metrics.snapshot()
    assert snapshot["tool_error"]["gateway_execute_rpc"] == 1
    assert snapshot["upstream_status"] == {"network": 1}


def test_execute_route_rejects_non_object(client):
    resp = client.post("/tools/gateway/execute", json=["bitcoin-mainnet"])
    assert resp.status_code == 400
    assert resp.json()["status"] == 400


def test_execute_route_uses_patched_tool(monkeypatch, client):
    async def fake_tool(chain, method, params, *, gateway):
        return {"data": [chain, method, params], "error": None, "status": 200, "statusText": "OK"}

    monkeypatch.setattr(server, "gateway_execute_rpc", fake_tool)
    resp = client.post("/tools/gateway/execute", json={"chain": "x-chain", "method": "m", "params": [1]})
    assert resp.json()["data"] == ["x-chain", "m", [1]]


def test_data_tool_route(client):
    resp = client.post("/tools/data/check_malicious_address", json={"address": "0xabc"})
    assert resp.json()["status"] == 200
    missing = client.post("/tools/data/get_exchange_rate", json={"symbol": "ETH"}).json()
    assert missing["error"] == "Missing required parameter: base_pair"
    assert client.post("/tools/data/gateway_execute_rpc", json={}).status_code == 404


def test_log_tool_result_handles_non_dict():
    server.log_tool_result("dummy", {"ok": True})
    server.log_tool_result("dummy", {"error": "fail"})
    server.log_tool_result("dummy", None)
    snapshot = default_metrics.snapshot()
    assert snapshot["tool_success"]["dummy"] == 2
    assert snapshot["tool_error"]["dummy"] == 1
