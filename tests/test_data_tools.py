import httpx
import pytest

from blockchain_mcp.config import BlockchainMcpConfig
from blockchain_mcp.data_api import DataApiClient
from blockchain_mcp.tools import (
    check_malicious_address,
    get_block_by_time,
    get_exchange_rate,
    get_metadata,
    get_wallet_portfolio,
)


class RecordingClient:
    def __init__(self, response=None):
        self.response = response or httpx.Response(200, json={"ok": True})
        self.calls = []

    async def request(self, method, url, headers=None, content=None):
        self.calls.append({"method": method, "url": url, "headers": headers, "content": content})
        if isinstance(self.response, Exception):
            raise self.response
        return self.response

    async def aclose(self):
        return None


def _client(response=None, api_key="data-key"):
    http = RecordingClient(response)
    config = BlockchainMcpConfig(api_key=api_key, api_base_url="https://api.example")
    return DataApiClient(config, async_client=http), http


@pytest.mark.asyncio
async def test_exchange_rate_path_and_query():
    client, http = _client(httpx.Response(200, json={"value": "3000.12", "basePair": "USD"}))
    result = await get_exchange_rate(symbol="ETH", base_pair="USD", client=client)
    assert result["data"]["value"] == "3000.12"
    assert result["error"] is None
    assert http.calls[0]["url"] == "https://api.example/v3/tatum/rate/ETH?basePair=USD"
    assert http.calls[0]["headers"]["X-API-Key"] == "data-key"


@pytest.mark.asyncio
async def test_malicious_address_path_param():
    client, http = _client(httpx.Response(200, json={"status": "valid"}))
    result = await check_malicious_address(address="0xabc", client=client)
    assert result["status"] == 200
    assert http.calls[0]["url"] == "https://api.example/v3/security/address/0xabc"


@pytest.mark.asyncio
async def test_portfolio_maps_names_and_skips_empty_optionals():
    client, http = _client()
    await get_wallet_portfolio(
        chain="ethereum-mainnet",
        addresses="0xabc",
        token_types="fungible",
        exclude_metadata=True,
        page_size="",
        client=client,
    )
    assert http.calls[0]["url"] == (
        "https://api.example/v4/data/wallet/portfolio"
        "?chain=ethereum-mainnet&addresses=0xabc&tokenTypes=fungible&excludeMetadata=true"
    )


@pytest.mark.asyncio
async def test_missing_required_fields_skip_network():
    client, http = _client()
    result = await get_metadata(chain="ethereum-mainnet", client=client)
    assert result == {
        "data": None,
        "error": "Missing required parameters: token_address, token_ids",
        "status": 400,
        "statusText": "Bad Request",
    }
    assert http.calls == []


@pytest.mark.asyncio
async def test_upstream_error_is_returned_as_envelope():
    client, _ = _client(httpx.Response(403, json={"message": "Invalid API key"}))
    result = await get_block_by_time(chain="ethereum-mainnet", time="2024-01-01T00:00:00Z", client=client)
    assert result["status"] == 403
    assert result["error"] == "Invalid API key"


@pytest.mark.asyncio
async def test_execute_request_rejects_bad_method():
    client, http = _client()
    envelope = await client.execute_request("FETCH", "/v4/data/x")
    assert envelope.status == 400
    assert envelope.error == "Invalid method or path"
    assert http.calls == []


@pytest.mark.asyncio
async def test_connection_check():
    client, _ = _client(httpx.Response(401, json={"message": "no key"}))
    assert await client.test_connection() is True
    client, _ = _client(httpx.ConnectError("offline"))
    assert await client.test_connection() is False
