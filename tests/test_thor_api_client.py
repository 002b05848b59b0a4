import httpx
import pytest

from vechain_mcp.config import NetworkType, VeChainConfig
from vechain_mcp.thor_api.client import (
    NodeUnreachableError,
    ThorApiClient,
    ThorApiError,
)


class MockResponse:
    def __init__(self, status_code: int, json_body=None, text: str = ""):
        self.status_code = status_code
        self._json = json_body
        self.text = text

    def json(self):
        if self._json is None:
            raise ValueError("no json")
        return self._json


class MockAsyncClient:
    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    async def post(self, path, **kwargs):
        self.calls.append({"path": path, **kwargs})
        if not self.responses:
            raise RuntimeError("No mock responses")
        return self.responses.pop(0)

    async def aclose(self):
        return None


@pytest.mark.asyncio
async def test_call_contract_posts_single_zero_value_clause():
    mock = MockAsyncClient([MockResponse(200, [{"data": "0x", "reverted": False}])])
    client = ThorApiClient(async_client=mock)

    result = await client.call_contract("0xoracle", "0x73fc67dd" + "00" * 32)

    assert result == [{"data": "0x", "reverted": False}]
    call = mock.calls[0]
    assert call["path"] == "/accounts/*"
    assert call["json"] == {
        "clauses": [{"to": "0xoracle", "value": "0", "data": "0x73fc67dd" + "00" * 32}]
    }
    assert call["headers"]["Content-Type"] == "application/json"
    assert "timeout" not in call


@pytest.mark.asyncio
async def test_timeout_is_forwarded_per_request():
    mock = MockAsyncClient([MockResponse(200, [])])
    client = ThorApiClient(async_client=mock)
    await client.inspect_clauses([], timeout=2.5)
    assert mock.calls[0]["timeout"] == 2.5


@pytest.mark.asyncio
async def test_non_2xx_raises_with_status_and_body():
    mock = MockAsyncClient([MockResponse(500, None, text="Server error")])
    client = ThorApiClient(async_client=mock)
    with pytest.raises(ThorApiError) as excinfo:
        await client.call_contract("0xoracle", "0x")
    assert excinfo.value.status_code == 500
    assert excinfo.value.body == "Server error"
    assert "500" in str(excinfo.value)


@pytest.mark.asyncio
async def test_non_json_body_is_unexpected_response():
    mock = MockAsyncClient([MockResponse(200, None, text="<html>")])
    client = ThorApiClient(async_client=mock)
    with pytest.raises(ThorApiError, match="Unexpected response"):
        await client.inspect_clauses([])


@pytest.mark.asyncio
async def test_request_error_maps_to_node_unreachable():
    class FailingAsyncClient:
        async def post(self, *_args, **_kwargs):
            raise httpx.ConnectError("boom")

        async def aclose(self):
            return None

    client = ThorApiClient(async_client=FailingAsyncClient())
    with pytest.raises(NodeUnreachableError):
        await client.call_contract("0xoracle", "0x")


@pytest.mark.asyncio
async def test_owned_client_uses_network_node_url_and_is_closed():
    cfg = VeChainConfig(network=NetworkType.TESTNET, node_url_override=None, timeout=3.0)
    client = ThorApiClient(config=cfg)
    created = await client._get_client()
    assert str(created.base_url).rstrip("/") == "https://testnet.vechain.org"
    await client.aclose()
    assert client._client is None


@pytest.mark.asyncio
async def test_injected_client_is_not_closed():
    closed = []

    class TrackingClient(MockAsyncClient):
        async def aclose(self):
            closed.append(True)

    client = ThorApiClient(async_client=TrackingClient([]))
    await client.aclose()
    assert closed == []
