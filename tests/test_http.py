import pytest

import keel.keel_http as keel_http_mod
from keel.keel_errors import ProviderError
from keel.keel_http import (
    HttpProvider,
    InterfaceAdapter,
    create_interface_adapter,
    provider_from_network,
    rpc_request,
)


class DummyHTTPError(Exception):
    pass


class DummyResp:
    def __init__(self, status, body=None, text=""):
        self.status_code = status
        self._body = body
        self.text = text

    def json(self):
        if self._body is None:
            raise ValueError("no json")
        return self._body


def install_client(monkeypatch, responses):
    """Replace httpx in keel_http; each post pops the next response (or raises it)."""
    posted = []

    class DummyAsyncClient:
        def __init__(self, *args, **kwargs):
            self.kwargs = kwargs

        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_type, exc, tb):
            return False

        async def post(self, url, json=None, headers=None):
            posted.append((url, json, headers))
            item = responses.pop(0)
            if isinstance(item, Exception):
                raise item
            return item

    monkeypatch.setattr(keel_http_mod, "httpx", type("X", (), {
        "AsyncClient": DummyAsyncClient,
        "HTTPError": DummyHTTPError,
    }))
    return posted


@pytest.mark.asyncio
async def test_result_member_is_returned(monkeypatch):
    posted = install_client(monkeypatch, [DummyResp(200, {"jsonrpc": "2.0", "id": 1, "result": ["0xa", "0xb"]})])
    out = await rpc_request("http://node", "eth_accounts", config={"retries": 0})
    assert out == ["0xa", "0xb"]
    url, payload, headers = posted[0]
    assert url == "http://node"
    assert payload["jsonrpc"] == "2.0"
    assert payload["method"] == "eth_accounts"
    assert payload["params"] == []
    assert headers["Content-Type"] == "application/json"


@pytest.mark.asyncio
async def test_error_member_raises_without_retry(monkeypatch):
    posted = install_client(monkeypatch, [
        DummyResp(200, {"error": {"code": -32601, "message": "Method not found"}}),
    ])
    with pytest.raises(ProviderError) as info:
        await rpc_request("http://node", "nope", config={"retries": 3, "backoff": 0})
    assert info.value.code == -32601
    assert "Method not found" in str(info.value)
    assert len(posted) == 1


@pytest.mark.asyncio
async def test_transport_failures_are_retried(monkeypatch):
    posted = install_client(monkeypatch, [
        DummyHTTPError("refused"),
        DummyResp(200, {"result": "0x10"}),
    ])
    assert await rpc_request("http://node", "eth_blockNumber", config={"retries": 1, "backoff": 0}) == "0x10"
    assert len(posted) == 2


@pytest.mark.asyncio
async def test_transport_failure_after_retries(monkeypatch):
    install_client(monkeypatch, [DummyHTTPError("refused"), DummyHTTPError("refused")])
    with pytest.raises(ProviderError, match="Could not connect to http://node"):
        await rpc_request("http://node", "eth_accounts", config={"retries": 1, "backoff": 0})


@pytest.mark.asyncio
async def test_http_status_and_bad_json(monkeypatch):
    install_client(monkeypatch, [DummyResp(502, text="bad gateway"), DummyResp(200, None)])
    with pytest.raises(ProviderError, match="HTTP 502"):
        await rpc_request("http://node", "eth_accounts", config={"retries": 0})
    with pytest.raises(ProviderError, match="Invalid JSON-RPC"):
        await rpc_request("http://node", "eth_accounts", config={"retries": 0})


def test_provider_from_network():
    assert provider_from_network({"url": "https://x.invalid", "timeout": 1}).config == {"timeout": 1}
    assert provider_from_network({"host": "localhost"}).url == "http://localhost:8545"
    assert provider_from_network({"network_id": "*"}) is None


class FakeProvider:
    def __init__(self, answers):
        self.answers = answers
        self.calls = []

    async def request(self, method, params=None):
        self.calls.append(method)
        return self.answers[method]


@pytest.mark.asyncio
async def test_adapter_queries_the_provider():
    provider = FakeProvider({"eth_accounts": ["0x1"], "net_version": 5777, "eth_blockNumber": "0x1f"})
    adapter = create_interface_adapter(provider, "Ethereum")
    assert await adapter.get_accounts() == ["0x1"]
    assert await adapter.get_network_id() == "5777"
    assert await adapter.get_block_number() == 31
    assert provider.calls == ["eth_accounts", "net_version", "eth_blockNumber"]


@pytest.mark.asyncio
async def test_adapter_without_provider_fails():
    with pytest.raises(ProviderError):
        await InterfaceAdapter(None).get_accounts()


def test_unsupported_network_type():
    with pytest.raises(ProviderError, match="Unsupported network type"):
        InterfaceAdapter(HttpProvider("http://x"), "tezos")
