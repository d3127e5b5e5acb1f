"""Tests for the HTTP front.

Uses ``httpx.ASGITransport`` to test Starlette in-process with a fake
bridge in place of the backend.
"""

import httpx
import pytest
from bridge.client import Bridge
from bridge.errors import (
    BackendClosedError,
    BackendTimeoutError,
    BackendUnavailableError,
    BridgeError,
    MalformedResponseError,
)
from front.server import HEALTH_METHOD, INFO, create_app
from wire.jsonrpc import RpcResponse


class FakeBridge(Bridge):
    """Records calls and replays a canned response or failure."""

    mode = "fake"

    def __init__(self, response=None, exc=None):
        super().__init__("fake", 0)
        self.response = response if response is not None else RpcResponse(id=1, result=42)
        self.exc = exc
        self.calls = []

    async def call(self, method, params=None):
        self.calls.append((method, params))
        if self.exc is not None:
            raise self.exc
        return self.response


@pytest.fixture
def bridge():
    return FakeBridge()


@pytest.fixture
def client(bridge):
    """In-process async test client."""
    transport = httpx.ASGITransport(app=create_app(bridge))  # type: ignore[arg-type]
    return httpx.AsyncClient(transport=transport, base_url="http://test")


# ── Root ─────────────────────────────────────────────────────────────


@pytest.mark.anyio
async def test_root_info(client, bridge):
    resp = await client.get("/")
    assert resp.status_code == 200
    assert resp.json() == INFO
    assert resp.json()["info"]["healthCheck"] == "GET /proxy/health"
    assert bridge.calls == []


# ── Health ───────────────────────────────────────────────────────────


@pytest.mark.anyio
async def test_health_ok(client, bridge):
    resp = await client.get("/proxy/health")
    assert resp.status_code == 200
    assert "healthy" in resp.text
    assert bridge.calls == [(HEALTH_METHOD, [])]


@pytest.mark.anyio
async def test_health_ok_even_with_rpc_error(client, bridge):
    bridge.response = RpcResponse(id=1, error={"code": -1, "message": "busy"})
    resp = await client.get("/proxy/health")
    assert resp.status_code == 200


@pytest.mark.anyio
@pytest.mark.parametrize(
    "exc",
    [
        BackendUnavailableError("refused"),
        BackendTimeoutError("slow"),
        BackendClosedError("gone"),
        MalformedResponseError("junk"),
    ],
)
async def test_health_unreachable(client, bridge, exc):
    bridge.exc = exc
    resp = await client.get("/proxy/health")
    assert resp.status_code == 503
    assert "unreachable" in resp.text


# ── Proxy: success ───────────────────────────────────────────────────


@pytest.mark.anyio
async def test_post_params(client, bridge):
    resp = await client.post(
        "/proxy/blockchain.scripthash.get_balance", json={"params": ["abcd", 1]}
    )
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "response": 42}
    assert bridge.calls == [("blockchain.scripthash.get_balance", ["abcd", 1])]


@pytest.mark.anyio
async def test_post_string_encoded_params(client, bridge):
    resp = await client.post("/proxy/server.version", json={"params": '["proxy", "1.4"]'})
    assert resp.status_code == 200
    assert bridge.calls == [("server.version", ["proxy", "1.4"])]


@pytest.mark.anyio
async def test_post_without_body(client, bridge):
    resp = await client.post("/proxy/server.banner")
    assert resp.status_code == 200
    assert bridge.calls == [("server.banner", [])]


@pytest.mark.anyio
async def test_get_query_params(client, bridge):
    resp = await client.get("/proxy/blockchain.transaction.get", params={"params": '["ff00", true]'})
    assert resp.status_code == 200
    assert bridge.calls == [("blockchain.transaction.get", ["ff00", True])]


@pytest.mark.anyio
async def test_get_without_params(client, bridge):
    resp = await client.get("/proxy/server.features")
    assert resp.status_code == 200
    assert bridge.calls == [("server.features", [])]


@pytest.mark.anyio
async def test_null_result(client, bridge):
    bridge.response = RpcResponse(id=1)
    resp = await client.get("/proxy/server.ping")
    assert resp.json() == {"success": True, "response": None}


# ── Proxy: bad input ─────────────────────────────────────────────────


@pytest.mark.anyio
@pytest.mark.parametrize(
    "kwargs",
    [
        {"content": b"not json", "headers": {"content-type": "application/json"}},
        {"json": ["a", "b"]},
        {"json": {"params": {"a": 1}}},
        {"json": {"params": "[unterminated"}},
        {"json": {"params": '{"a": 1}'}},
    ],
)
async def test_post_invalid_params(client, bridge, kwargs):
    resp = await client.post("/proxy/server.version", **kwargs)
    assert resp.status_code == 400
    data = resp.json()
    assert data["success"] is False
    assert data["error"]["kind"] == "invalid_params"
    assert bridge.calls == []


@pytest.mark.anyio
async def test_get_invalid_params(client, bridge):
    resp = await client.get("/proxy/server.version", params={"params": "nope"})
    assert resp.status_code == 400
    assert bridge.calls == []


# ── Proxy: backend failures ──────────────────────────────────────────


@pytest.mark.anyio
@pytest.mark.parametrize(
    "exc, status",
    [
        (BackendUnavailableError("refused"), 502),
        (BackendTimeoutError("slow"), 504),
        (BackendClosedError("gone"), 502),
        (MalformedResponseError("junk"), 502),
    ],
)
async def test_bridge_failure_envelope(client, bridge, exc, status):
    bridge.exc = exc
    resp = await client.post("/proxy/server.version", json={"params": []})
    assert resp.status_code == status
    assert resp.json() == {
        "success": False,
        "error": {"kind": exc.kind, "message": exc.message},
    }


@pytest.mark.anyio
async def test_rpc_error_envelope(client, bridge):
    bridge.response = RpcResponse(id=1, error={"code": -32601, "message": "unknown method"})
    resp = await client.get("/proxy/no.such.method")
    assert resp.status_code == 502
    data = resp.json()
    assert data["success"] is False
    assert data["error"]["kind"] == "rpc_error"
    assert data["error"]["data"]["code"] == -32601


@pytest.mark.anyio
async def test_unexpected_error_is_500(client, bridge):
    bridge.exc = RuntimeError("boom")
    resp = await client.get("/proxy/server.version")
    assert resp.status_code == 500
    assert resp.json()["error"]["kind"] == "internal_error"


@pytest.mark.anyio
async def test_health_unexpected_error_is_503(client, bridge):
    bridge.exc = RuntimeError("boom")
    resp = await client.get("/proxy/health")
    assert resp.status_code == 503
    assert "unreachable" in resp.text


@pytest.mark.anyio
async def test_failure_does_not_break_next_call(client, bridge):
    bridge.exc = BridgeError("transient")
    resp = await client.get("/proxy/server.version")
    assert resp.status_code == 502

    bridge.exc = None
    resp = await client.get("/proxy/server.version")
    assert resp.status_code == 200
