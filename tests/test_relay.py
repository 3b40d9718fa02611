"""Tests for the JSON-RPC relay, with the upstream node replaced by ``httpx.MockTransport``."""

import httpx
import pytest
from fastapi.testclient import TestClient

from gateway.config import Settings
from gateway.errors import NetworkError
from gateway.main import create_app, get_relay
from gateway.relay import CORS_HEADERS, RpcRelay

UPSTREAM = "https://soroban-testnet.stellar.org"
REQUEST_BODY = b'{"jsonrpc":"2.0","id":1,"method":"getLatestLedger"}'


def _relay_client(handler):
    app = create_app(Settings(rpc_url=UPSTREAM))
    relay = RpcRelay(UPSTREAM, transport=httpx.MockTransport(handler))
    app.dependency_overrides[get_relay] = lambda: relay
    return TestClient(app)


def test_relay_forwards_body_and_mirrors_upstream():
    seen = {}
    upstream_body = b'{"jsonrpc":"2.0","id":1,"error":{"code":-32601,"message":"method not found"}}'

    def handler(request):
        seen["method"] = request.method
        seen["host"] = request.url.host
        seen["body"] = request.content
        seen["content_type"] = request.headers["content-type"]
        return httpx.Response(503, content=upstream_body, headers={"content-type": "application/json"})

    with _relay_client(handler) as client:
        response = client.post("/rpc", content=REQUEST_BODY, headers={"Content-Type": "application/json"})

    assert seen == {
        "method": "POST",
        "host": "soroban-testnet.stellar.org",
        "body": REQUEST_BODY,
        "content_type": "application/json",
    }
    assert response.status_code == 503
    assert response.content == upstream_body
    assert response.headers["content-type"] == "application/json"
    for name, value in CORS_HEADERS.items():
        assert response.headers[name] == value


def test_relay_does_not_parse_body():
    garbage = b"not json at all {"

    def handler(request):
        assert request.content == garbage
        return httpx.Response(200, content=b"ok", headers={"content-type": "text/plain"})

    with _relay_client(handler) as client:
        response = client.post("/rpc", content=garbage, headers={"Content-Type": "text/plain"})

    assert response.status_code == 200
    assert response.content == b"ok"


def test_relay_network_failure_is_500_with_cors():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with _relay_client(handler) as client:
        response = client.post("/rpc", content=REQUEST_BODY, headers={"Content-Type": "application/json"})

    assert response.status_code == 500
    assert response.json() == {"error": "Proxy request failed", "message": "connection refused"}
    assert response.headers["Access-Control-Allow-Origin"] == "*"


def test_relay_preflight():
    with _relay_client(lambda request: httpx.Response(200)) as client:
        response = client.options("/rpc")

    assert response.status_code == 204
    assert response.headers["Access-Control-Allow-Methods"] == "GET, POST, OPTIONS"


@pytest.mark.anyio
async def test_forward_raises_network_error_on_timeout():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    relay = RpcRelay(UPSTREAM, timeout=0.1, transport=httpx.MockTransport(handler))

    with pytest.raises(NetworkError):
        await relay.forward("POST", REQUEST_BODY, "application/json")


def test_relay_ignores_restricted_cors_origins():
    app = create_app(Settings(rpc_url=UPSTREAM, cors_origins=("https://only.example",)))
    app.dependency_overrides[get_relay] = lambda: RpcRelay(
        UPSTREAM, transport=httpx.MockTransport(lambda request: httpx.Response(200, content=b"{}"))
    )
    headers = {"Origin": "https://elsewhere.example", "Access-Control-Request-Method": "POST"}

    with TestClient(app) as client:
        preflight = client.options("/rpc", headers=headers)
        response = client.post("/rpc", content=REQUEST_BODY, headers={"Origin": "https://elsewhere.example"})
        health = client.get("/health", headers={"Origin": "https://elsewhere.example"})

    assert preflight.status_code == 204
    assert preflight.headers["Access-Control-Allow-Origin"] == "*"
    assert response.status_code == 200
    assert response.headers["Access-Control-Allow-Origin"] == "*"
    # other routes still follow CORS_ORIGINS
    assert "access-control-allow-origin" not in health.headers
