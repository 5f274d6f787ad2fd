"""
Integration tests for the local CORS proxy.

The upstream explorer is replaced with ``httpx.MockTransport`` and the app
is driven through FastAPI's TestClient so the lifespan runs.
"""

from typing import List

import httpx
import pytest
from fastapi.testclient import TestClient

from graphite_trust.config.settings import GraphiteSettings
from graphite_trust.proxy.server import create_app

UPSTREAM_URL = "https://upstream.test"


class RecordingUpstream:
    """Mock upstream answering every request with a fixed response."""

    def __init__(self, response: httpx.Response = None, error: Exception = None):
        self.response = response
        self.error = error
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.response is not None:
            return self.response
        return httpx.Response(
            200,
            json={"status": "1", "message": "OK", "result": []},
            headers={"Access-Control-Allow-Origin": "https://explorer.atgraphite.com"}
        )


@pytest.fixture
def proxy_settings():
    return GraphiteSettings(_env_file=None, upstream_url=UPSTREAM_URL, access_log=False)


@pytest.fixture
def upstream():
    return RecordingUpstream()


@pytest.fixture
def client(proxy_settings, upstream):
    app = create_app(proxy_settings, transport=httpx.MockTransport(upstream))
    with TestClient(app) as test_client:
        yield test_client


class TestForwarding:

    def test_path_and_query_forwarded_unchanged(self, client, upstream):
        response = client.get("/api?module=account&action=kyc&address=0xabc&tag=latest")

        assert response.status_code == 200
        assert response.json()["status"] == "1"

        forwarded = upstream.requests[0]
        assert str(forwarded.url) == (
            "https://upstream.test/api?module=account&action=kyc&address=0xabc&tag=latest"
        )

    def test_nested_path_forwarded(self, client, upstream):
        client.get("/api/activity/0x1234")

        assert upstream.requests[0].url.path == "/api/activity/0x1234"

    def test_encoded_query_left_alone(self, client, upstream):
        client.get("/api/search?query=graphite%20treasury%2F1")

        assert upstream.requests[0].url.params["query"] == "graphite treasury/1"

    def test_host_rewritten_to_upstream(self, client, upstream):
        client.get("/api?module=account&action=counters")

        assert upstream.requests[0].headers["host"] == "upstream.test"

    def test_request_headers_and_body_forwarded(self, client, upstream):
        client.post("/api/search", content=b'{"query": "x"}',
                    headers={"Content-Type": "application/json", "X-Trace": "abc"})

        forwarded = upstream.requests[0]
        assert forwarded.method == "POST"
        assert forwarded.content == b'{"query": "x"}'
        assert forwarded.headers["x-trace"] == "abc"

    def test_allow_origin_overwritten(self, client):
        response = client.get("/api?module=account&action=kyc")

        assert response.headers.get_list("access-control-allow-origin") == ["*"]

    @pytest.mark.parametrize("headers", [
        {"Origin": "http://localhost:5173"},
        {"Origin": "http://localhost:5173", "Cookie": "session=abc"},
    ])
    def test_allow_origin_is_wildcard_for_any_origin(self, client, headers):
        response = client.get("/api?module=account&action=kyc", headers=headers)

        assert response.headers.get_list("access-control-allow-origin") == ["*"]

    def test_upstream_status_relayed(self, proxy_settings):
        upstream = RecordingUpstream(response=httpx.Response(429, text="slow down"))
        app = create_app(proxy_settings, transport=httpx.MockTransport(upstream))

        with TestClient(app) as client:
            response = client.get("/api?module=account&action=topbalance")

        assert response.status_code == 429
        assert response.text == "slow down"
        assert response.headers["access-control-allow-origin"] == "*"


class TestProxyFailures:

    def test_unreachable_upstream_is_504(self, proxy_settings):
        upstream = RecordingUpstream(error=httpx.ConnectError("Connection refused"))
        app = create_app(proxy_settings, transport=httpx.MockTransport(upstream))

        with TestClient(app) as client:
            response = client.get("/api/activity/0x1234")

        assert response.status_code == 504
        assert response.text == "Error occurred while trying to proxy: upstream.test/api/activity/0x1234"

    def test_timeout_is_504(self, proxy_settings):
        upstream = RecordingUpstream(error=httpx.ReadTimeout("timed out"))
        app = create_app(proxy_settings, transport=httpx.MockTransport(upstream))

        with TestClient(app) as client:
            response = client.get("/api")

        assert response.status_code == 504

    def test_other_transport_error_is_500(self, proxy_settings):
        upstream = RecordingUpstream(error=httpx.RemoteProtocolError("bad framing"))
        app = create_app(proxy_settings, transport=httpx.MockTransport(upstream))

        with TestClient(app) as client:
            response = client.get("/api/search?query=x")

        assert response.status_code == 500
        assert response.text.startswith("Error occurred while trying to proxy: upstream.test")


class TestRoutes:

    def test_paths_outside_api_not_proxied(self, client, upstream):
        response = client.get("/health")

        assert response.status_code == 404
        assert upstream.requests == []

    def test_no_docs_routes(self, client):
        assert client.get("/docs").status_code == 404
        assert client.get("/openapi.json").status_code == 404

    def test_cors_preflight(self, client, upstream):
        response = client.options(
            "/api",
            headers={
                "Origin": "http://localhost:5173",
                "Access-Control-Request-Method": "GET",
            }
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        assert upstream.requests == []
