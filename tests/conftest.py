"""Pytest configuration and fixtures for GraphiteTrust tests."""

import json
from typing import Any, Dict, List, Optional

import httpx
import pytest

from graphite_trust.config.settings import GraphiteSettings
from graphite_trust.services.api_client import GraphiteAPIClient
from graphite_trust.services.queries import WalletQueries
from graphite_trust.services.query_cache import QueryClient


BASE_URL = "http://graphite.test/api"
ZERO_ADDRESS = "0x" + "0" * 40
WALLET_ADDRESS = "0x1234567890abcdef1234567890abcdef12345678"

# Route value that makes the fake upstream refuse the connection
UNREACHABLE = object()


# ============================================================================
# FAKE UPSTREAM
# ============================================================================

class FakeExplorer:
    """
    Stands in for the Graphite explorer behind ``httpx.MockTransport``.

    Routes are keyed by the ``action`` query parameter for account calls and
    by the first path segment after the base path otherwise ("search",
    "activity"). Every request is recorded.
    """

    def __init__(self, routes: Optional[Dict[str, Any]] = None):
        self.routes: Dict[str, Any] = dict(routes or {})
        self.requests: List[httpx.Request] = []

    @staticmethod
    def route_key(request: httpx.Request) -> str:
        action = request.url.params.get("action")
        if action:
            return action
        tail = request.url.path[len("/api"):].strip("/")
        return tail.split("/")[0]

    def calls(self, key: str) -> List[httpx.Request]:
        return [request for request in self.requests if self.route_key(request) == key]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(self.route_key(request))

        if route is UNREACHABLE:
            raise httpx.ConnectError("Connection refused", request=request)
        if isinstance(route, httpx.Response):
            return route
        if route is None:
            return httpx.Response(404, json={"status": "0", "message": "Not found", "result": None})
        return httpx.Response(200, content=json.dumps(route).encode(),
                              headers={"Content-Type": "application/json"})


# ============================================================================
# SAMPLE PAYLOADS
# ============================================================================

@pytest.fixture
def trust_score_payload():
    return {
        "status": "1",
        "message": "OK",
        "result": {
            "activated": True,
            "activationBlockNumber": "1200",
            "activationTxHash": "0x" + "ab" * 32,
            "kycLevel": "2",
            "kycLastUpdateBlockNumber": "1300",
            "filterLevel": "3",
            "filterLastUpdateBlockNumber": "1400",
            "reputation": "150",
        },
    }


@pytest.fixture
def counters_payload():
    return {
        "status": "1",
        "message": "OK",
        "result": {
            "gasUsed": "2100000",
            "transactionCount": {"total": "42", "incoming": "30", "outgoing": "12"},
            "internalTransactionCount": {"total": "5", "incoming": "5", "outgoing": "0"},
            "tokenTransferCount": {"total": "7", "incoming": "3", "outgoing": "4"},
            "producedBlockCount": "2",
            "balanceChangesCount": "44",
        },
    }


@pytest.fixture
def balance_history_payload():
    return {
        "status": "1",
        "message": "OK",
        "result": [
            {
                "blockNumber": "2000",
                "timeStamp": "1700003600",
                "balance": "1500000000000000000",
                "balanceChange": "500000000000000000",
            },
            {
                "blockNumber": "1900",
                "timeStamp": "1700000000",
                "balance": "1000000000000000000",
                "balanceChange": "-500000000000000000",
            },
        ],
    }


@pytest.fixture
def mined_blocks_payload():
    return {
        "status": "1",
        "message": "OK",
        "result": [
            {"blockNumber": "1950", "timeStamp": "1700001800", "blockReward": "2000000000000000000"},
        ],
    }


@pytest.fixture
def top_accounts_payload():
    return {
        "status": "1",
        "message": "OK",
        "result": [
            {
                "address": WALLET_ADDRESS,
                "balance": "9000000000000000000000",
                "percentage": "12.5",
                "transactionCount": "1024",
            },
            {
                "address": ZERO_ADDRESS,
                "balance": "1000000000000000000000",
                "percentage": "1.25",
                "transactionCount": "3",
            },
        ],
    }


@pytest.fixture
def search_payload():
    return {
        "status": "1",
        "message": "OK",
        "result": [
            {
                "name": "Graphite Treasury",
                "type": "wallet",
                "description": "Foundation treasury wallet",
                "address": WALLET_ADDRESS,
            },
            {"name": "Graphite DAO", "type": "dao", "description": "Governance"},
        ],
    }


@pytest.fixture
def activity_payload():
    return {"transactions": [{"hash": "0x" + "cd" * 32, "value": "1000"}]}


@pytest.fixture
def explorer_routes(trust_score_payload, counters_payload, balance_history_payload,
                    mined_blocks_payload, top_accounts_payload, search_payload,
                    activity_payload):
    """Every endpoint answering successfully."""
    return {
        "kyc": trust_score_payload,
        "counters": counters_payload,
        "balancehistory": balance_history_payload,
        "getminedblocks": mined_blocks_payload,
        "topbalance": top_accounts_payload,
        "search": search_payload,
        "activity": activity_payload,
    }


# ============================================================================
# CLIENT FIXTURES
# ============================================================================

@pytest.fixture
def explorer(explorer_routes):
    return FakeExplorer(explorer_routes)


def make_api_client(explorer: FakeExplorer, api_key: Optional[str] = "test-api-key") -> GraphiteAPIClient:
    return GraphiteAPIClient(
        base_url=BASE_URL,
        api_key=api_key,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(explorer))
    )


@pytest.fixture
def api_client(explorer):
    return make_api_client(explorer)


@pytest.fixture
def query_client():
    return QueryClient(ttl_seconds=300, max_size=100)


@pytest.fixture
def queries(api_client, query_client):
    return WalletQueries(api_client, query_client)


@pytest.fixture
def settings():
    return GraphiteSettings(
        _env_file=None,
        api_base_url=BASE_URL,
        api_key="test-api-key",
        log_format="text",
        log_level="WARNING",
    )
