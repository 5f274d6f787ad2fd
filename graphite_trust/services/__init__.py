"""API client, query layer and dashboard composition."""

from graphite_trust.services.api_client import (
    GraphiteAPIClient,
    GraphiteAPIError,
    InvalidResponseError,
    TransportError
)
from graphite_trust.services.query_cache import QueryClient, QueryResult, QueryStatus
from graphite_trust.services.queries import WalletQueries, is_address_ready, is_query_ready
from graphite_trust.services.search_pipeline import SearchPipeline, SearchPipelineResult
from graphite_trust.services.wallet_dashboard import WalletDashboard, Card, CardState

__all__ = [
    "GraphiteAPIClient",
    "GraphiteAPIError",
    "InvalidResponseError",
    "TransportError",
    "QueryClient",
    "QueryResult",
    "QueryStatus",
    "WalletQueries",
    "is_address_ready",
    "is_query_ready",
    "SearchPipeline",
    "SearchPipelineResult",
    "WalletDashboard",
    "Card",
    "CardState",
]
