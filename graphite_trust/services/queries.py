"""Data-fetching queries binding presentation code to the API client.

Each query is gated behind a readiness predicate. An unready query issues no
network call and reports idle; a ready one resolves through the shared
``QueryClient`` cache keyed by operation name and parameters.
"""

from typing import Any, List, Optional

from graphite_trust.schemas.models import (
    AccountCounters,
    BalanceHistoryEntry,
    MinedBlock,
    SearchResult,
    TopAccount,
    TrustScore,
)
from graphite_trust.services.api_client import (
    DEFAULT_LIMIT,
    DEFAULT_OFFSET,
    DEFAULT_SORT,
    GraphiteAPIClient,
)
from graphite_trust.services.query_cache import QueryClient, QueryResult, make_key

ADDRESS_PREFIX = "0x"
ADDRESS_LENGTH = 42


def is_address_ready(address: Optional[str]) -> bool:
    """Length and prefix check only; hex digits are not validated."""
    return (isinstance(address, str)
            and address.startswith(ADDRESS_PREFIX)
            and len(address) == ADDRESS_LENGTH)


def is_query_ready(query: Optional[str]) -> bool:
    return isinstance(query, str) and len(query) > 0


class WalletQueries:
    """Cached, gated queries over ``GraphiteAPIClient``."""

    def __init__(self, api_client: GraphiteAPIClient, query_client: QueryClient):
        self.api = api_client
        self.query_client = query_client

    async def search(self, query: str) -> QueryResult[List[SearchResult]]:
        return await self.query_client.fetch_query(
            make_key("search", query),
            lambda: self.api.search(query),
            enabled=is_query_ready(query)
        )

    async def trust_score(self, address: str) -> QueryResult[TrustScore]:
        return await self.query_client.fetch_query(
            make_key("trustScore", address),
            lambda: self.api.get_trust_score(address),
            enabled=is_address_ready(address)
        )

    async def account_counters(self, address: str) -> QueryResult[AccountCounters]:
        return await self.query_client.fetch_query(
            make_key("accountCounters", address),
            lambda: self.api.get_account_counters(address),
            enabled=is_address_ready(address)
        )

    async def balance_history(self,
                              address: str,
                              start_timestamp: Optional[int] = None,
                              end_timestamp: Optional[int] = None,
                              offset: int = DEFAULT_OFFSET,
                              limit: int = DEFAULT_LIMIT,
                              sort: str = DEFAULT_SORT) -> QueryResult[List[BalanceHistoryEntry]]:
        options = {
            "start_timestamp": start_timestamp,
            "end_timestamp": end_timestamp,
            "offset": offset,
            "limit": limit,
            "sort": sort,
        }
        return await self.query_client.fetch_query(
            make_key("balanceHistory", address, options),
            lambda: self.api.get_balance_history(address, **options),
            enabled=is_address_ready(address)
        )

    async def mined_blocks(self,
                           address: str,
                           offset: int = DEFAULT_OFFSET,
                           limit: int = DEFAULT_LIMIT) -> QueryResult[List[MinedBlock]]:
        options = {"offset": offset, "limit": limit}
        return await self.query_client.fetch_query(
            make_key("minedBlocks", address, options),
            lambda: self.api.get_mined_blocks(address, **options),
            enabled=is_address_ready(address)
        )

    async def top_accounts(self,
                           offset: int = DEFAULT_OFFSET,
                           limit: int = DEFAULT_LIMIT) -> QueryResult[List[TopAccount]]:
        options = {"offset": offset, "limit": limit}
        return await self.query_client.fetch_query(
            make_key("topAccounts", options),
            lambda: self.api.get_top_accounts(**options)
        )

    async def recent_activity(self, address: str) -> QueryResult[Any]:
        return await self.query_client.fetch_query(
            make_key("activity", address),
            lambda: self.api.get_recent_activity(address),
            enabled=is_address_ready(address)
        )
