"""
Search pipeline: entity search -> trust score -> recent activity.

The trust score and activity stages both consume the address of the first
search hit. They run concurrently, so a failure in one never blocks the
other; a failed or empty search leaves both idle.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, List, Optional

import structlog

from graphite_trust.schemas.models import SearchResult, TrustScore
from graphite_trust.services.queries import WalletQueries
from graphite_trust.services.query_cache import QueryResult

logger = structlog.get_logger(__name__)


@dataclass
class SearchPipelineResult:
    """Typed stage results plus their aggregated loading/error state."""

    query: str
    search: QueryResult[List[SearchResult]] = field(default_factory=QueryResult.idle)
    trust_score: QueryResult[TrustScore] = field(default_factory=QueryResult.idle)
    activity: QueryResult[Any] = field(default_factory=QueryResult.idle)

    @property
    def stages(self) -> List[QueryResult]:
        return [self.search, self.trust_score, self.activity]

    @property
    def is_loading(self) -> bool:
        return any(stage.is_loading for stage in self.stages)

    @property
    def error(self) -> Optional[Exception]:
        """First stage error in pipeline order."""
        for stage in self.stages:
            if stage.error is not None:
                return stage.error
        return None

    @property
    def search_results(self) -> Optional[List[SearchResult]]:
        return self.search.data

    @property
    def selected_address(self) -> Optional[str]:
        if self.search.data:
            return self.search.data[0].address
        return None

    @property
    def recent_activity(self) -> Any:
        return self.activity.data


class SearchPipeline:
    """Runs the three dependent stages for one query."""

    def __init__(self, queries: WalletQueries):
        self.queries = queries
        self.logger = logger.bind(component="search_pipeline")

    async def run(self, query: str) -> SearchPipelineResult:
        result = SearchPipelineResult(query=query)

        result.search = await self.queries.search(query)
        address = result.selected_address

        if not address:
            self.logger.debug("Search produced no address",
                              query=query,
                              search_status=result.search.status.value)
            return result

        result.trust_score, result.activity = await asyncio.gather(
            self.queries.trust_score(address),
            self.queries.recent_activity(address)
        )

        self.logger.info("Search pipeline completed",
                         query=query,
                         address=address,
                         trust_score_status=result.trust_score.status.value,
                         activity_status=result.activity.status.value)
        return result
