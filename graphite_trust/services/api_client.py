"""
Graphite explorer API client.

Every account endpoint is a GET against a single base URL selected by the
``module``/``action`` query parameters, and answers with the envelope
``{"status": "0"|"1", "message": ..., "result": ...}``. The client unwraps
that envelope into typed records and raises on transport or format failure.
It never retries and never overrides httpx's default timeout.
"""

from typing import Any, Dict, List, Optional, Type, TypeVar
from urllib.parse import quote

import httpx
import structlog
from pydantic import ValidationError

from graphite_trust.schemas.models import (
    AccountCounters,
    BalanceHistoryEntry,
    GraphiteRecord,
    MinedBlock,
    SearchResult,
    TopAccount,
    TrustScore,
)
from graphite_trust.schemas.responses import ApiEnvelope

logger = structlog.get_logger(__name__)

RecordT = TypeVar("RecordT", bound=GraphiteRecord)

DEFAULT_BASE_URL = "http://localhost:3001/api"

DEFAULT_OFFSET = 0
DEFAULT_LIMIT = 10
DEFAULT_SORT = "desc"


class GraphiteAPIError(Exception):
    """Base error raised by the Graphite API client."""
    pass


class TransportError(GraphiteAPIError):
    """Upstream unreachable, timed out, or answered with a non-2xx status."""
    pass


class InvalidResponseError(GraphiteAPIError):
    """Upstream answered, but the envelope or payload is not usable."""
    pass


class GraphiteAPIClient:
    """
    Async client for the Graphite explorer API.

    The underlying ``httpx.AsyncClient`` may be injected; otherwise the
    client creates and owns one, closed by ``close()`` or on leaving an
    ``async with`` block.
    """

    HEADERS = {"Content-Type": "application/json"}

    def __init__(self,
                 base_url: str = DEFAULT_BASE_URL,
                 api_key: Optional[str] = None,
                 http_client: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient()
        self.logger = logger.bind(component="graphite_api_client")

    @classmethod
    def from_settings(cls, settings, http_client: Optional[httpx.AsyncClient] = None) -> "GraphiteAPIClient":
        """Build a client from ``GraphiteSettings``."""
        return cls(
            base_url=settings.api_base_url,
            api_key=settings.api_key,
            http_client=http_client
        )

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "GraphiteAPIClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ==================== Transport ====================

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET ``base_url + path`` and decode the JSON body."""
        url = f"{self.base_url}{path}"
        # Unset parameters are left out of the query string entirely
        query = {key: value for key, value in (params or {}).items() if value is not None}

        try:
            response = await self._client.get(url, params=query or None, headers=self.HEADERS)
            response.raise_for_status()
        except httpx.HTTPError as e:
            self.logger.error("API request failed", path=path, action=query.get("action"), error=str(e))
            raise TransportError(f"Request to {url} failed: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            self.logger.error("API response is not JSON", path=path, action=query.get("action"))
            raise InvalidResponseError("Invalid response format from API") from e

    async def _account_action(self, action: str, **params: Any) -> ApiEnvelope:
        """Call an ``module=account`` action and parse the envelope."""
        query = {"module": "account", "action": action}
        query.update(params)
        query["apikey"] = self.api_key

        payload = await self._get("", query)
        envelope = self._parse_envelope(payload)

        self.logger.debug("API response received",
                          action=action,
                          status=envelope.status,
                          message=envelope.message)
        return envelope

    def _parse_envelope(self, payload: Any) -> ApiEnvelope:
        if not isinstance(payload, dict) or "status" not in payload:
            self.logger.error("API response has no envelope", payload_type=type(payload).__name__)
            raise InvalidResponseError("Invalid response format from API")
        try:
            return ApiEnvelope(**payload)
        except ValidationError as e:
            self.logger.error("API envelope invalid", error=str(e))
            raise InvalidResponseError(f"Invalid response envelope: {e}") from e

    def _parse_records(self, result: Any, model: Type[RecordT], operation: str) -> List[RecordT]:
        """Parse a list ``result`` into records, keeping upstream order."""
        if not isinstance(result, list):
            self.logger.error("API result is not a list",
                              operation=operation,
                              result_type=type(result).__name__)
            raise InvalidResponseError(
                f"{operation}: expected a list result, got {type(result).__name__}"
            )
        try:
            return [model(**item) for item in result]
        except (TypeError, ValidationError) as e:
            self.logger.error("API record malformed", operation=operation, error=str(e))
            raise InvalidResponseError(f"{operation}: malformed record: {e}") from e

    def _parse_record(self, result: Any, model: Type[RecordT], operation: str) -> RecordT:
        if not isinstance(result, dict):
            self.logger.error("API result missing",
                              operation=operation,
                              result_type=type(result).__name__)
            raise InvalidResponseError(f"{operation}: result is missing")
        try:
            return model(**result)
        except ValidationError as e:
            self.logger.error("API record malformed", operation=operation, error=str(e))
            raise InvalidResponseError(f"{operation}: malformed record: {e}") from e

    # ==================== Search ====================

    async def search(self, query: str) -> List[SearchResult]:
        """Search entities (wallets, projects, DAOs) by free text."""
        payload = await self._get(f"/search?query={quote(query, safe='')}")

        result = payload.get("result") if isinstance(payload, dict) else None
        results = self._parse_records(result, SearchResult, "search")

        self.logger.debug("Search response received", query=query, results=len(results))
        return results

    # ==================== Account Methods ====================

    async def get_trust_score(self, address: str) -> TrustScore:
        """
        Get the KYC/filter/reputation state of a wallet.

        Raises ``InvalidResponseError`` unless the envelope status is ``"1"``
        and a result is present. Missing ``reputation`` and ``kycLevel``
        default to ``"0"``; ``activated`` is true only for a JSON ``true``.
        """
        envelope = await self._account_action("kyc", address=address, tag="latest")

        if not envelope.ok or not isinstance(envelope.result, dict):
            self.logger.error("Trust score rejected",
                              address=address,
                              status=envelope.status,
                              message=envelope.message)
            raise InvalidResponseError("Invalid response format from API")

        raw = envelope.result
        normalized = dict(raw)
        normalized["activated"] = raw.get("activated") is True
        normalized["reputation"] = raw.get("reputation") or "0"
        normalized["kycLevel"] = raw.get("kycLevel") or "0"
        normalized["filterLevel"] = raw.get("filterLevel") or "0"

        return self._parse_record(normalized, TrustScore, "trust score")

    async def get_account_counters(self, address: str) -> AccountCounters:
        """Get gas used, transaction counts and other aggregate counters."""
        envelope = await self._account_action("counters", address=address, tag="latest")
        return self._parse_record(envelope.result, AccountCounters, "account counters")

    async def get_balance_history(self,
                                  address: str,
                                  start_timestamp: Optional[int] = None,
                                  end_timestamp: Optional[int] = None,
                                  offset: int = DEFAULT_OFFSET,
                                  limit: int = DEFAULT_LIMIT,
                                  sort: str = DEFAULT_SORT) -> List[BalanceHistoryEntry]:
        """Get balance changes of a wallet, newest first unless ``sort="asc"``."""
        envelope = await self._account_action(
            "balancehistory",
            address=address,
            starttimestamp=start_timestamp,
            endtimestamp=end_timestamp,
            offset=offset,
            limit=limit,
            sort=sort
        )
        return self._parse_records(envelope.result, BalanceHistoryEntry, "balance history")

    async def get_mined_blocks(self,
                               address: str,
                               offset: int = DEFAULT_OFFSET,
                               limit: int = DEFAULT_LIMIT) -> List[MinedBlock]:
        """Get blocks produced by a wallet."""
        envelope = await self._account_action(
            "getminedblocks",
            address=address,
            offset=offset,
            limit=limit
        )
        return self._parse_records(envelope.result, MinedBlock, "mined blocks")

    async def get_top_accounts(self,
                               offset: int = DEFAULT_OFFSET,
                               limit: int = DEFAULT_LIMIT) -> List[TopAccount]:
        """Get accounts ranked by balance. The upstream order is kept as is."""
        envelope = await self._account_action("topbalance", offset=offset, limit=limit)
        return self._parse_records(envelope.result, TopAccount, "top accounts")

    async def get_recent_activity(self, address: str) -> Any:
        """Get the recent activity feed of a wallet, returned undecoded."""
        payload = await self._get(f"/activity/{address}")
        self.logger.debug("Recent activity response received", address=address)
        return payload
