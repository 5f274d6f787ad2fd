"""Pydantic schemas for GraphiteTrust."""

from graphite_trust.schemas.responses import ApiEnvelope

from graphite_trust.schemas.models import (
    TrustScore,
    DirectionalCount,
    AccountCounters,
    SearchResult,
    BalanceHistoryEntry,
    MinedBlock,
    TopAccount
)

__all__ = [
    "ApiEnvelope",
    "TrustScore",
    "DirectionalCount",
    "AccountCounters",
    "SearchResult",
    "BalanceHistoryEntry",
    "MinedBlock",
    "TopAccount"
]
