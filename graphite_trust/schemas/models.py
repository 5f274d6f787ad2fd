"""Core data models for GraphiteTrust.

Records mirror the Graphite explorer wire format: field names are camelCase
aliases and every numeric value stays a decimal string. Unit conversion is a
presentation concern and lives in ``graphite_trust.utils.formatting``.
"""

from typing import Optional
from pydantic import BaseModel, Field, validator


class GraphiteRecord(BaseModel):
    """Base for explorer records."""

    class Config:
        populate_by_name = True
        extra = "ignore"

    @validator('*', pre=True)
    def numbers_as_strings(cls, v):
        """Upstream occasionally sends bare numbers where strings are documented."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class TrustScore(GraphiteRecord):
    """KYC, filter and reputation state of a wallet."""

    activated: bool = Field(..., description="Whether the account is activated")
    activation_block_number: Optional[str] = Field(None, alias="activationBlockNumber")
    activation_tx_hash: Optional[str] = Field(None, alias="activationTxHash")
    kyc_level: str = Field("0", alias="kycLevel", description="KYC level (0-5 observed)")
    kyc_last_update_block_number: Optional[str] = Field(None, alias="kycLastUpdateBlockNumber")
    filter_level: str = Field("0", alias="filterLevel", description="Filter level (0-5 observed)")
    filter_last_update_block_number: Optional[str] = Field(None, alias="filterLastUpdateBlockNumber")
    reputation: str = Field("0", description="Reputation value")


class DirectionalCount(GraphiteRecord):
    """Counter split by direction."""

    total: str = "0"
    incoming: str = "0"
    outgoing: str = "0"


class AccountCounters(GraphiteRecord):
    """Aggregate activity counters of a wallet."""

    gas_used: str = Field("0", alias="gasUsed")
    transaction_count: DirectionalCount = Field(default_factory=DirectionalCount, alias="transactionCount")
    internal_transaction_count: DirectionalCount = Field(
        default_factory=DirectionalCount, alias="internalTransactionCount"
    )
    token_transfer_count: DirectionalCount = Field(default_factory=DirectionalCount, alias="tokenTransferCount")
    produced_block_count: str = Field("0", alias="producedBlockCount")
    balance_changes_count: str = Field("0", alias="balanceChangesCount")


class SearchResult(GraphiteRecord):
    """Single entity search hit."""

    name: str = Field(..., description="Entity name")
    type: str = Field(..., description="Entity type tag")
    description: str = Field("", description="Free-text description")
    address: Optional[str] = Field(None, description="Address of the entity, when it has one")


class BalanceHistoryEntry(GraphiteRecord):
    """Balance of a wallet after a given block."""

    block_number: str = Field(..., alias="blockNumber")
    time_stamp: str = Field(..., alias="timeStamp", description="Unix seconds")
    balance: str = Field(..., description="Balance in wei")
    balance_change: str = Field(..., alias="balanceChange", description="Signed delta in wei")


class MinedBlock(GraphiteRecord):
    """Block produced by a wallet."""

    block_number: str = Field(..., alias="blockNumber")
    time_stamp: str = Field(..., alias="timeStamp", description="Unix seconds")
    block_reward: str = Field(..., alias="blockReward", description="Reward in wei")


class TopAccount(GraphiteRecord):
    """Entry of the top-balance ranking."""

    address: str
    balance: str = Field(..., description="Balance in wei")
    percentage: str = Field("0", description="Share of supply in percent")
    transaction_count: str = Field("0", alias="transactionCount")
