"""Wallet dashboard built from independent cards.

Each card owns one query. Cards load concurrently and a failing query only
turns its own card into an error card.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple

import structlog

from graphite_trust.services.queries import WalletQueries, is_address_ready
from graphite_trust.services.query_cache import QueryResult
from graphite_trust.utils.formatting import (
    compliance_color,
    compliance_label,
    format_balance_change,
    format_count,
    format_eth,
    format_percentage,
    format_relative_time,
    kyc_label,
    shorten_address,
    trust_color,
    trust_label,
)

logger = structlog.get_logger(__name__)


class CardState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    ERROR = "error"
    EMPTY = "empty"
    READY = "ready"


@dataclass
class Card:
    """Presentation model of one dashboard section."""

    key: str
    title: str
    state: CardState
    message: Optional[str] = None
    headline: Optional[str] = None
    color: Optional[str] = None
    rows: List[Tuple[str, ...]] = field(default_factory=list)


def error_message(subject: str) -> str:
    return f"Error loading {subject}. Please try again."


def _card(key: str,
          title: str,
          subject: str,
          result: QueryResult,
          build: Callable[[Card, Any], None],
          empty_message: str) -> Card:
    """Map a query result onto a card, delegating the ready case to ``build``."""
    if result.is_error:
        return Card(key=key, title=title, state=CardState.ERROR, message=error_message(subject))
    if result.is_loading:
        return Card(key=key, title=title, state=CardState.LOADING, message="Loading...")
    if result.is_idle:
        return Card(key=key, title=title, state=CardState.IDLE, message="Enter a wallet address")
    if not result.data:
        return Card(key=key, title=title, state=CardState.EMPTY, message=empty_message)

    card = Card(key=key, title=title, state=CardState.READY)
    try:
        build(card, result.data)
    except ValueError as e:
        # Unparseable upstream values only fail their own card
        logger.warning("Card data could not be formatted", card=key, error=str(e))
        return Card(key=key, title=title, state=CardState.ERROR, message=error_message(subject))
    return card


@dataclass
class WalletDashboardView:
    address: str
    cards: List[Card]

    def card(self, key: str) -> Card:
        for card in self.cards:
            if card.key == key:
                return card
        raise KeyError(key)


class WalletDashboard:
    """Loads every card of the wallet dashboard."""

    def __init__(self, queries: WalletQueries, page_size: int = 10):
        self.queries = queries
        self.page_size = page_size
        self.logger = logger.bind(component="wallet_dashboard")

    async def load(self, address: str, now: Optional[float] = None) -> WalletDashboardView:
        if not is_address_ready(address):
            self.logger.debug("Address not ready, cards stay idle", address=address)

        trust, counters, history, blocks, top = await asyncio.gather(
            self.queries.trust_score(address),
            self.queries.account_counters(address),
            self.queries.balance_history(address, limit=self.page_size),
            self.queries.mined_blocks(address, limit=self.page_size),
            self.queries.top_accounts(limit=self.page_size)
        )

        cards = [
            self.trust_score_card(trust),
            self.compliance_card(trust),
            self.counters_card(counters),
            self.balance_history_card(history, now),
            self.mined_blocks_card(blocks, now),
            self.top_accounts_card(top),
        ]

        failed = [card.key for card in cards if card.state == CardState.ERROR]
        if failed:
            self.logger.warning("Dashboard loaded with failed cards", address=address, failed=failed)

        return WalletDashboardView(address=address, cards=cards)

    # ==================== Cards ====================

    @staticmethod
    def trust_score_card(result: QueryResult) -> Card:
        def build(card: Card, score) -> None:
            card.headline = trust_label(score.reputation)
            card.color = trust_color(score.reputation)
            card.rows = [
                ("Reputation", score.reputation),
                ("Activated", "Yes" if score.activated else "No"),
                ("Activation block", score.activation_block_number or "-"),
            ]

        return _card("trust_score", "Trust Score", "trust score", result, build,
                     "No trust score available")

    @staticmethod
    def compliance_card(result: QueryResult) -> Card:
        def build(card: Card, score) -> None:
            card.headline = compliance_label(score.filter_level)
            card.color = compliance_color(score.filter_level)
            card.rows = [
                ("KYC", kyc_label(score.kyc_level)),
                ("KYC updated at block", score.kyc_last_update_block_number or "-"),
                ("Filter level", score.filter_level),
                ("Filter updated at block", score.filter_last_update_block_number or "-"),
            ]

        return _card("compliance", "Compliance Status", "compliance metrics", result, build,
                     "No compliance data available")

    @staticmethod
    def counters_card(result: QueryResult) -> Card:
        def build(card: Card, counters) -> None:
            card.rows = [
                ("Gas used", format_count(counters.gas_used)),
                ("Transactions", format_count(counters.transaction_count.total)),
                ("  incoming", format_count(counters.transaction_count.incoming)),
                ("  outgoing", format_count(counters.transaction_count.outgoing)),
                ("Internal transactions", format_count(counters.internal_transaction_count.total)),
                ("Token transfers", format_count(counters.token_transfer_count.total)),
                ("Produced blocks", format_count(counters.produced_block_count)),
                ("Balance changes", format_count(counters.balance_changes_count)),
            ]

        return _card("counters", "Account Activity", "account counters", result, build,
                     "No activity recorded")

    @staticmethod
    def balance_history_card(result: QueryResult, now: Optional[float] = None) -> Card:
        def build(card: Card, entries) -> None:
            card.headline = f"{format_eth(entries[0].balance)} ETH"
            card.rows = [
                (entry.block_number,
                 format_relative_time(entry.time_stamp, now),
                 f"{format_eth(entry.balance)} ETH",
                 format_balance_change(entry.balance_change))
                for entry in entries
            ]

        return _card("balance_history", "Balance History", "balance history", result, build,
                     "No balance history found")

    @staticmethod
    def mined_blocks_card(result: QueryResult, now: Optional[float] = None) -> Card:
        def build(card: Card, blocks) -> None:
            card.rows = [
                (block.block_number,
                 format_relative_time(block.time_stamp, now),
                 f"{format_eth(block.block_reward)} ETH")
                for block in blocks
            ]

        return _card("mined_blocks", "Mined Blocks", "mined blocks", result, build,
                     "No mined blocks found")

    @staticmethod
    def top_accounts_card(result: QueryResult) -> Card:
        def build(card: Card, accounts) -> None:
            card.rows = [
                (str(rank),
                 shorten_address(account.address),
                 f"{format_eth(account.balance)} ETH",
                 format_percentage(account.percentage),
                 format_count(account.transaction_count))
                for rank, account in enumerate(accounts, start=1)
            ]

        return _card("top_accounts", "Top Accounts", "top accounts", result, build,
                     "No accounts found")
