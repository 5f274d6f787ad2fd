"""Display formatting for explorer values.

Amounts arrive as wei decimal strings and are converted with ``Decimal`` so
large balances never lose precision.
"""

import time
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Union

WEI_PER_ETH = Decimal(10) ** 18

HIGH_TRUST_REPUTATION = 200
MEDIUM_TRUST_REPUTATION = 100

HIGH_COMPLIANCE_LEVEL = 3
MEDIUM_COMPLIANCE_LEVEL = 1

Numeric = Union[str, int, Decimal]


def _to_decimal(value: Optional[Numeric]) -> Decimal:
    if value is None or value == "":
        return Decimal(0)
    try:
        return Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"Not a decimal value: {value!r}")


def _to_int(value: Optional[Numeric]) -> int:
    return int(_to_decimal(value))


def wei_to_eth(wei: Optional[Numeric]) -> Decimal:
    return _to_decimal(wei) / WEI_PER_ETH


def format_eth(wei: Optional[Numeric], decimals: int = 4) -> str:
    """Wei string to ETH with a fixed number of decimals: "1e18" -> "1.0000"."""
    quantum = Decimal(1).scaleb(-decimals)
    return str(wei_to_eth(wei).quantize(quantum, rounding=ROUND_HALF_UP))


def format_balance_change(wei: Optional[Numeric], decimals: int = 4) -> str:
    """Signed ETH delta: gains get a "+", losses keep their "-"."""
    amount = format_eth(wei, decimals)
    if _to_decimal(wei) > 0:
        return f"+{amount}"
    return amount


def format_percentage(value: Optional[Numeric], decimals: int = 2) -> str:
    quantum = Decimal(1).scaleb(-decimals)
    return f"{_to_decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)}%"


def format_count(value: Optional[Numeric]) -> str:
    return f"{_to_int(value):,}"


def format_timestamp(timestamp: Optional[Numeric]) -> str:
    moment = datetime.fromtimestamp(_to_int(timestamp), tz=timezone.utc)
    return moment.strftime("%Y-%m-%d %H:%M:%S UTC")


def format_relative_time(timestamp: Optional[Numeric], now: Optional[float] = None) -> str:
    """Unix seconds to "just now", "5 minutes ago", "3 days ago"."""
    if now is None:
        now = time.time()
    elapsed = int(now) - _to_int(timestamp)

    if elapsed < 60:
        return "just now"

    for unit, seconds in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if elapsed >= seconds:
            count = elapsed // seconds
            return f"{count} {unit}{'s' if count != 1 else ''} ago"

    return "just now"


def shorten_address(address: Optional[str], chars: int = 4) -> str:
    if not address or len(address) <= 2 + chars * 2:
        return address or ""
    return f"{address[:2 + chars]}...{address[-chars:]}"


def trust_label(reputation: Optional[Numeric]) -> str:
    value = _to_decimal(reputation)
    if value >= HIGH_TRUST_REPUTATION:
        return "High Trust"
    if value >= MEDIUM_TRUST_REPUTATION:
        return "Medium Trust"
    return "Low Trust"


def trust_color(reputation: Optional[Numeric]) -> str:
    value = _to_decimal(reputation)
    if value >= HIGH_TRUST_REPUTATION:
        return "green"
    if value >= MEDIUM_TRUST_REPUTATION:
        return "yellow"
    return "red"


def compliance_label(filter_level: Optional[Numeric]) -> str:
    level = _to_int(filter_level)
    if level >= HIGH_COMPLIANCE_LEVEL:
        return "High Compliance"
    if level >= MEDIUM_COMPLIANCE_LEVEL:
        return "Medium Compliance"
    return "Low Compliance"


def compliance_color(filter_level: Optional[Numeric]) -> str:
    level = _to_int(filter_level)
    if level >= HIGH_COMPLIANCE_LEVEL:
        return "green"
    if level >= MEDIUM_COMPLIANCE_LEVEL:
        return "yellow"
    return "red"


def kyc_label(kyc_level: Optional[Numeric]) -> str:
    level = _to_int(kyc_level)
    if level <= 0:
        return "Not verified"
    return f"Level {level}"
