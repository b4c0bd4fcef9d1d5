"""Fixed-point helpers: raw token integers to exact decimals, UTC day buckets.

Amounts arrive as raw integers (uint256 / int256) and are stored as
``Decimal``. Never route them through ``float``: a 78-digit raw balance
divided by 10**18 must come back bit-for-bit.
"""

from datetime import UTC, datetime
from decimal import Context, Decimal, ROUND_HALF_EVEN

# uint256 is 78 digits; 100 leaves room for sums of scaled amounts.
EXACT_CONTEXT = Context(prec=100, rounding=ROUND_HALF_EVEN)

ZERO = Decimal(0)
ONE = Decimal(1)

SECONDS_PER_DAY = 86400


def pow10(decimals: int) -> Decimal:
    """10**decimals built from its digit string (exact for any width)."""
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")
    return Decimal("1" + "0" * decimals)


def to_decimal(raw_amount: int, decimals: int) -> Decimal:
    """Scale a raw token amount down by the token's decimals.

    ``decimals == 0`` returns the raw amount unchanged (as a Decimal).
    """
    if decimals == 0:
        return Decimal(raw_amount)
    return EXACT_CONTEXT.divide(Decimal(raw_amount), pow10(decimals))


def safe_div(a: Decimal, b: Decimal) -> Decimal:
    """a / b, or zero when b is zero."""
    if b == ZERO:
        return ZERO
    return EXACT_CONTEXT.divide(a, b)


def day_start(timestamp: int) -> int:
    """UTC midnight (unix seconds) of the day containing ``timestamp``."""
    return timestamp // SECONDS_PER_DAY * SECONDS_PER_DAY


def day_id(timestamp: int) -> str:
    """UTC calendar date of ``timestamp`` as YYYY-MM-DD."""
    return datetime.fromtimestamp(day_start(timestamp), tz=UTC).strftime("%Y-%m-%d")
