"""Concentrated-liquidity tick math (Q64.96 sqrt prices).

ModifyLiquidity events only report a liquidity delta over a tick range, so
token amounts have to be derived from the range and the pool's current price.

``sqrt_ratio_at_tick`` is an approximation: sqrt(1.0001**tick) evaluated in
floating point and floored onto the Q96 grid. It is monotonic in the tick and
exact at tick 0, but it is NOT the bit-exact TickMath table used on-chain, so
derived amounts can differ from the contract's by a few wei at extreme ticks.
The amount formulas themselves are exact integer arithmetic.
"""

import math
from typing import NamedTuple

from src.indexer.exceptions import TickOutOfRangeError

Q96 = 1 << 96
MIN_TICK = -887272
MAX_TICK = 887272


class LiquidityAmounts(NamedTuple):
    amount0: int
    amount1: int


def sqrt_ratio_at_tick(tick: int) -> int:
    """sqrt(1.0001**tick) as a Q64.96 integer.

    Raises TickOutOfRangeError outside [MIN_TICK, MAX_TICK].
    """
    if tick < MIN_TICK or tick > MAX_TICK:
        raise TickOutOfRangeError(f"Tick {tick} out of range [{MIN_TICK}, {MAX_TICK}]")
    if tick == 0:
        return Q96
    sqrt_price = math.sqrt(math.pow(1.0001, tick))
    return math.floor(sqrt_price * Q96)


def _ordered(sqrt_a: int, sqrt_b: int) -> tuple[int, int]:
    if sqrt_a > sqrt_b:
        return sqrt_b, sqrt_a
    return sqrt_a, sqrt_b


def _div_round_up(numerator: int, denominator: int) -> int:
    return -(-numerator // denominator)


def amount0_delta(sqrt_a: int, sqrt_b: int, liquidity: int, round_up: bool) -> int:
    """Token0 for ``liquidity`` spread between two sqrt prices.

    amount0 = L * (upper - lower) * 2**96 / (upper * lower)

    ``liquidity`` is a magnitude; use ``signed_amount0_delta`` for deltas.
    """
    if liquidity < 0:
        raise ValueError(f"liquidity magnitude must be non-negative, got {liquidity}")
    lower, upper = _ordered(sqrt_a, sqrt_b)
    if lower == 0:
        raise ValueError("sqrt price bound must be positive")
    numerator = liquidity * (upper - lower) * Q96
    denominator = upper * lower
    if round_up:
        return _div_round_up(numerator, denominator)
    return numerator // denominator


def amount1_delta(sqrt_a: int, sqrt_b: int, liquidity: int, round_up: bool) -> int:
    """Token1 for ``liquidity`` spread between two sqrt prices.

    amount1 = L * (upper - lower) / 2**96
    """
    if liquidity < 0:
        raise ValueError(f"liquidity magnitude must be non-negative, got {liquidity}")
    lower, upper = _ordered(sqrt_a, sqrt_b)
    numerator = liquidity * (upper - lower)
    if round_up:
        return _div_round_up(numerator, Q96)
    return numerator // Q96


def signed_amount0_delta(sqrt_a: int, sqrt_b: int, liquidity: int) -> int:
    """Signed token0 delta: additions round up, removals round down and negate."""
    if liquidity < 0:
        return -amount0_delta(sqrt_a, sqrt_b, -liquidity, round_up=False)
    return amount0_delta(sqrt_a, sqrt_b, liquidity, round_up=True)


def signed_amount1_delta(sqrt_a: int, sqrt_b: int, liquidity: int) -> int:
    """Signed token1 delta: additions round up, removals round down and negate."""
    if liquidity < 0:
        return -amount1_delta(sqrt_a, sqrt_b, -liquidity, round_up=False)
    return amount1_delta(sqrt_a, sqrt_b, liquidity, round_up=True)


def liquidity_amounts(
    current_sqrt_price: int,
    sqrt_lower: int,
    sqrt_upper: int,
    liquidity_delta: int,
) -> LiquidityAmounts:
    """Token amounts implied by a liquidity change at the current price.

    Below the range the position is all token0, above it all token1, inside
    it splits at the current price.
    """
    if current_sqrt_price <= sqrt_lower:
        return LiquidityAmounts(
            amount0=signed_amount0_delta(sqrt_lower, sqrt_upper, liquidity_delta),
            amount1=0,
        )
    if current_sqrt_price < sqrt_upper:
        return LiquidityAmounts(
            amount0=signed_amount0_delta(current_sqrt_price, sqrt_upper, liquidity_delta),
            amount1=signed_amount1_delta(sqrt_lower, current_sqrt_price, liquidity_delta),
        )
    return LiquidityAmounts(
        amount0=0,
        amount1=signed_amount1_delta(sqrt_lower, sqrt_upper, liquidity_delta),
    )
