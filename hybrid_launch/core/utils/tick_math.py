"""Algebra / Uniswap v3 tick math.

``sqrt_price_x96_from_tick`` reproduces TickMath.getSqrtRatioAtTick bit for bit;
the pool contracts run the identical computation, so a position boundary picked
here lands on exactly the same price on chain. The inverse direction is a float
approximation and is only used to choose a spacing-aligned boundary.
"""

from __future__ import annotations

import math
from typing import NamedTuple

from eth_utils import to_checksum_address

from hybrid_launch.core.constants import (
    MAX_TICK,
    MAX_UINT256,
    MIN_TICK,
    TICK_SPACING,
)

Q96 = 1 << 96
Q192 = 1 << 192
Q32 = 1 << 32
TICK_BASE = 1.0001


class TickRangeError(ValueError):
    pass


class TokenOrder(NamedTuple):
    token0: str
    token1: str
    target_is_token0: bool


class SingleSidedRange(NamedTuple):
    sqrt_price_x96: int
    tick_lower: int
    tick_upper: int


def sort_tokens(target: str, paired: str) -> TokenOrder:
    """Order two pool tokens by ascending address, as the pool factory does."""
    a = to_checksum_address(target)
    b = to_checksum_address(paired)
    if int(a, 16) < int(b, 16):
        return TokenOrder(a, b, True)
    return TokenOrder(b, a, False)


def sqrt_price_x96_from_tick(
    tick: int, *, min_tick: int = MIN_TICK, max_tick: int = MAX_TICK
) -> int:
    if tick < min_tick or tick > max_tick:
        raise TickRangeError(f"tick {tick} out of range [{min_tick}, {max_tick}]")

    abs_tick = tick if tick >= 0 else -tick
    ratio = (
        0xFFFCB933BD6FAD37AA2D162D1A594001
        if abs_tick & 0x1
        else 0x100000000000000000000000000000000
    )

    if abs_tick & 0x2:
        ratio = (ratio * 0xFFF97272373D413259A46990580E213A) >> 128
    if abs_tick & 0x4:
        ratio = (ratio * 0xFFF2E50F5F656932EF12357CF3C7FDCC) >> 128
    if abs_tick & 0x8:
        ratio = (ratio * 0xFFE5CACA7E10E4E61C3624EAA0941CD0) >> 128
    if abs_tick & 0x10:
        ratio = (ratio * 0xFFCB9843D60F6159C9DB58835C926644) >> 128
    if abs_tick & 0x20:
        ratio = (ratio * 0xFF973B41FA98C081472E6896DFB254C0) >> 128
    if abs_tick & 0x40:
        ratio = (ratio * 0xFF2EA16466C96A3843EC78B326B52861) >> 128
    if abs_tick & 0x80:
        ratio = (ratio * 0xFE5DEE046A99A2A811C461F1969C3053) >> 128
    if abs_tick & 0x100:
        ratio = (ratio * 0xFCBE86C7900A88AEDCFFC83B479AA3A4) >> 128
    if abs_tick & 0x200:
        ratio = (ratio * 0xF987A7253AC413176F2B074CF7815E54) >> 128
    if abs_tick & 0x400:
        ratio = (ratio * 0xF3392B0822B70005940C7A398E4B70F3) >> 128
    if abs_tick & 0x800:
        ratio = (ratio * 0xE7159475A2C29B7443B29C7FA6E889D9) >> 128
    if abs_tick & 0x1000:
        ratio = (ratio * 0xD097F3BDFD2022B8845AD8F792AA5825) >> 128
    if abs_tick & 0x2000:
        ratio = (ratio * 0xA9F746462D870FDF8A65DC1F90E061E5) >> 128
    if abs_tick & 0x4000:
        ratio = (ratio * 0x70D869A156D2A1B890BB3DF62BAF32F7) >> 128
    if abs_tick & 0x8000:
        ratio = (ratio * 0x31BE135F97D08FD981231505542FCFA6) >> 128
    if abs_tick & 0x10000:
        ratio = (ratio * 0x9AA508B5B7A84E1C677DE54F3E99BC9) >> 128
    if abs_tick & 0x20000:
        ratio = (ratio * 0x5D6AF8DEDB81196699C329225EE604) >> 128
    if abs_tick & 0x40000:
        ratio = (ratio * 0x2216E584F5FA1EA926041BEDFE98) >> 128
    if abs_tick & 0x80000:
        ratio = (ratio * 0x48A170391F7DC42444E8FA2) >> 128

    # Constants are for negative ticks; invert for the positive side.
    if tick > 0:
        ratio = MAX_UINT256 // ratio

    # Q128.128 -> Q64.96, rounding up
    sqrt_price_x96 = ratio >> 32
    if ratio & (Q32 - 1):
        sqrt_price_x96 += 1
    return int(sqrt_price_x96)


def tick_from_sqrt_price_x96(sqrt_price_x96: int) -> int:
    """Approximate (float) inverse of ``sqrt_price_x96_from_tick``, rounded down."""
    ratio = float(sqrt_price_x96) / Q96
    if ratio <= 0:
        raise ValueError("sqrt_price_x96 must be positive")
    price = ratio * ratio
    return math.floor(math.log(price) / math.log(TICK_BASE))


def invert_sqrt_price_x96(sqrt_price_x96: int) -> int:
    """Flip a price quoted as token1/token0 into token0/token1."""
    if sqrt_price_x96 <= 0:
        raise ValueError("sqrt_price_x96 must be positive")
    return Q192 // int(sqrt_price_x96)


def round_tick_down(tick: int, spacing: int) -> int:
    return (tick // spacing) * spacing


def round_tick_up(tick: int, spacing: int) -> int:
    return -((-tick) // spacing) * spacing


def align_single_sided_tick(
    approx_tick: int, spacing: int = TICK_SPACING, *, target_is_token0: bool
) -> int:
    """Pick the spacing-aligned boundary that keeps a one-token position out of range.

    token0 positions must sit strictly above the current price (aligned tick >
    approx tick); token1 positions must sit at or below it.
    """
    if spacing <= 0:
        raise ValueError("spacing must be positive")
    if target_is_token0:
        aligned = round_tick_up(approx_tick, spacing)
        if aligned <= approx_tick:
            aligned += spacing
    else:
        aligned = round_tick_down(approx_tick, spacing)
        if aligned > approx_tick:
            aligned -= spacing
    return aligned


def plan_single_sided_range(
    sqrt_price_x96: int,
    tick_lower: int,
    tick_upper: int,
    *,
    target_is_token0: bool,
    spacing: int = TICK_SPACING,
) -> SingleSidedRange:
    """Move the inner boundary onto the current price for a single-asset position.

    For token0 the lower bound becomes the aligned tick and the pool starts one
    tick below it; for token1 the upper bound becomes the aligned tick and the
    pool starts exactly on it. The price is always re-derived from the exact tick.
    """
    approx_tick = tick_from_sqrt_price_x96(sqrt_price_x96)
    aligned = align_single_sided_tick(
        approx_tick, spacing, target_is_token0=target_is_token0
    )
    if target_is_token0:
        return SingleSidedRange(
            sqrt_price_x96_from_tick(aligned - 1), aligned, int(tick_upper)
        )
    return SingleSidedRange(sqrt_price_x96_from_tick(aligned), int(tick_lower), aligned)
