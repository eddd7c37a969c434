import pytest

from hybrid_launch.core.constants import (
    MAX_SQRT_RATIO,
    MAX_TICK,
    MIN_SQRT_RATIO,
    MIN_TICK,
)
from hybrid_launch.core.utils.tick_math import (
    Q96,
    TickRangeError,
    align_single_sided_tick,
    invert_sqrt_price_x96,
    plan_single_sided_range,
    round_tick_down,
    round_tick_up,
    sort_tokens,
    sqrt_price_x96_from_tick,
    tick_from_sqrt_price_x96,
)

LOW_ADDR = "0x1111111111111111111111111111111111111111"
HIGH_ADDR = "0x3333333333333333333333333333333333333333"


def test_tick_zero_is_exactly_q96():
    assert sqrt_price_x96_from_tick(0) == 2**96


def test_domain_bounds_match_protocol_constants():
    assert sqrt_price_x96_from_tick(MIN_TICK) == MIN_SQRT_RATIO
    assert sqrt_price_x96_from_tick(MAX_TICK) == MAX_SQRT_RATIO


@pytest.mark.parametrize("tick", [MAX_TICK + 1, MIN_TICK - 1, 10**7])
def test_out_of_range_tick_raises(tick):
    with pytest.raises(TickRangeError, match="out of range"):
        sqrt_price_x96_from_tick(tick)


def test_range_error_is_value_error():
    with pytest.raises(ValueError):
        sqrt_price_x96_from_tick(887273)


def test_price_is_strictly_increasing_in_tick():
    prices = [sqrt_price_x96_from_tick(t) for t in range(-300, 301, 60)]
    assert prices == sorted(prices)
    assert len(set(prices)) == len(prices)


def test_symmetric_ticks_are_reciprocal():
    # sqrt(p(t)) * sqrt(p(-t)) == 1 in Q96, up to rounding
    for tick in (1, 60, 6000, 200_000):
        product = sqrt_price_x96_from_tick(tick) * sqrt_price_x96_from_tick(-tick)
        assert abs(product - Q96 * Q96) / (Q96 * Q96) < 1e-9


@pytest.mark.parametrize(
    "tick",
    [MIN_TICK, -500_000, -69_082, -6000, -61, -1, 0, 1, 59, 6000, 69_082, 500_000, MAX_TICK],
)
def test_approx_inverse_within_one_tick(tick):
    approx = tick_from_sqrt_price_x96(sqrt_price_x96_from_tick(tick))
    assert abs(approx - tick) <= 1


def test_approx_inverse_rejects_non_positive():
    with pytest.raises(ValueError):
        tick_from_sqrt_price_x96(0)


def test_invert_sqrt_price():
    assert invert_sqrt_price_x96(Q96) == Q96
    doubled = invert_sqrt_price_x96(2 * Q96)
    assert doubled == Q96 // 2


def test_round_tick_helpers_handle_negatives():
    assert round_tick_down(-61, 60) == -120
    assert round_tick_up(-61, 60) == -60
    assert round_tick_down(119, 60) == 60
    assert round_tick_up(61, 60) == 120


@pytest.mark.parametrize("approx", list(range(-1000, 1001, 7)) + [-120, 0, 120])
def test_single_sided_alignment_token0_strictly_above(approx):
    aligned = align_single_sided_tick(approx, 60, target_is_token0=True)
    assert aligned > approx
    assert aligned % 60 == 0
    assert aligned - approx <= 60


@pytest.mark.parametrize("approx", list(range(-1000, 1001, 7)) + [-120, 0, 120])
def test_single_sided_alignment_token1_at_or_below(approx):
    aligned = align_single_sided_tick(approx, 60, target_is_token0=False)
    assert aligned <= approx
    assert aligned % 60 == 0
    assert approx - aligned < 60


def test_alignment_on_exact_multiple():
    assert align_single_sided_tick(120, 60, target_is_token0=True) == 180
    assert align_single_sided_tick(120, 60, target_is_token0=False) == 120


def test_alignment_rejects_bad_spacing():
    with pytest.raises(ValueError):
        align_single_sided_tick(10, 0, target_is_token0=True)


def test_plan_single_sided_token1_moves_upper_bound():
    plan = plan_single_sided_range(
        sqrt_price_x96_from_tick(125), -6000, 6000, target_is_token0=False
    )
    assert plan.tick_upper == 120
    assert plan.tick_lower == -6000
    assert plan.sqrt_price_x96 == sqrt_price_x96_from_tick(120)


def test_plan_single_sided_token0_moves_lower_bound():
    plan = plan_single_sided_range(
        sqrt_price_x96_from_tick(125), -6000, 6000, target_is_token0=True
    )
    assert plan.tick_lower == 180
    assert plan.tick_upper == 6000
    # Pool starts one tick below the position, so the range holds only token0.
    assert plan.sqrt_price_x96 == sqrt_price_x96_from_tick(179)
    assert plan.sqrt_price_x96 < sqrt_price_x96_from_tick(plan.tick_lower)


def test_sort_tokens_orders_by_address():
    order = sort_tokens(HIGH_ADDR, LOW_ADDR)
    assert order.token0 == LOW_ADDR
    assert order.token1 == HIGH_ADDR
    assert order.target_is_token0 is False

    order = sort_tokens(LOW_ADDR.lower(), HIGH_ADDR)
    assert order.target_is_token0 is True
    assert order.token0 == LOW_ADDR
