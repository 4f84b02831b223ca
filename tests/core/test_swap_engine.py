# [TESTER] v1

from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from amm_engine.core.cpmm import quote_exact_in, spot_price
from amm_engine.core.errors import AmmError, ErrorCode


def _code(excinfo: pytest.ExceptionInfo) -> ErrorCode:
    return excinfo.value.code


def test_reference_trade_numbers() -> None:
    # 30e9/30e9 pool, 10% fee, 30e9 in.
    q = quote_exact_in(
        reserve_in=30_000_000_000,
        reserve_out=30_000_000_000,
        amount_in=30_000_000_000,
        fee_bps=1000,
        slippage_bps=9999,
    )
    assert q.fee == 3_000_000_000
    assert q.net_in == 27_000_000_000
    assert q.amount_out == 14_210_526_315
    assert q.new_reserve_in == 60_000_000_000
    assert q.new_reserve_out == 15_789_473_685
    assert q.ideal_out == 30_000_000_000
    assert q.k_after >= q.k_before


def test_half_price_bound_rejects_reference_trade() -> None:
    # ideal 30e9 * 50% = 15e9 > 14.21e9 actual
    with pytest.raises(AmmError) as excinfo:
        quote_exact_in(
            reserve_in=30_000_000_000,
            reserve_out=30_000_000_000,
            amount_in=30_000_000_000,
            fee_bps=1000,
            slippage_bps=5000,
        )
    assert _code(excinfo) == ErrorCode.SLIPPAGE_EXCEEDED


def test_zero_fee_small_trade() -> None:
    q = quote_exact_in(reserve_in=1_000, reserve_out=1_000, amount_in=10, fee_bps=0)
    assert q.fee == 0
    assert q.amount_out == 9  # floor(1000*10/1010)
    assert q.new_reserve_in == 1_010
    assert q.new_reserve_out == 991


def test_full_fee_yields_nothing() -> None:
    with pytest.raises(AmmError) as excinfo:
        quote_exact_in(reserve_in=1_000, reserve_out=1_000, amount_in=10, fee_bps=10_000)
    assert _code(excinfo) == ErrorCode.ZERO_AMOUNT


def test_zero_input_rejected() -> None:
    with pytest.raises(AmmError) as excinfo:
        quote_exact_in(reserve_in=1_000, reserve_out=1_000, amount_in=0, fee_bps=30)
    assert _code(excinfo) == ErrorCode.ZERO_AMOUNT


def test_dust_input_rounding_to_zero_output_rejected() -> None:
    with pytest.raises(AmmError) as excinfo:
        quote_exact_in(reserve_in=1_000_000, reserve_out=10, amount_in=1, fee_bps=0)
    assert _code(excinfo) == ErrorCode.ZERO_AMOUNT


@pytest.mark.parametrize("reserves", [(0, 1_000), (1_000, 0), (0, 0)])
def test_empty_reserves_rejected(reserves: tuple[int, int]) -> None:
    with pytest.raises(AmmError) as excinfo:
        quote_exact_in(reserve_in=reserves[0], reserve_out=reserves[1], amount_in=10, fee_bps=30)
    assert _code(excinfo) == ErrorCode.EMPTY_RESERVES


def test_slippage_above_denominator_rejected() -> None:
    with pytest.raises(AmmError) as excinfo:
        quote_exact_in(reserve_in=1_000, reserve_out=1_000, amount_in=10, fee_bps=30, slippage_bps=10_001)
    assert _code(excinfo) == ErrorCode.INVALID_SLIPPAGE


def test_zero_slippage_requires_ideal_output() -> None:
    # Any fee or curvature puts amount_out under the spot quote.
    with pytest.raises(AmmError) as excinfo:
        quote_exact_in(reserve_in=1_000, reserve_out=1_000, amount_in=10, fee_bps=0, slippage_bps=0)
    assert _code(excinfo) == ErrorCode.SLIPPAGE_EXCEEDED


def test_new_reserve_overflow_detected() -> None:
    u64_max = (1 << 64) - 1
    with pytest.raises(AmmError) as excinfo:
        quote_exact_in(reserve_in=u64_max, reserve_out=u64_max, amount_in=u64_max, fee_bps=0)
    assert _code(excinfo) == ErrorCode.ARITHMETIC_OVERFLOW


def test_spot_price() -> None:
    assert spot_price(2_000, 1_000) == (1_000, 2_000)
    with pytest.raises(AmmError):
        spot_price(0, 1)


reserve = st.integers(min_value=1, max_value=10**15)


@settings(max_examples=300, deadline=None)
@given(
    reserve_in=reserve,
    reserve_out=reserve,
    amount_in=st.integers(min_value=1, max_value=10**15),
    fee_bps=st.integers(min_value=0, max_value=10_000),
)
def test_product_never_decreases(reserve_in: int, reserve_out: int, amount_in: int, fee_bps: int) -> None:
    try:
        q = quote_exact_in(reserve_in=reserve_in, reserve_out=reserve_out, amount_in=amount_in, fee_bps=fee_bps)
    except AmmError as exc:
        assert exc.code == ErrorCode.ZERO_AMOUNT
        return
    assert 0 < q.amount_out < reserve_out
    assert q.new_reserve_in * q.new_reserve_out >= reserve_in * reserve_out
    assert q.fee + q.net_in == amount_in


@settings(max_examples=200, deadline=None)
@given(
    reserve_in=reserve,
    reserve_out=reserve,
    a=st.integers(min_value=1, max_value=10**12),
    b=st.integers(min_value=1, max_value=10**12),
    fee_bps=st.integers(min_value=0, max_value=9_999),
)
def test_output_monotonic_in_input(reserve_in: int, reserve_out: int, a: int, b: int, fee_bps: int) -> None:
    small, large = sorted((a, b))

    def out(amount: int) -> int:
        try:
            return quote_exact_in(
                reserve_in=reserve_in, reserve_out=reserve_out, amount_in=amount, fee_bps=fee_bps
            ).amount_out
        except AmmError as exc:
            assert exc.code == ErrorCode.ZERO_AMOUNT
            return 0

    assert out(small) <= out(large)
