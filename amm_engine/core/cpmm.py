"""
Constant-product swap engine.

Pricing (all integer, all floor):
    fee        = floor(amount_in * fee_bps / 10_000)
    net_in     = amount_in - fee
    amount_out = floor(reserve_out * net_in / (reserve_in + net_in))

The whole `amount_in` is added to the input reserve, so the fee stays in the
pool and accrues to share holders. After every swap:

    new_reserve_in * new_reserve_out >= reserve_in * reserve_out

Slippage protection compares against the fee-less spot quote:
    ideal_out = floor(reserve_out * amount_in / reserve_in)
    min_out   = floor(ideal_out * (10_000 - slippage_bps) / 10_000)
"""

from __future__ import annotations

from dataclasses import dataclass

from .errors import AmmError, ErrorCode
from .math import BPS_SCALE, bps_floor, checked_add, checked_mul, checked_sub, mul_div_floor, to_u64


@dataclass(frozen=True)
class SwapQuote:
    amount_in: int
    fee: int
    net_in: int
    amount_out: int
    ideal_out: int
    min_out: int
    new_reserve_in: int
    new_reserve_out: int
    k_before: int
    k_after: int


def _require_bps(name: str, value: int, code: ErrorCode) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if not (0 <= value <= BPS_SCALE):
        raise AmmError(code, f"{name} must be in [0, {BPS_SCALE}]: {value}")


def quote_exact_in(
    *,
    reserve_in: int,
    reserve_out: int,
    amount_in: int,
    fee_bps: int,
    slippage_bps: int = BPS_SCALE,
) -> SwapQuote:
    """
    Price an exact-in swap and check it against the caller's slippage bound.

    Raises AmmError with:
        InvalidSlippage     slippage_bps > 10_000
        ZeroAmount          amount_in == 0, or the output rounds down to zero
        EmptyReserves       either reserve is zero
        SlippageExceeded    amount_out below the slippage floor
        ArithmeticOverflow  a result does not fit its width
        InvariantViolated   k decreased (cannot happen with floor rounding)
    """
    _require_bps("slippage_bps", slippage_bps, ErrorCode.INVALID_SLIPPAGE)
    _require_bps("fee_bps", fee_bps, ErrorCode.INVALID_FEE)
    to_u64(reserve_in, name="reserve_in")
    to_u64(reserve_out, name="reserve_out")
    to_u64(amount_in, name="amount_in")

    if amount_in == 0:
        raise AmmError(ErrorCode.ZERO_AMOUNT, "amount_in must be positive")
    if reserve_in == 0 or reserve_out == 0:
        raise AmmError(ErrorCode.EMPTY_RESERVES, f"reserves=({reserve_in}, {reserve_out})")

    fee = bps_floor(amount_in, fee_bps)
    net_in = amount_in - fee
    amount_out = mul_div_floor(
        reserve_out,
        net_in,
        reserve_in + net_in,
        name="amount_out",
    )
    if amount_out == 0:
        raise AmmError(ErrorCode.ZERO_AMOUNT, f"amount_in {amount_in} yields no output")

    # ideal_out and min_out are compared, never stored, so they stay unbounded.
    ideal_out = checked_mul(reserve_out, amount_in, name="ideal_out") // reserve_in
    min_out = (ideal_out * (BPS_SCALE - slippage_bps)) // BPS_SCALE
    if amount_out < min_out:
        raise AmmError(
            ErrorCode.SLIPPAGE_EXCEEDED,
            f"amount_out {amount_out} < min_out {min_out}",
        )

    new_reserve_in = checked_add(reserve_in, amount_in, name="new_reserve_in")
    new_reserve_out = checked_sub(reserve_out, amount_out, name="new_reserve_out")

    k_before = checked_mul(reserve_in, reserve_out, name="k_before")
    k_after = checked_mul(new_reserve_in, new_reserve_out, name="k_after")
    if k_after < k_before:
        raise AmmError(ErrorCode.INVARIANT_VIOLATED, f"k decreased: {k_after} < {k_before}")

    return SwapQuote(
        amount_in=amount_in,
        fee=fee,
        net_in=net_in,
        amount_out=amount_out,
        ideal_out=ideal_out,
        min_out=min_out,
        new_reserve_in=new_reserve_in,
        new_reserve_out=new_reserve_out,
        k_before=k_before,
        k_after=k_after,
    )


def spot_price(reserve_in: int, reserve_out: int) -> tuple[int, int]:
    """Marginal price of the input asset as a ``(numerator, denominator)`` pair."""
    if reserve_in == 0 or reserve_out == 0:
        raise AmmError(ErrorCode.EMPTY_RESERVES, f"reserves=({reserve_in}, {reserve_out})")
    return reserve_out, reserve_in
