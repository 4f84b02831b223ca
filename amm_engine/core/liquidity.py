"""
Liquidity accounting: share issuance on deposit, redemption on withdraw.

Shares are a claim on a pro-rata slice of both reserves. Rounding always
favors the pool:

    deposit   required = ceil(amount * reserve / supply)
    withdraw  out      = floor(shares * reserve / supply)

The first deposit (share supply == 0) has no price to follow, so the
depositor sets it: exactly `max_x` and `max_y` go in and exactly `amount`
shares come out. Any dust already sitting in the vaults at that moment is
credited to that first depositor.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .errors import AmmError, ErrorCode
from .math import mul_div_ceil, mul_div_floor, to_u64


@dataclass(frozen=True)
class DepositQuote:
    shares: int
    amount_x: int
    amount_y: int
    first_deposit: bool


@dataclass(frozen=True)
class WithdrawQuote:
    shares: int
    amount_x: int
    amount_y: int


def quote_deposit(
    *,
    amount: int,
    max_x: int,
    max_y: int,
    reserve_x: int,
    reserve_y: int,
    supply: int,
) -> DepositQuote:
    """
    Amounts a depositor must pay for `amount` new shares.

    Raises AmmError with ZeroAmount, SlippageExceeded or ArithmeticOverflow.
    """
    for name, v in (
        ("amount", amount),
        ("max_x", max_x),
        ("max_y", max_y),
        ("reserve_x", reserve_x),
        ("reserve_y", reserve_y),
        ("supply", supply),
    ):
        to_u64(v, name=name)

    if amount == 0:
        raise AmmError(ErrorCode.ZERO_AMOUNT, "share amount must be positive")

    if supply == 0:
        if max_x == 0 or max_y == 0:
            raise AmmError(
                ErrorCode.ZERO_AMOUNT,
                f"first deposit needs both assets: max=({max_x}, {max_y})",
            )
        return DepositQuote(shares=amount, amount_x=max_x, amount_y=max_y, first_deposit=True)

    amount_x = mul_div_ceil(amount, reserve_x, supply, name="required_x")
    amount_y = mul_div_ceil(amount, reserve_y, supply, name="required_y")
    if amount_x > max_x or amount_y > max_y:
        raise AmmError(
            ErrorCode.SLIPPAGE_EXCEEDED,
            f"required ({amount_x}, {amount_y}) exceeds max ({max_x}, {max_y})",
        )
    return DepositQuote(shares=amount, amount_x=amount_x, amount_y=amount_y, first_deposit=False)


def quote_withdraw(
    *,
    shares: int,
    min_x: int,
    min_y: int,
    reserve_x: int,
    reserve_y: int,
    supply: int,
    balance: Optional[int] = None,
) -> WithdrawQuote:
    """
    Amounts paid out for redeeming `shares`.

    `balance` is the withdrawer's own share balance when known; redeeming more
    than it holds is rejected the same way as redeeming more than the supply.

    Raises AmmError with ZeroAmount, InsufficientShares, SlippageExceeded or
    ArithmeticOverflow.
    """
    for name, v in (
        ("shares", shares),
        ("min_x", min_x),
        ("min_y", min_y),
        ("reserve_x", reserve_x),
        ("reserve_y", reserve_y),
        ("supply", supply),
    ):
        to_u64(v, name=name)

    if shares == 0:
        raise AmmError(ErrorCode.ZERO_AMOUNT, "shares must be positive")
    if shares > supply:
        raise AmmError(ErrorCode.INSUFFICIENT_SHARES, f"shares {shares} > supply {supply}")
    if balance is not None and shares > balance:
        raise AmmError(ErrorCode.INSUFFICIENT_SHARES, f"shares {shares} > balance {balance}")

    amount_x = mul_div_floor(shares, reserve_x, supply, name="amount_x")
    amount_y = mul_div_floor(shares, reserve_y, supply, name="amount_y")
    if amount_x < min_x or amount_y < min_y:
        raise AmmError(
            ErrorCode.SLIPPAGE_EXCEEDED,
            f"payout ({amount_x}, {amount_y}) below min ({min_x}, {min_y})",
        )
    return WithdrawQuote(shares=shares, amount_x=amount_x, amount_y=amount_y)
