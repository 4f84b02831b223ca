"""Checked integer arithmetic for pool accounting.

Every function is stateless and operates on plain Python ints, but values are
held to the widths the ledger stores: balances and supplies are u64, and
intermediate products are u128. A result that does not fit its width raises
``ArithmeticOverflow`` instead of wrapping.

Rounding is always explicit: ``//`` for floor, ``_ceil_div`` for ceil.
"""

from __future__ import annotations

from ..state.canonical import U64_MAX, U128_MAX
from .errors import AmmError, ErrorCode

BPS_SCALE: int = 10_000


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def _overflow(detail: str) -> AmmError:
    return AmmError(ErrorCode.ARITHMETIC_OVERFLOW, detail)


# -- Width checks --------------------------------------------------------------

def to_u64(value: int, *, name: str = "value") -> int:
    """Narrow a widened intermediate back to u64."""
    _require_int(name, value)
    if value < 0 or value > U64_MAX:
        raise _overflow(f"{name} does not fit in u64: {value}")
    return value


def to_u128(value: int, *, name: str = "value") -> int:
    _require_int(name, value)
    if value < 0 or value > U128_MAX:
        raise _overflow(f"{name} does not fit in u128: {value}")
    return value


# -- Checked operations ----------------------------------------------------------

def checked_add(a: int, b: int, *, name: str = "sum") -> int:
    """u64 addition."""
    return to_u64(a + b, name=name)


def checked_sub(a: int, b: int, *, name: str = "difference") -> int:
    """u64 subtraction; going below zero is an overflow."""
    return to_u64(a - b, name=name)


def checked_mul(a: int, b: int, *, name: str = "product") -> int:
    """u64 x u64 -> u128 multiplication."""
    return to_u128(to_u64(a, name=f"{name} lhs") * to_u64(b, name=f"{name} rhs"), name=name)


def _ceil_div(numerator: int, denominator: int) -> int:
    return (numerator + denominator - 1) // denominator


def mul_div_floor(a: int, b: int, denominator: int, *, name: str = "quotient") -> int:
    """``floor(a * b / denominator)`` with a u128 intermediate, narrowed to u64."""
    if denominator <= 0:
        raise _overflow(f"{name}: division by zero")
    return to_u64(checked_mul(a, b, name=name) // denominator, name=name)


def mul_div_ceil(a: int, b: int, denominator: int, *, name: str = "quotient") -> int:
    """``ceil(a * b / denominator)`` with a u128 intermediate, narrowed to u64."""
    if denominator <= 0:
        raise _overflow(f"{name}: division by zero")
    return to_u64(_ceil_div(checked_mul(a, b, name=name), denominator), name=name)


# -- Basis-point helpers -----------------------------------------------------------

def bps_floor(amount: int, bps: int) -> int:
    """``floor(amount * bps / 10000)``."""
    return mul_div_floor(amount, bps, BPS_SCALE, name="bps amount")
