"""Exception types for the AMM program.

Every rejection carries a stable numeric ``ErrorCode``; the runtime surfaces
it unchanged in a failed ``TransactionResult``.
"""

from __future__ import annotations

from enum import IntEnum, unique


@unique
class ErrorCode(IntEnum):
    # validation
    INVALID_ACCOUNT = 6000
    ALREADY_INITIALIZED = 6001
    IDENTICAL_ASSETS = 6002
    INVALID_FEE = 6003
    INVALID_INSTRUCTION_DATA = 6004
    INVALID_SLIPPAGE = 6005
    MISSING_SIGNATURE = 6006
    UNAUTHORIZED = 6007
    # state preconditions
    POOL_LOCKED = 6100
    ZERO_AMOUNT = 6101
    INSUFFICIENT_SHARES = 6102
    EMPTY_RESERVES = 6103
    # arithmetic
    ARITHMETIC_OVERFLOW = 6200
    SLIPPAGE_EXCEEDED = 6201
    INVARIANT_VIOLATED = 6202

    @property
    def label(self) -> str:
        """CamelCase name, e.g. ``SlippageExceeded``."""
        return "".join(part.capitalize() for part in self.name.split("_"))


class AmmError(Exception):
    """Raised by the program when an instruction must be rejected."""

    def __init__(self, code: ErrorCode, detail: str = "") -> None:
        self.code = code
        self.detail = detail
        super().__init__(f"{code.label}: {detail}" if detail else code.label)


class InvariantViolation(AmmError):
    """Raised when a post-state violates one or more pool invariants."""

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(ErrorCode.INVARIANT_VIOLATED, ", ".join(violations))
