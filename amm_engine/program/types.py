"""Instruction and event types for the AMM program.

All types are frozen dataclasses (immutable). Amounts are u64 base units,
`*_bps` values are basis points (1/10_000).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Optional, Union

from solders.pubkey import Pubkey  # type: ignore[import-untyped]


@unique
class InstructionKind(Enum):
    """One member per program entry point; values are the wire names."""
    INITIALIZE = "initialize"
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    SWAP = "swap"
    LOCK = "lock"
    UNLOCK = "unlock"


@unique
class Event(Enum):
    POOL_INITIALIZED = "PoolInitialized"
    LIQUIDITY_DEPOSITED = "LiquidityDeposited"
    LIQUIDITY_WITHDRAWN = "LiquidityWithdrawn"
    SWAPPED = "Swapped"
    POOL_LOCKED = "PoolLocked"
    POOL_UNLOCKED = "PoolUnlocked"


@dataclass(frozen=True)
class InitializeArgs:
    seed: int
    fee_bps: int
    authority: Optional[Pubkey] = None


@dataclass(frozen=True)
class DepositArgs:
    amount: int
    max_x: int
    max_y: int


@dataclass(frozen=True)
class WithdrawArgs:
    shares: int
    min_x: int
    min_y: int


@dataclass(frozen=True)
class SwapArgs:
    x_to_y: bool
    amount_in: int
    slippage_bps: int


@dataclass(frozen=True)
class NoArgs:
    pass


InstructionArgs = Union[InitializeArgs, DepositArgs, WithdrawArgs, SwapArgs, NoArgs]


@dataclass(frozen=True)
class PoolEvent:
    """Emitted by a handler once its instruction has fully succeeded."""
    event: Event
    control: Pubkey
    data: dict = field(default_factory=dict)
