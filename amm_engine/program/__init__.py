"""
AMM program: instruction surface, account validation and handlers.
"""

from . import instructions
from .processor import process_instruction
from .types import (
    DepositArgs,
    Event,
    InitializeArgs,
    InstructionKind,
    NoArgs,
    PoolEvent,
    SwapArgs,
    WithdrawArgs,
)

__all__ = [
    "instructions",
    "process_instruction",
    "DepositArgs",
    "Event",
    "InitializeArgs",
    "InstructionKind",
    "NoArgs",
    "PoolEvent",
    "SwapArgs",
    "WithdrawArgs",
]
