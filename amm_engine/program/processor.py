"""Dispatch-table entry point for the AMM program.

``process_instruction(ctx, data)`` decodes the payload, binds the ordered
account list to roles and hands both to the matching handler. Any rejection
propagates as an exception; the runtime turns it into a failed result.
"""

from __future__ import annotations

from typing import Callable

from . import handlers
from .accounts import InstructionAccounts, parse_accounts
from .instructions import decode_instruction
from .types import InstructionKind

HandlerFn = Callable[..., None]

_DISPATCH: dict[InstructionKind, HandlerFn] = {
    InstructionKind.INITIALIZE: handlers.initialize,
    InstructionKind.DEPOSIT: handlers.deposit,
    InstructionKind.WITHDRAW: handlers.withdraw,
    InstructionKind.SWAP: handlers.swap,
    InstructionKind.LOCK: handlers.lock,
    InstructionKind.UNLOCK: handlers.unlock,
}


def process_instruction(ctx, data: bytes) -> InstructionKind:
    """Execute one instruction against the invoke context; returns its kind."""
    kind, args = decode_instruction(data)
    accounts: InstructionAccounts = parse_accounts(kind, ctx.accounts, ctx.config)
    handler = _DISPATCH[kind]
    handler(ctx, accounts, args)
    return kind
