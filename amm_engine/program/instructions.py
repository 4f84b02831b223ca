"""
Instruction payload codec and builders.

Payload = 8-byte discriminator ``sha256("global:<name>")[:8]`` followed by the
arguments as fixed-width little-endian fields (Option = u8 tag + value).

Account order is part of the wire format; `ACCOUNT_ROLES` lists it per
instruction and both the builders and the processor read it from there.
"""

from __future__ import annotations

from typing import Mapping, Optional

from solders.instruction import AccountMeta, Instruction  # type: ignore[import-untyped]
from solders.pubkey import Pubkey  # type: ignore[import-untyped]

from ..config import ProgramConfig
from ..core.addresses import PoolAddresses, control_address
from ..core.errors import AmmError, ErrorCode
from ..state.canonical import (
    DISCRIMINATOR_LEN,
    LayoutError,
    Reader,
    discriminator,
    encode_bool,
    encode_option_pubkey,
    encode_u16,
    encode_u64,
)
from ..state.tokens import get_associated_token_address
from .types import (
    DepositArgs,
    InitializeArgs,
    InstructionArgs,
    InstructionKind,
    NoArgs,
    SwapArgs,
    WithdrawArgs,
)


DISCRIMINATORS: dict[InstructionKind, bytes] = {
    kind: discriminator("global", kind.value) for kind in InstructionKind
}
_KIND_BY_DISCRIMINATOR: dict[bytes, InstructionKind] = {v: k for k, v in DISCRIMINATORS.items()}


# (role, is_signer, is_writable) in wire order.
AccountRole = tuple[str, bool, bool]

_PROGRAMS: tuple[AccountRole, ...] = (
    ("token_program", False, False),
    ("associated_token_program", False, False),
    ("system_program", False, False),
)


def _liquidity_roles(user: str) -> tuple[AccountRole, ...]:
    return (
        (user, True, True),
        ("mint_x", False, False),
        ("mint_y", False, False),
        ("share_mint", False, True),
        ("control", False, False),
        ("vault_x", False, True),
        ("vault_y", False, True),
        (f"{user}_x", False, True),
        (f"{user}_y", False, True),
        (f"{user}_shares", False, True),
    ) + _PROGRAMS


ACCOUNT_ROLES: dict[InstructionKind, tuple[AccountRole, ...]] = {
    InstructionKind.INITIALIZE: (
        ("payer", True, True),
        ("mint_x", False, False),
        ("mint_y", False, False),
        ("share_mint", False, True),
        ("control", False, True),
        ("vault_x", False, True),
        ("vault_y", False, True),
    ) + _PROGRAMS,
    InstructionKind.DEPOSIT: _liquidity_roles("depositor"),
    InstructionKind.WITHDRAW: _liquidity_roles("withdrawer"),
    InstructionKind.SWAP: (
        ("trader", True, True),
        ("mint_x", False, False),
        ("mint_y", False, False),
        ("control", False, False),
        ("vault_x", False, True),
        ("vault_y", False, True),
        ("trader_x", False, True),
        ("trader_y", False, True),
    ) + _PROGRAMS,
    InstructionKind.LOCK: (
        ("authority", True, False),
        ("control", False, True),
    ),
    InstructionKind.UNLOCK: (
        ("authority", True, False),
        ("control", False, True),
    ),
}


# -- Payload codec --------------------------------------------------------------

_ARGS_TYPE: dict[InstructionKind, type] = {
    InstructionKind.INITIALIZE: InitializeArgs,
    InstructionKind.DEPOSIT: DepositArgs,
    InstructionKind.WITHDRAW: WithdrawArgs,
    InstructionKind.SWAP: SwapArgs,
    InstructionKind.LOCK: NoArgs,
    InstructionKind.UNLOCK: NoArgs,
}


def encode_args(kind: InstructionKind, args: InstructionArgs) -> bytes:
    expected = _ARGS_TYPE[kind]
    if not isinstance(args, expected):
        raise TypeError(f"{kind.value} takes {expected.__name__}, got {type(args).__name__}")
    if kind == InstructionKind.INITIALIZE:
        body = (
            encode_u64(args.seed, name="seed")
            + encode_u16(args.fee_bps, name="fee_bps")
            + encode_option_pubkey(args.authority)
        )
    elif kind == InstructionKind.DEPOSIT:
        body = (
            encode_u64(args.amount, name="amount")
            + encode_u64(args.max_x, name="max_x")
            + encode_u64(args.max_y, name="max_y")
        )
    elif kind == InstructionKind.WITHDRAW:
        body = (
            encode_u64(args.shares, name="shares")
            + encode_u64(args.min_x, name="min_x")
            + encode_u64(args.min_y, name="min_y")
        )
    elif kind == InstructionKind.SWAP:
        body = (
            encode_bool(args.x_to_y)
            + encode_u64(args.amount_in, name="amount_in")
            + encode_u16(args.slippage_bps, name="slippage_bps")
        )
    else:
        body = b""
    return DISCRIMINATORS[kind] + body


def decode_instruction(data: bytes) -> tuple[InstructionKind, InstructionArgs]:
    """
    Parse a payload.

    Raises AmmError(InvalidInstructionData) on an unknown discriminator,
    a short buffer, trailing bytes or a malformed field.
    """
    try:
        r = Reader(data)
        kind = _KIND_BY_DISCRIMINATOR.get(r.take(DISCRIMINATOR_LEN))
        if kind is None:
            raise AmmError(ErrorCode.INVALID_INSTRUCTION_DATA, "unknown instruction discriminator")
        args: InstructionArgs
        if kind == InstructionKind.INITIALIZE:
            args = InitializeArgs(seed=r.u64(), fee_bps=r.u16(), authority=r.option_pubkey())
        elif kind == InstructionKind.DEPOSIT:
            args = DepositArgs(amount=r.u64(), max_x=r.u64(), max_y=r.u64())
        elif kind == InstructionKind.WITHDRAW:
            args = WithdrawArgs(shares=r.u64(), min_x=r.u64(), min_y=r.u64())
        elif kind == InstructionKind.SWAP:
            args = SwapArgs(x_to_y=r.boolean(), amount_in=r.u64(), slippage_bps=r.u16())
        else:
            args = NoArgs()
        r.expect_end()
    except (LayoutError, TypeError) as exc:
        raise AmmError(ErrorCode.INVALID_INSTRUCTION_DATA, str(exc)) from exc
    return kind, args


# -- Builders ---------------------------------------------------------------------

def _build(
    config: ProgramConfig,
    kind: InstructionKind,
    args: InstructionArgs,
    keys: Mapping[str, Pubkey],
    overrides: Optional[Mapping[str, Pubkey]],
) -> Instruction:
    resolved = dict(keys)
    resolved.update(
        token_program=config.token_program_id,
        associated_token_program=config.associated_token_program_id,
        system_program=config.system_program_id,
    )
    if overrides:
        unknown = set(overrides) - {role for role, _, _ in ACCOUNT_ROLES[kind]}
        if unknown:
            raise ValueError(f"unknown account roles for {kind.value}: {sorted(unknown)}")
        resolved.update(overrides)
    metas = [
        AccountMeta(resolved[role], is_signer, is_writable)
        for role, is_signer, is_writable in ACCOUNT_ROLES[kind]
    ]
    return Instruction(config.program_id, encode_args(kind, args), metas)


def _pool(config: ProgramConfig, seed: int, mint_x: Pubkey, mint_y: Pubkey) -> PoolAddresses:
    return PoolAddresses.for_pool(
        config.program_id,
        seed,
        mint_x,
        mint_y,
        token_program_id=config.token_program_id,
        associated_token_program_id=config.associated_token_program_id,
    )


def _user_accounts(config: ProgramConfig, role: str, user: Pubkey, *mints: Pubkey) -> dict[str, Pubkey]:
    suffixes = ("x", "y", "shares")
    return {
        f"{role}_{suffix}": get_associated_token_address(
            user,
            mint,
            token_program_id=config.token_program_id,
            associated_token_program_id=config.associated_token_program_id,
        )
        for suffix, mint in zip(suffixes, mints)
    }


def initialize(
    config: ProgramConfig,
    *,
    payer: Pubkey,
    mint_x: Pubkey,
    mint_y: Pubkey,
    seed: int,
    fee_bps: int,
    authority: Optional[Pubkey] = None,
    overrides: Optional[Mapping[str, Pubkey]] = None,
) -> Instruction:
    pool = _pool(config, seed, mint_x, mint_y)
    keys = dict(
        payer=payer,
        mint_x=mint_x,
        mint_y=mint_y,
        share_mint=pool.share_mint,
        control=pool.control,
        vault_x=pool.vault_x,
        vault_y=pool.vault_y,
    )
    args = InitializeArgs(seed=seed, fee_bps=fee_bps, authority=authority)
    return _build(config, InstructionKind.INITIALIZE, args, keys, overrides)


def _liquidity(
    config: ProgramConfig,
    kind: InstructionKind,
    role: str,
    user: Pubkey,
    mint_x: Pubkey,
    mint_y: Pubkey,
    seed: int,
    args: InstructionArgs,
    overrides: Optional[Mapping[str, Pubkey]],
) -> Instruction:
    pool = _pool(config, seed, mint_x, mint_y)
    keys = {
        role: user,
        "mint_x": mint_x,
        "mint_y": mint_y,
        "share_mint": pool.share_mint,
        "control": pool.control,
        "vault_x": pool.vault_x,
        "vault_y": pool.vault_y,
    }
    keys.update(_user_accounts(config, role, user, mint_x, mint_y, pool.share_mint))
    return _build(config, kind, args, keys, overrides)


def deposit(
    config: ProgramConfig,
    *,
    depositor: Pubkey,
    mint_x: Pubkey,
    mint_y: Pubkey,
    seed: int,
    amount: int,
    max_x: int,
    max_y: int,
    overrides: Optional[Mapping[str, Pubkey]] = None,
) -> Instruction:
    args = DepositArgs(amount=amount, max_x=max_x, max_y=max_y)
    return _liquidity(
        config, InstructionKind.DEPOSIT, "depositor", depositor, mint_x, mint_y, seed, args, overrides
    )


def withdraw(
    config: ProgramConfig,
    *,
    withdrawer: Pubkey,
    mint_x: Pubkey,
    mint_y: Pubkey,
    seed: int,
    shares: int,
    min_x: int,
    min_y: int,
    overrides: Optional[Mapping[str, Pubkey]] = None,
) -> Instruction:
    args = WithdrawArgs(shares=shares, min_x=min_x, min_y=min_y)
    return _liquidity(
        config, InstructionKind.WITHDRAW, "withdrawer", withdrawer, mint_x, mint_y, seed, args, overrides
    )


def swap(
    config: ProgramConfig,
    *,
    trader: Pubkey,
    mint_x: Pubkey,
    mint_y: Pubkey,
    seed: int,
    x_to_y: bool,
    amount_in: int,
    slippage_bps: int,
    overrides: Optional[Mapping[str, Pubkey]] = None,
) -> Instruction:
    pool = _pool(config, seed, mint_x, mint_y)
    keys = {
        "trader": trader,
        "mint_x": mint_x,
        "mint_y": mint_y,
        "control": pool.control,
        "vault_x": pool.vault_x,
        "vault_y": pool.vault_y,
    }
    keys.update(_user_accounts(config, "trader", trader, mint_x, mint_y))
    args = SwapArgs(x_to_y=x_to_y, amount_in=amount_in, slippage_bps=slippage_bps)
    return _build(config, InstructionKind.SWAP, args, keys, overrides)


def _admin(
    config: ProgramConfig,
    kind: InstructionKind,
    authority: Pubkey,
    seed: int,
    overrides: Optional[Mapping[str, Pubkey]],
) -> Instruction:
    control, _bump = control_address(config.program_id, seed)
    keys = {"authority": authority, "control": control}
    return _build(config, kind, NoArgs(), keys, overrides)


def lock(
    config: ProgramConfig,
    *,
    authority: Pubkey,
    seed: int,
    overrides: Optional[Mapping[str, Pubkey]] = None,
) -> Instruction:
    return _admin(config, InstructionKind.LOCK, authority, seed, overrides)


def unlock(
    config: ProgramConfig,
    *,
    authority: Pubkey,
    seed: int,
    overrides: Optional[Mapping[str, Pubkey]] = None,
) -> Instruction:
    return _admin(config, InstructionKind.UNLOCK, authority, seed, overrides)
