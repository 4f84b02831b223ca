"""
Token records held by the fungible-token program.

Layouts are byte-compatible with SPL Token:

Mint (82 bytes)
  [0:36]   mint_authority  COption<Pubkey>
  [36:44]  supply          u64
  [44:45]  decimals        u8
  [45:46]  is_initialized  bool
  [46:82]  freeze_authority COption<Pubkey>

TokenAccount (165 bytes)
  [0:32]    mint
  [32:64]   owner
  [64:72]   amount            u64
  [72:108]  delegate          COption<Pubkey>
  [108:109] state             u8
  [109:121] is_native         COption<u64>
  [121:129] delegated_amount  u64
  [129:165] close_authority   COption<Pubkey>
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Optional

from solders.pubkey import Pubkey  # type: ignore[import-untyped]

from .canonical import (
    U8_MAX,
    U64_MAX,
    LayoutError,
    Reader,
    encode_bool,
    encode_coption_pubkey,
    encode_coption_u64,
    encode_pubkey,
    encode_u8,
    encode_u64,
)


TOKEN_PROGRAM_ID = Pubkey.from_string("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")
ASSOCIATED_TOKEN_PROGRAM_ID = Pubkey.from_string("ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL")
SYSTEM_PROGRAM_ID = Pubkey.from_string("11111111111111111111111111111111")

MINT_SIZE = 82
TOKEN_ACCOUNT_SIZE = 165


class TokenAccountState(IntEnum):
    UNINITIALIZED = 0
    INITIALIZED = 1
    FROZEN = 2


def _require_u64(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if not (0 <= value <= U64_MAX):
        raise ValueError(f"{name} must be a u64: {value}")


@dataclass(frozen=True)
class Mint:
    mint_authority: Optional[Pubkey]
    supply: int
    decimals: int
    is_initialized: bool = True
    freeze_authority: Optional[Pubkey] = None

    def __post_init__(self) -> None:
        _require_u64("supply", self.supply)
        if not isinstance(self.decimals, int) or not (0 <= self.decimals <= U8_MAX):
            raise ValueError(f"decimals must be a u8: {self.decimals}")

    def with_supply(self, supply: int) -> "Mint":
        return replace(self, supply=supply)

    def pack(self) -> bytes:
        return (
            encode_coption_pubkey(self.mint_authority)
            + encode_u64(self.supply, name="supply")
            + encode_u8(self.decimals, name="decimals")
            + encode_bool(self.is_initialized)
            + encode_coption_pubkey(self.freeze_authority)
        )

    @classmethod
    def unpack(cls, data: bytes) -> "Mint":
        if len(data) != MINT_SIZE:
            raise LayoutError(f"mint must be {MINT_SIZE} bytes, got {len(data)}")
        r = Reader(data)
        mint_authority = r.coption_pubkey()
        supply = r.u64()
        decimals = r.u8()
        is_initialized = r.boolean()
        freeze_authority = r.coption_pubkey()
        r.expect_end()
        if not is_initialized:
            raise LayoutError("mint is not initialized")
        return cls(
            mint_authority=mint_authority,
            supply=supply,
            decimals=decimals,
            is_initialized=is_initialized,
            freeze_authority=freeze_authority,
        )


@dataclass(frozen=True)
class TokenAccount:
    mint: Pubkey
    owner: Pubkey
    amount: int = 0
    delegate: Optional[Pubkey] = None
    state: TokenAccountState = TokenAccountState.INITIALIZED
    is_native: Optional[int] = None
    delegated_amount: int = 0
    close_authority: Optional[Pubkey] = None

    def __post_init__(self) -> None:
        _require_u64("amount", self.amount)
        _require_u64("delegated_amount", self.delegated_amount)

    def with_amount(self, amount: int) -> "TokenAccount":
        return replace(self, amount=amount)

    def pack(self) -> bytes:
        return (
            encode_pubkey(self.mint)
            + encode_pubkey(self.owner)
            + encode_u64(self.amount, name="amount")
            + encode_coption_pubkey(self.delegate)
            + encode_u8(int(self.state), name="state")
            + encode_coption_u64(self.is_native)
            + encode_u64(self.delegated_amount, name="delegated_amount")
            + encode_coption_pubkey(self.close_authority)
        )

    @classmethod
    def unpack(cls, data: bytes) -> "TokenAccount":
        if len(data) != TOKEN_ACCOUNT_SIZE:
            raise LayoutError(f"token account must be {TOKEN_ACCOUNT_SIZE} bytes, got {len(data)}")
        r = Reader(data)
        mint = r.pubkey()
        owner = r.pubkey()
        amount = r.u64()
        delegate = r.coption_pubkey()
        state_raw = r.u8()
        is_native = r.coption_u64()
        delegated_amount = r.u64()
        close_authority = r.coption_pubkey()
        r.expect_end()
        try:
            state = TokenAccountState(state_raw)
        except ValueError as exc:
            raise LayoutError(f"invalid token account state: {state_raw}") from exc
        if state == TokenAccountState.UNINITIALIZED:
            raise LayoutError("token account is not initialized")
        return cls(
            mint=mint,
            owner=owner,
            amount=amount,
            delegate=delegate,
            state=state,
            is_native=is_native,
            delegated_amount=delegated_amount,
            close_authority=close_authority,
        )


def get_associated_token_address(
    owner: Pubkey,
    mint: Pubkey,
    *,
    token_program_id: Pubkey = TOKEN_PROGRAM_ID,
    associated_token_program_id: Pubkey = ASSOCIATED_TOKEN_PROGRAM_ID,
) -> Pubkey:
    """
    Canonical token account for (owner, mint).

    The owner may itself be a derived (off-curve) address; pool vaults rely on this.
    """
    address, _bump = Pubkey.find_program_address(
        [bytes(owner), bytes(token_program_id), bytes(mint)],
        associated_token_program_id,
    )
    return address
