"""
Pool control record: the authoritative on-ledger state of one pool.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Union

from solders.pubkey import Pubkey  # type: ignore[import-untyped]

from .canonical import (
    DISCRIMINATOR_LEN,
    U8_MAX,
    U64_MAX,
    LayoutError,
    Reader,
    discriminator,
    encode_bool,
    encode_option_pubkey,
    encode_pubkey,
    encode_u8,
    encode_u16,
    encode_u64,
    pad_to,
)


BPS_DENOM = 10_000

POOL_CONFIG_DISCRIMINATOR = discriminator("account", "PoolConfig")

# discriminator + seed + Option<Pubkey> + mint_x + mint_y + fee + locked + 2 bumps
POOL_CONFIG_SIZE = DISCRIMINATOR_LEN + 8 + (1 + 32) + 32 + 32 + 2 + 1 + 1 + 1


@dataclass(frozen=True)
class NoAuthority:
    """The pool has no administrator; it can never be locked or unlocked."""

    def as_option(self) -> Optional[Pubkey]:
        return None


@dataclass(frozen=True)
class Authority:
    """The pool is administered by `identity`."""

    identity: Pubkey

    def __post_init__(self) -> None:
        if not isinstance(self.identity, Pubkey):
            raise TypeError("identity must be a Pubkey")

    def as_option(self) -> Optional[Pubkey]:
        return self.identity


PoolAuthority = Union[NoAuthority, Authority]


def authority_from_option(identity: Optional[Pubkey]) -> PoolAuthority:
    if identity is None:
        return NoAuthority()
    return Authority(identity)


@dataclass(frozen=True)
class PoolConfig:
    """
    Control record of a constant-product pool.

    Attributes:
        seed: Caller-chosen u64 that makes each pool address distinct
        authority: NoAuthority or Authority(identity)
        mint_x: Asset X mint (fixed for the record's lifetime)
        mint_y: Asset Y mint (fixed for the record's lifetime)
        fee_bps: Swap fee in basis points (0-10000)
        locked: When True, deposit/withdraw/swap are rejected
        config_bump: Canonical bump of this record's derived address
        lp_bump: Canonical bump of the share mint's derived address
    """
    seed: int
    authority: PoolAuthority
    mint_x: Pubkey
    mint_y: Pubkey
    fee_bps: int
    locked: bool = False
    config_bump: int = 0
    lp_bump: int = 0

    def __post_init__(self) -> None:
        for name, v, hi in (
            ("seed", self.seed, U64_MAX),
            ("fee_bps", self.fee_bps, BPS_DENOM),
            ("config_bump", self.config_bump, U8_MAX),
            ("lp_bump", self.lp_bump, U8_MAX),
        ):
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if not (0 <= v <= hi):
                raise ValueError(f"{name} must be in [0, {hi}]: {v}")
        if not isinstance(self.authority, (NoAuthority, Authority)):
            raise TypeError("authority must be NoAuthority or Authority")
        if not isinstance(self.locked, bool):
            raise TypeError("locked must be a bool")
        if self.mint_x == self.mint_y:
            raise ValueError(f"mint_x and mint_y must differ: {self.mint_x}")

    def is_admin(self, identity: Pubkey) -> bool:
        return isinstance(self.authority, Authority) and self.authority.identity == identity

    def with_locked(self, locked: bool) -> "PoolConfig":
        return replace(self, locked=locked)

    def mint_for(self, x_side: bool) -> Pubkey:
        return self.mint_x if x_side else self.mint_y

    def pack(self) -> bytes:
        body = (
            POOL_CONFIG_DISCRIMINATOR
            + encode_u64(self.seed, name="seed")
            + encode_option_pubkey(self.authority.as_option())
            + encode_pubkey(self.mint_x)
            + encode_pubkey(self.mint_y)
            + encode_u16(self.fee_bps, name="fee_bps")
            + encode_bool(self.locked)
            + encode_u8(self.config_bump, name="config_bump")
            + encode_u8(self.lp_bump, name="lp_bump")
        )
        return pad_to(body, POOL_CONFIG_SIZE)

    @classmethod
    def unpack(cls, data: bytes) -> "PoolConfig":
        if len(data) != POOL_CONFIG_SIZE:
            raise LayoutError(f"pool config must be {POOL_CONFIG_SIZE} bytes, got {len(data)}")
        r = Reader(data)
        if r.take(DISCRIMINATOR_LEN) != POOL_CONFIG_DISCRIMINATOR:
            raise LayoutError("account discriminator mismatch")
        seed = r.u64()
        authority = authority_from_option(r.option_pubkey())
        mint_x = r.pubkey()
        mint_y = r.pubkey()
        fee_bps = r.u16()
        locked = r.boolean()
        config_bump = r.u8()
        lp_bump = r.u8()
        try:
            return cls(
                seed=seed,
                authority=authority,
                mint_x=mint_x,
                mint_y=mint_y,
                fee_bps=fee_bps,
                locked=locked,
                config_bump=config_bump,
                lp_bump=lp_bump,
            )
        except ValueError as exc:
            raise LayoutError(f"invalid pool config: {exc}") from exc

    def __repr__(self) -> str:
        return (
            f"PoolConfig(seed={self.seed}, fee_bps={self.fee_bps}, "
            f"mints=({str(self.mint_x)[:8]}..., {str(self.mint_y)[:8]}...), "
            f"locked={self.locked})"
        )
