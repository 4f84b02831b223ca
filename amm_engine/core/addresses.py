"""
Derived-address resolver.

All pool accounts live at addresses computed from the program id and a short
list of seeds, so every party can recompute them independently:

    control    = derive(["config", seed_le_u64])
    share_mint = derive(["lp", control])
    vault      = associated_token_address(control, mint)

`derive` is the ledger's program-address rule: sha256 over the seeds, a bump
byte, the program id and a fixed marker, with the bump searched from 255
downward until the digest is not a valid ed25519 point. The result therefore
has no private key, and only the program can sign for it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from solders.pubkey import Pubkey  # type: ignore[import-untyped]

from ..state.canonical import encode_u64, encode_u8
from ..state.tokens import ASSOCIATED_TOKEN_PROGRAM_ID, TOKEN_PROGRAM_ID, get_associated_token_address


CONFIG_SEED = b"config"
LP_SEED = b"lp"


def derive(seeds: Sequence[bytes], program_id: Pubkey) -> tuple[Pubkey, int]:
    """Return ``(address, bump)`` for the canonical (highest) bump."""
    return Pubkey.find_program_address(list(seeds), program_id)


def control_seeds(seed: int) -> list[bytes]:
    return [CONFIG_SEED, encode_u64(seed, name="seed")]


def share_mint_seeds(control: Pubkey) -> list[bytes]:
    return [LP_SEED, bytes(control)]


def control_address(program_id: Pubkey, seed: int) -> tuple[Pubkey, int]:
    return derive(control_seeds(seed), program_id)


def share_mint_address(program_id: Pubkey, control: Pubkey) -> tuple[Pubkey, int]:
    return derive(share_mint_seeds(control), program_id)


def vault_address(
    owner: Pubkey,
    mint: Pubkey,
    *,
    token_program_id: Pubkey = TOKEN_PROGRAM_ID,
    associated_token_program_id: Pubkey = ASSOCIATED_TOKEN_PROGRAM_ID,
) -> Pubkey:
    return get_associated_token_address(
        owner,
        mint,
        token_program_id=token_program_id,
        associated_token_program_id=associated_token_program_id,
    )


def control_signer_seeds(seed: int, bump: int) -> list[bytes]:
    """Seeds (with bump) that let the program sign as the control record."""
    return control_seeds(seed) + [encode_u8(bump, name="bump")]


@dataclass(frozen=True)
class PoolAddresses:
    """Every derived account of one pool."""

    control: Pubkey
    control_bump: int
    share_mint: Pubkey
    share_mint_bump: int
    vault_x: Pubkey
    vault_y: Pubkey

    @classmethod
    def for_pool(
        cls,
        program_id: Pubkey,
        seed: int,
        mint_x: Pubkey,
        mint_y: Pubkey,
        *,
        token_program_id: Pubkey = TOKEN_PROGRAM_ID,
        associated_token_program_id: Pubkey = ASSOCIATED_TOKEN_PROGRAM_ID,
    ) -> "PoolAddresses":
        control, control_bump = control_address(program_id, seed)
        share_mint, share_mint_bump = share_mint_address(program_id, control)
        ids = dict(
            token_program_id=token_program_id,
            associated_token_program_id=associated_token_program_id,
        )
        return cls(
            control=control,
            control_bump=control_bump,
            share_mint=share_mint,
            share_mint_bump=share_mint_bump,
            vault_x=vault_address(control, mint_x, **ids),
            vault_y=vault_address(control, mint_y, **ids),
        )

    def vault_for(self, x_side: bool) -> Pubkey:
        return self.vault_x if x_side else self.vault_y
