"""Invariant checkers for a pool's committed accounts.

Each function returns True when the invariant holds, and `check_all()` returns
the list of violated invariant IDs (empty = all pass). Handlers run
`check_all()` against the staged post-state of every mutating instruction
before anything is committed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from ..state.pools import BPS_DENOM, PoolConfig
from ..state.tokens import Mint, TokenAccount
from .addresses import PoolAddresses


@dataclass(frozen=True)
class PoolSnapshot:
    """Decoded view of every account a pool owns."""

    addresses: PoolAddresses
    config: PoolConfig
    share_mint: Mint
    vault_x: TokenAccount
    vault_y: TokenAccount

    @property
    def reserve_x(self) -> int:
        return self.vault_x.amount

    @property
    def reserve_y(self) -> int:
        return self.vault_y.amount

    @property
    def supply(self) -> int:
        return self.share_mint.supply

    def reserves(self, x_to_y: bool) -> tuple[int, int]:
        """``(reserve_in, reserve_out)`` for a swap direction."""
        if x_to_y:
            return self.reserve_x, self.reserve_y
        return self.reserve_y, self.reserve_x


def inv_distinct_mints(s: PoolSnapshot) -> bool:
    return s.config.mint_x != s.config.mint_y


def inv_fee_in_range(s: PoolSnapshot) -> bool:
    return 0 <= s.config.fee_bps <= BPS_DENOM


def inv_bumps_canonical(s: PoolSnapshot) -> bool:
    return (
        s.config.config_bump == s.addresses.control_bump
        and s.config.lp_bump == s.addresses.share_mint_bump
    )


def inv_share_mint_authority_is_control(s: PoolSnapshot) -> bool:
    return s.share_mint.mint_authority == s.addresses.control


def inv_vault_x_bound(s: PoolSnapshot) -> bool:
    return s.vault_x.owner == s.addresses.control and s.vault_x.mint == s.config.mint_x


def inv_vault_y_bound(s: PoolSnapshot) -> bool:
    return s.vault_y.owner == s.addresses.control and s.vault_y.mint == s.config.mint_y


def inv_shares_backed(s: PoolSnapshot) -> bool:
    # Outstanding shares always have something to redeem against.
    if s.supply == 0:
        return True
    return s.reserve_x > 0 and s.reserve_y > 0


INVARIANT_REGISTRY: dict[str, Callable[[PoolSnapshot], bool]] = {
    "inv_distinct_mints": inv_distinct_mints,
    "inv_fee_in_range": inv_fee_in_range,
    "inv_bumps_canonical": inv_bumps_canonical,
    "inv_share_mint_authority_is_control": inv_share_mint_authority_is_control,
    "inv_vault_x_bound": inv_vault_x_bound,
    "inv_vault_y_bound": inv_vault_y_bound,
    "inv_shares_backed": inv_shares_backed,
}


def check_all(snapshot: PoolSnapshot) -> list[str]:
    """Return list of violated invariant IDs (empty = all pass)."""
    return [
        inv_id
        for inv_id, check_fn in INVARIANT_REGISTRY.items()
        if not check_fn(snapshot)
    ]
