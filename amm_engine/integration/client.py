"""
Read-only pool client.

Fetches pool state from a ledger, quotes deposits, withdrawals and swaps with
the same functions the program runs (no mutation), and builds ordered
instructions for each entry point.
"""

from __future__ import annotations

from typing import Optional

from solders.instruction import Instruction  # type: ignore[import-untyped]
from solders.pubkey import Pubkey  # type: ignore[import-untyped]

from ..config import ProgramConfig
from ..core.addresses import PoolAddresses, control_address
from ..core.cpmm import SwapQuote, quote_exact_in, spot_price
from ..core.invariants import PoolSnapshot
from ..core.liquidity import DepositQuote, WithdrawQuote, quote_deposit, quote_withdraw
from ..core.math import BPS_SCALE
from ..program import instructions
from ..program.accounts import load_pool_config
from ..state.pools import PoolConfig
from .ledger import Ledger
from .token_program import TokenProgram


class PoolClient:
    def __init__(self, ledger: Ledger, config: Optional[ProgramConfig] = None) -> None:
        self.ledger = ledger
        self.config = config if config is not None else ProgramConfig()
        self.token = TokenProgram(
            program_id=self.config.token_program_id,
            associated_token_program_id=self.config.associated_token_program_id,
        )

    # -- Reads -------------------------------------------------------------------

    def control_address(self, seed: int) -> Pubkey:
        address, _bump = control_address(self.config.program_id, seed)
        return address

    def fetch_pool(self, seed: int) -> PoolConfig:
        """Decode the control record for `seed`; AmmError(InvalidAccount) if absent."""
        return load_pool_config(self.ledger, self.control_address(seed), self.config.program_id)

    def addresses(self, pool_config: PoolConfig) -> PoolAddresses:
        return PoolAddresses.for_pool(
            self.config.program_id,
            pool_config.seed,
            pool_config.mint_x,
            pool_config.mint_y,
            token_program_id=self.config.token_program_id,
            associated_token_program_id=self.config.associated_token_program_id,
        )

    def snapshot(self, seed: int) -> PoolSnapshot:
        pool_config = self.fetch_pool(seed)
        pool = self.addresses(pool_config)
        return PoolSnapshot(
            addresses=pool,
            config=pool_config,
            share_mint=self.token.load_mint(self.ledger, pool.share_mint),
            vault_x=self.token.load_account(self.ledger, pool.vault_x),
            vault_y=self.token.load_account(self.ledger, pool.vault_y),
        )

    def reserves(self, seed: int) -> tuple[int, int]:
        snap = self.snapshot(seed)
        return snap.reserve_x, snap.reserve_y

    def share_supply(self, seed: int) -> int:
        return self.snapshot(seed).supply

    def share_balance(self, seed: int, owner: Pubkey) -> int:
        share_mint = self.snapshot(seed).addresses.share_mint
        address = self.token.associated_address(owner, share_mint)
        if not self.ledger.exists(address):
            return 0
        return self.token.balance(self.ledger, address)

    def price(self, seed: int, x_to_y: bool = True) -> tuple[int, int]:
        """Marginal output-per-input price as a fraction, before fees."""
        return spot_price(*self.snapshot(seed).reserves(x_to_y))

    # -- Quotes ------------------------------------------------------------------

    def quote_deposit(self, seed: int, amount: int, max_x: int, max_y: int) -> DepositQuote:
        snap = self.snapshot(seed)
        return quote_deposit(
            amount=amount,
            max_x=max_x,
            max_y=max_y,
            reserve_x=snap.reserve_x,
            reserve_y=snap.reserve_y,
            supply=snap.supply,
        )

    def quote_withdraw(self, seed: int, shares: int, min_x: int = 0, min_y: int = 0) -> WithdrawQuote:
        snap = self.snapshot(seed)
        return quote_withdraw(
            shares=shares,
            min_x=min_x,
            min_y=min_y,
            reserve_x=snap.reserve_x,
            reserve_y=snap.reserve_y,
            supply=snap.supply,
        )

    def quote_swap(self, seed: int, x_to_y: bool, amount_in: int, slippage_bps: int = BPS_SCALE) -> SwapQuote:
        snap = self.snapshot(seed)
        reserve_in, reserve_out = snap.reserves(x_to_y)
        return quote_exact_in(
            reserve_in=reserve_in,
            reserve_out=reserve_out,
            amount_in=amount_in,
            fee_bps=snap.config.fee_bps,
            slippage_bps=slippage_bps,
        )

    # -- Instructions ------------------------------------------------------------

    def initialize_ix(
        self,
        payer: Pubkey,
        mint_x: Pubkey,
        mint_y: Pubkey,
        seed: int,
        fee_bps: int,
        authority: Optional[Pubkey] = None,
    ) -> Instruction:
        return instructions.initialize(
            self.config,
            payer=payer,
            mint_x=mint_x,
            mint_y=mint_y,
            seed=seed,
            fee_bps=fee_bps,
            authority=authority,
        )

    def deposit_ix(self, seed: int, depositor: Pubkey, amount: int, max_x: int, max_y: int) -> Instruction:
        pool_config = self.fetch_pool(seed)
        return instructions.deposit(
            self.config,
            depositor=depositor,
            mint_x=pool_config.mint_x,
            mint_y=pool_config.mint_y,
            seed=seed,
            amount=amount,
            max_x=max_x,
            max_y=max_y,
        )

    def withdraw_ix(self, seed: int, withdrawer: Pubkey, shares: int, min_x: int, min_y: int) -> Instruction:
        pool_config = self.fetch_pool(seed)
        return instructions.withdraw(
            self.config,
            withdrawer=withdrawer,
            mint_x=pool_config.mint_x,
            mint_y=pool_config.mint_y,
            seed=seed,
            shares=shares,
            min_x=min_x,
            min_y=min_y,
        )

    def swap_ix(self, seed: int, trader: Pubkey, x_to_y: bool, amount_in: int, slippage_bps: int) -> Instruction:
        pool_config = self.fetch_pool(seed)
        return instructions.swap(
            self.config,
            trader=trader,
            mint_x=pool_config.mint_x,
            mint_y=pool_config.mint_y,
            seed=seed,
            x_to_y=x_to_y,
            amount_in=amount_in,
            slippage_bps=slippage_bps,
        )

    def lock_ix(self, seed: int, authority: Pubkey) -> Instruction:
        return instructions.lock(self.config, authority=authority, seed=seed)

    def unlock_ix(self, seed: int, authority: Pubkey) -> Instruction:
        return instructions.unlock(self.config, authority=authority, seed=seed)
