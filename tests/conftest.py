from __future__ import annotations

from typing import Optional

import pytest
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from amm_engine.core.addresses import PoolAddresses
from amm_engine.integration.client import PoolClient
from amm_engine.integration.runtime import Runtime, TransactionResult
from amm_engine.program import instructions


DEFAULT_SEED = 42
DEFAULT_FEE_BPS = 1000


class PoolHarness:
    """One pool on a fresh runtime, with helpers to fund users and send instructions."""

    def __init__(
        self,
        runtime: Runtime,
        mint_authority: Keypair,
        seed: int = DEFAULT_SEED,
        mints: Optional[tuple[Pubkey, Pubkey]] = None,
    ) -> None:
        self.runtime = runtime
        self.config = runtime.config
        self.mint_authority = mint_authority
        self.seed = seed
        if mints is None:
            mints = (runtime.create_mint(mint_authority.pubkey()), runtime.create_mint(mint_authority.pubkey()))
        self.mint_x, self.mint_y = mints
        self.admin = Keypair()
        self.addresses = PoolAddresses.for_pool(self.config.program_id, seed, self.mint_x, self.mint_y)
        self.client = PoolClient(runtime.ledger, self.config)

    # -- setup --

    def initialize(
        self,
        *,
        payer: Optional[Keypair] = None,
        fee_bps: int = DEFAULT_FEE_BPS,
        authority: Optional[Pubkey] = None,
        **overrides: Pubkey,
    ) -> TransactionResult:
        payer = payer or Keypair()
        ix = instructions.initialize(
            self.config,
            payer=payer.pubkey(),
            mint_x=self.mint_x,
            mint_y=self.mint_y,
            seed=self.seed,
            fee_bps=fee_bps,
            authority=authority if authority is not None else self.admin.pubkey(),
            overrides=overrides or None,
        )
        return self.runtime.send([ix], [payer])

    def new_user(self, amount_x: int = 0, amount_y: int = 0) -> Keypair:
        user = Keypair()
        self.runtime.mint_to(self.mint_x, user.pubkey(), amount_x, self.mint_authority)
        self.runtime.mint_to(self.mint_y, user.pubkey(), amount_y, self.mint_authority)
        return user

    # -- instructions --

    def deposit_ix(self, user: Keypair, amount: int, max_x: int, max_y: int, **overrides: Pubkey):
        return instructions.deposit(
            self.config,
            depositor=user.pubkey(),
            mint_x=self.mint_x,
            mint_y=self.mint_y,
            seed=self.seed,
            amount=amount,
            max_x=max_x,
            max_y=max_y,
            overrides=overrides or None,
        )

    def withdraw_ix(self, user: Keypair, shares: int, min_x: int, min_y: int, **overrides: Pubkey):
        return instructions.withdraw(
            self.config,
            withdrawer=user.pubkey(),
            mint_x=self.mint_x,
            mint_y=self.mint_y,
            seed=self.seed,
            shares=shares,
            min_x=min_x,
            min_y=min_y,
            overrides=overrides or None,
        )

    def swap_ix(self, user: Keypair, x_to_y: bool, amount_in: int, slippage_bps: int, **overrides: Pubkey):
        return instructions.swap(
            self.config,
            trader=user.pubkey(),
            mint_x=self.mint_x,
            mint_y=self.mint_y,
            seed=self.seed,
            x_to_y=x_to_y,
            amount_in=amount_in,
            slippage_bps=slippage_bps,
            overrides=overrides or None,
        )

    def deposit(self, user: Keypair, amount: int, max_x: int, max_y: int, **overrides: Pubkey) -> TransactionResult:
        return self.runtime.send([self.deposit_ix(user, amount, max_x, max_y, **overrides)], [user])

    def withdraw(self, user: Keypair, shares: int, min_x: int, min_y: int, **overrides: Pubkey) -> TransactionResult:
        return self.runtime.send([self.withdraw_ix(user, shares, min_x, min_y, **overrides)], [user])

    def swap(self, user: Keypair, x_to_y: bool, amount_in: int, slippage_bps: int, **overrides: Pubkey) -> TransactionResult:
        return self.runtime.send([self.swap_ix(user, x_to_y, amount_in, slippage_bps, **overrides)], [user])

    def lock(self, signer: Keypair) -> TransactionResult:
        return self.runtime.send([instructions.lock(self.config, authority=signer.pubkey(), seed=self.seed)], [signer])

    def unlock(self, signer: Keypair) -> TransactionResult:
        return self.runtime.send([instructions.unlock(self.config, authority=signer.pubkey(), seed=self.seed)], [signer])

    # -- reads --

    def balances(self, user: Keypair) -> tuple[int, int, int]:
        owner = user.pubkey()
        return (
            self.runtime.token_balance(owner, self.mint_x),
            self.runtime.token_balance(owner, self.mint_y),
            self.runtime.token_balance(owner, self.addresses.share_mint),
        )

    def reserves(self) -> tuple[int, int]:
        return (
            self.runtime.balance(self.addresses.vault_x),
            self.runtime.balance(self.addresses.vault_y),
        )

    def supply(self) -> int:
        return self.runtime.supply(self.addresses.share_mint)


@pytest.fixture
def runtime() -> Runtime:
    return Runtime()


@pytest.fixture
def mint_authority() -> Keypair:
    return Keypair()


@pytest.fixture
def make_harness(runtime: Runtime, mint_authority: Keypair):
    def _make(seed: int = DEFAULT_SEED, mints: Optional[tuple[Pubkey, Pubkey]] = None) -> PoolHarness:
        return PoolHarness(runtime, mint_authority, seed, mints)

    return _make


@pytest.fixture
def harness(make_harness) -> PoolHarness:
    """A pool whose accounts have not been created yet."""
    return make_harness()


@pytest.fixture
def pool(harness: PoolHarness) -> PoolHarness:
    """An initialized, empty pool (fee 1000 bps, administered by `pool.admin`)."""
    result = harness.initialize()
    assert result.ok, result.error
    return harness
