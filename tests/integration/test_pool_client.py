"""Tests for amm_engine/integration/client.py."""

from __future__ import annotations

import pytest
from solders.keypair import Keypair

from amm_engine.core.errors import AmmError, ErrorCode


@pytest.fixture
def funded(pool):
    lp = pool.new_user(2_000_000, 8_000_000)
    assert pool.deposit(lp, 1000, 2_000_000, 8_000_000).ok
    pool.lp = lp
    return pool


class TestReads:
    def test_fetch_pool(self, funded) -> None:
        cfg = funded.client.fetch_pool(funded.seed)
        assert (cfg.mint_x, cfg.mint_y) == (funded.mint_x, funded.mint_y)
        assert cfg.fee_bps == 1000
        assert funded.client.control_address(funded.seed) == funded.addresses.control
        assert funded.client.addresses(cfg) == funded.addresses

    def test_missing_pool(self, funded) -> None:
        with pytest.raises(AmmError) as excinfo:
            funded.client.fetch_pool(funded.seed + 1)
        assert excinfo.value.code == ErrorCode.INVALID_ACCOUNT

    def test_reserves_and_shares(self, funded) -> None:
        client = funded.client
        assert client.reserves(funded.seed) == (2_000_000, 8_000_000)
        assert client.share_supply(funded.seed) == 1000
        assert client.share_balance(funded.seed, funded.lp.pubkey()) == 1000
        assert client.share_balance(funded.seed, Keypair().pubkey()) == 0

    def test_price(self, funded) -> None:
        assert funded.client.price(funded.seed) == (8_000_000, 2_000_000)
        assert funded.client.price(funded.seed, x_to_y=False) == (2_000_000, 8_000_000)

    def test_price_of_empty_pool(self, pool) -> None:
        with pytest.raises(AmmError) as excinfo:
            pool.client.price(pool.seed)
        assert excinfo.value.code == ErrorCode.EMPTY_RESERVES


class TestQuotesMatchExecution:
    def test_swap(self, funded) -> None:
        quote = funded.client.quote_swap(funded.seed, True, 250_000, 5000)
        trader = funded.new_user(250_000, 0)
        result = funded.swap(trader, True, 250_000, 5000)
        assert result.ok, result.error
        assert funded.balances(trader) == (0, quote.amount_out, 0)
        assert funded.reserves() == (quote.new_reserve_in, quote.new_reserve_out)
        assert result.events[0].data["fee"] == quote.fee

    def test_deposit(self, funded) -> None:
        quote = funded.client.quote_deposit(funded.seed, 7, 1_000_000, 1_000_000)
        assert (quote.amount_x, quote.amount_y) == (14_000, 56_000)
        assert not quote.first_deposit
        user = funded.new_user(1_000_000, 1_000_000)
        assert funded.deposit(user, 7, 1_000_000, 1_000_000).ok
        assert funded.balances(user) == (1_000_000 - quote.amount_x, 1_000_000 - quote.amount_y, 7)

    def test_withdraw(self, funded) -> None:
        quote = funded.client.quote_withdraw(funded.seed, 333)
        assert (quote.amount_x, quote.amount_y) == (666_000, 2_664_000)
        assert funded.withdraw(funded.lp, 333, quote.amount_x, quote.amount_y).ok
        assert funded.balances(funded.lp) == (quote.amount_x, quote.amount_y, 667)


class TestInstructionBuilders:
    def test_client_built_instructions_execute(self, harness) -> None:
        client = harness.client
        payer = Keypair()
        init = client.initialize_ix(
            payer.pubkey(), harness.mint_x, harness.mint_y, harness.seed, 30, harness.admin.pubkey()
        )
        assert harness.runtime.send([init], [payer]).ok

        user = harness.new_user(10_000, 10_000)
        deposit = client.deposit_ix(harness.seed, user.pubkey(), 100, 10_000, 10_000)
        swap = client.swap_ix(harness.seed, user.pubkey(), False, 0, 10_000)
        assert harness.runtime.send([deposit], [user]).ok
        assert harness.runtime.send([swap], [user]).code == ErrorCode.ZERO_AMOUNT

        withdraw = client.withdraw_ix(harness.seed, user.pubkey(), 100, 10_000, 10_000)
        assert harness.runtime.send([withdraw], [user]).ok
        assert harness.balances(user) == (10_000, 10_000, 0)

        lock = client.lock_ix(harness.seed, harness.admin.pubkey())
        unlock = client.unlock_ix(harness.seed, harness.admin.pubkey())
        result = harness.runtime.send([lock, unlock], [harness.admin])
        assert result.ok, result.error
        assert not client.fetch_pool(harness.seed).locked
