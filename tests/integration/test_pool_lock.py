from __future__ import annotations

from solders.keypair import Keypair

from amm_engine.core.errors import ErrorCode
from amm_engine.program import instructions
from amm_engine.program.types import Event


def _funded(pool):
    lp = pool.new_user(1_000_000, 1_000_000)
    assert pool.deposit(lp, 1000, 1_000_000, 1_000_000).ok
    return lp


class TestLock:
    def test_admin_lock_blocks_trading(self, pool) -> None:
        lp = _funded(pool)
        result = pool.lock(pool.admin)
        assert result.ok, result.error
        assert [e.event for e in result.events] == [Event.POOL_LOCKED]
        assert pool.client.fetch_pool(pool.seed).locked

        trader = pool.new_user(1000, 1000)
        assert pool.swap(trader, True, 1000, 10_000).code == ErrorCode.POOL_LOCKED
        assert pool.deposit(trader, 1, 1000, 1000).code == ErrorCode.POOL_LOCKED
        assert pool.withdraw(lp, 1, 0, 0).code == ErrorCode.POOL_LOCKED
        assert pool.reserves() == (1_000_000, 1_000_000)

    def test_admin_unlock_restores_trading(self, pool) -> None:
        _funded(pool)
        assert pool.lock(pool.admin).ok
        result = pool.unlock(pool.admin)
        assert result.ok, result.error
        assert [e.event for e in result.events] == [Event.POOL_UNLOCKED]
        trader = pool.new_user(1000, 0)
        assert pool.swap(trader, True, 1000, 10_000).ok

    def test_lock_is_idempotent(self, pool) -> None:
        assert pool.lock(pool.admin).ok
        assert pool.lock(pool.admin).ok
        assert pool.client.fetch_pool(pool.seed).locked

    def test_stranger_cannot_lock(self, pool) -> None:
        result = pool.lock(Keypair())
        assert result.code == ErrorCode.UNAUTHORIZED
        assert not pool.client.fetch_pool(pool.seed).locked

    def test_stranger_cannot_unlock(self, pool) -> None:
        assert pool.lock(pool.admin).ok
        assert pool.unlock(Keypair()).code == ErrorCode.UNAUTHORIZED
        assert pool.client.fetch_pool(pool.seed).locked

    def test_authority_must_sign(self, pool) -> None:
        ix = instructions.lock(pool.config, authority=pool.admin.pubkey(), seed=pool.seed)
        result = pool.runtime.send([ix], [Keypair()])
        assert result.code == ErrorCode.MISSING_SIGNATURE

    def test_pool_without_authority_cannot_lock(self, harness) -> None:
        payer = Keypair()
        ix = instructions.initialize(
            harness.config,
            payer=payer.pubkey(),
            mint_x=harness.mint_x,
            mint_y=harness.mint_y,
            seed=harness.seed,
            fee_bps=30,
            authority=None,
        )
        assert harness.runtime.send([ix], [payer]).ok
        assert harness.lock(payer).code == ErrorCode.UNAUTHORIZED
        assert harness.lock(harness.admin).code == ErrorCode.UNAUTHORIZED

    def test_uninitialized_pool(self, harness) -> None:
        assert harness.lock(harness.admin).code == ErrorCode.INVALID_ACCOUNT
