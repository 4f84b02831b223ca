# [TESTER] v1

from __future__ import annotations

from solders.keypair import Keypair

from amm_engine.core.errors import ErrorCode
from amm_engine.integration.token_program import TokenErrorCode
from amm_engine.program.types import Event


SEED_X = 30_000_000
SEED_Y = 30_000_000


def _seeded(pool):
    """First depositor puts 30M of each asset in for 1000 shares."""
    lp = pool.new_user(SEED_X, SEED_Y)
    result = pool.deposit(lp, 1000, SEED_X, SEED_Y)
    assert result.ok, result.error
    return lp


class TestDeposit:
    def test_first_deposit_sets_price(self, pool) -> None:
        lp = _seeded(pool)
        assert pool.supply() == 1000
        assert pool.reserves() == (SEED_X, SEED_Y)
        assert pool.balances(lp) == (0, 0, 1000)

    def test_first_deposit_needs_both_assets(self, pool) -> None:
        lp = pool.new_user(SEED_X, SEED_Y)
        result = pool.deposit(lp, 1000, SEED_X, 0)
        assert result.code == ErrorCode.ZERO_AMOUNT
        assert pool.supply() == 0

    def test_proportional_deposit(self, pool) -> None:
        _seeded(pool)
        user = pool.new_user(1_000_000, 1_000_000)
        result = pool.deposit(user, 10, 1_000_000, 1_000_000)
        assert result.ok, result.error
        assert [e.event for e in result.events] == [Event.LIQUIDITY_DEPOSITED]
        assert result.events[0].data == {"shares": 10, "amount_x": 300_000, "amount_y": 300_000}
        assert pool.balances(user) == (700_000, 700_000, 10)
        assert pool.reserves() == (SEED_X + 300_000, SEED_Y + 300_000)
        assert pool.supply() == 1010

    def test_deposit_above_max_rejected(self, pool) -> None:
        _seeded(pool)
        user = pool.new_user(1_000_000, 1_000_000)
        result = pool.deposit(user, 10, 299_999, 1_000_000)
        assert result.code == ErrorCode.SLIPPAGE_EXCEEDED
        assert pool.balances(user) == (1_000_000, 1_000_000, 0)
        assert pool.supply() == 1000

    def test_zero_shares_rejected(self, pool) -> None:
        _seeded(pool)
        user = pool.new_user(1, 1)
        assert pool.deposit(user, 0, 1, 1).code == ErrorCode.ZERO_AMOUNT

    def test_insufficient_funds(self, pool) -> None:
        _seeded(pool)
        user = pool.new_user(100, 1_000_000)
        result = pool.deposit(user, 10, 1_000_000, 1_000_000)
        assert not result.ok
        assert result.code == TokenErrorCode.INSUFFICIENT_FUNDS
        assert pool.balances(user) == (100, 1_000_000, 0)
        assert pool.reserves() == (SEED_X, SEED_Y)

    def test_depositor_must_sign(self, pool) -> None:
        user = pool.new_user(SEED_X, SEED_Y)
        ix = pool.deposit_ix(user, 1000, SEED_X, SEED_Y)
        result = pool.runtime.send([ix], [Keypair()])
        assert result.code == ErrorCode.MISSING_SIGNATURE
        assert pool.supply() == 0


class TestWithdraw:
    def test_full_round_trip(self, pool) -> None:
        lp = _seeded(pool)
        result = pool.withdraw(lp, 1000, SEED_X, SEED_Y)
        assert result.ok, result.error
        assert [e.event for e in result.events] == [Event.LIQUIDITY_WITHDRAWN]
        assert pool.balances(lp) == (SEED_X, SEED_Y, 0)
        assert pool.reserves() == (0, 0)
        assert pool.supply() == 0

    def test_partial_withdraw_rounds_down(self, pool) -> None:
        lp = pool.new_user(1001, 2000)
        assert pool.deposit(lp, 3, 1001, 2000).ok
        result = pool.withdraw(lp, 1, 0, 0)
        assert result.ok, result.error
        # floor(1001 / 3) and floor(2000 / 3)
        assert result.events[0].data == {"shares": 1, "amount_x": 333, "amount_y": 666}
        assert pool.reserves() == (668, 1334)

    def test_more_than_balance(self, pool) -> None:
        _seeded(pool)
        user = pool.new_user(1_000_000, 1_000_000)
        assert pool.deposit(user, 10, 1_000_000, 1_000_000).ok
        result = pool.withdraw(user, 20, 0, 0)
        assert result.code == ErrorCode.INSUFFICIENT_SHARES
        assert pool.balances(user)[2] == 10

    def test_more_than_supply(self, pool) -> None:
        lp = _seeded(pool)
        assert pool.withdraw(lp, 1001, 0, 0).code == ErrorCode.INSUFFICIENT_SHARES

    def test_payout_below_min(self, pool) -> None:
        lp = _seeded(pool)
        result = pool.withdraw(lp, 500, SEED_X // 2 + 1, 0)
        assert result.code == ErrorCode.SLIPPAGE_EXCEEDED
        assert pool.balances(lp) == (0, 0, 1000)

    def test_zero_shares(self, pool) -> None:
        lp = _seeded(pool)
        assert pool.withdraw(lp, 0, 0, 0).code == ErrorCode.ZERO_AMOUNT

    def test_receiving_accounts_created(self, pool) -> None:
        lp = _seeded(pool)
        holder = Keypair()
        with pool.runtime.ledger.transaction() as tx:
            source = pool.runtime.token.associated_address(lp.pubkey(), pool.addresses.share_mint)
            dest = pool.runtime.token.create_vault(tx, holder.pubkey(), pool.addresses.share_mint)
            pool.runtime.token.transfer(tx, source, dest, 100, lp.pubkey(), {lp.pubkey()})
        assert pool.runtime.account(pool.runtime.token.associated_address(holder.pubkey(), pool.mint_x)) is None

        assert pool.withdraw(holder, 100, 0, 0).ok
        assert pool.balances(holder) == (3_000_000, 3_000_000, 0)
