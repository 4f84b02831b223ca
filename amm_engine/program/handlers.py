"""
Instruction handlers.

Each handler receives the invoke context, the role-bound accounts and the
decoded arguments. Handlers follow one order: bind and verify every supplied
address, check preconditions, compute with the pure `core` functions, then
apply token-program effects. Any exception leaves the staged transaction to be
discarded by the runtime, so a rejected instruction has no visible effect.
"""

from __future__ import annotations

from loguru import logger
from solders.pubkey import Pubkey  # type: ignore[import-untyped]

from ..config import ProgramConfig
from ..core.addresses import PoolAddresses, control_signer_seeds
from ..core.cpmm import quote_exact_in
from ..core.errors import AmmError, ErrorCode, InvariantViolation
from ..core.invariants import PoolSnapshot, check_all
from ..core.liquidity import quote_deposit, quote_withdraw
from ..integration.ledger import Account
from ..integration.token_program import TokenError
from ..state.pools import BPS_DENOM, PoolConfig, authority_from_option
from .accounts import InstructionAccounts, load_pool_config, require_address, require_pool_addresses
from .types import (
    DepositArgs,
    Event,
    InitializeArgs,
    NoArgs,
    PoolEvent,
    SwapArgs,
    WithdrawArgs,
)


# -- Shared helpers --------------------------------------------------------------

def _pool_addresses(config: ProgramConfig, seed: int, mint_x: Pubkey, mint_y: Pubkey) -> PoolAddresses:
    return PoolAddresses.for_pool(
        config.program_id,
        seed,
        mint_x,
        mint_y,
        token_program_id=config.token_program_id,
        associated_token_program_id=config.associated_token_program_id,
    )


def _write_pool_config(ctx, address: Pubkey, pool_config: PoolConfig) -> None:
    ctx.put(address, Account(owner=ctx.config.program_id, data=pool_config.pack()))


def _bind_pool(ctx, accounts: InstructionAccounts) -> tuple[PoolConfig, PoolAddresses]:
    """Load the control record and check every pool account against it."""
    pool_config = load_pool_config(ctx, accounts["control"], ctx.config.program_id)
    pool = _pool_addresses(ctx.config, pool_config.seed, pool_config.mint_x, pool_config.mint_y)
    require_pool_addresses(accounts, pool)
    if pool_config.config_bump != pool.control_bump or pool_config.lp_bump != pool.share_mint_bump:
        raise AmmError(ErrorCode.INVALID_ACCOUNT, "stored bumps are not canonical")
    if "mint_x" in accounts.keys:
        require_address("mint_x", accounts["mint_x"], pool_config.mint_x)
        require_address("mint_y", accounts["mint_y"], pool_config.mint_y)
    return pool_config, pool


def _bind_user_accounts(ctx, accounts: InstructionAccounts, role: str, mints: dict[str, Pubkey]) -> None:
    user = accounts[role]
    for suffix, mint in mints.items():
        name = f"{role}_{suffix}"
        require_address(name, accounts[name], ctx.token.associated_address(user, mint))


def _snapshot(ctx, pool: PoolAddresses, pool_config: PoolConfig) -> PoolSnapshot:
    return PoolSnapshot(
        addresses=pool,
        config=pool_config,
        share_mint=ctx.token.load_mint(ctx, pool.share_mint),
        vault_x=ctx.token.load_account(ctx, pool.vault_x),
        vault_y=ctx.token.load_account(ctx, pool.vault_y),
    )


def _check_invariants(snapshot: PoolSnapshot) -> None:
    violations = check_all(snapshot)
    if violations:
        raise InvariantViolation(violations)


def _pool_signers(ctx, pool_config: PoolConfig):
    return ctx.signed_with(control_signer_seeds(pool_config.seed, pool_config.config_bump))


def _require_unlocked(pool_config: PoolConfig) -> None:
    if pool_config.locked:
        raise AmmError(ErrorCode.POOL_LOCKED, f"pool seed={pool_config.seed}")


# -- Initialize --------------------------------------------------------------------

def initialize(ctx, accounts: InstructionAccounts, args: InitializeArgs) -> None:
    """
    Create the control record, the share mint and both vaults of a new pool.

    Rejections, in check order: InvalidFee, IdenticalAssets, InvalidAccount,
    AlreadyInitialized.
    """
    if args.fee_bps > BPS_DENOM:
        raise AmmError(ErrorCode.INVALID_FEE, f"fee_bps must be <= {BPS_DENOM}: {args.fee_bps}")
    mint_x, mint_y = accounts["mint_x"], accounts["mint_y"]
    if mint_x == mint_y:
        raise AmmError(ErrorCode.IDENTICAL_ASSETS, str(mint_x))

    pool = _pool_addresses(ctx.config, args.seed, mint_x, mint_y)
    require_pool_addresses(accounts, pool)
    for role, mint in (("mint_x", mint_x), ("mint_y", mint_y)):
        try:
            ctx.token.load_mint(ctx, mint)
        except TokenError as exc:
            raise AmmError(ErrorCode.INVALID_ACCOUNT, f"{role} is not a token mint: {exc}") from exc

    for role in ("control", "share_mint", "vault_x", "vault_y"):
        if ctx.get(getattr(pool, role)) is not None:
            raise AmmError(ErrorCode.ALREADY_INITIALIZED, f"{role} {getattr(pool, role)} exists")

    pool_config = PoolConfig(
        seed=args.seed,
        authority=authority_from_option(args.authority),
        mint_x=mint_x,
        mint_y=mint_y,
        fee_bps=args.fee_bps,
        locked=False,
        config_bump=pool.control_bump,
        lp_bump=pool.share_mint_bump,
    )
    _write_pool_config(ctx, pool.control, pool_config)
    ctx.token.initialize_mint(
        ctx,
        pool.share_mint,
        mint_authority=pool.control,
        decimals=ctx.config.lp_decimals,
    )
    ctx.token.create_vault(ctx, pool.control, mint_x)
    ctx.token.create_vault(ctx, pool.control, mint_y)

    _check_invariants(_snapshot(ctx, pool, pool_config))
    ctx.emit(PoolEvent(
        Event.POOL_INITIALIZED,
        pool.control,
        {"seed": args.seed, "fee_bps": args.fee_bps, "mint_x": str(mint_x), "mint_y": str(mint_y)},
    ))
    logger.info(f"[AMM] Pool {pool.control} initialized (seed={args.seed}, fee_bps={args.fee_bps})")


# -- Deposit -----------------------------------------------------------------------

def deposit(ctx, accounts: InstructionAccounts, args: DepositArgs) -> None:
    pool_config, pool = _bind_pool(ctx, accounts)
    _bind_user_accounts(
        ctx, accounts, "depositor",
        {"x": pool_config.mint_x, "y": pool_config.mint_y, "shares": pool.share_mint},
    )
    _require_unlocked(pool_config)

    before = _snapshot(ctx, pool, pool_config)
    quote = quote_deposit(
        amount=args.amount,
        max_x=args.max_x,
        max_y=args.max_y,
        reserve_x=before.reserve_x,
        reserve_y=before.reserve_y,
        supply=before.supply,
    )
    logger.debug(f"[AMM] deposit quote {quote}")

    depositor = accounts["depositor"]
    ctx.token.create_vault(ctx, depositor, pool.share_mint)
    ctx.token.transfer(ctx, accounts["depositor_x"], pool.vault_x, quote.amount_x, depositor, ctx.signers)
    ctx.token.transfer(ctx, accounts["depositor_y"], pool.vault_y, quote.amount_y, depositor, ctx.signers)
    ctx.token.mint_to(
        ctx,
        pool.share_mint,
        accounts["depositor_shares"],
        quote.shares,
        pool.control,
        _pool_signers(ctx, pool_config),
    )

    _check_invariants(_snapshot(ctx, pool, pool_config))
    ctx.emit(PoolEvent(
        Event.LIQUIDITY_DEPOSITED,
        pool.control,
        {"shares": quote.shares, "amount_x": quote.amount_x, "amount_y": quote.amount_y},
    ))
    logger.info(
        f"[AMM] Deposit into {pool.control}: {quote.shares} shares for "
        f"({quote.amount_x}, {quote.amount_y})"
    )


# -- Withdraw ----------------------------------------------------------------------

def withdraw(ctx, accounts: InstructionAccounts, args: WithdrawArgs) -> None:
    pool_config, pool = _bind_pool(ctx, accounts)
    _bind_user_accounts(
        ctx, accounts, "withdrawer",
        {"x": pool_config.mint_x, "y": pool_config.mint_y, "shares": pool.share_mint},
    )
    _require_unlocked(pool_config)

    withdrawer = accounts["withdrawer"]
    share_account = accounts["withdrawer_shares"]
    balance = ctx.token.balance(ctx, share_account) if ctx.get(share_account) is not None else 0

    before = _snapshot(ctx, pool, pool_config)
    quote = quote_withdraw(
        shares=args.shares,
        min_x=args.min_x,
        min_y=args.min_y,
        reserve_x=before.reserve_x,
        reserve_y=before.reserve_y,
        supply=before.supply,
        balance=balance,
    )
    logger.debug(f"[AMM] withdraw quote {quote}")

    ctx.token.create_vault(ctx, withdrawer, pool_config.mint_x)
    ctx.token.create_vault(ctx, withdrawer, pool_config.mint_y)
    ctx.token.burn(ctx, share_account, pool.share_mint, quote.shares, withdrawer, ctx.signers)
    pool_signers = _pool_signers(ctx, pool_config)
    ctx.token.transfer(ctx, pool.vault_x, accounts["withdrawer_x"], quote.amount_x, pool.control, pool_signers)
    ctx.token.transfer(ctx, pool.vault_y, accounts["withdrawer_y"], quote.amount_y, pool.control, pool_signers)

    _check_invariants(_snapshot(ctx, pool, pool_config))
    ctx.emit(PoolEvent(
        Event.LIQUIDITY_WITHDRAWN,
        pool.control,
        {"shares": quote.shares, "amount_x": quote.amount_x, "amount_y": quote.amount_y},
    ))
    logger.info(
        f"[AMM] Withdraw from {pool.control}: {quote.shares} shares for "
        f"({quote.amount_x}, {quote.amount_y})"
    )


# -- Swap --------------------------------------------------------------------------

def swap(ctx, accounts: InstructionAccounts, args: SwapArgs) -> None:
    pool_config, pool = _bind_pool(ctx, accounts)
    _bind_user_accounts(ctx, accounts, "trader", {"x": pool_config.mint_x, "y": pool_config.mint_y})
    _require_unlocked(pool_config)

    before = _snapshot(ctx, pool, pool_config)
    reserve_in, reserve_out = before.reserves(args.x_to_y)
    quote = quote_exact_in(
        reserve_in=reserve_in,
        reserve_out=reserve_out,
        amount_in=args.amount_in,
        fee_bps=pool_config.fee_bps,
        slippage_bps=args.slippage_bps,
    )
    logger.debug(f"[AMM] swap quote {quote}")

    trader = accounts["trader"]
    if args.x_to_y:
        user_in, user_out = accounts["trader_x"], accounts["trader_y"]
    else:
        user_in, user_out = accounts["trader_y"], accounts["trader_x"]
    mint_out = pool_config.mint_for(not args.x_to_y)
    vault_in, vault_out = pool.vault_for(args.x_to_y), pool.vault_for(not args.x_to_y)

    ctx.token.create_vault(ctx, trader, mint_out)
    ctx.token.transfer(ctx, user_in, vault_in, quote.amount_in, trader, ctx.signers)
    ctx.token.transfer(ctx, vault_out, user_out, quote.amount_out, pool.control, _pool_signers(ctx, pool_config))

    after = _snapshot(ctx, pool, pool_config)
    k_before = before.reserve_x * before.reserve_y
    k_after = after.reserve_x * after.reserve_y
    if k_after < k_before:
        raise InvariantViolation([f"k_non_decreasing ({k_after} < {k_before})"])
    _check_invariants(after)
    ctx.emit(PoolEvent(
        Event.SWAPPED,
        pool.control,
        {
            "x_to_y": args.x_to_y,
            "amount_in": quote.amount_in,
            "fee": quote.fee,
            "amount_out": quote.amount_out,
        },
    ))
    logger.info(
        f"[AMM] Swap on {pool.control}: {quote.amount_in} in -> {quote.amount_out} out "
        f"(fee={quote.fee}, x_to_y={args.x_to_y})"
    )


# -- Lock / Unlock -----------------------------------------------------------------

def _set_locked(ctx, accounts: InstructionAccounts, locked: bool) -> None:
    pool_config, pool = _bind_pool(ctx, accounts)
    authority = accounts["authority"]
    if not pool_config.is_admin(authority):
        raise AmmError(ErrorCode.UNAUTHORIZED, f"{authority} is not the pool authority")
    _write_pool_config(ctx, pool.control, pool_config.with_locked(locked))
    ctx.emit(PoolEvent(Event.POOL_LOCKED if locked else Event.POOL_UNLOCKED, pool.control))
    logger.info(f"[AMM] Pool {pool.control} {'locked' if locked else 'unlocked'} by {authority}")


def lock(ctx, accounts: InstructionAccounts, args: NoArgs) -> None:
    _set_locked(ctx, accounts, True)


def unlock(ctx, accounts: InstructionAccounts, args: NoArgs) -> None:
    _set_locked(ctx, accounts, False)
