"""
Transaction runtime.

Runs a list of instructions atomically against a `Ledger`:

1. Every signer-flagged account must belong to a keypair that signed.
2. Each instruction runs against one `InvokeContext` over a shared staged
   `LedgerTransaction`; writes are only allowed to writable-flagged accounts.
3. If every instruction succeeds the stage is committed, otherwise it is
   discarded and the ledger is unchanged.

Transactions are serialized with a lock, so instructions touching the same
accounts never interleave.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import AbstractSet, Iterable, List, Optional, Sequence

from loguru import logger
from solders.instruction import AccountMeta, Instruction  # type: ignore[import-untyped]
from solders.keypair import Keypair  # type: ignore[import-untyped]
from solders.pubkey import Pubkey  # type: ignore[import-untyped]

from ..config import ProgramConfig
from ..core.errors import AmmError, ErrorCode
from ..program.processor import process_instruction
from ..program.types import PoolEvent
from .ledger import Account, Ledger, LedgerError, LedgerTransaction
from .token_program import TokenError, TokenProgram


class RuntimeFault(Exception):
    """A transaction broke a runtime rule (unknown program, write to a read-only account)."""


@dataclass(frozen=True)
class TransactionResult:
    ok: bool
    error: Optional[str] = None
    code: Optional[int] = None
    events: tuple[PoolEvent, ...] = field(default_factory=tuple)


class InvokeContext:
    """What one instruction may see and do."""

    def __init__(
        self,
        *,
        tx: LedgerTransaction,
        config: ProgramConfig,
        token: TokenProgram,
        accounts: Sequence[AccountMeta],
        signers: AbstractSet[Pubkey],
    ) -> None:
        self._tx = tx
        self.config = config
        self.token = token
        self.accounts = list(accounts)
        self.signers = frozenset(signers)
        self._writable = frozenset(meta.pubkey for meta in self.accounts if meta.is_writable)
        self.events: List[PoolEvent] = []

    def get(self, address: Pubkey) -> Optional[Account]:
        return self._tx.get(address)

    def put(self, address: Pubkey, account: Account) -> None:
        if address not in self._writable:
            raise RuntimeFault(f"account {address} is not writable in this instruction")
        self._tx.put(address, account)

    def signed_with(self, seeds: Sequence[bytes]) -> frozenset[Pubkey]:
        """Signer set extended with the program-derived address of `seeds`."""
        return self.signers | {Pubkey.create_program_address(list(seeds), self.config.program_id)}

    def emit(self, event: PoolEvent) -> None:
        self.events.append(event)


class Runtime:
    def __init__(self, config: Optional[ProgramConfig] = None, ledger: Optional[Ledger] = None) -> None:
        self.config = config if config is not None else ProgramConfig()
        self.ledger = ledger if ledger is not None else Ledger()
        self.token = TokenProgram(
            program_id=self.config.token_program_id,
            associated_token_program_id=self.config.associated_token_program_id,
        )
        self._lock = threading.Lock()

    # -- Transactions ------------------------------------------------------------

    def _execute(self, instructions: Sequence[Instruction], signers: Iterable[Keypair]) -> List[PoolEvent]:
        signer_keys = frozenset(kp.pubkey() for kp in signers)
        events: List[PoolEvent] = []
        with self._lock, self.ledger.transaction() as tx:
            for index, ix in enumerate(instructions):
                if ix.program_id != self.config.program_id:
                    raise RuntimeFault(f"instruction {index}: unknown program {ix.program_id}")
                for meta in ix.accounts:
                    if meta.is_signer and meta.pubkey not in signer_keys:
                        raise AmmError(ErrorCode.MISSING_SIGNATURE, f"{meta.pubkey} did not sign")
                ctx = InvokeContext(
                    tx=tx,
                    config=self.config,
                    token=self.token,
                    accounts=ix.accounts,
                    signers=signer_keys,
                )
                try:
                    process_instruction(ctx, bytes(ix.data))
                except (AmmError, TokenError, RuntimeFault, LedgerError):
                    logger.debug(f"[RUNTIME] Instruction {index} of {len(instructions)} failed, rolling back")
                    raise
                events.extend(ctx.events)
        return events

    def send(self, instructions: Sequence[Instruction], signers: Iterable[Keypair]) -> TransactionResult:
        """Run `instructions` atomically; rejections are returned, not raised."""
        try:
            events = self._execute(instructions, signers)
        except (AmmError, TokenError) as exc:
            logger.warning(f"[RUNTIME] Transaction rejected: {exc}")
            return TransactionResult(
                ok=False,
                error=str(exc),
                code=int(exc.code),
            )
        except (RuntimeFault, LedgerError) as exc:
            logger.warning(f"[RUNTIME] Transaction faulted: {exc}")
            return TransactionResult(
                ok=False,
                error=str(exc),
            )
        logger.debug(f"[RUNTIME] Transaction committed ({len(instructions)} instructions, {len(events)} events)")
        return TransactionResult(ok=True, events=tuple(events))

    def send_or_raise(self, instructions: Sequence[Instruction], signers: Iterable[Keypair]) -> TransactionResult:
        """Like ``send()`` but raises the rejecting exception."""
        events = self._execute(instructions, signers)
        return TransactionResult(ok=True, events=tuple(events))

    # -- Token setup -------------------------------------------------------------

    def create_mint(self, authority: Pubkey, decimals: int = 6) -> Pubkey:
        with self._lock, self.ledger.transaction() as tx:
            return self.token.create_mint(tx, mint_authority=authority, decimals=decimals)

    def create_token_account(self, owner: Pubkey, mint: Pubkey) -> Pubkey:
        with self._lock, self.ledger.transaction() as tx:
            return self.token.create_vault(tx, owner, mint)

    def mint_to(self, mint: Pubkey, owner: Pubkey, amount: int, authority: Keypair) -> Pubkey:
        """Mint `amount` into the owner's associated account, creating it if needed."""
        with self._lock, self.ledger.transaction() as tx:
            destination = self.token.create_vault(tx, owner, mint)
            self.token.mint_to(tx, mint, destination, amount, authority.pubkey(), {authority.pubkey()})
        return destination

    # -- Reads -------------------------------------------------------------------

    def account(self, address: Pubkey) -> Optional[Account]:
        return self.ledger.get(address)

    def balance(self, address: Pubkey) -> int:
        return self.token.balance(self.ledger, address)

    def token_balance(self, owner: Pubkey, mint: Pubkey) -> int:
        """Balance of the owner's associated account, 0 when it does not exist."""
        address = self.token.associated_address(owner, mint)
        if not self.ledger.exists(address):
            return 0
        return self.token.balance(self.ledger, address)

    def supply(self, mint: Pubkey) -> int:
        return self.token.load_mint(self.ledger, mint).supply
