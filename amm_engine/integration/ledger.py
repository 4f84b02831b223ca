"""
In-process account ledger.

The ledger is a flat map from address to `Account`. All mutation goes through
a `LedgerTransaction`: writes are staged in an overlay, reads fall through to
committed state, and nothing becomes visible until `commit()`. A transaction
used as a context manager commits on clean exit and discards its overlay when
the block raises.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from solders.pubkey import Pubkey  # type: ignore[import-untyped]


@dataclass(frozen=True)
class Account:
    """One ledger record: its owning program, raw bytes and executable flag."""

    owner: Pubkey
    data: bytes = b""
    executable: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.owner, Pubkey):
            raise TypeError("owner must be a Pubkey")
        if not isinstance(self.data, (bytes, bytearray)):
            raise TypeError("data must be bytes")
        object.__setattr__(self, "data", bytes(self.data))


class LedgerError(Exception):
    pass


class Ledger:
    def __init__(self) -> None:
        self._accounts: Dict[Pubkey, Account] = {}

    def get(self, address: Pubkey) -> Optional[Account]:
        return self._accounts.get(address)

    def exists(self, address: Pubkey) -> bool:
        return address in self._accounts

    def set_account(self, address: Pubkey, account: Account) -> None:
        """Write directly to committed state (genesis setup only)."""
        self._accounts[address] = account

    def __len__(self) -> int:
        return len(self._accounts)

    def transaction(self) -> "LedgerTransaction":
        return LedgerTransaction(self)


class LedgerTransaction:
    """Staged view over a `Ledger`."""

    def __init__(self, ledger: Ledger) -> None:
        self._ledger = ledger
        self._staged: Dict[Pubkey, Account] = {}
        self._closed = False

    def _require_open(self) -> None:
        if self._closed:
            raise LedgerError("transaction already closed")

    def get(self, address: Pubkey) -> Optional[Account]:
        self._require_open()
        staged = self._staged.get(address)
        if staged is not None:
            return staged
        return self._ledger.get(address)

    def exists(self, address: Pubkey) -> bool:
        return self.get(address) is not None

    def put(self, address: Pubkey, account: Account) -> None:
        self._require_open()
        if not isinstance(account, Account):
            raise TypeError("account must be an Account")
        self._staged[address] = account

    def commit(self) -> None:
        self._require_open()
        for address, account in self._staged.items():
            self._ledger.set_account(address, account)
        self._staged.clear()
        self._closed = True

    def rollback(self) -> None:
        self._staged.clear()
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "LedgerTransaction":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.closed:
            return
        if exc_type is None:
            self.commit()
        else:
            self.rollback()
