"""
Fungible-token program.

Implements the subset of the token program the AMM calls: mint creation,
associated token accounts, transfer, mint_to and burn. Records use the
byte layouts in `amm_engine.state.tokens` and are owned by `token_program_id`.

Every operation takes an account store (anything with ``get(address)`` and
``put(address, account)``, normally an `InvokeContext`) and the set of
addresses that signed, including program-derived signers.
"""

from __future__ import annotations

from enum import IntEnum, unique
from typing import AbstractSet, Optional

from loguru import logger
from solders.pubkey import Pubkey  # type: ignore[import-untyped]

from ..state.canonical import U64_MAX, LayoutError
from ..state.tokens import (
    ASSOCIATED_TOKEN_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
    Mint,
    TokenAccount,
    TokenAccountState,
    get_associated_token_address,
)
from .ledger import Account


@unique
class TokenErrorCode(IntEnum):
    INSUFFICIENT_FUNDS = 1
    INVALID_MINT = 2
    MINT_MISMATCH = 3
    OWNER_MISMATCH = 4
    ALREADY_IN_USE = 6
    OVERFLOW = 14
    ACCOUNT_NOT_FOUND = 100
    MISSING_SIGNATURE = 101
    INVALID_ACCOUNT_DATA = 102
    ACCOUNT_FROZEN = 103

    @property
    def label(self) -> str:
        return "".join(part.capitalize() for part in self.name.split("_"))


class TokenError(Exception):
    """Raised by the token program; the runtime reports it unchanged."""

    def __init__(self, code: TokenErrorCode, detail: str = "") -> None:
        self.code = code
        self.detail = detail
        super().__init__(f"{code.label}: {detail}" if detail else code.label)


class TokenProgram:
    def __init__(
        self,
        *,
        program_id: Pubkey = TOKEN_PROGRAM_ID,
        associated_token_program_id: Pubkey = ASSOCIATED_TOKEN_PROGRAM_ID,
    ) -> None:
        self.program_id = program_id
        self.associated_token_program_id = associated_token_program_id

    # -- Loading ----------------------------------------------------------------

    def load_mint(self, store, address: Pubkey) -> Mint:
        account = store.get(address)
        if account is None:
            raise TokenError(TokenErrorCode.ACCOUNT_NOT_FOUND, f"mint {address}")
        if account.owner != self.program_id:
            raise TokenError(TokenErrorCode.INVALID_MINT, f"{address} is not owned by the token program")
        try:
            return Mint.unpack(account.data)
        except LayoutError as exc:
            raise TokenError(TokenErrorCode.INVALID_MINT, f"{address}: {exc}") from exc

    def load_account(self, store, address: Pubkey) -> TokenAccount:
        account = store.get(address)
        if account is None:
            raise TokenError(TokenErrorCode.ACCOUNT_NOT_FOUND, f"token account {address}")
        if account.owner != self.program_id:
            raise TokenError(
                TokenErrorCode.INVALID_ACCOUNT_DATA,
                f"{address} is not owned by the token program",
            )
        try:
            return TokenAccount.unpack(account.data)
        except LayoutError as exc:
            raise TokenError(TokenErrorCode.INVALID_ACCOUNT_DATA, f"{address}: {exc}") from exc

    def balance(self, store, address: Pubkey) -> int:
        return self.load_account(store, address).amount

    def _store_mint(self, store, address: Pubkey, mint: Mint) -> None:
        store.put(address, Account(owner=self.program_id, data=mint.pack()))

    def _store_account(self, store, address: Pubkey, token_account: TokenAccount) -> None:
        store.put(address, Account(owner=self.program_id, data=token_account.pack()))

    # -- Creation ---------------------------------------------------------------

    def initialize_mint(
        self,
        store,
        address: Pubkey,
        *,
        mint_authority: Pubkey,
        decimals: int,
        freeze_authority: Optional[Pubkey] = None,
    ) -> Mint:
        if store.get(address) is not None:
            raise TokenError(TokenErrorCode.ALREADY_IN_USE, f"mint {address}")
        mint = Mint(
            mint_authority=mint_authority,
            supply=0,
            decimals=decimals,
            freeze_authority=freeze_authority,
        )
        self._store_mint(store, address, mint)
        logger.debug(f"[TOKEN] Mint {address} initialized (decimals={decimals}, authority={mint_authority})")
        return mint

    def create_mint(self, store, *, mint_authority: Pubkey, decimals: int) -> Pubkey:
        """Create a mint at a fresh address and return the address."""
        address = Pubkey.new_unique()
        self.initialize_mint(store, address, mint_authority=mint_authority, decimals=decimals)
        return address

    def associated_address(self, owner: Pubkey, mint: Pubkey) -> Pubkey:
        return get_associated_token_address(
            owner,
            mint,
            token_program_id=self.program_id,
            associated_token_program_id=self.associated_token_program_id,
        )

    def create_vault(self, store, owner: Pubkey, mint: Pubkey) -> Pubkey:
        """
        Create the associated token account for (owner, mint).

        Idempotent: an existing, matching account is left untouched. An
        existing account bound to another owner or mint is rejected.
        """
        self.load_mint(store, mint)
        address = self.associated_address(owner, mint)
        if store.get(address) is not None:
            existing = self.load_account(store, address)
            if existing.mint != mint:
                raise TokenError(TokenErrorCode.MINT_MISMATCH, f"{address} holds {existing.mint}")
            if existing.owner != owner:
                raise TokenError(TokenErrorCode.OWNER_MISMATCH, f"{address} is owned by {existing.owner}")
            return address
        self._store_account(store, address, TokenAccount(mint=mint, owner=owner))
        logger.debug(f"[TOKEN] Associated account {address} created for owner={owner} mint={mint}")
        return address

    # -- Movement ---------------------------------------------------------------

    @staticmethod
    def _require_signer(authority: Pubkey, signers: AbstractSet[Pubkey]) -> None:
        if authority not in signers:
            raise TokenError(TokenErrorCode.MISSING_SIGNATURE, f"{authority} did not sign")

    @staticmethod
    def _require_amount(amount: int) -> None:
        if not isinstance(amount, int) or isinstance(amount, bool):
            raise TypeError("amount must be an int")
        if not (0 <= amount <= U64_MAX):
            raise TokenError(TokenErrorCode.OVERFLOW, f"amount does not fit in u64: {amount}")

    @staticmethod
    def _require_not_frozen(address: Pubkey, token_account: TokenAccount) -> None:
        if token_account.state == TokenAccountState.FROZEN:
            raise TokenError(TokenErrorCode.ACCOUNT_FROZEN, str(address))

    def transfer(
        self,
        store,
        source: Pubkey,
        destination: Pubkey,
        amount: int,
        authority: Pubkey,
        signers: AbstractSet[Pubkey],
    ) -> None:
        self._require_amount(amount)
        src = self.load_account(store, source)
        dst = self.load_account(store, destination)
        self._require_not_frozen(source, src)
        self._require_not_frozen(destination, dst)
        if src.mint != dst.mint:
            raise TokenError(TokenErrorCode.MINT_MISMATCH, f"{src.mint} != {dst.mint}")
        if src.owner != authority:
            raise TokenError(TokenErrorCode.OWNER_MISMATCH, f"{source} is owned by {src.owner}")
        self._require_signer(authority, signers)
        if src.amount < amount:
            raise TokenError(
                TokenErrorCode.INSUFFICIENT_FUNDS,
                f"{source} holds {src.amount}, needs {amount}",
            )
        if source == destination:
            return
        if dst.amount + amount > U64_MAX:
            raise TokenError(TokenErrorCode.OVERFLOW, f"{destination} balance overflow")
        self._store_account(store, source, src.with_amount(src.amount - amount))
        self._store_account(store, destination, dst.with_amount(dst.amount + amount))
        logger.debug(f"[TOKEN] transfer {amount} {source} -> {destination}")

    def mint_to(
        self,
        store,
        mint_address: Pubkey,
        destination: Pubkey,
        amount: int,
        authority: Pubkey,
        signers: AbstractSet[Pubkey],
    ) -> None:
        self._require_amount(amount)
        mint = self.load_mint(store, mint_address)
        dst = self.load_account(store, destination)
        self._require_not_frozen(destination, dst)
        if dst.mint != mint_address:
            raise TokenError(TokenErrorCode.MINT_MISMATCH, f"{destination} holds {dst.mint}")
        if mint.mint_authority is None or mint.mint_authority != authority:
            raise TokenError(TokenErrorCode.OWNER_MISMATCH, f"{authority} is not the mint authority")
        self._require_signer(authority, signers)
        if mint.supply + amount > U64_MAX:
            raise TokenError(TokenErrorCode.OVERFLOW, f"supply of {mint_address} overflows")
        self._store_mint(store, mint_address, mint.with_supply(mint.supply + amount))
        self._store_account(store, destination, dst.with_amount(dst.amount + amount))
        logger.debug(f"[TOKEN] mint_to {amount} {mint_address} -> {destination}")

    def burn(
        self,
        store,
        source: Pubkey,
        mint_address: Pubkey,
        amount: int,
        authority: Pubkey,
        signers: AbstractSet[Pubkey],
    ) -> None:
        self._require_amount(amount)
        src = self.load_account(store, source)
        mint = self.load_mint(store, mint_address)
        self._require_not_frozen(source, src)
        if src.mint != mint_address:
            raise TokenError(TokenErrorCode.MINT_MISMATCH, f"{source} holds {src.mint}")
        if src.owner != authority:
            raise TokenError(TokenErrorCode.OWNER_MISMATCH, f"{source} is owned by {src.owner}")
        self._require_signer(authority, signers)
        if src.amount < amount:
            raise TokenError(
                TokenErrorCode.INSUFFICIENT_FUNDS,
                f"{source} holds {src.amount}, burns {amount}",
            )
        self._store_account(store, source, src.with_amount(src.amount - amount))
        self._store_mint(store, mint_address, mint.with_supply(mint.supply - amount))
        logger.debug(f"[TOKEN] burn {amount} {mint_address} from {source}")
