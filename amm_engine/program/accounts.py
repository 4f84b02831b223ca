"""
Account-list validation shared by every handler.

Accounts arrive as an ordered list of ``AccountMeta``. `parse_accounts` maps
them onto the roles in `ACCOUNT_ROLES`, and the `require_*` helpers compare
each supplied address with the value the program derives itself. Nothing here
writes to the ledger, so every binding check completes before any handler
effect.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence

from solders.instruction import AccountMeta  # type: ignore[import-untyped]
from solders.pubkey import Pubkey  # type: ignore[import-untyped]

from ..config import ProgramConfig
from ..core.addresses import PoolAddresses
from ..core.errors import AmmError, ErrorCode
from ..state.canonical import LayoutError
from ..state.pools import PoolConfig
from .instructions import ACCOUNT_ROLES
from .types import InstructionKind


@dataclass(frozen=True)
class InstructionAccounts:
    kind: InstructionKind
    keys: Mapping[str, Pubkey]

    def __getitem__(self, role: str) -> Pubkey:
        return self.keys[role]


def _invalid(detail: str) -> AmmError:
    return AmmError(ErrorCode.INVALID_ACCOUNT, detail)


def parse_accounts(
    kind: InstructionKind,
    metas: Sequence[AccountMeta],
    config: ProgramConfig,
) -> InstructionAccounts:
    """
    Bind the ordered account list to named roles.

    Raises AmmError with InvalidAccount (too few accounts, a required
    writable flag missing, a wrong program id) or MissingSignature.
    """
    roles = ACCOUNT_ROLES[kind]
    if len(metas) < len(roles):
        raise _invalid(f"{kind.value} needs {len(roles)} accounts, got {len(metas)}")

    keys: dict[str, Pubkey] = {}
    for (role, is_signer, is_writable), meta in zip(roles, metas):
        if is_signer and not meta.is_signer:
            raise AmmError(ErrorCode.MISSING_SIGNATURE, f"{role} must sign")
        if is_writable and not meta.is_writable:
            raise _invalid(f"{role} must be writable")
        keys[role] = meta.pubkey

    expected_programs = {
        "token_program": config.token_program_id,
        "associated_token_program": config.associated_token_program_id,
        "system_program": config.system_program_id,
    }
    for role, program_id in expected_programs.items():
        if role in keys and keys[role] != program_id:
            raise _invalid(f"{role} must be {program_id}, got {keys[role]}")

    return InstructionAccounts(kind=kind, keys=keys)


def require_address(role: str, supplied: Pubkey, expected: Pubkey) -> None:
    if supplied != expected:
        raise _invalid(f"{role}: expected {expected}, got {supplied}")


def require_pool_addresses(accounts: InstructionAccounts, pool: PoolAddresses) -> None:
    """Compare every derived pool account the instruction names."""
    for role in ("control", "share_mint", "vault_x", "vault_y"):
        if role in accounts.keys:
            require_address(role, accounts[role], getattr(pool, role))


def load_pool_config(store, address: Pubkey, program_id: Pubkey) -> PoolConfig:
    """
    Decode the control record at `address`.

    The record must exist, be owned by this program and carry the
    PoolConfig discriminator; otherwise InvalidAccount.
    """
    account = store.get(address)
    if account is None:
        raise _invalid(f"control record {address} does not exist")
    if account.owner != program_id:
        raise _invalid(f"control record {address} is owned by {account.owner}")
    try:
        return PoolConfig.unpack(account.data)
    except LayoutError as exc:
        raise _invalid(f"control record {address}: {exc}") from exc
