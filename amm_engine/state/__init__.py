"""
On-ledger record layouts for the AMM engine
"""

from .pools import Authority, NoAuthority, PoolAuthority, PoolConfig, authority_from_option
from .tokens import (
    ASSOCIATED_TOKEN_PROGRAM_ID,
    SYSTEM_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
    Mint,
    TokenAccount,
    get_associated_token_address,
)

__all__ = [
    "Authority",
    "NoAuthority",
    "PoolAuthority",
    "PoolConfig",
    "authority_from_option",
    "ASSOCIATED_TOKEN_PROGRAM_ID",
    "SYSTEM_PROGRAM_ID",
    "TOKEN_PROGRAM_ID",
    "Mint",
    "TokenAccount",
    "get_associated_token_address",
]
