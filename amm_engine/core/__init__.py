"""
Pure pool logic: errors, checked math, derived addresses, liquidity and swap pricing.
"""

from .addresses import PoolAddresses, control_address, share_mint_address, vault_address
from .cpmm import SwapQuote, quote_exact_in
from .errors import AmmError, ErrorCode, InvariantViolation
from .invariants import PoolSnapshot, check_all
from .liquidity import DepositQuote, WithdrawQuote, quote_deposit, quote_withdraw

__all__ = [
    "PoolAddresses",
    "control_address",
    "share_mint_address",
    "vault_address",
    "SwapQuote",
    "quote_exact_in",
    "AmmError",
    "ErrorCode",
    "InvariantViolation",
    "PoolSnapshot",
    "check_all",
    "DepositQuote",
    "WithdrawQuote",
    "quote_deposit",
    "quote_withdraw",
]
