"""
Ledger-side collaborators: account store and token program
"""

from .ledger import Account, Ledger, LedgerError, LedgerTransaction
from .token_program import TokenError, TokenErrorCode, TokenProgram

__all__ = [
    "Account",
    "Ledger",
    "LedgerError",
    "LedgerTransaction",
    "TokenError",
    "TokenErrorCode",
    "TokenProgram",
]
