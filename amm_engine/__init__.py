"""
Constant-product AMM engine: pool accounts, liquidity shares and swaps
"""

from .config import AMM_PROGRAM_ID, ProgramConfig
from .core.errors import AmmError, ErrorCode

__version__ = "0.1.0"

__all__ = [
    "AMM_PROGRAM_ID",
    "ProgramConfig",
    "AmmError",
    "ErrorCode",
    "__version__",
]
