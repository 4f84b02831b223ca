"""
Program configuration.

One `ProgramConfig` describes a deployment: the AMM program's own id, the
ids of the programs it calls, and the decimals given to new share mints.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from solders.pubkey import Pubkey  # type: ignore[import-untyped]

from .state.canonical import U8_MAX
from .state.tokens import ASSOCIATED_TOKEN_PROGRAM_ID, SYSTEM_PROGRAM_ID, TOKEN_PROGRAM_ID


AMM_PROGRAM_ID = Pubkey.from_string("F6fw4LXZ9rUVSg87TtiRoohgauevgcRkLRa5nW2tj1Mg")

DEFAULT_LP_DECIMALS = 6


@dataclass(frozen=True)
class ProgramConfig:
    program_id: Pubkey = AMM_PROGRAM_ID
    lp_decimals: int = DEFAULT_LP_DECIMALS
    token_program_id: Pubkey = field(default=TOKEN_PROGRAM_ID)
    associated_token_program_id: Pubkey = field(default=ASSOCIATED_TOKEN_PROGRAM_ID)
    system_program_id: Pubkey = field(default=SYSTEM_PROGRAM_ID)

    def __post_init__(self) -> None:
        for name in ("program_id", "token_program_id", "associated_token_program_id", "system_program_id"):
            if not isinstance(getattr(self, name), Pubkey):
                raise TypeError(f"{name} must be a Pubkey")
        if not isinstance(self.lp_decimals, int) or isinstance(self.lp_decimals, bool):
            raise TypeError("lp_decimals must be an int")
        if not (0 <= self.lp_decimals <= U8_MAX):
            raise ValueError(f"lp_decimals must be a u8: {self.lp_decimals}")
        ids = {
            self.program_id,
            self.token_program_id,
            self.associated_token_program_id,
            self.system_program_id,
        }
        if len(ids) != 4:
            raise ValueError("program ids must be distinct")
