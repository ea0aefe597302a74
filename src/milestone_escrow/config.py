"""Milestone escrow configuration constants.

Fee rates are expressed on a 1/10000 scale: 100 == 1%.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

# Fee model
FEE_DENOMINATOR = 10_000
MIN_PLATFORM_FEE_PERCENT = 100  # 1%

# Amounts are unsigned 256-bit integers
U256_MAX = (1 << 256) - 1

# Identities are 32-byte account addresses
IDENTITY_LEN = 32


def _hex_identity(value: Optional[str]) -> Optional[bytes]:
    if not value:
        return None
    v = value[2:] if value.startswith(("0x", "0X")) else value
    raw = bytes.fromhex(v)
    if len(raw) != IDENTITY_LEN:
        raise ValueError(f"identity must be {IDENTITY_LEN} bytes, got {len(raw)}")
    return raw


@dataclass
class LedgerConfig:
    """Deployment settings for an escrow ledger instance."""
    owner: Optional[bytes] = None
    # Custody account that holds escrowed funds and uncollected fees.
    escrow_address: Optional[bytes] = None
    verbose: bool = False

    @classmethod
    def from_env(cls) -> "LedgerConfig":
        """Load configuration from environment variables."""
        config = cls()
        config.owner = _hex_identity(os.environ.get("ESCROW_OWNER"))
        config.escrow_address = _hex_identity(os.environ.get("ESCROW_ADDRESS"))
        config.verbose = os.environ.get("ESCROW_VERBOSE", "").lower() in ("true", "1", "yes")
        return config
