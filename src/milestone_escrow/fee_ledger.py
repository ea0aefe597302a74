"""Platform fee ledger: per-asset accumulator of undistributed fees."""

from __future__ import annotations

from .config import FEE_DENOMINATOR, U256_MAX
from .errors import ErrorCode, EscrowError
from .types import AssetKind, EscrowState


def compute_fee(total_amount: int, fee_percent: int) -> int:
    """fee = total_amount * fee_percent / 10000, truncating."""
    return total_amount * fee_percent // FEE_DENOMINATOR


def credit_fee(state: EscrowState, asset: AssetKind, amount: int) -> None:
    if amount < 0:
        raise EscrowError(ErrorCode.INVALID_AMOUNT, "fee amount negative")
    current = state.platform_funds.get(asset, 0)
    if current + amount > U256_MAX:
        raise EscrowError(ErrorCode.OVERFLOW, "platform funds overflow")
    state.platform_funds[asset] = current + amount


def take_all(state: EscrowState, asset: AssetKind) -> int:
    """Read and zero the balance for ``asset``; the caller pays it out."""
    amount = state.platform_funds.get(asset, 0)
    state.platform_funds[asset] = 0
    return amount


def platform_funds(state: EscrowState, asset: AssetKind) -> int:
    return state.platform_funds.get(asset, 0)


def platform_balances(state: EscrowState) -> dict[AssetKind, int]:
    return dict(state.platform_funds)
