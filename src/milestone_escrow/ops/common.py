"""Helpers shared by the lifecycle operations."""

from __future__ import annotations

from typing import Type, TypeVar

from ..assets import AssetGateway
from ..config import IDENTITY_LEN, U256_MAX
from ..errors import ErrorCode, EscrowError
from ..types import AssetKind, Call, EscrowState, Event, NativeAsset, TokenAsset

P = TypeVar("P")


def payload_as(call: Call, cls: Type[P]) -> P:
    if not isinstance(call.payload, cls):
        raise EscrowError(
            ErrorCode.INVALID_PAYLOAD,
            f"{call.call_type.value} payload must be {cls.__name__}",
        )
    return call.payload


def check_identity(value: object, name: str) -> None:
    if not isinstance(value, bytes) or len(value) != IDENTITY_LEN:
        raise EscrowError(ErrorCode.INVALID_ADDRESS, f"{name} must be {IDENTITY_LEN} bytes")


def check_asset(asset: object) -> None:
    if isinstance(asset, NativeAsset):
        return
    if isinstance(asset, TokenAsset):
        check_identity(asset.address, "token address")
        return
    raise EscrowError(ErrorCode.INVALID_PAYLOAD, "unknown asset kind")


def check_amount(amount: object, name: str) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise EscrowError(ErrorCode.INVALID_AMOUNT, f"{name} must be int")
    if amount < 0 or amount > U256_MAX:
        raise EscrowError(ErrorCode.INVALID_AMOUNT, f"{name} out of range")


def check_supplied_value(asset: AssetKind, value: int, amount: int) -> None:
    """Native settlement must attach exactly ``amount``; token settlement attaches nothing."""
    expected = amount if isinstance(asset, NativeAsset) else 0
    if value != expected:
        raise EscrowError(ErrorCode.INCORRECT_VALUE_SENT, "incorrect native currency value sent")


def pull_in(state: EscrowState, gateway: AssetGateway, asset: AssetKind, payer: bytes, amount: int) -> None:
    """Collect ``amount`` into custody.

    Native value was already moved into custody with the call itself.
    """
    if isinstance(asset, NativeAsset):
        return
    if not gateway.transfer_from(state, asset, payer, state.address, amount):
        raise EscrowError(ErrorCode.TRANSFER_FAILED, "token transfer failed")


def pay_out(state: EscrowState, gateway: AssetGateway, asset: AssetKind, to: bytes, amount: int) -> None:
    if not gateway.transfer(state, asset, to, amount):
        raise EscrowError(ErrorCode.TRANSFER_FAILED, f"{asset} transfer failed")


def emit(state: EscrowState, event: Event) -> None:
    state.events.append(event)
