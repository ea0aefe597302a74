"""Platform fee withdrawal operations."""

from __future__ import annotations

from ..access import require_owner
from ..assets import AssetGateway
from ..errors import ErrorCode, EscrowError
from ..fee_ledger import take_all
from ..types import Call, CallType, EscrowState, Event, EventKind, WithdrawPayload
from .common import check_asset, emit, payload_as, pay_out


def verify(state: EscrowState, call: Call) -> None:
    if call.call_type != CallType.WITHDRAW_PLATFORM_FUNDS:
        raise EscrowError(ErrorCode.INVALID_TYPE, f"unsupported platform call type: {call.call_type}")
    p = payload_as(call, WithdrawPayload)
    require_owner(state, call.caller)
    check_asset(p.asset)


def apply(state: EscrowState, call: Call, gateway: AssetGateway) -> EscrowState:
    asset = call.payload.asset
    # Balance is zero before control passes to the owner.
    amount = take_all(state, asset)

    if amount > 0:
        pay_out(state, gateway, asset, call.caller, amount)

    emit(state, Event(kind=EventKind.PLATFORM_WITHDRAWAL, asset=asset, amount=amount))
    return state
