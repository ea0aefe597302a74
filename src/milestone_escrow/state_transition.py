"""State transition entrypoints for the milestone escrow ledger."""

from __future__ import annotations

import logging
from copy import deepcopy
from typing import Optional

from .assets import AssetGateway, LedgerGateway, balance_of, move
from .errors import ErrorCode, EscrowError
from .ops import cancel as op_cancel
from .ops import milestone as op_milestone
from .ops import platform as op_platform
from .ops import project as op_project
from .ops.common import check_amount, check_identity
from .types import NATIVE, Call, CallType, EscrowState

logger = logging.getLogger(__name__)

_PROJECT_TYPES = frozenset({
    CallType.CREATE_PROJECT,
    CallType.EXECUTOR_INITIATE_PROJECT,
    CallType.FUND_PROJECT,
})

_PAYABLE_TYPES = frozenset({
    CallType.CREATE_PROJECT,
    CallType.FUND_PROJECT,
})


class TransitionResult:
    """Thin wrapper for verify/apply results."""

    def __init__(self, ok: bool, error: Optional[EscrowError] = None):
        self.ok = ok
        self.error = error

    @classmethod
    def success(cls) -> "TransitionResult":
        return cls(True, None)

    @classmethod
    def failure(cls, error: EscrowError) -> "TransitionResult":
        return cls(False, error)


def _dispatch_verify(state: EscrowState, call: Call) -> None:
    ct = call.call_type
    if ct in _PROJECT_TYPES:
        return op_project.verify(state, call)
    if ct == CallType.CONFIRM_MILESTONE:
        return op_milestone.verify(state, call)
    if ct == CallType.CANCEL_PROJECT:
        return op_cancel.verify(state, call)
    if ct == CallType.WITHDRAW_PLATFORM_FUNDS:
        return op_platform.verify(state, call)

    raise EscrowError(ErrorCode.NOT_IMPLEMENTED, f"verify not implemented for {call.call_type}")


def _dispatch_apply(state: EscrowState, call: Call, gateway: AssetGateway) -> EscrowState:
    ct = call.call_type
    if ct in _PROJECT_TYPES:
        return op_project.apply(state, call, gateway)
    if ct == CallType.CONFIRM_MILESTONE:
        return op_milestone.apply(state, call, gateway)
    if ct == CallType.CANCEL_PROJECT:
        return op_cancel.apply(state, call, gateway)
    if ct == CallType.WITHDRAW_PLATFORM_FUNDS:
        return op_platform.apply(state, call, gateway)

    raise EscrowError(ErrorCode.NOT_IMPLEMENTED, f"apply not implemented for {call.call_type}")


def _verify_common(state: EscrowState, call: Call) -> None:
    if not isinstance(call.call_type, CallType):
        raise EscrowError(ErrorCode.INVALID_TYPE, "unknown call type")
    check_identity(call.caller, "caller")
    check_amount(call.value, "value")

    if call.value and call.call_type not in _PAYABLE_TYPES:
        raise EscrowError(ErrorCode.VALUE_NOT_ACCEPTED, f"{call.call_type.value} is not payable")

    if balance_of(state.assets, NATIVE, call.caller) < call.value:
        raise EscrowError(ErrorCode.INSUFFICIENT_BALANCE, "insufficient native balance for value")


def _attach_value(state: EscrowState, call: Call) -> None:
    """Move the attached native value into custody, as a payable call does."""
    if call.value:
        move(state.assets, NATIVE, call.caller, state.address, call.value)


def verify_call(state: EscrowState, call: Call) -> TransitionResult:
    """Authorization, validation and state checks without side effects."""
    try:
        _verify_common(state, call)
        _dispatch_verify(state, call)
        return TransitionResult.success()
    except EscrowError as exc:
        return TransitionResult.failure(exc)


def _execute(state: EscrowState, call: Call, gateway: AssetGateway) -> EscrowState:
    _attach_value(state, call)
    return _dispatch_apply(state, call, gateway)


def apply_call(
    state: EscrowState, call: Call, gateway: Optional[AssetGateway] = None
) -> tuple[EscrowState, TransitionResult]:
    """Apply a call after verification.

    Failed-call semantics:
    - Pre-validation failure: state unchanged
    - Execution failure (e.g. a declined transfer): state unchanged, including
      any mutation made before the failure
    """
    if gateway is None:
        gateway = LedgerGateway()

    try:
        _verify_common(state, call)
        _dispatch_verify(state, call)
    except EscrowError as exc:
        logger.debug("%s rejected: %s", call.call_type, exc)
        return state, TransitionResult.failure(exc)

    working = deepcopy(state)
    try:
        working = _execute(working, call, gateway)
    except EscrowError as exc:
        logger.debug("%s failed during execution: %s", call.call_type, exc)
        return state, TransitionResult.failure(exc)

    logger.debug("%s applied by %s", call.call_type, call.caller.hex())
    return working, TransitionResult.success()


def reenter(state: EscrowState, call: Call, gateway: AssetGateway) -> TransitionResult:
    """Run a nested call against an in-flight state, in place.

    Used by receive hooks that call back into the ledger while a transfer is
    pending. A failed nested call leaves ``state`` as it was before the call.
    """
    try:
        _verify_common(state, call)
        _dispatch_verify(state, call)
    except EscrowError as exc:
        logger.debug("re-entrant %s rejected: %s", call.call_type, exc)
        return TransitionResult.failure(exc)

    snapshot = deepcopy(state)
    try:
        _execute(state, call, gateway)
    except EscrowError as exc:
        logger.debug("re-entrant %s failed during execution: %s", call.call_type, exc)
        state.restore(snapshot)
        return TransitionResult.failure(exc)
    return TransitionResult.success()


def apply_batch(
    state: EscrowState, calls: list[Call], gateway: Optional[AssetGateway] = None
) -> tuple[EscrowState, TransitionResult]:
    """Apply calls in order (batch-atomic semantics).

    If any call fails, the entire batch is rejected and the state is
    unchanged.
    """
    working = state
    for call in calls:
        working, result = apply_call(working, call, gateway)
        if not result.ok:
            return state, result
    return working, TransitionResult.success()
