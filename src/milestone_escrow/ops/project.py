"""Project creation and funding operations.

Two creation paths exist. CREATE_PROJECT is called by the client, who
settles the full budget in the same call; the platform fee is charged at
once and the project starts funded. EXECUTOR_INITIATE_PROJECT is called by
the executor and only records the terms; the designated client settles
later through FUND_PROJECT.
"""

from __future__ import annotations

from ..access import require_client
from ..assets import AssetGateway
from ..config import MIN_PLATFORM_FEE_PERCENT
from ..errors import ErrorCode, EscrowError
from ..fee_ledger import compute_fee, credit_fee
from ..registry import get_project, register_project
from ..types import (
    Call,
    CallType,
    CreateProjectPayload,
    EscrowState,
    Event,
    EventKind,
    ProjectPayload,
)
from .common import (
    check_amount,
    check_asset,
    check_identity,
    check_supplied_value,
    emit,
    payload_as,
    pull_in,
)

_CREATE_TYPES = frozenset({
    CallType.CREATE_PROJECT,
    CallType.EXECUTOR_INITIATE_PROJECT,
})


def verify(state: EscrowState, call: Call) -> None:
    ct = call.call_type
    if ct in _CREATE_TYPES:
        _verify_create(state, call, payload_as(call, CreateProjectPayload))
    elif ct == CallType.FUND_PROJECT:
        _verify_fund(state, call, payload_as(call, ProjectPayload))
    else:
        raise EscrowError(ErrorCode.INVALID_TYPE, f"unsupported project call type: {ct}")


def apply(state: EscrowState, call: Call, gateway: AssetGateway) -> EscrowState:
    ct = call.call_type
    if ct == CallType.CREATE_PROJECT:
        return _apply_create(state, call, call.payload, gateway)
    if ct == CallType.EXECUTOR_INITIATE_PROJECT:
        return _apply_executor_initiate(state, call, call.payload)
    if ct == CallType.FUND_PROJECT:
        return _apply_fund(state, call, call.payload, gateway)
    raise EscrowError(ErrorCode.INVALID_TYPE, f"unsupported project call type: {ct}")


# --- CREATE_PROJECT / EXECUTOR_INITIATE_PROJECT ---

def _verify_create(state: EscrowState, call: Call, p: CreateProjectPayload) -> None:
    check_asset(p.asset)
    check_identity(p.counterparty, "counterparty")
    if state.address in (p.counterparty, call.caller):
        raise EscrowError(ErrorCode.INVALID_ADDRESS, "escrow custody account cannot be a party")
    check_amount(p.total_amount, "total_amount")
    check_amount(p.platform_fee_percent, "platform_fee_percent")

    if p.platform_fee_percent < MIN_PLATFORM_FEE_PERCENT:
        raise EscrowError(ErrorCode.FEE_TOO_LOW, "platform fee percent must be at least 1%")

    if not isinstance(p.milestone_amounts, (list, tuple)) or not p.milestone_amounts:
        raise EscrowError(ErrorCode.NO_MILESTONES, "at least one milestone is required")
    for amount in p.milestone_amounts:
        check_amount(amount, "milestone amount")

    # A fee above 100% leaves a negative remainder no milestone list can match.
    fee = compute_fee(p.total_amount, p.platform_fee_percent)
    remaining = p.total_amount - fee
    if sum(p.milestone_amounts) != remaining:
        raise EscrowError(
            ErrorCode.MILESTONE_SUM_MISMATCH,
            "milestones must sum to the remaining amount after platform fee",
        )

    if call.call_type == CallType.CREATE_PROJECT:
        check_supplied_value(p.asset, call.value, p.total_amount)
    elif call.value != 0:
        raise EscrowError(ErrorCode.VALUE_NOT_ACCEPTED, "executor initiation is not payable")


def _apply_create(
    state: EscrowState, call: Call, p: CreateProjectPayload, gateway: AssetGateway
) -> EscrowState:
    fee = compute_fee(p.total_amount, p.platform_fee_percent)
    remaining = p.total_amount - fee

    project = register_project(
        state,
        client=call.caller,
        executor=p.counterparty,
        asset=p.asset,
        total_amount=remaining,
        platform_fee_percent=p.platform_fee_percent,
        milestone_amounts=list(p.milestone_amounts),
        funded=True,
    )
    credit_fee(state, p.asset, fee)

    pull_in(state, gateway, p.asset, call.caller, p.total_amount)

    emit(
        state,
        Event(
            kind=EventKind.PROJECT_CREATED,
            project_id=project.id,
            client=project.client,
            executor=project.executor,
            asset=project.asset,
        ),
    )
    return state


def _apply_executor_initiate(state: EscrowState, call: Call, p: CreateProjectPayload) -> EscrowState:
    project = register_project(
        state,
        client=p.counterparty,
        executor=call.caller,
        asset=p.asset,
        total_amount=p.total_amount,
        platform_fee_percent=p.platform_fee_percent,
        milestone_amounts=list(p.milestone_amounts),
        funded=False,
    )
    emit(
        state,
        Event(
            kind=EventKind.PROJECT_CREATED,
            project_id=project.id,
            client=project.client,
            executor=project.executor,
            asset=project.asset,
        ),
    )
    return state


# --- FUND_PROJECT ---

def _verify_fund(state: EscrowState, call: Call, p: ProjectPayload) -> None:
    project = get_project(state, p.project_id)
    require_client(call.caller, project)
    if project.funded:
        raise EscrowError(ErrorCode.ALREADY_FUNDED, "project is already funded")
    if project.is_cancelled:
        raise EscrowError(ErrorCode.ALREADY_CANCELLED, "project is cancelled")
    check_supplied_value(project.asset, call.value, project.total_amount)


def _apply_fund(state: EscrowState, call: Call, p: ProjectPayload, gateway: AssetGateway) -> EscrowState:
    project = get_project(state, p.project_id)
    total = project.total_amount
    fee = compute_fee(total, project.platform_fee_percent)

    project.funded = True
    project.total_amount = total - fee
    credit_fee(state, project.asset, fee)

    pull_in(state, gateway, project.asset, call.caller, total)

    emit(state, Event(kind=EventKind.PROJECT_FUNDED, project_id=project.id, amount=total))
    return state
