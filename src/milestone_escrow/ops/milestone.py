"""Milestone confirmation operations."""

from __future__ import annotations

from ..access import require_client
from ..assets import AssetGateway
from ..errors import ErrorCode, EscrowError
from ..registry import get_project
from ..types import Call, CallType, EscrowState, Event, EventKind, ProjectPayload, ProjectStatus
from .common import emit, payload_as, pay_out


def verify(state: EscrowState, call: Call) -> None:
    if call.call_type != CallType.CONFIRM_MILESTONE:
        raise EscrowError(ErrorCode.INVALID_TYPE, f"unsupported milestone call type: {call.call_type}")
    p = payload_as(call, ProjectPayload)

    project = get_project(state, p.project_id)
    require_client(call.caller, project)
    if not project.funded:
        raise EscrowError(ErrorCode.NOT_FUNDED, "project is not funded")
    if project.is_cancelled:
        raise EscrowError(ErrorCode.ALREADY_CANCELLED, "project is cancelled")
    if project.is_completed:
        raise EscrowError(ErrorCode.ALREADY_COMPLETED, "project is completed")
    if project.current_milestone >= len(project.milestone_amounts):
        raise EscrowError(ErrorCode.ALL_MILESTONES_CONFIRMED, "all milestones are confirmed")


def apply(state: EscrowState, call: Call, gateway: AssetGateway) -> EscrowState:
    project = get_project(state, call.payload.project_id)
    amount = project.milestone_amounts[project.current_milestone]

    # The release is recorded before the executor gains control.
    project.current_milestone += 1
    if project.current_milestone == len(project.milestone_amounts):
        project.status = ProjectStatus.COMPLETED
    new_index = project.current_milestone
    executor = project.executor

    pay_out(state, gateway, project.asset, executor, amount)

    emit(state, Event(kind=EventKind.MILESTONE_COMPLETED, project_id=project.id, milestone=new_index))
    return state
