"""Project cancellation operations.

The client is refunded whatever has not been released to the executor yet.
A project that was never funded holds nothing, so it cancels with a zero
refund and no transfer.
"""

from __future__ import annotations

from ..access import require_party
from ..assets import AssetGateway
from ..errors import ErrorCode, EscrowError
from ..registry import get_project
from ..types import Call, CallType, EscrowState, Event, EventKind, Project, ProjectPayload, ProjectStatus
from .common import emit, payload_as, pay_out


def refund_amount(project: Project) -> int:
    if not project.funded:
        return 0
    return project.total_amount - project.paid_out


def verify(state: EscrowState, call: Call) -> None:
    if call.call_type != CallType.CANCEL_PROJECT:
        raise EscrowError(ErrorCode.INVALID_TYPE, f"unsupported cancel call type: {call.call_type}")
    p = payload_as(call, ProjectPayload)

    project = get_project(state, p.project_id)
    require_party(call.caller, project)
    if project.is_cancelled:
        raise EscrowError(ErrorCode.ALREADY_CANCELLED, "project is already cancelled")
    if project.is_completed:
        raise EscrowError(ErrorCode.ALREADY_COMPLETED, "project is completed")


def apply(state: EscrowState, call: Call, gateway: AssetGateway) -> EscrowState:
    project = get_project(state, call.payload.project_id)
    refund = refund_amount(project)

    project.status = ProjectStatus.CANCELLED
    client = project.client

    if refund > 0:
        pay_out(state, gateway, project.asset, client, refund)

    emit(state, Event(kind=EventKind.PROJECT_CANCELLED, project_id=project.id, amount=refund))
    return state
