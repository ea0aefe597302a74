"""Project registry.

Projects live in an arena: the identifier is the index into
``EscrowState.projects`` and is assigned monotonically. Records are never
removed, only moved to a terminal status.
"""

from __future__ import annotations

from .errors import ErrorCode, EscrowError
from .types import AssetKind, EscrowState, Project


def next_project_id(state: EscrowState) -> int:
    return len(state.projects)


def register_project(
    state: EscrowState,
    client: bytes,
    executor: bytes,
    asset: AssetKind,
    total_amount: int,
    platform_fee_percent: int,
    milestone_amounts: list[int],
    funded: bool,
) -> Project:
    project = Project(
        id=next_project_id(state),
        client=client,
        executor=executor,
        asset=asset,
        total_amount=total_amount,
        platform_fee_percent=platform_fee_percent,
        milestone_amounts=tuple(milestone_amounts),
        funded=funded,
    )
    state.projects.append(project)
    return project


def get_project(state: EscrowState, project_id: int) -> Project:
    if not isinstance(project_id, int) or isinstance(project_id, bool):
        raise EscrowError(ErrorCode.INVALID_PAYLOAD, "project_id must be int")
    if project_id < 0 or project_id >= len(state.projects):
        raise EscrowError(ErrorCode.PROJECT_NOT_FOUND, f"unknown project {project_id}")
    return state.projects[project_id]


def get_milestone_amounts(state: EscrowState, project_id: int) -> list[int]:
    return list(get_project(state, project_id).milestone_amounts)


def project_count(state: EscrowState) -> int:
    return len(state.projects)
