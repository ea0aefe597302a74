"""Access control predicates."""

from __future__ import annotations

from .errors import ErrorCode, EscrowError
from .types import EscrowState, Project


def is_owner(state: EscrowState, caller: bytes) -> bool:
    return caller == state.owner


def is_project_client(caller: bytes, project: Project) -> bool:
    return caller == project.client


def is_project_party(caller: bytes, project: Project) -> bool:
    return caller in (project.client, project.executor)


def require_owner(state: EscrowState, caller: bytes) -> None:
    if not is_owner(state, caller):
        raise EscrowError(ErrorCode.NOT_OWNER, "caller is not the owner")


def require_client(caller: bytes, project: Project) -> None:
    if not is_project_client(caller, project):
        raise EscrowError(ErrorCode.NOT_CLIENT, "only the client can call this")


def require_party(caller: bytes, project: Project) -> None:
    if not is_project_party(caller, project):
        raise EscrowError(ErrorCode.NOT_AUTHORIZED, "caller is not a party to the project")
