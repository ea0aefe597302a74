"""Core types for the milestone escrow ledger.

The ledger tracks projects funded in either the native currency or a
fungible token, the platform fees collected per asset, and the balances of
every account on the assets it touches.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import List, Optional, Union


# --- Asset kinds ---


@dataclass(frozen=True)
class NativeAsset:
    """The chain's native currency, moved by attaching value to a call."""

    def __str__(self) -> str:
        return "native"


@dataclass(frozen=True)
class TokenAsset:
    """A fungible token identified by its issuer address."""
    address: bytes

    def __str__(self) -> str:
        return f"token:{self.address.hex()}"


AssetKind = Union[NativeAsset, TokenAsset]

NATIVE = NativeAsset()


# --- Projects ---


class ProjectStatus(Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass
class Project:
    id: int
    client: bytes
    executor: bytes
    asset: AssetKind
    # Fee included until the project is funded, fee excluded afterwards.
    total_amount: int
    platform_fee_percent: int
    milestone_amounts: tuple[int, ...]
    current_milestone: int = 0
    funded: bool = False
    status: ProjectStatus = ProjectStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status == ProjectStatus.ACTIVE

    @property
    def is_completed(self) -> bool:
        return self.status == ProjectStatus.COMPLETED

    @property
    def is_cancelled(self) -> bool:
        return self.status == ProjectStatus.CANCELLED

    @property
    def paid_out(self) -> int:
        """Amount already released to the executor."""
        return sum(self.milestone_amounts[: self.current_milestone])


# --- Calls ---


class CallType(Enum):
    CREATE_PROJECT = "create_project"
    EXECUTOR_INITIATE_PROJECT = "executor_initiate_project"
    FUND_PROJECT = "fund_project"
    CONFIRM_MILESTONE = "confirm_milestone"
    CANCEL_PROJECT = "cancel_project"
    WITHDRAW_PLATFORM_FUNDS = "withdraw_platform_funds"


@dataclass
class CreateProjectPayload:
    # Executor for CREATE_PROJECT, client for EXECUTOR_INITIATE_PROJECT.
    counterparty: bytes
    total_amount: int
    milestone_amounts: List[int]
    platform_fee_percent: int
    asset: AssetKind


@dataclass
class ProjectPayload:
    project_id: int


@dataclass
class WithdrawPayload:
    asset: AssetKind


@dataclass
class Call:
    caller: bytes
    call_type: CallType
    payload: object
    # Native currency attached to the call.
    value: int = 0


# --- Events ---


class EventKind(Enum):
    PROJECT_CREATED = "project_created"
    PROJECT_FUNDED = "project_funded"
    MILESTONE_COMPLETED = "milestone_completed"
    PROJECT_CANCELLED = "project_cancelled"
    PLATFORM_WITHDRAWAL = "platform_withdrawal"


@dataclass(frozen=True)
class Event:
    kind: EventKind
    project_id: Optional[int] = None
    client: Optional[bytes] = None
    executor: Optional[bytes] = None
    asset: Optional[AssetKind] = None
    milestone: Optional[int] = None
    amount: Optional[int] = None


# --- Ledger state ---


@dataclass
class AssetBook:
    """Balances and token allowances for every asset the ledger touches."""
    balances: dict[AssetKind, dict[bytes, int]] = field(default_factory=dict)
    # (token, owner, spender) -> remaining allowance
    allowances: dict[tuple[TokenAsset, bytes, bytes], int] = field(default_factory=dict)


@dataclass
class EscrowState:
    owner: bytes
    # Custody account holding escrowed funds and uncollected fees.
    address: bytes
    # Arena: project id == list index, never reused or removed.
    projects: list[Project] = field(default_factory=list)
    platform_funds: dict[AssetKind, int] = field(default_factory=dict)
    assets: AssetBook = field(default_factory=AssetBook)
    events: list[Event] = field(default_factory=list)

    def restore(self, snapshot: "EscrowState") -> None:
        """Roll this state back, in place, to an earlier deep copy of itself."""
        for f in fields(self):
            setattr(self, f.name, getattr(snapshot, f.name))
