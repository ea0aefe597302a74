"""Stateful escrow ledger.

``EscrowLedger`` keeps the current ``EscrowState`` and exposes one method per
entry point. Each method runs a single all-or-nothing transition through
``apply_call`` and raises ``EscrowError`` when it is rejected, leaving the
ledger unchanged.

Usage:
    ledger = EscrowLedger(owner=OWNER, address=ESCROW)
    ledger.approve(CLIENT, TOKEN_A, 100)
    pid = ledger.create_project(CLIENT, EXECUTOR, 100, [30, 30, 39], 100, TOKEN_A)
    ledger.confirm_milestone(CLIENT, pid)
    ledger.withdraw_platform_funds(OWNER, TOKEN_A)
"""

from __future__ import annotations

import logging
from copy import deepcopy
from typing import Optional, Sequence

from . import assets
from .assets import LedgerGateway, ReceiveHook
from .config import LedgerConfig
from .fee_ledger import platform_balances, platform_funds
from .registry import get_milestone_amounts, get_project, project_count
from .state_transition import TransitionResult, apply_call, reenter
from .types import (
    AssetKind,
    Call,
    CallType,
    CreateProjectPayload,
    EscrowState,
    Event,
    Project,
    ProjectPayload,
    TokenAsset,
    WithdrawPayload,
)

logger = logging.getLogger(__name__)


class EscrowLedger:
    def __init__(
        self,
        owner: bytes,
        address: bytes,
        gateway: Optional[LedgerGateway] = None,
    ) -> None:
        self._state = EscrowState(owner=owner, address=address)
        self._gateway = gateway if gateway is not None else LedgerGateway()

    @classmethod
    def from_config(cls, config: LedgerConfig, gateway: Optional[LedgerGateway] = None) -> "EscrowLedger":
        if config.owner is None:
            raise ValueError("ledger owner identity is not configured")
        if config.escrow_address is None:
            raise ValueError("escrow custody address is not configured")
        if config.verbose:
            logging.getLogger("milestone_escrow").setLevel(logging.DEBUG)
        return cls(owner=config.owner, address=config.escrow_address, gateway=gateway)

    @property
    def state(self) -> EscrowState:
        return self._state

    @property
    def owner(self) -> bytes:
        return self._state.owner

    @property
    def address(self) -> bytes:
        return self._state.address

    def submit(self, call: Call) -> None:
        """Apply ``call`` or raise its ``EscrowError``."""
        new_state, result = apply_call(self._state, call, self._gateway)
        if not result.ok:
            logger.info("%s by %s rejected: %s", call.call_type.value, call.caller.hex()[:12], result.error)
            raise result.error
        self._state = new_state

    # --- Entry points ---

    def create_project(
        self,
        caller: bytes,
        executor: bytes,
        total_amount: int,
        milestone_amounts: Sequence[int],
        platform_fee_percent: int,
        asset: AssetKind,
        value: int = 0,
    ) -> int:
        project_id = project_count(self._state)
        self.submit(
            Call(
                caller=caller,
                call_type=CallType.CREATE_PROJECT,
                payload=CreateProjectPayload(
                    counterparty=executor,
                    total_amount=total_amount,
                    milestone_amounts=list(milestone_amounts),
                    platform_fee_percent=platform_fee_percent,
                    asset=asset,
                ),
                value=value,
            )
        )
        return project_id

    def executor_initiate_project(
        self,
        caller: bytes,
        client: bytes,
        total_amount: int,
        milestone_amounts: Sequence[int],
        platform_fee_percent: int,
        asset: AssetKind,
    ) -> int:
        project_id = project_count(self._state)
        self.submit(
            Call(
                caller=caller,
                call_type=CallType.EXECUTOR_INITIATE_PROJECT,
                payload=CreateProjectPayload(
                    counterparty=client,
                    total_amount=total_amount,
                    milestone_amounts=list(milestone_amounts),
                    platform_fee_percent=platform_fee_percent,
                    asset=asset,
                ),
            )
        )
        return project_id

    def fund_project(self, caller: bytes, project_id: int, value: int = 0) -> None:
        self.submit(Call(caller, CallType.FUND_PROJECT, ProjectPayload(project_id), value=value))

    def confirm_milestone(self, caller: bytes, project_id: int) -> None:
        self.submit(Call(caller, CallType.CONFIRM_MILESTONE, ProjectPayload(project_id)))

    def cancel_project(self, caller: bytes, project_id: int) -> None:
        self.submit(Call(caller, CallType.CANCEL_PROJECT, ProjectPayload(project_id)))

    def withdraw_platform_funds(self, caller: bytes, asset: AssetKind) -> int:
        """Withdraw all fees collected in ``asset``; returns the amount paid."""
        amount = platform_funds(self._state, asset)
        self.submit(Call(caller, CallType.WITHDRAW_PLATFORM_FUNDS, WithdrawPayload(asset)))
        return amount

    # --- Re-entry ---

    def on_receive(self, account: bytes, hook: ReceiveHook) -> None:
        self._gateway.on_receive(account, hook)

    def reenter(self, state: EscrowState, call: Call) -> TransitionResult:
        """Call back into the ledger from a receive hook."""
        return reenter(state, call, self._gateway)

    # --- Views ---

    def get_project(self, project_id: int) -> Project:
        return deepcopy(get_project(self._state, project_id))

    def get_milestone_amounts(self, project_id: int) -> list[int]:
        return get_milestone_amounts(self._state, project_id)

    def platform_funds(self, asset: AssetKind) -> int:
        return platform_funds(self._state, asset)

    def platform_balances(self) -> dict[AssetKind, int]:
        return platform_balances(self._state)

    def project_count(self) -> int:
        return project_count(self._state)

    @property
    def events(self) -> tuple[Event, ...]:
        return tuple(self._state.events)

    # --- Asset issuer ---

    def balance_of(self, asset: AssetKind, account: bytes) -> int:
        return assets.balance_of(self._state.assets, asset, account)

    def allowance(self, token: TokenAsset, owner: bytes) -> int:
        return assets.allowance(self._state.assets, token, owner, self._state.address)

    def mint(self, asset: AssetKind, account: bytes, amount: int) -> None:
        assets.mint(self._state.assets, asset, account, amount)

    def approve(self, owner: bytes, token: TokenAsset, amount: int) -> None:
        """Let the ledger pull up to ``amount`` of ``token`` from ``owner``."""
        assets.approve(self._state.assets, token, owner, self._state.address, amount)
