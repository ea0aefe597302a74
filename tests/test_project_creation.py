"""Project creation fixtures (client-funded and executor-initiated)."""

from __future__ import annotations

import pytest

from milestone_escrow.assets import allowance, approve, balance_of, mint
from milestone_escrow.errors import ErrorCode
from milestone_escrow.fee_ledger import compute_fee
from milestone_escrow.state_digest import compute_state_digest
from milestone_escrow.state_transition import apply_call
from milestone_escrow.test_accounts import CLIENT, ESCROW, EXECUTOR, OWNER, TOKEN_A
from milestone_escrow.types import (
    NATIVE,
    AssetKind,
    Call,
    CallType,
    CreateProjectPayload,
    EscrowState,
    EventKind,
    ProjectPayload,
    ProjectStatus,
)

_GROUP = "lifecycle/create_project.json"


def _base_state() -> EscrowState:
    state = EscrowState(owner=OWNER, address=ESCROW)
    mint(state.assets, TOKEN_A, CLIENT, 1_000)
    mint(state.assets, NATIVE, CLIENT, 1_000)
    return state


def _mk_create(
    caller: bytes,
    counterparty: bytes,
    total: int = 100,
    milestones: list[int] | None = None,
    fee_percent: int = 100,
    asset: AssetKind = TOKEN_A,
    value: int = 0,
    call_type: CallType = CallType.CREATE_PROJECT,
) -> Call:
    return Call(
        caller=caller,
        call_type=call_type,
        payload=CreateProjectPayload(
            counterparty=counterparty,
            total_amount=total,
            milestone_amounts=[30, 30, 39] if milestones is None else milestones,
            platform_fee_percent=fee_percent,
            asset=asset,
        ),
        value=value,
    )


# --- create_project ---


def test_create_project_token_success(escrow_test_group) -> None:
    state = _base_state()
    approve(state.assets, TOKEN_A, CLIENT, ESCROW, 100)
    post, result = escrow_test_group(
        _GROUP, "create_project_token_success", state, _mk_create(CLIENT, EXECUTOR)
    )

    assert result.ok
    project = post.projects[0]
    assert project.client == CLIENT
    assert project.executor == EXECUTOR
    assert project.total_amount == 99
    assert project.milestone_amounts == (30, 30, 39)
    assert project.current_milestone == 0
    assert project.funded
    assert project.status == ProjectStatus.ACTIVE
    assert post.platform_funds[TOKEN_A] == 1
    assert balance_of(post.assets, TOKEN_A, ESCROW) == 100
    assert balance_of(post.assets, TOKEN_A, CLIENT) == 900
    assert allowance(post.assets, TOKEN_A, CLIENT, ESCROW) == 0
    assert [e.kind for e in post.events] == [EventKind.PROJECT_CREATED]
    event = post.events[0]
    assert (event.project_id, event.client, event.executor, event.asset) == (0, CLIENT, EXECUTOR, TOKEN_A)


def test_create_project_native_success(escrow_test_group) -> None:
    state = _base_state()
    call = _mk_create(CLIENT, EXECUTOR, asset=NATIVE, value=100)
    post, result = escrow_test_group(_GROUP, "create_project_native_success", state, call)

    assert result.ok
    assert post.projects[0].total_amount == 99
    assert post.platform_funds[NATIVE] == 1
    assert balance_of(post.assets, NATIVE, CLIENT) == 900
    assert balance_of(post.assets, NATIVE, ESCROW) == 100


def test_create_project_native_incorrect_value(escrow_test_group) -> None:
    state = _base_state()
    call = _mk_create(CLIENT, EXECUTOR, asset=NATIVE, value=99)
    post, result = escrow_test_group(_GROUP, "create_project_native_incorrect_value", state, call)

    assert result.error.code == ErrorCode.INCORRECT_VALUE_SENT
    assert post is state
    assert balance_of(post.assets, NATIVE, CLIENT) == 1_000


def test_create_project_token_with_value(escrow_test_group) -> None:
    state = _base_state()
    approve(state.assets, TOKEN_A, CLIENT, ESCROW, 100)
    call = _mk_create(CLIENT, EXECUTOR, value=100)
    _, result = escrow_test_group(_GROUP, "create_project_token_with_value", state, call)

    assert result.error.code == ErrorCode.INCORRECT_VALUE_SENT


def test_create_project_milestone_sum_mismatch(escrow_test_group) -> None:
    state = _base_state()
    approve(state.assets, TOKEN_A, CLIENT, ESCROW, 100)
    digest = compute_state_digest(state)
    call = _mk_create(CLIENT, EXECUTOR, milestones=[30, 30, 20])
    post, result = escrow_test_group(_GROUP, "create_project_milestone_sum_mismatch", state, call)

    assert result.error.code == ErrorCode.MILESTONE_SUM_MISMATCH
    assert post.projects == []
    assert post.platform_funds == {}
    assert compute_state_digest(post) == digest


def test_create_project_fee_too_low(escrow_test_group) -> None:
    state = _base_state()
    approve(state.assets, TOKEN_A, CLIENT, ESCROW, 100)
    call = _mk_create(CLIENT, EXECUTOR, milestones=[30, 30, 39], fee_percent=50)
    _, result = escrow_test_group(_GROUP, "create_project_fee_too_low", state, call)

    assert result.error.code == ErrorCode.FEE_TOO_LOW


def test_create_project_fee_above_total(escrow_test_group) -> None:
    """A fee above 100% leaves nothing the milestones can add up to."""
    state = _base_state()
    call = _mk_create(CLIENT, EXECUTOR, milestones=[1], fee_percent=20_000)
    post, result = escrow_test_group(_GROUP, "create_project_fee_above_total", state, call)

    assert result.error.code == ErrorCode.MILESTONE_SUM_MISMATCH
    assert post.projects == []


def test_create_project_full_fee(escrow_test_group) -> None:
    state = _base_state()
    approve(state.assets, TOKEN_A, CLIENT, ESCROW, 100)
    call = _mk_create(CLIENT, EXECUTOR, milestones=[0], fee_percent=10_000)
    post, result = escrow_test_group(_GROUP, "create_project_full_fee", state, call)

    assert result.ok
    assert post.projects[0].total_amount == 0
    assert post.platform_funds[TOKEN_A] == 100


def test_create_project_no_milestones(escrow_test_group) -> None:
    state = _base_state()
    call = _mk_create(CLIENT, EXECUTOR, milestones=[])
    _, result = escrow_test_group(_GROUP, "create_project_no_milestones", state, call)

    assert result.error.code == ErrorCode.NO_MILESTONES


def test_create_project_many_milestones(escrow_test_group) -> None:
    state = _base_state()
    mint(state.assets, NATIVE, CLIENT, 1_000_000)
    milestones = [1] * 300 + [990_000 - 300]
    call = _mk_create(
        CLIENT, EXECUTOR, total=1_000_000, milestones=milestones, asset=NATIVE, value=1_000_000
    )
    post, result = escrow_test_group(_GROUP, "create_project_many_milestones", state, call)

    assert result.ok
    assert len(post.projects[0].milestone_amounts) == 301


def test_create_project_zero_milestone_amount(escrow_test_group) -> None:
    state = _base_state()
    approve(state.assets, TOKEN_A, CLIENT, ESCROW, 100)
    call = _mk_create(CLIENT, EXECUTOR, milestones=[99, 0])
    post, result = escrow_test_group(_GROUP, "create_project_zero_milestone_amount", state, call)

    assert result.ok
    confirm = Call(CLIENT, CallType.CONFIRM_MILESTONE, ProjectPayload(0))
    post, _ = apply_call(post, confirm)
    post, result = apply_call(post, confirm)

    assert result.ok
    assert post.projects[0].status == ProjectStatus.COMPLETED
    assert balance_of(post.assets, TOKEN_A, EXECUTOR) == 99


def test_create_project_client_is_executor(escrow_test_group) -> None:
    state = _base_state()
    approve(state.assets, TOKEN_A, CLIENT, ESCROW, 100)
    call = _mk_create(CLIENT, CLIENT)
    post, result = escrow_test_group(_GROUP, "create_project_client_is_executor", state, call)

    assert result.ok
    assert post.projects[0].client == post.projects[0].executor == CLIENT


@pytest.mark.parametrize("caller,counterparty", [(CLIENT, ESCROW), (ESCROW, EXECUTOR)])
def test_create_project_custody_party(escrow_test_group, caller: bytes, counterparty: bytes) -> None:
    state = _base_state()
    call = _mk_create(caller, counterparty)
    name = "create_project_custody_executor" if counterparty == ESCROW else "create_project_custody_client"
    post, result = escrow_test_group(_GROUP, name, state, call)

    assert result.error.code == ErrorCode.INVALID_ADDRESS
    assert post.projects == []


def test_executor_initiate_custody_client(escrow_test_group) -> None:
    state = _base_state()
    call = _mk_create(EXECUTOR, ESCROW, call_type=CallType.EXECUTOR_INITIATE_PROJECT)
    _, result = escrow_test_group(_GROUP, "executor_initiate_custody_client", state, call)

    assert result.error.code == ErrorCode.INVALID_ADDRESS


def test_create_project_token_not_approved(escrow_test_group) -> None:
    """Declined pull: no project record, no fee, balances untouched."""
    state = _base_state()
    post, result = escrow_test_group(
        _GROUP, "create_project_token_not_approved", state, _mk_create(CLIENT, EXECUTOR)
    )

    assert result.error.code == ErrorCode.TRANSFER_FAILED
    assert post.projects == []
    assert post.platform_funds == {}
    assert post.events == []
    assert balance_of(post.assets, TOKEN_A, CLIENT) == 1_000


def test_create_project_native_insufficient_balance(escrow_test_group) -> None:
    state = _base_state()
    call = _mk_create(
        CLIENT, EXECUTOR, total=10_000, milestones=[9_900], asset=NATIVE, value=10_000
    )
    _, result = escrow_test_group(_GROUP, "create_project_native_insufficient_balance", state, call)

    assert result.error.code == ErrorCode.INSUFFICIENT_BALANCE


def test_create_project_ids_are_monotonic() -> None:
    state = _base_state()
    approve(state.assets, TOKEN_A, CLIENT, ESCROW, 200)
    state, first = apply_call(state, _mk_create(CLIENT, EXECUTOR))
    state, second = apply_call(state, _mk_create(CLIENT, EXECUTOR))

    assert first.ok and second.ok
    assert [p.id for p in state.projects] == [0, 1]
    assert [e.project_id for e in state.events] == [0, 1]


@pytest.mark.parametrize(
    "total,fee_percent",
    [(100, 100), (12_345, 137), (999, 250), (10**30, 100), (7, 10_000)],
)
def test_create_project_fee_split(total: int, fee_percent: int) -> None:
    """Milestones plus the truncated fee always add up to the supplied total."""
    fee = compute_fee(total, fee_percent)
    remaining = total - fee
    milestones = [remaining] if remaining else []
    state = EscrowState(owner=OWNER, address=ESCROW)
    mint(state.assets, NATIVE, CLIENT, total)
    call = _mk_create(
        CLIENT, EXECUTOR, total=total, milestones=milestones, fee_percent=fee_percent,
        asset=NATIVE, value=total,
    )
    post, result = apply_call(state, call)

    if not milestones:
        assert result.error.code == ErrorCode.NO_MILESTONES
        return
    assert result.ok
    assert sum(post.projects[0].milestone_amounts) + fee == total
    assert post.platform_funds[NATIVE] == fee


# --- executor_initiate_project ---


def test_executor_initiate_success(escrow_test_group) -> None:
    state = _base_state()
    call = _mk_create(EXECUTOR, CLIENT, call_type=CallType.EXECUTOR_INITIATE_PROJECT)
    post, result = escrow_test_group(_GROUP, "executor_initiate_success", state, call)

    assert result.ok
    project = post.projects[0]
    assert project.client == CLIENT
    assert project.executor == EXECUTOR
    assert project.total_amount == 100
    assert not project.funded
    assert post.platform_funds == {}
    assert balance_of(post.assets, TOKEN_A, ESCROW) == 0
    assert post.events[0].kind == EventKind.PROJECT_CREATED


def test_executor_initiate_with_value(escrow_test_group) -> None:
    state = _base_state()
    mint(state.assets, NATIVE, EXECUTOR, 100)
    call = _mk_create(
        EXECUTOR, CLIENT, asset=NATIVE, value=100, call_type=CallType.EXECUTOR_INITIATE_PROJECT
    )
    _, result = escrow_test_group(_GROUP, "executor_initiate_with_value", state, call)

    assert result.error.code == ErrorCode.VALUE_NOT_ACCEPTED


def test_executor_initiate_milestone_sum_mismatch(escrow_test_group) -> None:
    state = _base_state()
    call = _mk_create(
        EXECUTOR, CLIENT, milestones=[50, 50], call_type=CallType.EXECUTOR_INITIATE_PROJECT
    )
    post, result = escrow_test_group(_GROUP, "executor_initiate_milestone_sum_mismatch", state, call)

    assert result.error.code == ErrorCode.MILESTONE_SUM_MISMATCH
    assert post.projects == []
