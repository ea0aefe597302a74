"""Helpers to serialize/deserialize escrow fixtures."""

from __future__ import annotations

from typing import Any

from milestone_escrow.types import (
    NATIVE,
    AssetBook,
    AssetKind,
    Call,
    CallType,
    CreateProjectPayload,
    EscrowState,
    Event,
    EventKind,
    NativeAsset,
    Project,
    ProjectPayload,
    ProjectStatus,
    TokenAsset,
    WithdrawPayload,
)


def _hex_to_bytes(v: str) -> bytes:
    return bytes.fromhex(v)


def _bytes_to_hex(v: bytes) -> str:
    return v.hex()


def asset_to_json(asset: AssetKind) -> str:
    if isinstance(asset, NativeAsset):
        return "native"
    return _bytes_to_hex(asset.address)


def asset_from_json(v: str) -> AssetKind:
    if v == "native":
        return NATIVE
    return TokenAsset(_hex_to_bytes(v))


def _opt_hex(v: bytes | None) -> str | None:
    return _bytes_to_hex(v) if v is not None else None


def _opt_bytes(v: str | None) -> bytes | None:
    return _hex_to_bytes(v) if v else None


def state_to_json(state: EscrowState) -> dict[str, Any]:
    result: dict[str, Any] = {
        "owner": _bytes_to_hex(state.owner),
        "address": _bytes_to_hex(state.address),
        "projects": [
            {
                "id": p.id,
                "client": _bytes_to_hex(p.client),
                "executor": _bytes_to_hex(p.executor),
                "asset": asset_to_json(p.asset),
                "total_amount": p.total_amount,
                "platform_fee_percent": p.platform_fee_percent,
                "milestone_amounts": list(p.milestone_amounts),
                "current_milestone": p.current_milestone,
                "funded": p.funded,
                "status": p.status.value,
            }
            for p in state.projects
        ],
        "platform_funds": [
            {"asset": asset_to_json(asset), "amount": amount}
            for asset, amount in state.platform_funds.items()
        ],
        "balances": [
            {"asset": asset_to_json(asset), "account": _bytes_to_hex(account), "amount": amount}
            for asset, accounts in state.assets.balances.items()
            for account, amount in accounts.items()
        ],
    }

    if state.assets.allowances:
        result["allowances"] = [
            {
                "token": asset_to_json(token),
                "owner": _bytes_to_hex(owner),
                "spender": _bytes_to_hex(spender),
                "amount": amount,
            }
            for (token, owner, spender), amount in state.assets.allowances.items()
        ]

    if state.events:
        result["events"] = [
            {
                "kind": e.kind.value,
                "project_id": e.project_id,
                "client": _opt_hex(e.client),
                "executor": _opt_hex(e.executor),
                "asset": asset_to_json(e.asset) if e.asset is not None else None,
                "milestone": e.milestone,
                "amount": e.amount,
            }
            for e in state.events
        ]

    return result


def state_from_json(data: dict[str, Any]) -> EscrowState:
    state = EscrowState(
        owner=_hex_to_bytes(data["owner"]),
        address=_hex_to_bytes(data["address"]),
    )

    for p in data.get("projects", []):
        state.projects.append(
            Project(
                id=p["id"],
                client=_hex_to_bytes(p["client"]),
                executor=_hex_to_bytes(p["executor"]),
                asset=asset_from_json(p["asset"]),
                total_amount=p["total_amount"],
                platform_fee_percent=p["platform_fee_percent"],
                milestone_amounts=tuple(p["milestone_amounts"]),
                current_milestone=p.get("current_milestone", 0),
                funded=p.get("funded", False),
                status=ProjectStatus(p.get("status", ProjectStatus.ACTIVE.value)),
            )
        )

    for f in data.get("platform_funds", []):
        state.platform_funds[asset_from_json(f["asset"])] = f["amount"]

    book = AssetBook()
    for b in data.get("balances", []):
        accounts = book.balances.setdefault(asset_from_json(b["asset"]), {})
        accounts[_hex_to_bytes(b["account"])] = b["amount"]
    for a in data.get("allowances", []):
        token = asset_from_json(a["token"])
        key = (token, _hex_to_bytes(a["owner"]), _hex_to_bytes(a["spender"]))
        book.allowances[key] = a["amount"]
    state.assets = book

    for e in data.get("events", []):
        state.events.append(
            Event(
                kind=EventKind(e["kind"]),
                project_id=e.get("project_id"),
                client=_opt_bytes(e.get("client")),
                executor=_opt_bytes(e.get("executor")),
                asset=asset_from_json(e["asset"]) if e.get("asset") else None,
                milestone=e.get("milestone"),
                amount=e.get("amount"),
            )
        )

    return state


def call_to_json(call: Call) -> dict[str, Any]:
    payload: Any
    p = call.payload
    if isinstance(p, CreateProjectPayload):
        payload = {
            "counterparty": _bytes_to_hex(p.counterparty),
            "total_amount": p.total_amount,
            "milestone_amounts": list(p.milestone_amounts),
            "platform_fee_percent": p.platform_fee_percent,
            "asset": asset_to_json(p.asset),
        }
    elif isinstance(p, ProjectPayload):
        payload = {"project_id": p.project_id}
    elif isinstance(p, WithdrawPayload):
        payload = {"asset": asset_to_json(p.asset)}
    else:
        payload = p

    return {
        "caller": _bytes_to_hex(call.caller),
        "call_type": call.call_type.value,
        "payload": payload,
        "value": call.value,
    }


_CREATE_TYPES = {CallType.CREATE_PROJECT, CallType.EXECUTOR_INITIATE_PROJECT}
_PROJECT_ID_TYPES = {CallType.FUND_PROJECT, CallType.CONFIRM_MILESTONE, CallType.CANCEL_PROJECT}


def call_from_json(data: dict[str, Any]) -> Call:
    call_type = CallType(data["call_type"])
    p = data.get("payload")

    payload: Any
    if call_type in _CREATE_TYPES and isinstance(p, dict) and "counterparty" in p:
        payload = CreateProjectPayload(
            counterparty=_hex_to_bytes(p["counterparty"]),
            total_amount=p["total_amount"],
            milestone_amounts=list(p["milestone_amounts"]),
            platform_fee_percent=p["platform_fee_percent"],
            asset=asset_from_json(p["asset"]),
        )
    elif call_type in _PROJECT_ID_TYPES and isinstance(p, dict) and "project_id" in p:
        payload = ProjectPayload(project_id=p["project_id"])
    elif call_type == CallType.WITHDRAW_PLATFORM_FUNDS and isinstance(p, dict) and "asset" in p:
        payload = WithdrawPayload(asset=asset_from_json(p["asset"]))
    else:
        payload = p

    return Call(
        caller=_hex_to_bytes(data["caller"]),
        call_type=call_type,
        payload=payload,
        value=data.get("value", 0),
    )
