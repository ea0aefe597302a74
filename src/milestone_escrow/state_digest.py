"""Canonical escrow state digest (v1)."""
from __future__ import annotations

from blake3 import blake3

from .types import AssetKind, EscrowState, Event, EventKind, NativeAsset, ProjectStatus

_STATUS_BYTE = {
    ProjectStatus.ACTIVE: 0,
    ProjectStatus.COMPLETED: 1,
    ProjectStatus.CANCELLED: 2,
}

_EVENT_BYTE = {
    EventKind.PROJECT_CREATED: 0,
    EventKind.PROJECT_FUNDED: 1,
    EventKind.MILESTONE_COMPLETED: 2,
    EventKind.PROJECT_CANCELLED: 3,
    EventKind.PLATFORM_WITHDRAWAL: 4,
}


def _u256_be(value: int) -> bytes:
    if value < 0:
        raise ValueError("u256 must be non-negative")
    return int(value).to_bytes(32, "big", signed=False)


def _u64_be(value: int) -> bytes:
    if value < 0:
        raise ValueError("u64 must be non-negative")
    return int(value).to_bytes(8, "big", signed=False)


def asset_bytes(asset: AssetKind) -> bytes:
    """33-byte tag: 0x00 + zeros for native, 0x01 + address for tokens."""
    if isinstance(asset, NativeAsset):
        return b"\x00" + bytes(32)
    return b"\x01" + asset.address


def _optional(value, encode) -> bytes:
    """Presence byte followed by the encoded value."""
    if value is None:
        return b"\x00"
    return b"\x01" + encode(value)


def _event_bytes(event: Event) -> bytes:
    return (
        bytes([_EVENT_BYTE[event.kind]])
        + _optional(event.project_id, _u64_be)
        + _optional(event.client, bytes)
        + _optional(event.executor, bytes)
        + _optional(event.asset, asset_bytes)
        + _optional(event.milestone, _u64_be)
        + _optional(event.amount, _u256_be)
    )


def compute_state_digest(state: EscrowState) -> str:
    """Compute state digest v1.

    Fields are encoded in canonical order and hashed with BLAKE3-256.
    """
    buf = bytearray()
    buf += state.owner
    buf += state.address

    buf += _u64_be(len(state.projects))
    for project in state.projects:
        buf += _u64_be(project.id)
        buf += project.client
        buf += project.executor
        buf += asset_bytes(project.asset)
        buf += _u256_be(project.total_amount)
        buf += _u64_be(project.platform_fee_percent)
        buf += _u64_be(len(project.milestone_amounts))
        for amount in project.milestone_amounts:
            buf += _u256_be(amount)
        buf += _u64_be(project.current_milestone)
        buf += bytes([int(project.funded), _STATUS_BYTE[project.status]])

    funds = sorted((asset_bytes(a), v) for a, v in state.platform_funds.items())
    buf += _u64_be(len(funds))
    for tag, value in funds:
        buf += tag
        buf += _u256_be(value)

    balances = sorted(
        (asset_bytes(a), account, v)
        for a, accounts in state.assets.balances.items()
        for account, v in accounts.items()
        if v
    )
    buf += _u64_be(len(balances))
    for tag, account, value in balances:
        buf += tag
        buf += account
        buf += _u256_be(value)

    buf += _u64_be(len(state.events))
    for event in state.events:
        buf += _event_bytes(event)

    return blake3(buf).hexdigest()
