"""Asset book and asset transfer gateway.

The asset book is the in-state model of the external value-transfer
provider: per-asset balances plus token allowances, with u256 bounds.
The gateway moves value on behalf of the escrow custody account and reports
failure by returning ``False`` instead of raising.
"""

from __future__ import annotations

import logging
from copy import deepcopy
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from .config import U256_MAX
from .errors import ErrorCode, EscrowError
from .types import AssetBook, AssetKind, EscrowState, NativeAsset, TokenAsset

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Receipt:
    asset: AssetKind
    sender: bytes
    recipient: bytes
    amount: int


# A receive hook runs after the recipient has been credited and may call back
# into the ledger. Returning False rejects the receipt.
ReceiveHook = Callable[[EscrowState, Receipt], bool]


def apply_balance_change(balance: int, delta: int) -> int:
    """Apply +/- balance with u256 bounds."""
    new_balance = balance + delta
    if new_balance < 0:
        raise EscrowError(ErrorCode.INSUFFICIENT_BALANCE, "negative balance")
    if new_balance > U256_MAX:
        raise EscrowError(ErrorCode.OVERFLOW, "balance overflow")
    return new_balance


def balance_of(book: AssetBook, asset: AssetKind, account: bytes) -> int:
    return book.balances.get(asset, {}).get(account, 0)


def allowance(book: AssetBook, token: TokenAsset, owner: bytes, spender: bytes) -> int:
    return book.allowances.get((token, owner, spender), 0)


def mint(book: AssetBook, asset: AssetKind, account: bytes, amount: int) -> None:
    """Credit ``amount`` out of thin air (test issuer / genesis allocation)."""
    if amount < 0:
        raise EscrowError(ErrorCode.INVALID_AMOUNT, "mint amount negative")
    accounts = book.balances.setdefault(asset, {})
    accounts[account] = apply_balance_change(accounts.get(account, 0), amount)


def approve(book: AssetBook, token: TokenAsset, owner: bytes, spender: bytes, amount: int) -> None:
    if amount < 0 or amount > U256_MAX:
        raise EscrowError(ErrorCode.INVALID_AMOUNT, "allowance out of range")
    book.allowances[(token, owner, spender)] = amount


def move(book: AssetBook, asset: AssetKind, sender: bytes, recipient: bytes, amount: int) -> None:
    if amount < 0:
        raise EscrowError(ErrorCode.INVALID_AMOUNT, "transfer amount negative")
    accounts = book.balances.setdefault(asset, {})
    sender_balance = apply_balance_change(accounts.get(sender, 0), -amount)
    accounts[sender] = sender_balance
    accounts[recipient] = apply_balance_change(accounts.get(recipient, 0), amount)


class AssetGateway(Protocol):
    """Value movement contract consumed by the escrow core.

    ``transfer`` pays out of the escrow custody account; ``transfer_from``
    pulls from ``owner`` into ``to`` using the custody account's allowance.
    Both return False on failure.
    """

    def transfer(self, state: EscrowState, asset: AssetKind, to: bytes, amount: int) -> bool:
        ...

    def transfer_from(
        self, state: EscrowState, asset: AssetKind, owner: bytes, to: bytes, amount: int
    ) -> bool:
        ...


class LedgerGateway:
    """Gateway backed by the state's own asset book.

    Recipients may register receive hooks to model untrusted code that gains
    control when value arrives.
    """

    def __init__(self, hooks: Optional[dict[bytes, ReceiveHook]] = None) -> None:
        self._hooks: dict[bytes, ReceiveHook] = dict(hooks or {})

    def on_receive(self, account: bytes, hook: ReceiveHook) -> None:
        self._hooks[account] = hook

    def transfer(self, state: EscrowState, asset: AssetKind, to: bytes, amount: int) -> bool:
        return self._send(state, asset, state.address, to, amount)

    def transfer_from(
        self, state: EscrowState, asset: AssetKind, owner: bytes, to: bytes, amount: int
    ) -> bool:
        # Native currency arrives attached to a call; it cannot be pulled.
        if isinstance(asset, NativeAsset):
            return False
        spender = state.address
        current = allowance(state.assets, asset, owner, spender)
        if current < amount:
            logger.debug("transfer_from declined: allowance %d < %d", current, amount)
            return False
        state.assets.allowances[(asset, owner, spender)] = current - amount
        if not self._send(state, asset, owner, to, amount):
            state.assets.allowances[(asset, owner, spender)] = current
            return False
        return True

    def _send(self, state: EscrowState, asset: AssetKind, sender: bytes, to: bytes, amount: int) -> bool:
        hook = self._hooks.get(to)
        snapshot = deepcopy(state) if hook is not None else None
        try:
            move(state.assets, asset, sender, to, amount)
        except EscrowError as exc:
            logger.debug("transfer of %d %s declined: %s", amount, asset, exc)
            return False
        if hook is None:
            return True
        if hook(state, Receipt(asset=asset, sender=sender, recipient=to, amount=amount)):
            return True
        logger.debug("recipient %s rejected %d %s", to.hex(), amount, asset)
        state.restore(snapshot)
        return False
