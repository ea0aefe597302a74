"""Milestone escrow error codes and exceptions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class ErrorCategory(IntEnum):
    SUCCESS = 0x00
    VALIDATION = 0x01
    AUTHORIZATION = 0x02
    RESOURCE = 0x03
    STATE = 0x04
    TRANSFER = 0x05
    INTERNAL = 0xFF


class ErrorCode(IntEnum):
    # Success
    SUCCESS = 0x0000

    # Validation
    INVALID_PAYLOAD = 0x0100
    INVALID_TYPE = 0x0101
    INVALID_AMOUNT = 0x0102
    INVALID_ADDRESS = 0x0103
    FEE_TOO_LOW = 0x0110
    NO_MILESTONES = 0x0112
    MILESTONE_SUM_MISMATCH = 0x0114
    INCORRECT_VALUE_SENT = 0x0115
    VALUE_NOT_ACCEPTED = 0x0116

    # Authorization
    NOT_AUTHORIZED = 0x0200
    NOT_OWNER = 0x0201
    NOT_CLIENT = 0x0202

    # Resource
    INSUFFICIENT_BALANCE = 0x0300
    OVERFLOW = 0x0304

    # State
    PROJECT_NOT_FOUND = 0x0400
    ALREADY_FUNDED = 0x0401
    NOT_FUNDED = 0x0402
    ALREADY_CANCELLED = 0x0403
    ALREADY_COMPLETED = 0x0404
    ALL_MILESTONES_CONFIRMED = 0x0405

    # Transfer
    TRANSFER_FAILED = 0x0500

    # Internal
    NOT_IMPLEMENTED = 0xFF01
    UNKNOWN = 0xFFFF


@dataclass(frozen=True)
class EscrowError(Exception):
    code: ErrorCode
    message: str

    @property
    def category(self) -> ErrorCategory:
        return ErrorCategory(self.code >> 8)

    def __str__(self) -> str:
        return f"{self.code.name}({self.code:#06x}): {self.message}"


# Allow Python's Exception machinery to set __traceback__/__context__/__cause__
# while keeping dataclass fields frozen.
_EXCEPTION_ATTRS = frozenset(("__traceback__", "__context__", "__cause__"))
_frozen_setattr = EscrowError.__setattr__


def _escrow_error_setattr(self: EscrowError, name: str, value: object) -> None:
    if name in _EXCEPTION_ATTRS:
        object.__setattr__(self, name, value)
    else:
        _frozen_setattr(self, name, value)


EscrowError.__setattr__ = _escrow_error_setattr  # type: ignore[method-assign]
