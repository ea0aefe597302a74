"""Pytest hooks and shared fixtures for the escrow ledger tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest

from milestone_escrow.state_digest import compute_state_digest
from milestone_escrow.state_transition import TransitionResult, apply_call
from milestone_escrow.types import Call, EscrowState
from tools.fixtures_io import call_to_json, state_to_json

_STATE_CASES: dict[str, list[dict[str, Any]]] = {}

EscrowTestGroup = Callable[..., tuple[EscrowState, TransitionResult]]


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--output",
        action="store",
        default=None,
        help="Output directory for generated fixtures",
    )


@pytest.fixture
def escrow_test_group() -> EscrowTestGroup:
    """Apply a call, collect it as a fixture case and return the outcome."""

    def _escrow_test_group(
        rel_path: str,
        name: str,
        pre_state: EscrowState,
        call: Call,
    ) -> tuple[EscrowState, TransitionResult]:
        pre_json = state_to_json(pre_state)
        post_state, result = apply_call(pre_state, call)
        _STATE_CASES.setdefault(rel_path, []).append(
            {
                "name": name,
                "pre_state": pre_json,
                "call": call_to_json(call),
                "expected": {
                    "ok": result.ok,
                    "error": result.error.code.name if result.error else None,
                    "state_digest": compute_state_digest(post_state),
                    "post_state": state_to_json(post_state),
                },
            }
        )
        return post_state, result

    return _escrow_test_group


def pytest_sessionfinish(session: pytest.Session, exitstatus: int) -> None:
    output_dir = session.config.getoption("--output")
    if not output_dir:
        return

    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    for rel_path, cases in _STATE_CASES.items():
        if not cases:
            continue
        target = out / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps({"cases": cases}, indent=2))
