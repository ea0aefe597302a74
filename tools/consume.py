"""Consume escrow fixtures and validate them against the Python ledger."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import click

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT / "tools"))

from milestone_escrow.state_digest import compute_state_digest  # noqa: E402
from milestone_escrow.state_transition import apply_call  # noqa: E402
from fixtures_io import call_from_json, state_from_json, state_to_json  # noqa: E402
from yaml_dump import load_yaml  # noqa: E402

logger = logging.getLogger(__name__)


def check_case(case: dict[str, Any]) -> Optional[str]:
    """Replay one case; return a failure tag or None."""
    pre_state = state_from_json(case["pre_state"])
    call = call_from_json(case["call"])
    post_state, result = apply_call(pre_state, call)

    expected = case["expected"]
    if result.ok != expected["ok"]:
        return "ok_mismatch"

    actual_err = result.error.code.name if result.error else None
    if actual_err != expected["error"]:
        return "error_mismatch"

    if compute_state_digest(post_state) != expected["state_digest"]:
        return "state_digest_mismatch"

    expected_post = expected.get("post_state")
    if expected_post is not None:
        actual_events = state_to_json(post_state).get("events", [])
        if expected_post.get("events", []) != actual_events:
            return "events_mismatch"
    return None


def check_file(path: Path) -> list[str]:
    if path.suffix in (".yaml", ".yml"):
        data = load_yaml(path)
        cases = data.get("test_vectors", [])
    else:
        data = json.loads(path.read_text())
        cases = data.get("cases", [])

    failures: list[str] = []
    for case in cases:
        tag = check_case(case)
        if tag is not None:
            failures.append(f"{case['name']}: {tag}")
            logger.info(f"  [FAIL] {case['name']} ({tag})")
        else:
            logger.debug(f"  [PASS] {case['name']}")
    return failures


def find_fixture_files(fixture_dir: Path) -> list[Path]:
    files: list[Path] = []
    for pattern in ("*.json", "*.yaml", "*.yml"):
        files.extend(fixture_dir.rglob(pattern))
    return sorted(files)


@click.command()
@click.option(
    "--fixtures",
    default=str(ROOT / "fixtures"),
    help="Path to fixtures directory or a single fixture file",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Enable verbose output",
)
def main(fixtures: str, verbose: bool) -> None:
    """Replay escrow fixtures and compare results and state digests."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    target = Path(fixtures)
    paths = [target] if target.is_file() else find_fixture_files(target)
    if not paths:
        logger.error(f"No fixture files found in {target}")
        sys.exit(1)

    logger.info(f"Found {len(paths)} fixture files")

    failures: list[str] = []
    for path in paths:
        logger.info(f"Checking {path.name}")
        failures.extend(check_file(path))

    if failures:
        for f in failures:
            logger.error(f"FAIL {f}")
        sys.exit(1)

    logger.info("All fixtures passed")


if __name__ == "__main__":
    main()
