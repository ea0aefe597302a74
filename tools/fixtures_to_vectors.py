#!/usr/bin/env python3
"""Convert escrow fixtures into YAML vectors.

JSON fixtures produced by ``tools/fill.py`` are rewritten as
``test_vectors`` YAML documents with numeric error codes and the expected
event log, so that other ledger implementations can replay them.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT / "tools"))

from milestone_escrow.errors import ErrorCode  # noqa: E402
from yaml_dump import write_yaml  # noqa: E402


def _map_error_code(name: str | None) -> int:
    if not name:
        return int(ErrorCode.SUCCESS)
    try:
        return int(ErrorCode[name])
    except KeyError:
        return int(ErrorCode.UNKNOWN)


def convert(fixtures: Path, vectors: Path) -> int:
    """Rewrite every JSON fixture under ``fixtures`` as YAML; returns the file count."""
    if not fixtures.exists():
        raise SystemExit(f"fixtures dir not found: {fixtures}")

    vectors.mkdir(parents=True, exist_ok=True)

    count = 0
    for path in sorted(fixtures.rglob("*.json")):
        data = json.loads(path.read_text())
        if not isinstance(data, dict) or not isinstance(data.get("cases"), list):
            continue

        vectors_out = []
        for case in data["cases"]:
            expected = case.get("expected", {})
            post_state = expected.get("post_state") or {}
            vectors_out.append(
                {
                    "name": case.get("name", ""),
                    "description": case.get("description", ""),
                    "pre_state": case.get("pre_state"),
                    "call": case.get("call"),
                    "expected": {
                        "ok": bool(expected.get("ok", False)),
                        "error": expected.get("error"),
                        "error_code": _map_error_code(expected.get("error")),
                        "state_digest": expected.get("state_digest", ""),
                        "post_state": {"events": post_state.get("events", [])},
                    },
                }
            )

        dest = (vectors / path.relative_to(fixtures)).with_suffix(".yaml")
        dest.parent.mkdir(parents=True, exist_ok=True)
        write_yaml(dest, {"test_vectors": vectors_out})
        count += 1
    return count


def main() -> None:
    parser = argparse.ArgumentParser(description="Convert fixtures to vectors")
    parser.add_argument("--fixtures", default=str(ROOT / "fixtures"))
    parser.add_argument("--vectors", default=str(ROOT / "vectors"))
    args = parser.parse_args()

    vectors = Path(args.vectors).resolve()
    count = convert(Path(args.fixtures).resolve(), vectors)
    print(f"Written {count} vector files into {vectors}")


if __name__ == "__main__":
    main()
