#!/usr/bin/env python3
"""Fill escrow ledger fixtures by running the test suite.

Every ``escrow_test_group`` case is written under ``--output`` as JSON,
grouped by operation (``lifecycle/``, ``platform/``, ``transition/``).
With ``--vectors`` the fresh fixtures are also converted to YAML vectors.
"""

from __future__ import annotations

import argparse
import os
import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT / "tools"))

from fixtures_to_vectors import convert  # noqa: E402


def main() -> int:
    parser = argparse.ArgumentParser(description="Generate escrow fixtures")
    parser.add_argument("--output", default=str(ROOT / "fixtures"))
    parser.add_argument("--vectors", default=None, help="Also write YAML vectors here")
    parser.add_argument("-k", dest="keyword", default=None, help="Only run matching tests")
    args = parser.parse_args()

    out = Path(args.output).resolve()
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join([str(ROOT / "src"), str(ROOT)])

    cmd = [sys.executable, "-m", "pytest", str(ROOT / "tests"), "-q", "--output", str(out)]
    if args.keyword:
        cmd += ["-k", args.keyword]
    print("Running:", " ".join(cmd))
    status = subprocess.call(cmd, env=env, cwd=str(ROOT))
    if status != 0:
        return status

    if args.vectors:
        count = convert(out, Path(args.vectors).resolve())
        print(f"Written {count} vector files into {args.vectors}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
