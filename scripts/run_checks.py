#!/usr/bin/env python3
"""Run ruff, pyright and the offscreen test suite.

Usage:
  python scripts/run_checks.py [--no-lint] [--timeout SECONDS] [-- pytest args...]

Tests run with QT_QPA_PLATFORM=offscreen so no window system is needed, and
the processing service is never contacted (tests use a fake client or a
local HTTP server).
"""

from __future__ import annotations

import argparse
import os
import subprocess
import sys


def run(cmd: list[str], env: dict[str, str] | None = None, timeout: int | None = None) -> int:
    print("=>", " ".join(cmd))
    try:
        return subprocess.run(cmd, env=env, check=False, timeout=timeout).returncode
    except subprocess.TimeoutExpired:
        print(f"timed out after {timeout} seconds", file=sys.stderr)
        return 124


def main() -> int:
    parser = argparse.ArgumentParser(description="Lint, type-check and test resize_studio")
    parser.add_argument("--no-lint", action="store_true", help="Skip ruff and pyright")
    parser.add_argument("--timeout", type=int, default=300, help="Maximum seconds for the whole pytest run")
    parser.add_argument("pytest_args", nargs=argparse.REMAINDER)
    args = parser.parse_args()

    if not args.no_lint:
        rc = run([sys.executable, "-m", "ruff", "check", "."])
        if rc != 0:
            print("ruff failed")
            return rc
        rc = run([sys.executable, "-m", "pyright"])
        if rc != 0:
            print("pyright failed")
            return rc

    env = os.environ.copy()
    env.setdefault("QT_QPA_PLATFORM", "offscreen")
    user_args = [a for a in args.pytest_args if a != "--"]
    rc = run([sys.executable, "-m", "pytest", "-q", "--timeout=60", *user_args], env=env, timeout=args.timeout)
    if rc != 0:
        print("pytest failed")
        return rc

    print("All checks passed")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
