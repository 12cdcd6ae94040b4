#!/usr/bin/env python3
"""
Run the CI checks for phonetic_names locally, inside the ACTIVE virtual environment.

Steps:
  1) uv pip install -e ".[test,dev]"
  2) black --check (line length 120) on the package, tests and scripts
  3) mypy on the package
  4) pytest tests/ with coverage of phonetic_names
"""

import os
import shutil
import subprocess
import sys
from pathlib import Path

REPO = Path(__file__).resolve().parent.parent
PACKAGE = "phonetic_names"


def tool(name: str) -> list[str]:
    """Prefer `uv run` when uv is installed, else the current interpreter."""
    if shutil.which("uv"):
        return ["uv", "run", "--active", name]
    return [sys.executable, "-m", name]


def run(cmd: list[str], env: dict[str, str] | None = None) -> None:
    print(">>>", " ".join(cmd))
    subprocess.run(cmd, check=True, cwd=str(REPO), env=env)


def install() -> None:
    if shutil.which("uv"):
        run(["uv", "pip", "install", "-e", ".[test,dev]"])
    else:
        run([sys.executable, "-m", "pip", "install", "-e", ".[test,dev]"])


def main() -> None:
    install()

    run(tool("black") + [PACKAGE, "tests", "scripts", "--check", "--line-length", "120"])
    run(tool("mypy") + [PACKAGE, "--ignore-missing-imports"])

    env = os.environ.copy()
    env["PYTHONPATH"] = str(REPO)
    run(
        tool("pytest")
        + [
            "tests/",
            f"--cov={PACKAGE}",
            "--cov-report=term-missing",
            "--cov-fail-under=80",
        ],
        env=env,
    )

    print("\nALL CHECKS PASSED")


if __name__ == "__main__":
    try:
        main()
    except subprocess.CalledProcessError as e:
        print(f"\nCommand failed with exit code {e.returncode}", file=sys.stderr)
        sys.exit(e.returncode)
