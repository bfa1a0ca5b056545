#!/usr/bin/env python3
"""Test runner script for mender-agent."""

import sys
import subprocess
from pathlib import Path


def main():
    """Run tests with pytest."""
    project_root = Path(__file__).parent

    # Check if pytest is available
    try:
        import pytest  # noqa: F401
    except ImportError:
        print("❌ pytest is not installed. Please install it with:")
        print("   pip install -e '.[test]'")
        sys.exit(1)

    cmd = [
        sys.executable,
        "-m",
        "pytest",
        str(project_root / "tests"),
        "-v",
        "--tb=short",
        "--color=yes",
    ]

    # Narrow to one suite if requested
    if len(sys.argv) > 1:
        if sys.argv[1] == "unit":
            cmd[3] = str(project_root / "tests" / "unit")
        elif sys.argv[1] == "e2e":
            cmd[3] = str(project_root / "tests" / "e2e")
        elif sys.argv[1] in ("-k", "--keyword") and len(sys.argv) > 2:
            cmd.extend(["-k", sys.argv[2]])

    print(f"🧪 Running tests: {' '.join(cmd)}")

    try:
        result = subprocess.run(cmd, cwd=project_root)
        sys.exit(result.returncode)
    except KeyboardInterrupt:
        print("\n⏹️  Tests interrupted by user")
        sys.exit(1)


if __name__ == "__main__":
    main()
