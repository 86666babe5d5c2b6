#!/usr/bin/env python3
"""Test runner script for Dropbox relay tests."""

import argparse
import os
import subprocess
import sys
from pathlib import Path

SUITES = ("relay", "lifecycle")


def run_tests(test_suite=None, fail_fast=False):
    """Run the test suites with appropriate configuration."""

    # Get the project root directory (parent of tests directory)
    project_root = Path(__file__).parent.parent

    env = os.environ.copy()
    env["PYTHONPATH"] = str(project_root / "docker" / "dropbox_relay")

    if test_suite:
        return run_test_suite(test_suite, fail_fast, env, project_root)

    # Run each suite separately so failures are reported per suite
    print("Running all test suites separately for better reporting...")
    for suite_name in SUITES:
        result = run_test_suite(suite_name, fail_fast, env, project_root)
        if result != 0:
            return result
    return 0


def run_test_suite(suite_name, fail_fast, env, project_root):
    """Run a specific test suite."""
    test_path = project_root / "tests" / suite_name

    cmd = [
        sys.executable, "-m", "pytest", "-v", "--tb=short", "--strict-markers",
        "--strict-config", str(test_path), "--color=yes"
    ]
    if fail_fast:
        cmd.append("-x")

    print(f"Running {suite_name.upper()} tests with command: {' '.join(cmd)}")
    print(f"Environment: PYTHONPATH={env.get('PYTHONPATH', 'Not set')}")
    print("-" * 60)

    result = subprocess.run(cmd, env=env, capture_output=False)
    return result.returncode


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Run Dropbox relay test suites",
        epilog=(
            "Install test dependencies first:\n"
            '    pip install -e ".[test]"\n'
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    group = parser.add_mutually_exclusive_group()
    group.add_argument("--relay", action="store_true", help="Run endpoint, CORS and upstream tests only")
    group.add_argument("--lifecycle", action="store_true", help="Run configuration and server lifecycle tests only")

    parser.add_argument("--fast", action="store_true", help="Fail fast on first error")

    args = parser.parse_args()

    test_suite = None
    if args.relay:
        test_suite = "relay"
    elif args.lifecycle:
        test_suite = "lifecycle"

    return run_tests(test_suite=test_suite, fail_fast=args.fast)


if __name__ == "__main__":
    sys.exit(main())
