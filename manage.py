#!/usr/bin/env python3
"""
Cross-platform management script for the infrastructure test framework.
"""

import argparse
import os
import shutil
import subprocess
import sys
from typing import List, Optional

CONFIG_FILE = "config.example.yaml"


def run_command(command: List[str], env: Optional[dict] = None, check: bool = True):
    """Run a command, exiting with its return code on failure."""
    print(f"Running: {' '.join(command)}")
    try:
        subprocess.run(command, env=env, check=check)
    except subprocess.CalledProcessError as e:
        print(f"Error executing command: {e}")
        sys.exit(e.returncode)


def clean():
    """Clean up generated files."""
    print("Cleaning up...")
    dirs_to_remove = ["build", "dist", "test-results", "src/infra_test_framework.egg-info"]

    for d in dirs_to_remove:
        if os.path.exists(d):
            print(f"Removing {d}")
            shutil.rmtree(d)

    for root, dirs, files in os.walk("."):
        for d in dirs:
            if d == "__pycache__":
                shutil.rmtree(os.path.join(root, d))
        for f in files:
            if f.endswith(".pyc"):
                os.remove(os.path.join(root, f))


def install():
    """Install the package with test extras in editable mode."""
    run_command([sys.executable, "-m", "pip", "install", "-e", ".[test]"])


def test():
    """Run unit tests."""
    run_command([sys.executable, "-m", "pytest", "tests/", "-v"])


def smoke():
    """Provision and verify the smoke scenarios."""
    run_command([sys.executable, "-m", "infra_test_framework.cli", "--mode", "smoke",
                 "--config", CONFIG_FILE])


def full():
    """Provision and verify every scenario."""
    run_command([sys.executable, "-m", "infra_test_framework.cli", "--mode", "full",
                 "--config", CONFIG_FILE])


def live():
    """Run the live pytest suite against real AWS."""
    env = os.environ.copy()
    env["INFRA_TEST_LIVE"] = "1"
    run_command([sys.executable, "-m", "pytest", "tests/integration", "-v", "-m", "live"], env=env)


def main():
    parser = argparse.ArgumentParser(description="Manage the infrastructure test framework")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("install", help="Install package and test dependencies")
    subparsers.add_parser("test", help="Run unit tests")
    subparsers.add_parser("smoke", help="Run smoke scenarios")
    subparsers.add_parser("full", help="Run all scenarios")
    subparsers.add_parser("live", help="Run the live pytest suite")
    subparsers.add_parser("clean", help="Clean up artifacts")

    args = parser.parse_args()

    commands = {
        "install": install,
        "test": test,
        "smoke": smoke,
        "full": full,
        "live": live,
        "clean": clean,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
    else:
        command()


if __name__ == "__main__":
    main()
