"""CLI entry point for devport.

This module acts as the central entry point for the project's CLI tools.
It delegates commands to the appropriate submodules or runs specific tasks.
"""

import subprocess
import sys

from dotenv import load_dotenv

from devport.config import (
    EnvVar,
    get_environment,
    get_environment_info,
    list_environment_variables,
)
from devport.core import get_logger, setup_logging
from devport.docker.cli import handle_docker_command
from devport.ports.cli import handle_port_command

# Load environment variables from .env file
load_dotenv()

logger = get_logger("cli")


# =============================================================================
# Env Command
# =============================================================================


def cmd_env(argv: list[str]) -> int:
    """Show configuration variables and their current values.

    Usage:
        python . env            # All variables
        python . env port       # Only the 'port' category
    """
    category = argv[0] if argv else None
    variables = list_environment_variables(category)
    if not variables:
        logger.error(f"Unknown category: {category}")
        return 1

    current = None
    for var in variables:
        info = get_environment_info(var)
        if info.category != current:
            current = info.category
            print(f"\n[{current}]")
        value = get_environment(var)
        print(f"  {info.name:<24} {value!s:<12} {info.description}")
    return 0


# =============================================================================
# Dev Commands
# =============================================================================


def cmd_test(extra_args: list[str]) -> int:
    """Run pytest with provided arguments and test tier options.

    Usage:
        python . dev test                # Run all tests
        python . dev test --unit         # Run only unit tests
        python . dev test --integration  # Run integration tests (no Docker)
        python . dev test --docker       # Run Docker-dependent tests
        python . dev test -k "scan"      # Run tests matching pattern

    Test Tiers:
        unit        - Fast tests; sockets only on 127.0.0.1
        integration - Tests spawning the CLI or touching the real filesystem layout
        docker      - Tests requiring a running Docker daemon
    """
    tier_markers = {
        "--unit": ["-m", "unit"],
        "--integration": ["-m", "integration and not docker"],
        "--docker": ["-m", "docker"],
        "--all": [],
    }

    pytest_args: list[str] = []
    remaining_args: list[str] = []

    for arg in extra_args:
        if arg in tier_markers:
            pytest_args.extend(tier_markers[arg])
        else:
            remaining_args.append(arg)

    cmd = [sys.executable, "-m", "pytest", *pytest_args, *remaining_args]
    logger.info(f"Running: {' '.join(cmd)}")

    try:
        return subprocess.call(cmd)
    except KeyboardInterrupt:
        return 130


def handle_dev_command(argv: list[str]) -> int:
    """Handle development workflow commands.

    Usage:
        python . dev test [args]       # Run pytest
    """
    if not argv:
        print("Development workflow commands")
        print("\nUsage: python . dev {command} [args]")
        print("\nCommands:")
        print("  test       Run pytest with tier options")
        print("\nExamples:")
        print("  python . dev test --unit           # Fast unit tests")
        print("  python . dev test --docker         # Tests against a real daemon")
        return 1

    subcommand = argv[0]
    subargs = argv[1:]

    dev_commands = {
        "test": lambda: cmd_test(subargs),
    }

    if subcommand in dev_commands:
        return dev_commands[subcommand]()

    logger.error(f"Unknown dev command: {subcommand}")
    return handle_dev_command([])


def show_help() -> None:
    """Display CLI help message."""
    print("Usage: python . {command} [args]")
    print("\n=== Ports ===")
    print("  port       Resolve, show or clear the sticky development port")
    print("\n=== Docker ===")
    print("  docker     Run the development stack (up, down, ps, logs)")
    print("\n=== Configuration ===")
    print("  env        Show configuration variables")
    print("\n=== Development ===")
    print("  dev        Development workflows (test)")
    print("\nExamples:")
    print("  python . port resolve               # Print this project's port")
    print("  python . port resolve --no-reclaim  # Do not stop a running session")
    print("  python . port show                  # Print the sticky port")
    print("  python . docker up -d               # Resolve port, start stack")
    print("  python . docker down                # Stop stack")
    print("  python . env port                   # Port settings")
    print("  python . dev test --unit            # Run unit tests")


def main() -> int:
    """Main entry point for the CLI."""
    if len(sys.argv) < 2:
        show_help()
        return 1

    command = sys.argv[1]
    rest_args = sys.argv[2:]

    if command in ("-h", "--help"):
        show_help()
        return 0

    commands = {
        "port": lambda: handle_port_command(rest_args),
        "docker": lambda: handle_docker_command(rest_args),
        "env": lambda: cmd_env(rest_args),
    }

    if command == "dev":
        return handle_dev_command(rest_args)

    if command in commands:
        setup_logging(level=get_environment(EnvVar.LOG_LEVEL))
        return commands[command]()

    logger.error(f"Unknown command: {command}")
    show_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
