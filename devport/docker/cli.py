"""Docker management CLI for devport.

This module provides the `python . docker` command group for running a
project's development stack. It wraps `docker compose` to ensure a
consistent project name and file selection, and `up` resolves the sticky
development port first, handing it to compose as PORT.
"""

import argparse
import os
import subprocess
from pathlib import Path

from pydantic import ValidationError

from devport.config import (
    EnvVar,
    get_environment,
    get_project_name,
    get_record_path,
)
from devport.core import get_logger
from devport.errors import PortError, RecordCorruptError
from devport.ports import build_context, build_session, resolve_port
from devport.probe import SocketPortProbe
from devport.record import FilePortRecord, ensure_gitignored

from .lib import (
    PORT_ENV_VAR,
    build_compose_command,
    get_compose_files,
    list_modes,
)

logger = get_logger("docker")


def _run_compose(
    args: argparse.Namespace,
    command: list[str],
    env: dict[str, str] | None = None,
) -> int:
    """Run a docker compose command for the selected project.

    Args:
        args: Parsed arguments carrying dir, mode, project and dry_run.
        command: Command arguments (e.g. ["up", "-d"]).
        env: Environment variables to add.

    Returns:
        Subprocess exit code.
    """
    try:
        files = get_compose_files(args.dir, mode=args.mode)
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    project = get_project_name(args.dir, override=args.project)
    cmd = build_compose_command(project, files, command)

    prefix = " ".join(f"{k}={v}" for k, v in (env or {}).items())
    logger.info(f"Running: {prefix + ' ' if prefix else ''}{' '.join(cmd)}")

    if args.dry_run:
        return 0

    try:
        run_env = os.environ.copy()
        if env:
            run_env.update(env)

        return subprocess.call(cmd, cwd=args.dir, env=run_env)
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130
    except OSError as e:
        logger.error(f"Failed to run docker compose: {e}")
        return 1


def _preview_port(args: argparse.Namespace) -> int:
    """Port a dry run would most likely get, without side effects."""
    record = FilePortRecord(get_record_path(args.dir))
    try:
        port = record.read()
    except RecordCorruptError:
        port = None
    return port or get_environment(EnvVar.DEV_PORT, override=args.base_port)


def cmd_up(args: argparse.Namespace) -> int:
    """Handle `docker up`."""
    if args.dry_run:
        port = _preview_port(args)
    else:
        try:
            context = build_context(args.dir, base_port=args.base_port)
        except ValidationError as e:
            logger.error(f"Invalid port settings: {e}")
            return 1

        session = build_session(args.dir, project_name=args.project, mode=args.mode)
        probe = SocketPortProbe(host=get_environment(EnvVar.DEV_PROBE_HOST))
        try:
            assignment = resolve_port(context, session=session, probe=probe)
        except PortError as e:
            logger.error(str(e))
            return 1

        try:
            ensure_gitignored(context.working_directory, context.record_name)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not update .gitignore: {e}")

        port = assignment.port

    logger.info(f"Development server port: {port}")

    cmd_args = ["up"]
    if args.detach:
        cmd_args.append("-d")
    if args.build:
        cmd_args.append("--build")
    if args.services:
        cmd_args.extend(args.services)

    return _run_compose(args, cmd_args, env={PORT_ENV_VAR: str(port)})


def cmd_down(args: argparse.Namespace) -> int:
    """Handle `docker down`."""
    cmd_args = ["down"]
    if args.volumes:
        cmd_args.append("-v")
    if args.remove_orphans:
        cmd_args.append("--remove-orphans")

    return _run_compose(args, cmd_args)


def cmd_ps(args: argparse.Namespace) -> int:
    """Handle `docker ps`."""
    return _run_compose(args, ["ps"])


def cmd_proxy(args: argparse.Namespace) -> int:
    """Handle generic proxy commands (exec, logs, restart, etc)."""
    return _run_compose(args, [args.command] + args.rest)


def handle_docker_command(argv: list[str]) -> int:
    """Handle docker-specific commands."""
    parser = argparse.ArgumentParser(
        prog="python . docker",
        description="Run the project's development stack",
    )

    # Global arguments
    parser.add_argument(
        "--dir", type=Path, default=Path.cwd(), help="Project directory"
    )
    parser.add_argument(
        "--mode",
        "-m",
        type=str,
        default="dev",
        choices=list_modes(),
        help="Compose overlay to include",
    )
    parser.add_argument(
        "--project", default=None, help="Compose project name (DEV_COMPOSE_PROJECT)"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print command but do not execute",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # up
    up_parser = subparsers.add_parser(
        "up", help="Resolve the development port and start services"
    )
    up_parser.add_argument(
        "-d", "--detach", action="store_true", help="Run in background"
    )
    up_parser.add_argument(
        "--build", action="store_true", help="Build images before starting"
    )
    up_parser.add_argument(
        "--base-port", type=int, default=None, help="First port to scan (DEV_PORT)"
    )
    up_parser.add_argument("services", nargs="*", help="Specific services to start")
    up_parser.set_defaults(func=cmd_up)

    # down
    down_parser = subparsers.add_parser("down", help="Stop and remove services")
    down_parser.add_argument(
        "-v", "--volumes", action="store_true", help="Remove volumes"
    )
    down_parser.add_argument(
        "--remove-orphans",
        action="store_true",
        help="Remove containers for services not defined",
    )
    down_parser.set_defaults(func=cmd_down)

    # ps
    ps_parser = subparsers.add_parser("ps", help="List running services")
    ps_parser.set_defaults(func=cmd_ps)

    # Proxy commands capture all remaining arguments for docker compose
    proxy_cmds = ["exec", "logs", "restart", "stop"]
    for cmd in proxy_cmds:
        p = subparsers.add_parser(cmd, help=f"Proxy for `docker compose {cmd}`")
        p.add_argument(
            "rest", nargs=argparse.REMAINDER, help="Arguments passed to docker compose"
        )
        p.set_defaults(func=cmd_proxy)

    if not argv:
        parser.print_help()
        return 1

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    return args.func(args)
