"""Port management CLI for devport.

This module provides the `python . port` command group:

    resolve   Pick the port for this project and print it
    show      Print the sticky port record
    clear     Delete the sticky port record

`resolve` prints only the port on stdout so shell scripts can capture it:

    PORT=$(python . port resolve --dir .)
"""

import argparse
from pathlib import Path

from pydantic import ValidationError

from devport.config import EnvVar, get_environment, get_record_path
from devport.core import get_logger
from devport.errors import PortError, RecordCorruptError
from devport.probe import SocketPortProbe
from devport.record import FilePortRecord, ensure_gitignored
from devport.session import NullSession

from .lib import build_context, build_session, resolve_port

logger = get_logger("port")


def cmd_resolve(args: argparse.Namespace) -> int:
    """Handle `port resolve`."""
    try:
        context = build_context(
            args.dir,
            base_port=args.base_port,
            max_attempts=args.max_attempts,
            shutdown_timeout=args.timeout,
        )
    except ValidationError as e:
        logger.error(f"Invalid port settings: {e}")
        return 1

    if args.no_reclaim:
        session = NullSession()
    else:
        session = build_session(
            args.dir,
            project_name=args.project,
            service=args.service,
            container_port=args.container_port,
        )

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

    print(assignment.port)
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    """Handle `port show`."""
    record = FilePortRecord(get_record_path(args.dir))
    try:
        port = record.read()
    except RecordCorruptError as e:
        logger.error(str(e))
        return 1

    if port is None:
        logger.info(f"No port recorded at {record.path}")
        return 1

    print(port)
    return 0


def cmd_clear(args: argparse.Namespace) -> int:
    """Handle `port clear`."""
    record = FilePortRecord(get_record_path(args.dir))
    if record.clear():
        logger.info(f"Removed {record.path}")
    else:
        logger.info(f"No port recorded at {record.path}")
    return 0


def handle_port_command(argv: list[str]) -> int:
    """Handle port-specific commands."""
    parser = argparse.ArgumentParser(
        prog="python . port",
        description="Resolve and manage the sticky development port",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # resolve
    resolve_parser = subparsers.add_parser(
        "resolve", help="Resolve the port for this project and print it"
    )
    resolve_parser.add_argument(
        "--dir", type=Path, default=Path.cwd(), help="Project directory"
    )
    resolve_parser.add_argument(
        "--base-port", type=int, default=None, help="First port to scan (DEV_PORT)"
    )
    resolve_parser.add_argument(
        "--max-attempts",
        type=int,
        default=None,
        help="Ports to probe from the base port (DEV_PORT_MAX_ATTEMPTS)",
    )
    resolve_parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait for a running session to stop (DEV_SHUTDOWN_TIMEOUT)",
    )
    resolve_parser.add_argument(
        "--no-reclaim",
        action="store_true",
        help="Do not stop a running session; only reuse or scan",
    )
    resolve_parser.add_argument(
        "--project", default=None, help="Compose project name (DEV_COMPOSE_PROJECT)"
    )
    resolve_parser.add_argument(
        "--service", default=None, help="Compose service publishing the port (DEV_SERVICE)"
    )
    resolve_parser.add_argument(
        "--container-port",
        type=int,
        default=None,
        help="Container-side port of the service (DEV_CONTAINER_PORT)",
    )
    resolve_parser.set_defaults(func=cmd_resolve)

    # show
    show_parser = subparsers.add_parser("show", help="Print the sticky port")
    show_parser.add_argument(
        "--dir", type=Path, default=Path.cwd(), help="Project directory"
    )
    show_parser.set_defaults(func=cmd_show)

    # clear
    clear_parser = subparsers.add_parser("clear", help="Delete the sticky port record")
    clear_parser.add_argument(
        "--dir", type=Path, default=Path.cwd(), help="Project directory"
    )
    clear_parser.set_defaults(func=cmd_clear)

    if not argv:
        parser.print_help()
        return 1

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    return args.func(args)
