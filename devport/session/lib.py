"""Docker Compose backed session controller.

Wraps `docker compose ps`, `docker compose port` and `docker compose down`
for a single compose project. All commands pin the project name and file
set through `build_compose_command`.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from devport.docker.lib import build_compose_command
from devport.errors import SessionError
from devport.record.lib import parse_port

logger = logging.getLogger(__name__)

__all__ = [
    "SessionStatus",
    "ComposeSession",
    "NullSession",
    "parse_published_port",
]


@dataclass(frozen=True)
class SessionStatus:
    """Snapshot of a project's development session.

    Attributes:
        running: Whether the session's service has a running container.
        port: Host port the service publishes, if known.
    """

    running: bool
    port: int | None = None


def parse_published_port(output: str) -> int | None:
    """Parse `docker compose port` output.

    Compose prints one "host:port" line per address family, e.g.
    "0.0.0.0:3005" and "[::]:3005". The first valid port wins.

    Returns:
        Host port, or None if the output holds none.
    """
    for line in output.splitlines():
        line = line.strip()
        if ":" not in line:
            continue
        port = parse_port(line.rsplit(":", 1)[1])
        if port is not None:
            return port
    return None


class ComposeSession:
    """Session controller for one Docker Compose project.

    Attributes:
        working_directory: Project directory; commands run from here.
        project_name: Compose project name.
        service: Service publishing the development port.
        container_port: Container-side port of that service.
        compose_files: Compose files passed with -f. Empty means compose
            discovers them from the working directory.
        timeout: Seconds allowed per docker command.
    """

    def __init__(
        self,
        working_directory: Path | str,
        project_name: str,
        service: str = "app",
        container_port: int = 3000,
        compose_files: list[Path] | None = None,
        timeout: float = 60.0,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ):
        self.working_directory = Path(working_directory)
        self.project_name = project_name
        self.service = service
        self.container_port = container_port
        self.compose_files = list(compose_files or [])
        self.timeout = timeout
        self._runner = runner

    def _compose(self, command: list[str]) -> subprocess.CompletedProcess:
        """Run a docker compose subcommand for this project."""
        args = build_compose_command(self.project_name, self.compose_files, command)
        logger.debug(f"Running: {' '.join(args)}")

        try:
            return self._runner(
                args,
                cwd=self.working_directory,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise SessionError("docker executable not found", command=args) from e
        except subprocess.TimeoutExpired as e:
            raise SessionError(
                f"docker compose {command[0]} timed out after {self.timeout:g}s",
                command=args,
            ) from e

    def _check(self, result: subprocess.CompletedProcess, action: str) -> None:
        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            raise SessionError(
                f"Failed to {action} session {self.project_name}: {stderr}",
                command=list(result.args) if result.args else None,
                returncode=result.returncode,
                stderr=stderr,
            )

    def status(self) -> SessionStatus:
        """Report whether the service is running and on which host port.

        Raises:
            SessionError: If docker compose cannot be queried.
        """
        result = self._compose(["ps", "--status", "running", "-q", self.service])
        self._check(result, "query")

        if not result.stdout.split():
            return SessionStatus(running=False)

        return SessionStatus(running=True, port=self._published_port())

    def _published_port(self) -> int | None:
        result = self._compose(["port", self.service, str(self.container_port)])
        if result.returncode != 0:
            logger.debug(
                f"No published port for {self.service}:{self.container_port}: "
                f"{(result.stderr or '').strip()}"
            )
            return None
        return parse_published_port(result.stdout)

    def stop(self) -> None:
        """Stop and remove the session's containers.

        Stopping an already stopped project succeeds.

        Raises:
            SessionError: If docker compose down fails.
        """
        logger.info(f"Stopping session {self.project_name}")
        result = self._compose(["down", "--remove-orphans"])
        self._check(result, "stop")

    def __repr__(self) -> str:
        return (
            f"ComposeSession(project_name={self.project_name!r}, "
            f"service={self.service!r}, container_port={self.container_port})"
        )


class NullSession:
    """Session controller for projects with no session to reclaim."""

    def status(self) -> SessionStatus:
        return SessionStatus(running=False)

    def stop(self) -> None:
        pass
