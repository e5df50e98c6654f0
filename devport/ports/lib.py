"""Sticky port resolution for development sessions.

Resolution tries three tiers in order and persists whichever port wins:

    1. Reclaim: this project's session is running. Stop it, wait until it
       is gone, and take over its port. A plain restart keeps its port.
    2. Reuse: the sticky record holds a port nobody else is bound to.
    3. Scan: probe base_port, base_port + 1, ... for max_attempts ports.

State machine (one resolution):

    START -> CHECK_RUNNING
        -> FOUND_RUNNING -> STOP -> WAIT_TEARDOWN -> REUSE
        -> NOT_RUNNING -> CHECK_STICKY -> REUSE | SCAN
    -> PERSIST -> DONE            (or FAILED on exhaustion)

A teardown that outlives shutdown_timeout continues at CHECK_STICKY.

The allocator is best effort: another process can bind the returned port
before the caller does. One invocation per project directory at a time is
assumed; the record is not locked.
"""

from __future__ import annotations

import logging
import shutil
import time
from pathlib import Path
from typing import Callable

from devport.config import (
    EnvVar,
    get_environment,
    get_project_name,
)
from devport.docker.lib import get_compose_files, list_modes
from devport.errors import (
    PortExhaustedError,
    RecordCorruptError,
    ShutdownTimeoutError,
)
from devport.probe import SocketPortProbe
from devport.record import FilePortRecord
from devport.session import ComposeSession, NullSession

from .models import PortAssignment, PortContext, ResolutionState, Tier
from .protocol import PortProbe, PortRecordStore, SessionController

logger = logging.getLogger(__name__)

__all__ = [
    "PortResolver",
    "resolve_port",
    "candidate_ports",
    "build_context",
    "build_session",
]

MAX_PORT = 65535


def _is_valid_port(port: int | None) -> bool:
    return port is not None and 0 < port <= MAX_PORT


def candidate_ports(base_port: int, max_attempts: int) -> range:
    """Ports probed by the scan tier.

    Args:
        base_port: First port.
        max_attempts: Number of ports, counting base_port.

    Returns:
        The range [base_port, base_port + max_attempts), cut off at 65535.
    """
    return range(base_port, min(base_port + max_attempts, MAX_PORT + 1))


class PortResolver:
    """Resolves a development port through the reclaim/reuse/scan tiers.

    Attributes:
        session: This project's session controller.
        probe: Host port probe.
        store: Sticky record store.

    Example:
        >>> resolver = PortResolver(
        ...     session=NullSession(),
        ...     probe=SocketPortProbe(),
        ...     store=FilePortRecord(".dev-port"),
        ... )
        >>> resolver.resolve(PortContext(working_directory=Path("."))).port
        3000
    """

    def __init__(
        self,
        session: SessionController,
        probe: PortProbe,
        store: PortRecordStore,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.session = session
        self.probe = probe
        self.store = store
        self._sleep = sleep
        self._clock = clock

    def resolve(self, context: PortContext) -> PortAssignment:
        """Pick, persist and return a port for the project.

        Args:
            context: Project directory and scan parameters.

        Returns:
            PortAssignment with the chosen port and the tier that chose it.

        Raises:
            PortExhaustedError: No free port in the scanned range.
            SessionError: The running session could not be queried or stopped.
            RecordWriteError: The chosen port could not be persisted.
        """
        trace = [ResolutionState.START]

        port = self._reclaim(context, trace)
        tier = Tier.RECLAIM
        if port is None:
            port = self._reuse(context, trace)
            tier = Tier.REUSE
        if port is None:
            try:
                port = self._scan(context, trace)
            except PortExhaustedError as e:
                trace.append(ResolutionState.FAILED)
                logger.error(str(e))
                raise
            tier = Tier.SCAN

        trace.append(ResolutionState.PERSIST)
        self.store.write(port)
        trace.append(ResolutionState.DONE)

        logger.info(f"Resolved port {port} ({tier.value})")
        return PortAssignment(
            port=port,
            tier=tier,
            record_path=context.record_path,
            trace=trace,
        )

    # =========================================================================
    # Tiers
    # =========================================================================

    def _reclaim(self, context: PortContext, trace: list[ResolutionState]) -> int | None:
        trace.append(ResolutionState.CHECK_RUNNING)
        status = self.session.status()
        if not status.running:
            trace.append(ResolutionState.NOT_RUNNING)
            return None

        trace.append(ResolutionState.FOUND_RUNNING)
        logger.info(f"Session is running on port {status.port}, restarting it")

        trace.append(ResolutionState.STOP)
        self.session.stop()

        trace.append(ResolutionState.WAIT_TEARDOWN)
        try:
            self.wait_for_teardown(context, status.port)
        except ShutdownTimeoutError as e:
            logger.warning(f"{e}; falling back to sticky record")
            return None

        if not _is_valid_port(status.port):
            logger.warning("Stopped session had no published port; falling back to sticky record")
            return None

        trace.append(ResolutionState.REUSE)
        return status.port

    def _reuse(self, context: PortContext, trace: list[ResolutionState]) -> int | None:
        trace.append(ResolutionState.CHECK_STICKY)
        try:
            port = self.store.read()
        except RecordCorruptError as e:
            logger.warning(f"{e}; ignoring it")
            return None

        if port is None:
            logger.debug("No sticky port recorded")
            return None
        if not _is_valid_port(port):
            logger.warning(f"Sticky port {port} is not a valid port; ignoring it")
            return None

        if self.probe.is_in_use(port):
            logger.info(
                f"Sticky port {port} is in use by another process, "
                f"scanning from {context.base_port}"
            )
            return None

        trace.append(ResolutionState.REUSE)
        return port

    def _scan(self, context: PortContext, trace: list[ResolutionState]) -> int:
        trace.append(ResolutionState.SCAN)
        for port in candidate_ports(context.base_port, context.max_attempts):
            if not self.probe.is_in_use(port):
                return port
            logger.debug(f"Port {port} is in use")
        raise PortExhaustedError(context.base_port, context.max_attempts)

    # =========================================================================
    # Teardown
    # =========================================================================

    def wait_for_teardown(self, context: PortContext, port: int | None = None) -> None:
        """Block until the session reports it is no longer running.

        Polls every context.poll_interval seconds.

        Raises:
            ShutdownTimeoutError: Still running after context.shutdown_timeout.
            SessionError: The status query failed.
        """
        deadline = self._clock() + context.shutdown_timeout
        while self.session.status().running:
            if self._clock() >= deadline:
                raise ShutdownTimeoutError(port, context.shutdown_timeout)
            self._sleep(context.poll_interval)


def resolve_port(
    context: PortContext,
    session: SessionController | None = None,
    probe: PortProbe | None = None,
    store: PortRecordStore | None = None,
) -> PortAssignment:
    """Resolve a development port for a project.

    Args:
        context: Project directory and scan parameters.
        session: Session controller. Defaults to NullSession (never reclaims).
        probe: Port probe. Defaults to SocketPortProbe on DEV_PROBE_HOST.
        store: Record store. Defaults to FilePortRecord at context.record_path.

    Returns:
        PortAssignment for the project.

    Raises:
        PortExhaustedError: No free port in the scanned range.
        SessionError: The running session could not be queried or stopped.
        RecordWriteError: The chosen port could not be persisted.
    """
    resolver = PortResolver(
        session=session or NullSession(),
        probe=probe or SocketPortProbe(host=get_environment(EnvVar.DEV_PROBE_HOST)),
        store=store or FilePortRecord(context.record_path),
    )
    return resolver.resolve(context)


# =============================================================================
# Construction from configuration
# =============================================================================


def build_context(
    working_directory: Path | str,
    base_port: int | None = None,
    max_attempts: int | None = None,
    shutdown_timeout: float | None = None,
    poll_interval: float | None = None,
    record_name: str | None = None,
) -> PortContext:
    """Build a PortContext from configuration.

    Each argument overrides its environment variable; unset values fall
    back to DEV_PORT, DEV_PORT_MAX_ATTEMPTS, DEV_SHUTDOWN_TIMEOUT,
    DEV_POLL_INTERVAL and DEV_PORT_FILE.

    Raises:
        pydantic.ValidationError: If a value is out of range.
    """
    return PortContext(
        working_directory=Path(working_directory),
        base_port=get_environment(EnvVar.DEV_PORT, override=base_port),
        max_attempts=get_environment(EnvVar.DEV_PORT_MAX_ATTEMPTS, override=max_attempts),
        shutdown_timeout=get_environment(
            EnvVar.DEV_SHUTDOWN_TIMEOUT, override=shutdown_timeout
        ),
        poll_interval=get_environment(EnvVar.DEV_POLL_INTERVAL, override=poll_interval),
        record_name=get_environment(EnvVar.DEV_PORT_FILE, override=record_name),
    )


def build_session(
    working_directory: Path | str,
    project_name: str | None = None,
    service: str | None = None,
    container_port: int | None = None,
    mode: str = "dev",
) -> SessionController:
    """Build the session controller for a project from configuration.

    Returns a ComposeSession over the discovered compose files. Hosts
    without a docker executable and directories without a compose file
    have no session to reclaim and get a NullSession.

    Raises:
        ValueError: If mode is not a known compose mode.
    """
    if mode not in list_modes():
        raise ValueError(f"Invalid mode: {mode}")

    if shutil.which("docker") is None:
        logger.debug("docker executable not found, nothing to reclaim")
        return NullSession()

    try:
        files = get_compose_files(working_directory, mode=mode)
    except ValueError as e:
        logger.debug(f"{e}, nothing to reclaim")
        return NullSession()

    return ComposeSession(
        working_directory=working_directory,
        project_name=get_project_name(working_directory, override=project_name),
        service=get_environment(EnvVar.DEV_SERVICE, override=service),
        container_port=get_environment(EnvVar.DEV_CONTAINER_PORT, override=container_port),
        compose_files=files,
    )
