"""Data models for port resolution."""

from enum import Enum
from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, Field

Port = Annotated[int, Field(ge=1, le=65535)]


class Tier(str, Enum):
    """Strategy that produced a port.

    - RECLAIM: Port taken over from this project's running session
    - REUSE: Port read from the sticky record
    - SCAN: First free port found from the base port
    """

    RECLAIM = "reclaim"
    REUSE = "reuse"
    SCAN = "scan"


class ResolutionState(str, Enum):
    """States visited by one resolution."""

    START = "start"
    CHECK_RUNNING = "check_running"
    FOUND_RUNNING = "found_running"
    STOP = "stop"
    WAIT_TEARDOWN = "wait_teardown"
    NOT_RUNNING = "not_running"
    CHECK_STICKY = "check_sticky"
    SCAN = "scan"
    REUSE = "reuse"
    PERSIST = "persist"
    DONE = "done"
    FAILED = "failed"


class PortContext(BaseModel):
    """Inputs for resolving a development port.

    Attributes:
        working_directory: Project checkout; the sticky record lives here.
        base_port: First port scanned when no better signal exists.
        max_attempts: Number of sequential ports probed from base_port.
        shutdown_timeout: Seconds to wait for a stopped session to go away.
        poll_interval: Seconds between session status polls.
        record_name: Sticky record file name inside working_directory.

    Example:
        >>> context = PortContext(working_directory=Path("."), base_port=8000)
        >>> context.record_path
        PosixPath('.dev-port')
    """

    working_directory: Path = Field(..., description="Project directory")
    base_port: Port = Field(default=3000, description="First port to scan")
    max_attempts: int = Field(default=20, ge=1, description="Ports to probe")
    shutdown_timeout: float = Field(
        default=30.0, gt=0, description="Teardown wait ceiling in seconds"
    )
    poll_interval: float = Field(
        default=0.1, gt=0, description="Teardown poll cadence in seconds"
    )
    record_name: str = Field(
        default=".dev-port", min_length=1, description="Sticky record file name"
    )

    model_config = {
        "frozen": True,
    }

    @property
    def record_path(self) -> Path:
        """Path of the sticky port record."""
        return self.working_directory / self.record_name


class PortAssignment(BaseModel):
    """Result of a successful resolution.

    Attributes:
        port: Port to bind the development server to.
        tier: Strategy that produced the port.
        record_path: Where the port was persisted.
        trace: States visited, ending with DONE.
    """

    port: Port
    tier: Tier
    record_path: Path
    trace: list[ResolutionState] = Field(default_factory=list)

    model_config = {
        "frozen": True,
    }


__all__ = [
    "Port",
    "Tier",
    "ResolutionState",
    "PortContext",
    "PortAssignment",
]
