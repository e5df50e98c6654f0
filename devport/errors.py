"""Exception hierarchy for devport.

Only scan exhaustion, session command failures and record write failures
reach the caller of `resolve_port`. Teardown timeouts and corrupt records
are absorbed by the resolver, which falls through to the next tier.
"""

from pathlib import Path


class PortError(Exception):
    """Base exception for port resolution errors."""


class PortExhaustedError(PortError):
    """Raised when no free port exists in the scanned range.

    Attributes:
        base_port: First port of the scanned range.
        max_attempts: Number of ports the scan was allowed to probe.
    """

    def __init__(self, base_port: int, max_attempts: int):
        last = min(base_port + max_attempts - 1, 65535)
        super().__init__(
            f"No free port found in {base_port}-{last} "
            f"({max_attempts} attempts)"
        )
        self.base_port = base_port
        self.max_attempts = max_attempts


class ShutdownTimeoutError(PortError):
    """Raised when a stopped session does not finish tearing down in time.

    Attributes:
        port: Port the session was holding, if known.
        timeout: Seconds waited before giving up.
    """

    def __init__(self, port: int | None, timeout: float):
        super().__init__(f"Session did not stop within {timeout:g}s (port {port})")
        self.port = port
        self.timeout = timeout


class RecordCorruptError(PortError):
    """Raised when the sticky port record cannot be read as a valid port.

    Attributes:
        path: Record file path.
        raw: Raw content, if it could be read.
    """

    def __init__(self, path: Path, raw: str | None = None, reason: str = ""):
        detail = f": {reason}" if reason else ""
        super().__init__(f"Invalid port record {path}{detail}")
        self.path = path
        self.raw = raw


class RecordWriteError(PortError):
    """Raised when the chosen port cannot be persisted."""

    def __init__(self, path: Path, cause: OSError):
        super().__init__(f"Failed to write port record {path}: {cause}")
        self.path = path


class SessionError(PortError):
    """Raised when a session status or stop command fails.

    Attributes:
        command: The command that failed.
        returncode: Exit status, None when the command never ran.
        stderr: Captured error output.
    """

    def __init__(
        self,
        message: str,
        command: list[str] | None = None,
        returncode: int | None = None,
        stderr: str | None = None,
    ):
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


__all__ = [
    "PortError",
    "PortExhaustedError",
    "ShutdownTimeoutError",
    "RecordCorruptError",
    "RecordWriteError",
    "SessionError",
]
