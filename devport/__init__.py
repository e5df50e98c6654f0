"""devport: sticky development port resolution for local project stacks."""

from devport.errors import (
    PortError,
    PortExhaustedError,
    RecordCorruptError,
    RecordWriteError,
    SessionError,
    ShutdownTimeoutError,
)
from devport.ports import PortAssignment, PortContext, PortResolver, Tier, resolve_port

__all__ = [
    # Resolution
    "resolve_port",
    "PortResolver",
    "PortContext",
    "PortAssignment",
    "Tier",
    # Errors
    "PortError",
    "PortExhaustedError",
    "ShutdownTimeoutError",
    "RecordCorruptError",
    "RecordWriteError",
    "SessionError",
]
