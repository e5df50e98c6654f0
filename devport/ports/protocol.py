"""Collaborator protocols for port resolution.

The resolver never touches sockets, files or docker directly; it talks to
objects implementing these interfaces.
"""

from typing import Protocol

from devport.session.lib import SessionStatus


class SessionController(Protocol):
    """Queries and stops this project's development session."""

    def status(self) -> SessionStatus:
        """Report whether the session is running and its host port."""
        ...

    def stop(self) -> None:
        """Stop the session. Must succeed if it is already stopped."""
        ...


class PortProbe(Protocol):
    """Answers whether a port is bound by any process on the host."""

    def is_in_use(self, port: int) -> bool:
        """Check a single port."""
        ...


class PortRecordStore(Protocol):
    """Persists one port per project."""

    def read(self) -> int | None:
        """Return the stored port, None if absent.

        Raises RecordCorruptError for unusable content.
        """
        ...

    def write(self, port: int) -> None:
        """Store a port, replacing any previous value."""
        ...


__all__ = ["SessionController", "PortProbe", "PortRecordStore"]
