"""Host port probing for devport."""

from .lib import SocketPortProbe

__all__ = ["SocketPortProbe"]
