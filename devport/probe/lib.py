"""Socket-based host port probe.

A port counts as in use when a TCP socket cannot bind to it. Binding to
0.0.0.0 also catches ports published by Docker on all interfaces.
"""

import logging
import socket

logger = logging.getLogger(__name__)

__all__ = ["SocketPortProbe"]


class SocketPortProbe:
    """Checks whether a TCP port is held by any process on the host.

    Attributes:
        host: Address to bind when probing.
    """

    def __init__(self, host: str = "0.0.0.0"):
        self.host = host

    def is_in_use(self, port: int) -> bool:
        """Check if a port is currently bound.

        Args:
            port: The port number to check.

        Returns:
            True if the port cannot be bound. Ports outside 1-65535 are
            always reported in use.
        """
        if not 0 < port < 65536:
            logger.debug(f"Port {port} is outside 1-65535, treating as in use")
            return True

        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            # Allow ports in TIME_WAIT; an active listener still blocks bind
            s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            try:
                s.bind((self.host, port))
            except OSError as e:
                logger.debug(f"Port {port} on {self.host} is in use: {e}")
                return True
        return False

    def __repr__(self) -> str:
        return f"SocketPortProbe(host={self.host!r})"
