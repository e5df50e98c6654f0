"""Development session control for devport.

A session is one running instance of a project's Docker Compose stack.
The port resolver asks it whether it is running, which host port it
publishes, and tells it to stop.

Example:
    >>> from devport.session import ComposeSession
    >>> session = ComposeSession(Path("."), project_name="shop")
    >>> status = session.status()
    >>> if status.running:
    ...     print(f"running on {status.port}")
"""

from .lib import ComposeSession, NullSession, SessionStatus, parse_published_port

__all__ = [
    "ComposeSession",
    "NullSession",
    "SessionStatus",
    "parse_published_port",
]
