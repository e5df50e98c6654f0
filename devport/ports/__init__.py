"""Sticky development port resolution.

Assigns a TCP port to a project's development session, keeps it across
restarts, takes it back from a running session, and otherwise scans for a
free one.

Example:
    >>> from devport.ports import build_context, build_session, resolve_port
    >>> context = build_context(".")
    >>> assignment = resolve_port(context, session=build_session("."))
    >>> print(assignment.port, assignment.tier)
"""

from .lib import (
    PortResolver,
    build_context,
    build_session,
    candidate_ports,
    resolve_port,
)
from .models import PortAssignment, PortContext, ResolutionState, Tier
from .protocol import PortProbe, PortRecordStore, SessionController

__all__ = [
    # Resolution
    "PortResolver",
    "resolve_port",
    "candidate_ports",
    # Models
    "PortContext",
    "PortAssignment",
    "ResolutionState",
    "Tier",
    # Collaborators
    "SessionController",
    "PortProbe",
    "PortRecordStore",
    # Configuration
    "build_context",
    "build_session",
]
