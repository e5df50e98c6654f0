"""Sticky port record storage for devport.

One plain-text file per project checkout holds the last port chosen for
that project's development session.

Example:
    >>> from devport.record import FilePortRecord
    >>> record = FilePortRecord(".dev-port")
    >>> record.write(3003)
    >>> record.read()
    3003
"""

from .lib import FilePortRecord, ensure_gitignored, parse_port

__all__ = [
    "FilePortRecord",
    "ensure_gitignored",
    "parse_port",
]
