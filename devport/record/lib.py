"""File-backed sticky port record.

The record is the decimal port number followed by a newline. Writes go
through a temporary file in the same directory and `os.replace`, so a
reader never sees a partially written value.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from devport.errors import RecordCorruptError, RecordWriteError

logger = logging.getLogger(__name__)

__all__ = [
    "FilePortRecord",
    "ensure_gitignored",
    "parse_port",
]

MIN_PORT = 1
MAX_PORT = 65535


def parse_port(raw: str) -> int | None:
    """Parse a port number from text.

    Args:
        raw: Text such as "3003" or "3003\\n".

    Returns:
        The port, or None if the text is not an integer in 1-65535.
    """
    text = raw.strip()
    # ASCII digits only
    if not (text.isascii() and text.isdigit()):
        return None
    port = int(text)
    if not MIN_PORT <= port <= MAX_PORT:
        return None
    return port


class FilePortRecord:
    """Sticky port record stored as a single file.

    Attributes:
        path: Location of the record file.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)

    @property
    def exists(self) -> bool:
        """True if the record file is present."""
        return self.path.is_file()

    def read(self) -> int | None:
        """Read the persisted port.

        Returns:
            The port, or None if no record exists.

        Raises:
            RecordCorruptError: If the file cannot be read or does not
                hold a valid port.
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise RecordCorruptError(self.path, reason=str(e)) from e

        port = parse_port(raw)
        if port is None:
            raise RecordCorruptError(self.path, raw=raw, reason="not a port number")
        return port

    def write(self, port: int) -> None:
        """Persist a port, replacing any previous value.

        Raises:
            ValueError: If port is outside 1-65535.
            RecordWriteError: If the file cannot be written.
        """
        if not MIN_PORT <= port <= MAX_PORT:
            raise ValueError(f"Port out of range: {port}")

        tmp = self.path.with_name(f"{self.path.name}.tmp")
        try:
            tmp.write_text(f"{port}\n", encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise RecordWriteError(self.path, e) from e

        logger.debug(f"Persisted port {port} to {self.path}")

    def clear(self) -> bool:
        """Delete the record.

        Returns:
            True if a record was deleted, False if none existed.
        """
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        logger.debug(f"Removed port record {self.path}")
        return True

    def __repr__(self) -> str:
        return f"FilePortRecord({str(self.path)!r})"


def ensure_gitignored(working_directory: Path | str, entry: str) -> bool:
    """Add the record file to the project's .gitignore.

    Only an existing .gitignore is updated; none is created.

    Args:
        working_directory: Project directory holding the .gitignore.
        entry: File name to ignore (e.g. ".dev-port").

    Returns:
        True if the .gitignore was modified.
    """
    gitignore = Path(working_directory) / ".gitignore"
    if not gitignore.is_file():
        return False

    content = gitignore.read_text(encoding="utf-8")
    patterns = {line.strip() for line in content.splitlines()}
    if entry in patterns or f"/{entry}" in patterns:
        return False

    prefix = "" if not content or content.endswith("\n") else "\n"
    with gitignore.open("a", encoding="utf-8") as f:
        f.write(f"{prefix}{entry}\n")

    logger.info(f"Added {entry} to {gitignore}")
    return True
