"""Docker Compose configuration and utilities for devport.

This module locates a project's compose files and builds `docker compose`
command lines that pin the project name and file set, so every command
(up, down, ps, port) addresses the same development session.

Compose Files:
    compose.yaml / compose.yml / docker-compose.yaml / docker-compose.yml
                            - Base definition (first match wins)
    compose.dev.yaml / compose.dev.yml / docker-compose.dev.yml
                            - Dev overrides, added in "dev" mode
    compose.production.yml / docker-compose.production.yml
                            - Production overrides, added in "production" mode

The resolved host port is handed to compose as the PORT environment
variable, which the service maps with e.g. `"${PORT:-3000}:3000"`.
"""

from __future__ import annotations

from pathlib import Path

__all__ = [
    "PORT_ENV_VAR",
    "BASE_COMPOSE_FILES",
    "build_compose_command",
    "get_compose_files",
    "list_modes",
]

# Environment variable compose files read the host port from
PORT_ENV_VAR: str = "PORT"

BASE_COMPOSE_FILES: tuple[str, ...] = (
    "compose.yaml",
    "compose.yml",
    "docker-compose.yaml",
    "docker-compose.yml",
)

# Mode to overlay file candidates
_OVERRIDE_FILES: dict[str, tuple[str, ...]] = {
    "dev": ("compose.dev.yaml", "compose.dev.yml", "docker-compose.dev.yml"),
    "production": ("compose.production.yml", "docker-compose.production.yml"),
    "base": (),
}


def get_compose_files(working_directory: Path | str, mode: str = "dev") -> list[Path]:
    """Get the compose files for a project in a given mode.

    Files are returned in the order docker compose should merge them:
        1. Base definition
        2. Mode overlay (if present)

    Args:
        working_directory: Project directory to search.
        mode: 'dev', 'production' or 'base'. Defaults to 'dev'.

    Returns:
        List of compose file paths.

    Raises:
        ValueError: If mode is invalid or no base compose file exists.
    """
    if mode not in _OVERRIDE_FILES:
        valid_modes = ", ".join(list_modes())
        raise ValueError(f"Invalid mode: {mode}. Must be one of: {valid_modes}")

    root = Path(working_directory)
    files: list[Path] = []

    for name in BASE_COMPOSE_FILES:
        candidate = root / name
        if candidate.is_file():
            files.append(candidate)
            break
    else:
        raise ValueError(f"No compose file found in {root}")

    for name in _OVERRIDE_FILES[mode]:
        candidate = root / name
        if candidate.is_file():
            files.append(candidate)
            break

    return files


def list_modes() -> list[str]:
    """List available compose modes.

    Returns:
        Sorted mode names.
    """
    return sorted(_OVERRIDE_FILES.keys())


def build_compose_command(
    project_name: str,
    files: list[Path],
    command: list[str],
) -> list[str]:
    """Build a docker compose command line.

    Args:
        project_name: Compose project name (-p).
        files: Compose files (-f), in merge order.
        command: Subcommand and its arguments (e.g. ["up", "-d"]).

    Returns:
        Complete argv list.
    """
    args = ["docker", "compose", "-p", project_name]
    for file in files:
        args.extend(["-f", str(file)])
    args.extend(command)
    return args
