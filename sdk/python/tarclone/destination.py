"""
Destination directory checks.

Runs before any network request so an unusable directory costs nothing.
Never deletes or modifies existing content.
"""

import os
from pathlib import Path

from tarclone.exceptions import DestinationConflictError, DestinationIOError
from tarclone.logging import get_logger

logger = get_logger()


def ensure_directory_exists(path: str | Path) -> Path:
    """
    Create the destination directory if it is missing.

    Only one level is created; a missing parent is an error.

    Args:
        path: Destination directory

    Returns:
        The destination as a Path

    Raises:
        DestinationIOError: If creation fails for any reason other than
            the directory already existing
    """
    path = Path(path)
    try:
        path.mkdir()
    except FileExistsError:
        pass
    except OSError as e:
        raise DestinationIOError(
            path.resolve(), f"Unable to create output directory: {e.strerror or e}"
        ) from e
    else:
        logger.debug(f"Created output directory {path.resolve()}")
    return path


def ensure_directory_empty(path: str | Path) -> None:
    """
    Check that the destination directory holds no entries.

    A directory that does not exist is considered empty.

    Args:
        path: Destination directory

    Raises:
        DestinationConflictError: If the directory has one or more entries
        DestinationIOError: If listing fails for another reason
    """
    path = Path(path)
    try:
        with os.scandir(path) as entries:
            has_entries = next(entries, None) is not None
    except FileNotFoundError:
        return
    except OSError as e:
        raise DestinationIOError(
            path.resolve(), f"Unable to read output directory: {e.strerror or e}"
        ) from e

    if has_entries:
        raise DestinationConflictError(path.resolve())


def prepare_destination(path: str | Path, force: bool = False) -> Path:
    """
    Make sure the destination exists and, unless forced, is empty.

    Args:
        path: Destination directory
        force: Skip the emptiness check

    Returns:
        The destination as a Path
    """
    path = ensure_directory_exists(path)

    if not force:
        ensure_directory_empty(path)

    return path
