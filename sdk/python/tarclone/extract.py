"""
Streaming tar extraction.

Hosted tarballs wrap every entry in one synthetic root folder
(``repo-<sha>/``); extraction drops that leading segment so the files land
directly in the destination.
"""

import copy
import tarfile
import zlib
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path, PurePosixPath
from typing import BinaryIO

from tarclone.exceptions import ExtractionError
from tarclone.logging import get_logger

logger = get_logger("extract")

ExtractionFilter = Callable[[tarfile.TarInfo, str], tarfile.TarInfo | None]


class Extractor(ABC):
    """Abstract base class for archive extractors."""

    @abstractmethod
    def extract(
        self,
        stream: BinaryIO,
        destination: str | Path,
        strip_components: int = 1,
    ) -> int:
        """
        Write the archive read from ``stream`` under ``destination``.

        Returns:
            Number of entries written

        Raises:
            ExtractionError: If the archive cannot be fully written
        """
        pass


def strip_path(name: str, strip_components: int) -> str:
    """
    Drop the first ``strip_components`` segments of an archive path.

    Returns an empty string when nothing is left.
    """
    parts = [p for p in PurePosixPath(name).parts if p not in ("", ".", "/")]
    return "/".join(parts[strip_components:])


def clone_filter(member: tarfile.TarInfo, dest_path: str) -> tarfile.TarInfo | None:
    """
    Extraction filter for repository tarballs.

    Symbolic links may point anywhere, including absolute paths, since
    repositories commonly ship them. Every entry name must still resolve
    inside ``dest_path``, so nothing is ever written through a link that
    leaves the destination.
    """
    if member.issym():
        return tarfile.tar_filter(member, dest_path)
    return tarfile.data_filter(member, dest_path)


class TarExtractor(Extractor):
    """
    Extractor for tar archives (plain, gzip, bzip2 or xz).

    Reads the archive in streaming mode so nothing is buffered beyond the
    decompression window. Entries are passed through ``clone_filter`` by
    default, which rejects absolute entry names, ``..`` traversal and hard
    links that point outside the destination.
    """

    def __init__(
        self,
        extraction_filter: str | ExtractionFilter = clone_filter,
    ) -> None:
        """
        Initialize the extractor.

        Args:
            extraction_filter: tarfile extraction filter, by name ("data",
                "tar") or as a callable
        """
        self.extraction_filter = extraction_filter

    def extract(
        self,
        stream: BinaryIO,
        destination: str | Path,
        strip_components: int = 1,
    ) -> int:
        if strip_components < 0:
            raise ValueError("strip_components cannot be negative")

        dest_root = Path(destination)
        written = 0

        try:
            with tarfile.open(fileobj=stream, mode="r|*") as archive:
                for member in archive:
                    stripped = self._strip_member(member, strip_components)
                    if stripped is None:
                        continue
                    archive.extract(stripped, dest_root, filter=self.extraction_filter)
                    written += 1
        except (tarfile.TarError, zlib.error, EOFError, OSError) as e:
            raise ExtractionError(
                f"Failed to extract archive into {dest_root.resolve()}: {e}",
                destination=dest_root,
            ) from e

        logger.debug(f"Wrote {written} entries into {dest_root.resolve()}")
        return written

    def _strip_member(
        self, member: tarfile.TarInfo, strip_components: int
    ) -> tarfile.TarInfo | None:
        name = strip_path(member.name, strip_components)
        if not name:
            return None

        stripped = copy.copy(member)
        stripped.name = name

        if member.islnk():
            # hard link targets are archive paths too
            linkname = strip_path(member.linkname, strip_components)
            if not linkname:
                return None
            stripped.linkname = linkname

        return stripped
