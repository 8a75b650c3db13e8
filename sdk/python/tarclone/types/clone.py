"""Clone request/result data models."""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from tarclone.types.providers import ProviderType


@dataclass(frozen=True)
class CloneRequest:
    """A resolved clone: where to download from and where to write."""

    tarball_url: str
    provider: ProviderType | str
    destination: Path
    force: bool = False


@dataclass
class FetchResult:
    """Outcome of a single fetch-and-extract run."""

    final_url: str
    redirects: list[str]
    entries_written: int
    bytes_read: int


@dataclass
class CloneResult:
    """Outcome of a whole clone."""

    request: CloneRequest
    final_url: str
    redirects: list[str]
    entries_written: int
    bytes_read: int
    started_at: datetime
    completed_at: datetime = field(default_factory=datetime.now)

    @property
    def elapsed_seconds(self) -> float:
        return (self.completed_at - self.started_at).total_seconds()
