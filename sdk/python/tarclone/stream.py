"""
Readable byte stream over chunks pulled on demand.

The extractor reads from a ChunkStream; each read pulls at most one chunk
from the network, so the extractor's pace sets the download pace.
"""

import io
from collections.abc import Callable, Iterable

from tarclone.cancel import CancelToken


class ChunkStream(io.RawIOBase):
    """Raw binary stream fed by a callable returning b"" at end of data."""

    def __init__(
        self,
        next_chunk: Callable[[], bytes],
        cancel_token: CancelToken | None = None,
    ) -> None:
        super().__init__()
        self._next_chunk = next_chunk
        self._cancel_token = cancel_token
        self._pending = memoryview(b"")
        self._eof = False
        self.bytes_read = 0

    @classmethod
    def from_iterable(
        cls,
        chunks: Iterable[bytes],
        cancel_token: CancelToken | None = None,
    ) -> "ChunkStream":
        iterator = iter(chunks)

        def next_chunk() -> bytes:
            for chunk in iterator:
                if chunk:
                    return chunk
            return b""

        return cls(next_chunk, cancel_token)

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:  # type: ignore[override]
        if self._cancel_token is not None:
            self._cancel_token.check()

        while not self._pending:
            if self._eof:
                return 0
            chunk = self._next_chunk()
            if not chunk:
                self._eof = True
                return 0
            self._pending = memoryview(chunk)
            if self._cancel_token is not None:
                self._cancel_token.check()

        size = min(len(buffer), len(self._pending))
        buffer[:size] = self._pending[:size]
        self._pending = self._pending[size:]
        self.bytes_read += size
        return size
