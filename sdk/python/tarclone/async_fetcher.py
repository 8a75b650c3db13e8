"""
Async tarball fetcher.

Same redirect and error handling as TarballFetcher using the httpx async
client. Extraction runs in a worker thread that pulls body chunks from the
event loop one at a time, so disk writes gate network reads.
"""

import asyncio
import concurrent.futures
import io
import time
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import httpx

from tarclone.cancel import CancelToken
from tarclone.exceptions import FetchTimeoutError, RedirectLoopError, TransportError
from tarclone.extract import Extractor, TarExtractor
from tarclone.fetcher import (
    FetchConfig,
    build_headers,
    error_for_response,
    redirect_target,
)
from tarclone.logging import (
    log_extraction,
    log_http_request,
    log_http_response,
    log_redirect,
)
from tarclone.stream import ChunkStream
from tarclone.types.clone import FetchResult
from tarclone.types.providers import ProviderType

# How often a worker thread waiting on the loop re-checks its token
_POLL_INTERVAL = 0.1


class AsyncTarballFetcher:
    """
    Async HTTP tarball fetcher with bounded redirect following.

    Handles:
    - Per-hop Authorization headers for token-capable providers
    - Redirect loops (RedirectLoopError past max_redirects)
    - Error status classification into typed exceptions
    - Backpressured streaming of the body into the extractor
    """

    def __init__(
        self,
        config: FetchConfig | None = None,
        extractor: Extractor | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the async fetcher.

        Args:
            config: Download configuration
            extractor: Archive extractor (default: TarExtractor)
            transport: Custom httpx async transport (mainly for testing)
        """
        self.config = config or FetchConfig()
        self.extractor = extractor or TarExtractor()

        self._client = httpx.AsyncClient(
            timeout=self.config.timeout,
            follow_redirects=False,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "AsyncTarballFetcher":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def fetch(
        self,
        url: str,
        provider: ProviderType | str,
        destination: str | Path,
        cancel_token: CancelToken | None = None,
    ) -> FetchResult:
        """
        Download a tarball and extract it into ``destination``.

        Args:
            url: Tarball URL
            provider: Provider tag of the repository
            destination: Directory to extract into (must exist)
            cancel_token: Optional cancellation/deadline token

        Returns:
            FetchResult describing the final URL and redirect chain

        Raises:
            HTTPStatusError: On an error status (never retried)
            RedirectLoopError: If more than max_redirects redirects occur
            TransportError: On connection-level failures
            FetchTimeoutError: If a timeout elapses
            FetchCancelledError: If the token is cancelled
            ExtractionError: If the archive cannot be written
        """
        token = cancel_token or CancelToken()
        current = httpx.URL(url)
        redirects: list[str] = []

        for hop in range(self.config.max_redirects + 1):
            token.check()
            headers = build_headers(provider, self.config)
            log_http_request("GET", str(current), headers)

            started = time.monotonic()
            try:
                async with self._client.stream(
                    "GET", current, headers=headers, timeout=self._timeout(token)
                ) as response:
                    log_http_response(
                        response.status_code,
                        str(current),
                        (time.monotonic() - started) * 1000,
                    )
                    status_code = response.status_code

                    if not status_code or status_code >= 400:
                        raise error_for_response(response)

                    if status_code >= 300:
                        target = redirect_target(response)
                        log_redirect(hop + 1, status_code, str(current), str(target))
                        redirects.append(str(target))
                        current = target
                        continue

                    entries, bytes_read = await self._extract(
                        response.aiter_bytes(self.config.chunk_size), destination, token
                    )
                    log_extraction(
                        str(destination), entries, bytes_read, self.config.strip_components
                    )
                    return FetchResult(
                        final_url=str(current),
                        redirects=redirects,
                        entries_written=entries,
                        bytes_read=bytes_read,
                    )
            except httpx.TimeoutException as e:
                token.check()
                raise FetchTimeoutError(f"Timed out fetching {current}: {e}") from e
            except httpx.TransportError as e:
                token.check()
                raise TransportError(f"Failed to fetch {current}: {e}", str(current)) from e

        raise RedirectLoopError(self.config.max_redirects, redirects)

    async def _extract(
        self,
        chunks: AsyncIterator[bytes],
        destination: str | Path,
        token: CancelToken,
    ) -> tuple[int, int]:
        """
        Run the extractor in a worker thread fed from ``chunks``.

        Returns:
            Tuple of (entries_written, bytes_read)
        """
        loop = asyncio.get_running_loop()

        async def pull() -> bytes:
            return await anext(chunks, b"")

        def next_chunk() -> bytes:
            future = asyncio.run_coroutine_threadsafe(pull(), loop)
            while True:
                try:
                    return future.result(timeout=_POLL_INTERVAL)
                except concurrent.futures.TimeoutError:
                    if token.cancelled or token.expired:
                        future.cancel()
                        token.check()

        stream = ChunkStream(next_chunk, token)

        def run() -> int:
            return self.extractor.extract(
                io.BufferedReader(stream, buffer_size=self.config.chunk_size),
                destination,
                self.config.strip_components,
            )

        task = asyncio.ensure_future(asyncio.to_thread(run))
        try:
            entries = await asyncio.shield(task)
        except asyncio.CancelledError:
            # stop the worker at its next read before the response closes
            token.cancel()
            await asyncio.wait({task})
            if not task.cancelled():
                task.exception()
            raise

        return entries, stream.bytes_read

    def _timeout(self, token: CancelToken) -> float:
        remaining = token.remaining()
        if remaining is None:
            return self.config.timeout
        if remaining <= 0:
            token.check()
        return min(self.config.timeout, remaining)
