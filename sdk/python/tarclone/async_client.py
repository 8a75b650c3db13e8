"""
tarclone async client.

Provides the async interface for cloning hosted repositories.
"""

import asyncio
from datetime import datetime
from pathlib import Path
from typing import Any

import httpx

from tarclone.async_fetcher import AsyncTarballFetcher
from tarclone.cancel import CancelToken
from tarclone.client import resolve_descriptor
from tarclone.destination import prepare_destination
from tarclone.exceptions import FetchTimeoutError
from tarclone.extract import Extractor
from tarclone.fetcher import FetchConfig
from tarclone.logging import get_logger
from tarclone.resolver import HostedGitResolver, Resolver
from tarclone.types.clone import CloneRequest, CloneResult

logger = get_logger()


class AsyncCloneClient:
    """
    Async client that clones hosted repositories without git.

    Uses httpx for async HTTP operations.

    Example:
        ```python
        import asyncio
        from tarclone import AsyncCloneClient

        async def main():
            async with AsyncCloneClient.from_env() as client:
                await client.clone("gitlab:group/project#v2.0", "./project", timeout=120)

        asyncio.run(main())
        ```
    """

    def __init__(
        self,
        config: FetchConfig | None = None,
        resolver: Resolver | None = None,
        extractor: Extractor | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the async clone client.

        Args:
            config: Download configuration (optional)
            resolver: Reference resolver (default: HostedGitResolver)
            extractor: Archive extractor (default: TarExtractor)
            transport: Custom httpx async transport (mainly for testing)
        """
        self.config = config or FetchConfig()
        self.resolver = resolver or HostedGitResolver()

        self._fetcher = AsyncTarballFetcher(
            config=self.config,
            extractor=extractor,
            transport=transport,
        )

    @classmethod
    def from_env(cls, resolver: Resolver | None = None) -> "AsyncCloneClient":
        """
        Create a client from environment variables.

        See CloneClient.from_env for the variables read.
        """
        return cls(config=FetchConfig.from_env(), resolver=resolver)

    @property
    def fetcher(self) -> AsyncTarballFetcher:
        """Get the underlying async fetcher (for advanced use cases)."""
        return self._fetcher

    async def clone(
        self,
        reference: str,
        destination: str | Path,
        force: bool = False,
        timeout: float | None = None,
        cancel_token: CancelToken | None = None,
    ) -> CloneResult:
        """
        Clone a repository tarball into ``destination``.

        Cancelling the awaiting task cancels the token, which stops the
        download and extraction at the next chunk.

        Args:
            reference: Repository shorthand or URL
            destination: Output directory (created if missing)
            force: Extract even if the directory already has files
            timeout: Wall-clock limit in seconds for the whole clone
            cancel_token: Token to cancel the clone

        Returns:
            CloneResult with the final URL, redirect chain and entry count

        Raises:
            Same errors as CloneClient.clone
        """
        token = cancel_token or CancelToken(timeout)
        try:
            return await asyncio.wait_for(
                self._clone(reference, destination, force, token), timeout
            )
        except asyncio.TimeoutError:
            token.cancel()
            raise FetchTimeoutError() from None

    async def _clone(
        self,
        reference: str,
        destination: str | Path,
        force: bool,
        token: CancelToken,
    ) -> CloneResult:
        started_at = datetime.now()

        path = await asyncio.to_thread(prepare_destination, destination, force)
        descriptor = resolve_descriptor(self.resolver, reference)

        request = CloneRequest(
            tarball_url=descriptor.tarball_url,
            provider=descriptor.provider,
            destination=path,
            force=force,
        )
        logger.info(f"Cloning {reference} ({descriptor.provider_tag}) into {path.resolve()}")

        try:
            fetched = await self._fetcher.fetch(
                request.tarball_url, request.provider, request.destination, token
            )
        except asyncio.CancelledError:
            token.cancel()
            raise

        result = CloneResult(
            request=request,
            final_url=fetched.final_url,
            redirects=fetched.redirects,
            entries_written=fetched.entries_written,
            bytes_read=fetched.bytes_read,
            started_at=started_at,
        )
        logger.info(
            f"Cloned {reference}: {result.entries_written} entries "
            f"in {result.elapsed_seconds:.2f}s"
        )
        return result

    async def close(self) -> None:
        """Close the client and release resources."""
        await self._fetcher.close()

    async def __aenter__(self) -> "AsyncCloneClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit - closes the client."""
        await self.close()


async def async_create_clone(
    reference: str,
    destination: str | Path,
    force: bool = False,
    timeout: float | None = None,
) -> CloneResult:
    """
    Clone a repository tarball with a throwaway async client.

    See AsyncCloneClient.clone for arguments and errors.
    """
    async with AsyncCloneClient.from_env() as client:
        return await client.clone(reference, destination, force=force, timeout=timeout)
