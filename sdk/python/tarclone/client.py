"""
tarclone main client.

Provides the primary interface for cloning a hosted repository's tarball
into a local directory.
"""

from datetime import datetime
from pathlib import Path
from typing import Any

import httpx

from tarclone.cancel import CancelToken
from tarclone.destination import prepare_destination
from tarclone.exceptions import ResolutionError
from tarclone.extract import Extractor
from tarclone.fetcher import FetchConfig, TarballFetcher
from tarclone.logging import get_logger
from tarclone.resolver import HostedGitResolver, Resolver
from tarclone.types.clone import CloneRequest, CloneResult
from tarclone.types.providers import ProviderDescriptor

logger = get_logger()


def resolve_descriptor(resolver: Resolver, reference: str) -> ProviderDescriptor:
    """
    Resolve a reference and reject descriptors without a tarball URL.

    Raises:
        ResolutionError: If the resolver fails or returns no tarball URL
    """
    descriptor = resolver.resolve(reference)
    if descriptor is None or not descriptor.tarball_url:
        raise ResolutionError(reference)
    return descriptor


class CloneClient:
    """
    Client that clones hosted repositories without git.

    Runs the destination checks, resolves the reference and streams the
    tarball into the destination, in that order.

    Example:
        ```python
        from tarclone import CloneClient

        with CloneClient.from_env() as client:
            result = client.clone("octocat/hello-world", "./hello-world")
            print(result.entries_written)

        # Or configure from environment variables
        client = CloneClient.from_env()
        ```
    """

    def __init__(
        self,
        config: FetchConfig | None = None,
        resolver: Resolver | None = None,
        extractor: Extractor | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Initialize the clone client.

        Args:
            config: Download configuration (optional)
            resolver: Reference resolver (default: HostedGitResolver)
            extractor: Archive extractor (default: TarExtractor)
            transport: Custom httpx transport (mainly for testing)
        """
        self.config = config or FetchConfig()
        self.resolver = resolver or HostedGitResolver()

        self._fetcher = TarballFetcher(
            config=self.config,
            extractor=extractor,
            transport=transport,
        )

    @classmethod
    def from_env(cls, resolver: Resolver | None = None) -> "CloneClient":
        """
        Create a client from environment variables.

        Environment variables:
            GITHUB_TOKEN: Token sent to GitHub and Gist downloads (optional)
            TARCLONE_TIMEOUT: Network timeout in seconds (optional)
            TARCLONE_MAX_REDIRECTS: Redirect bound (optional)

        Raises:
            ConfigurationError: If a variable holds an invalid value
        """
        return cls(config=FetchConfig.from_env(), resolver=resolver)

    @property
    def fetcher(self) -> TarballFetcher:
        """Get the underlying fetcher (for advanced use cases)."""
        return self._fetcher

    def clone(
        self,
        reference: str,
        destination: str | Path,
        force: bool = False,
        timeout: float | None = None,
        cancel_token: CancelToken | None = None,
    ) -> CloneResult:
        """
        Clone a repository tarball into ``destination``.

        Args:
            reference: Repository shorthand or URL
            destination: Output directory (created if missing)
            force: Extract even if the directory already has files
            timeout: Wall-clock limit in seconds (ignored if cancel_token is given)
            cancel_token: Token to cancel the clone from another thread

        Returns:
            CloneResult with the final URL, redirect chain and entry count

        Raises:
            DestinationConflictError: If the directory is not empty and force is False
            DestinationIOError: If the directory cannot be created or listed
            ResolutionError: If the reference is not a hosted repository
            HTTPStatusError: On an error status
            RedirectLoopError: On too many redirects
            TransportError: On connection failures
            ExtractionError: If the archive cannot be written
            FetchTimeoutError: If the timeout elapses
            FetchCancelledError: If the token is cancelled
        """
        started_at = datetime.now()
        token = cancel_token or CancelToken(timeout)

        path = prepare_destination(destination, force=force)
        descriptor = resolve_descriptor(self.resolver, reference)

        request = CloneRequest(
            tarball_url=descriptor.tarball_url,
            provider=descriptor.provider,
            destination=path,
            force=force,
        )
        logger.info(f"Cloning {reference} ({descriptor.provider_tag}) into {path.resolve()}")

        fetched = self._fetcher.fetch(
            request.tarball_url, request.provider, request.destination, token
        )

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

    def close(self) -> None:
        """Close the client and release resources."""
        self._fetcher.close()

    def __enter__(self) -> "CloneClient":
        """Context manager entry."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit - closes the client."""
        self.close()


def create_clone(
    reference: str,
    destination: str | Path,
    force: bool = False,
    timeout: float | None = None,
) -> CloneResult:
    """
    Clone a repository tarball with a throwaway client.

    See CloneClient.clone for arguments and errors.
    """
    with CloneClient.from_env() as client:
        return client.clone(reference, destination, force=force, timeout=timeout)
