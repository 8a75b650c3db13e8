"""
Tarball fetcher.

Downloads a tarball over HTTPS, following redirects one hop at a time, and
streams the body into an Extractor. Authentication headers are recomputed
for every hop from the provider's capabilities.
"""

import io
import os
import socket
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx

from tarclone import __version__
from tarclone.cancel import CancelToken
from tarclone.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    FetchTimeoutError,
    HTTPStatusError,
    NotFoundError,
    RateLimitedError,
    RedirectLoopError,
    ServerError,
    TransportError,
)
from tarclone.extract import Extractor, TarExtractor
from tarclone.logging import (
    log_extraction,
    log_http_request,
    log_http_response,
    log_redirect,
)
from tarclone.stream import ChunkStream
from tarclone.types.clone import FetchResult
from tarclone.types.providers import ProviderType, supports_token_auth


@dataclass
class FetchConfig:
    """Configuration for tarball downloads."""

    timeout: float = 30.0  # Per network operation (connect, read)
    max_redirects: int = 10
    chunk_size: int = 64 * 1024
    strip_components: int = 1
    token_env_var: str = "GITHUB_TOKEN"
    user_agent: str = f"tarclone/{__version__}"

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.max_redirects < 0:
            raise ValueError("max_redirects cannot be negative")
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")

    @classmethod
    def from_env(cls) -> "FetchConfig":
        """
        Create a configuration from environment variables.

        Environment variables:
            TARCLONE_TIMEOUT: Network timeout in seconds (optional, default: 30)
            TARCLONE_MAX_REDIRECTS: Redirect bound (optional, default: 10)

        Raises:
            ConfigurationError: If a variable holds an invalid value
        """
        kwargs: dict[str, Any] = {}

        timeout = os.environ.get("TARCLONE_TIMEOUT")
        if timeout:
            try:
                kwargs["timeout"] = float(timeout)
            except ValueError:
                raise ConfigurationError(
                    f"Invalid TARCLONE_TIMEOUT: {timeout!r}. Must be a number of seconds"
                ) from None

        max_redirects = os.environ.get("TARCLONE_MAX_REDIRECTS")
        if max_redirects:
            try:
                kwargs["max_redirects"] = int(max_redirects)
            except ValueError:
                raise ConfigurationError(
                    f"Invalid TARCLONE_MAX_REDIRECTS: {max_redirects!r}. Must be an integer"
                ) from None

        try:
            return cls(**kwargs)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e


def build_headers(provider: ProviderType | str, config: FetchConfig) -> dict[str, str]:
    """
    Build request headers for one hop.

    The token is read from the environment on every call and is only
    attached for providers that support token authentication.
    """
    headers = {"User-Agent": config.user_agent}

    token = os.environ.get(config.token_env_var)
    if token and supports_token_auth(provider):
        headers["Authorization"] = f"token {token}"

    return headers


def error_for_response(response: httpx.Response) -> HTTPStatusError:
    """
    Map an error response to a typed exception.

    Args:
        response: HTTP response with error status

    Returns:
        Appropriate HTTPStatusError subclass
    """
    status_code = response.status_code
    message = response.reason_phrase or f"HTTP {status_code}"
    url = str(response.request.url)

    if status_code == 401:
        return AuthenticationError(status_code, message, url)
    elif status_code == 403:
        return AuthorizationError(status_code, message, url)
    elif status_code == 404:
        return NotFoundError(status_code, message, url)
    elif status_code == 429:
        retry_after: int | None
        try:
            retry_after = int(response.headers.get("Retry-After", ""))
        except ValueError:
            retry_after = None
        return RateLimitedError(status_code, message, retry_after, url)
    elif status_code and status_code >= 500:
        return ServerError(status_code, message, url)
    else:
        return HTTPStatusError(status_code, message, url)


def redirect_target(response: httpx.Response) -> httpx.URL:
    """
    Resolve the Location header of a redirect response.

    Raises:
        HTTPStatusError: If the response carries no Location header
    """
    location = response.headers.get("Location")
    if not location:
        raise HTTPStatusError(
            response.status_code,
            f"{response.reason_phrase or 'Redirect'} without a Location header",
            str(response.request.url),
        )
    return response.request.url.join(location)


def abort_response(response: httpx.Response) -> Callable[[], None]:
    """
    Build a callback that interrupts a body read blocked on ``response``.

    Shutting the socket down wakes a reader stuck in recv(), which then
    fails with a transport error. Responses without a socket (such as
    mocked ones) are closed instead.
    """

    def abort() -> None:
        network_stream = response.extensions.get("network_stream")
        sock = network_stream.get_extra_info("socket") if network_stream is not None else None
        if sock is None:
            response.close()
            return
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # already disconnected
            return

    return abort


class TarballFetcher:
    """
    HTTP tarball fetcher with bounded redirect following.

    Handles:
    - Per-hop Authorization headers for token-capable providers
    - Redirect loops (RedirectLoopError past max_redirects)
    - Error status classification into typed exceptions
    - Streaming the response body into the extractor
    """

    def __init__(
        self,
        config: FetchConfig | None = None,
        extractor: Extractor | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Initialize the fetcher.

        Args:
            config: Download configuration
            extractor: Archive extractor (default: TarExtractor)
            transport: Custom httpx transport (mainly for testing)
        """
        self.config = config or FetchConfig()
        self.extractor = extractor or TarExtractor()

        self._client = httpx.Client(
            timeout=self.config.timeout,
            follow_redirects=False,
            transport=transport,
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> "TarballFetcher":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def fetch(
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
                with self._client.stream(
                    "GET", current, headers=headers, timeout=self._timeout(token)
                ) as response, token.on_cancel(abort_response(response)):
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

                    stream = ChunkStream.from_iterable(
                        response.iter_bytes(self.config.chunk_size), token
                    )
                    entries = self.extractor.extract(
                        io.BufferedReader(stream, buffer_size=self.config.chunk_size),
                        destination,
                        self.config.strip_components,
                    )
                    log_extraction(
                        str(destination), entries, stream.bytes_read, self.config.strip_components
                    )
                    return FetchResult(
                        final_url=str(current),
                        redirects=redirects,
                        entries_written=entries,
                        bytes_read=stream.bytes_read,
                    )
            except httpx.TimeoutException as e:
                token.check()
                raise FetchTimeoutError(f"Timed out fetching {current}: {e}") from e
            except httpx.TransportError as e:
                token.check()
                raise TransportError(f"Failed to fetch {current}: {e}", str(current)) from e

        raise RedirectLoopError(self.config.max_redirects, redirects)

    def _timeout(self, token: CancelToken) -> float:
        remaining = token.remaining()
        if remaining is None:
            return self.config.timeout
        if remaining <= 0:
            token.check()
        return min(self.config.timeout, remaining)
