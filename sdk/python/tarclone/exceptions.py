"""tarclone exception classes."""

from pathlib import Path


class TarcloneError(Exception):
    """Base exception for all tarclone errors."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


class ConfigurationError(TarcloneError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str) -> None:
        super().__init__("CONFIGURATION_ERROR", message)


class DestinationConflictError(TarcloneError):
    """Raised when the destination directory already contains files."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(
            "DESTINATION_NOT_EMPTY",
            f"The output directory already contains files ({path})",
        )


class DestinationIOError(TarcloneError):
    """Raised when the destination directory cannot be created or listed."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__("DESTINATION_IO_ERROR", f"{reason} ({path})")


class ResolutionError(TarcloneError):
    """Raised when a reference cannot be mapped to a tarball URL."""

    def __init__(self, reference: str, message: str | None = None) -> None:
        self.reference = reference
        super().__init__(
            "UNSUPPORTED_REFERENCE",
            message
            or "Unable to determine where to download the archive for "
            f"this repository ({reference!r})",
        )


class HTTPStatusError(TarcloneError):
    """Raised when the server answers with an error status."""

    def __init__(
        self, status_code: int | None, message: str, url: str | None = None
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(f"HTTP_{status_code}", message)


class AuthenticationError(HTTPStatusError):
    """Raised on 401 responses."""

    pass


class AuthorizationError(HTTPStatusError):
    """Raised on 403 responses."""

    pass


class NotFoundError(HTTPStatusError):
    """Raised on 404 responses."""

    pass


class RateLimitedError(HTTPStatusError):
    """Raised on 429 responses."""

    def __init__(
        self,
        status_code: int,
        message: str,
        retry_after: int | None,
        url: str | None = None,
    ) -> None:
        super().__init__(status_code, message, url)
        self.retry_after = retry_after


class ServerError(HTTPStatusError):
    """Raised on server errors (5xx)."""

    pass


class RedirectLoopError(TarcloneError):
    """Raised when a redirect chain exceeds the configured bound."""

    def __init__(self, max_redirects: int, chain: list[str]) -> None:
        self.max_redirects = max_redirects
        self.chain = chain
        super().__init__(
            "TOO_MANY_REDIRECTS",
            f"Exceeded {max_redirects} redirects (last: {chain[-1] if chain else 'n/a'})",
        )


class TransportError(TarcloneError):
    """Raised on connection-level failures (DNS, TLS, reset)."""

    def __init__(self, message: str, url: str | None = None) -> None:
        self.url = url
        super().__init__("TRANSPORT_ERROR", message)


class ExtractionError(TarcloneError):
    """Raised when the archive stream could not be fully written."""

    def __init__(self, message: str, destination: Path | None = None) -> None:
        self.destination = destination
        super().__init__("EXTRACTION_ERROR", message)


class FetchTimeoutError(TarcloneError):
    """Raised when the deadline for a clone elapses."""

    def __init__(self, message: str = "Clone did not finish before its deadline") -> None:
        super().__init__("TIMEOUT", message)


class FetchCancelledError(TarcloneError):
    """Raised when a clone is cancelled through its token."""

    def __init__(self, message: str = "Clone was cancelled") -> None:
        super().__init__("CANCELLED", message)
