"""tarclone - clone hosted repositories from their tarballs, without git."""

__version__ = "0.1.0"

from tarclone.async_client import AsyncCloneClient, async_create_clone
from tarclone.async_fetcher import AsyncTarballFetcher
from tarclone.cancel import CancelToken
from tarclone.client import CloneClient, create_clone
from tarclone.destination import (
    ensure_directory_empty,
    ensure_directory_exists,
    prepare_destination,
)
from tarclone.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    DestinationConflictError,
    DestinationIOError,
    ExtractionError,
    FetchCancelledError,
    FetchTimeoutError,
    HTTPStatusError,
    NotFoundError,
    RateLimitedError,
    RedirectLoopError,
    ResolutionError,
    ServerError,
    TarcloneError,
    TransportError,
)
from tarclone.extract import Extractor, TarExtractor
from tarclone.fetcher import FetchConfig, TarballFetcher
from tarclone.logging import configure_logging, get_logger
from tarclone.resolver import HostedGitResolver, Resolver
from tarclone.types import (
    CloneRequest,
    CloneResult,
    FetchResult,
    ProviderDescriptor,
    ProviderType,
    supports_token_auth,
)

__all__ = [
    "__version__",
    # Main Clients
    "CloneClient",
    "AsyncCloneClient",
    "create_clone",
    "async_create_clone",
    # Pipeline parts
    "TarballFetcher",
    "AsyncTarballFetcher",
    "FetchConfig",
    "Resolver",
    "HostedGitResolver",
    "Extractor",
    "TarExtractor",
    "CancelToken",
    "ensure_directory_exists",
    "ensure_directory_empty",
    "prepare_destination",
    # Types
    "ProviderType",
    "ProviderDescriptor",
    "supports_token_auth",
    "CloneRequest",
    "CloneResult",
    "FetchResult",
    # Exceptions
    "TarcloneError",
    "ConfigurationError",
    "DestinationConflictError",
    "DestinationIOError",
    "ResolutionError",
    "HTTPStatusError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "RateLimitedError",
    "ServerError",
    "RedirectLoopError",
    "TransportError",
    "ExtractionError",
    "FetchTimeoutError",
    "FetchCancelledError",
    # Logging
    "configure_logging",
    "get_logger",
]
