"""tarclone type definitions.

This module exports all data model types used by the package.
"""

from tarclone.types.clone import CloneRequest, CloneResult, FetchResult
from tarclone.types.providers import (
    ProviderDescriptor,
    ProviderType,
    supports_token_auth,
)

__all__ = [
    # Provider types
    "ProviderType",
    "ProviderDescriptor",
    "supports_token_auth",
    # Clone types
    "CloneRequest",
    "CloneResult",
    "FetchResult",
]
