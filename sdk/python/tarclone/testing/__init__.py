"""tarclone testing utilities.

Provides a scripted HTTP server, mock collaborators and fixtures for testing
applications that use tarclone.
"""

from tarclone.testing.mock import (
    ExtractCall,
    MockCall,
    MockResolver,
    MockResponse,
    MockServer,
    RecordingExtractor,
    build_tarball,
)

__all__ = [
    # Mock server
    "MockServer",
    "MockCall",
    "MockResponse",
    # Mock collaborators
    "MockResolver",
    "RecordingExtractor",
    "ExtractCall",
    # Helper functions
    "build_tarball",
]
