"""
Pytest plugin for tarclone testing fixtures.

This module re-exports all fixtures from fixtures.py so they can be
automatically discovered by pytest when this package is installed.

To use these fixtures in your tests, add this to your conftest.py:

    pytest_plugins = ["tarclone.testing.conftest"]

Or import the fixtures directly:

    from tarclone.testing.fixtures import mock_server, sample_tarball
"""

# Re-export all fixtures for pytest auto-discovery
from tarclone.testing.fixtures import (
    destination,
    github_server,
    github_token,
    mock_resolver,
    mock_server,
    no_github_token,
    populated_destination,
    recording_extractor,
    sample_files,
    sample_tarball,
)

__all__ = [
    "destination",
    "github_server",
    "github_token",
    "mock_resolver",
    "mock_server",
    "no_github_token",
    "populated_destination",
    "recording_extractor",
    "sample_files",
    "sample_tarball",
]
