"""Shared fixtures for the tarclone test suite."""

from tarclone.testing.conftest import (  # noqa: F401
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
