#!/usr/bin/env python3
"""
Basic tarclone usage example.

Runs offline: the HTTP side is served by the testing MockServer.
Run with: python examples/basic_usage.py
"""

import tempfile
from pathlib import Path

from tarclone import CloneClient, HostedGitResolver, TarcloneError
from tarclone.exceptions import DestinationConflictError, ResolutionError
from tarclone.testing import MockServer, build_tarball

print("=== tarclone Basic Usage Example ===\n")

# 1. Resolve references
print("1. Resolving references...")
resolver = HostedGitResolver()
for reference in [
    "octocat/hello-world",
    "gitlab:group/project#v1.2",
    "https://bitbucket.org/team/repo",
    "git@github.com:octocat/hello-world.git#main",
]:
    descriptor = resolver.resolve(reference)
    print(f"   {reference} -> [{descriptor.provider_tag}] {descriptor.tarball_url}")

try:
    resolver.resolve("./not/a/repository")
except ResolutionError as e:
    print(f"   Rejected: [{e.code}] {e.message}")

print("\n   OK: Resolution working\n")

# 2. Clone through a redirect, as codeload does
print("2. Cloning from a scripted server...")
tarball_url = "https://codeload.github.com/octocat/hello-world/tar.gz/HEAD"
blob_url = "https://objects.example.com/hello-world.tar.gz"

server = MockServer()
server.redirect(tarball_url, blob_url)
server.tarball(blob_url, build_tarball({"README.md": "# Hello\n", "src/main.py": "print('hi')\n"}))

destination = Path(tempfile.mkdtemp()) / "hello-world"

with CloneClient(transport=server.transport()) as client:
    result = client.clone("octocat/hello-world", destination)
    print(f"   Requests: {server.urls}")
    print(f"   Entries written: {result.entries_written}")
    print(f"   Files: {sorted(p.relative_to(destination).as_posix() for p in destination.rglob('*'))}")

    # 3. Destination guard
    print("\n3. Cloning into the same directory again...")
    try:
        client.clone("octocat/hello-world", destination)
    except DestinationConflictError as e:
        print(f"   Caught: {e}")

    result = client.clone("octocat/hello-world", destination, force=True)
    print(f"   With force: {result.entries_written} entries")

# 4. Exception hierarchy
print("\n4. Testing exception classes...")
try:
    raise DestinationConflictError(destination)
except TarcloneError as e:
    print(f"   Caught TarcloneError: {e}")
    print(f"   Code: {e.code}, Message: {e.message}")

print("\n=== All examples completed ===")
