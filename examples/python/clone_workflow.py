#!/usr/bin/env python3
"""
tarclone - Complete Clone Workflow Example

This example clones a public repository the way a scaffolding tool would:
1. Resolve the reference to a tarball URL
2. Clone into a fresh directory
3. Show the conflict error on a second clone
4. Clone again with force

Usage: python examples/python/clone_workflow.py [reference] [destination]
"""

import logging
import sys
import tempfile
from pathlib import Path

# Add SDK to path for development
sdk_path = Path(__file__).parent.parent.parent / "sdk" / "python"
sys.path.insert(0, str(sdk_path))

from tarclone import CloneClient, HostedGitResolver, configure_logging
from tarclone.exceptions import DestinationConflictError, TarcloneError


def main() -> None:
    """Run the clone workflow example."""
    print("=== tarclone Example ===\n")

    reference = sys.argv[1] if len(sys.argv) > 1 else "octocat/Hello-World"
    destination = (
        Path(sys.argv[2]) if len(sys.argv) > 2 else Path(tempfile.mkdtemp()) / "clone"
    )

    # Show redirect hops while the example runs
    configure_logging(level=logging.INFO, http_level=logging.DEBUG)

    # Step 1: Resolve
    print("1. Resolving reference...")
    descriptor = HostedGitResolver().resolve(reference)
    print(f"   Provider: {descriptor.provider_tag}")
    print(f"   Tarball:  {descriptor.tarball_url}")

    client = CloneClient.from_env()

    try:
        # Step 2: Clone
        print(f"\n2. Cloning into {destination}...")
        result = client.clone(reference, destination, timeout=120)
        print(f"   Final URL: {result.final_url}")
        print(f"   Redirects: {len(result.redirects)}")
        print(f"   Entries:   {result.entries_written}")
        print(f"   Took:      {result.elapsed_seconds:.2f}s")

        # Step 3: Conflict
        print("\n3. Cloning again without force...")
        try:
            client.clone(reference, destination)
        except DestinationConflictError as e:
            print(f"   Refused: {e.message}")

        # Step 4: Force
        print("\n4. Cloning again with force...")
        result = client.clone(reference, destination, force=True, timeout=120)
        print(f"   Entries: {result.entries_written}")

        print("\n=== Workflow Complete ===")
        for path in sorted(destination.iterdir())[:10]:
            print(f"  {path.name}{'/' if path.is_dir() else ''}")

    except TarcloneError as e:
        print(f"\nError: [{e.code}] {e.message}")
        sys.exit(1)
    finally:
        client.close()


if __name__ == "__main__":
    main()
