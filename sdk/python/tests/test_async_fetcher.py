"""
Tests for the async fetcher and async client.

Feature: tarclone
"""

import asyncio
from collections.abc import AsyncIterator
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest

from tarclone.async_client import AsyncCloneClient, async_create_clone
from tarclone.async_fetcher import AsyncTarballFetcher
from tarclone.cancel import CancelToken
from tarclone.exceptions import (
    DestinationConflictError,
    ExtractionError,
    FetchCancelledError,
    FetchTimeoutError,
    NotFoundError,
    RedirectLoopError,
    ResolutionError,
    TransportError,
)
from tarclone.fetcher import FetchConfig
from tarclone.testing import MockResolver, MockServer, RecordingExtractor
from tarclone.types.providers import ProviderDescriptor, ProviderType

URL_A = "https://codeload.github.com/user/repo/tar.gz/HEAD"
URL_B = "https://objects.example.com/b"


class StalledStream(httpx.AsyncByteStream):
    """Response body that sends a prefix and then never finishes."""

    def __init__(self, prefix: bytes) -> None:
        self.prefix = prefix

    async def __aiter__(self) -> AsyncIterator[bytes]:
        yield self.prefix
        await asyncio.sleep(60)


def _stalled_transport(prefix: bytes) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, stream=StalledStream(prefix), request=request)

    return httpx.MockTransport(handler)


def _fetch(server: MockServer, destination: Path, extractor=None, **config):
    async def run():
        async with AsyncTarballFetcher(
            config=FetchConfig(**config),
            extractor=extractor,
            transport=server.transport(),
        ) as fetcher:
            return await fetcher.fetch(URL_A, ProviderType.GITHUB, destination)

    return asyncio.run(run())


class TestAsyncTarballFetcher:
    """Tests for AsyncTarballFetcher."""

    def test_extracts_tarball(
        self, mock_server: MockServer, sample_tarball: bytes, tmp_path: Path
    ) -> None:
        mock_server.tarball(URL_A, sample_tarball)

        result = _fetch(mock_server, tmp_path)

        assert result.entries_written == 2
        assert result.bytes_read > 0
        assert (tmp_path / "a.txt").read_text() == "alpha\n"
        assert (tmp_path / "b" / "c.txt").read_text() == "gamma\n"

    def test_follows_redirects(
        self,
        mock_server: MockServer,
        recording_extractor: RecordingExtractor,
        tmp_path: Path,
    ) -> None:
        mock_server.add(URL_A, 302, {"Location": URL_B}, content=b"ignored")
        mock_server.add(URL_B, 200, content=b"payload")

        result = _fetch(mock_server, tmp_path, recording_extractor)

        assert mock_server.urls == [URL_A, URL_B]
        assert result.final_url == URL_B
        assert result.redirects == [URL_B]
        assert recording_extractor.calls[0].data == b"payload"

    def test_error_status(
        self,
        mock_server: MockServer,
        recording_extractor: RecordingExtractor,
        tmp_path: Path,
    ) -> None:
        mock_server.add(URL_A, 404)

        with pytest.raises(NotFoundError) as exc_info:
            _fetch(mock_server, tmp_path, recording_extractor)

        assert exc_info.value.message == "Not Found"
        assert not recording_extractor.was_called

    def test_redirect_loop(
        self,
        mock_server: MockServer,
        recording_extractor: RecordingExtractor,
        tmp_path: Path,
    ) -> None:
        mock_server.redirect(URL_A, URL_A)

        with pytest.raises(RedirectLoopError):
            _fetch(mock_server, tmp_path, recording_extractor, max_redirects=2)

        assert len(mock_server.urls) == 3

    def test_connection_error(self, mock_server: MockServer, tmp_path: Path) -> None:
        mock_server.fail(URL_A, httpx.ConnectError("connection refused"))

        with pytest.raises(TransportError):
            _fetch(mock_server, tmp_path)

    def test_malformed_body(self, mock_server: MockServer, tmp_path: Path) -> None:
        mock_server.add(URL_A, 200, content=b"<html>not a tarball</html>" * 40)

        with pytest.raises(ExtractionError):
            _fetch(mock_server, tmp_path)

    def test_token_cancel_stops_stalled_download(
        self, sample_tarball: bytes, tmp_path: Path
    ) -> None:
        """Cancelling the token unblocks an extractor waiting for data."""
        token = CancelToken()

        async def run() -> None:
            async with AsyncTarballFetcher(
                transport=_stalled_transport(sample_tarball[:20])
            ) as fetcher:
                loop = asyncio.get_running_loop()
                loop.call_later(0.2, token.cancel)
                await fetcher.fetch(URL_A, ProviderType.GITHUB, tmp_path, token)

        with pytest.raises(FetchCancelledError):
            asyncio.run(run())

    def test_cancel_during_read_timeout_reports_cancel(self, tmp_path: Path) -> None:
        token = CancelToken()

        def handler(request: httpx.Request) -> httpx.Response:
            token.cancel()
            raise httpx.ReadTimeout("read timed out", request=request)

        async def run() -> None:
            async with AsyncTarballFetcher(transport=httpx.MockTransport(handler)) as fetcher:
                await fetcher.fetch(URL_A, ProviderType.GITHUB, tmp_path, token)

        with pytest.raises(FetchCancelledError):
            asyncio.run(run())


class TestAsyncCloneClient:
    """Tests for AsyncCloneClient."""

    def test_clone(
        self,
        github_server: MockServer,
        mock_resolver: MockResolver,
        destination: Path,
    ) -> None:
        async def run():
            async with AsyncCloneClient(
                resolver=mock_resolver, transport=github_server.transport()
            ) as client:
                return await client.clone("user/repo", destination)

        result = asyncio.run(run())

        assert result.request.destination == destination
        assert result.entries_written == 2
        assert (destination / "a.txt").read_text() == "alpha\n"
        assert mock_resolver.references == ["user/repo"]

    def test_conflict_checked_before_resolving(
        self,
        mock_server: MockServer,
        mock_resolver: MockResolver,
        populated_destination: Path,
    ) -> None:
        async def run():
            async with AsyncCloneClient(
                resolver=mock_resolver, transport=mock_server.transport()
            ) as client:
                await client.clone("user/repo", populated_destination)

        with pytest.raises(DestinationConflictError):
            asyncio.run(run())

        assert mock_resolver.call_count == 0
        assert mock_server.calls == []

    def test_empty_tarball_url(
        self, mock_server: MockServer, destination: Path
    ) -> None:
        resolver = MockResolver(ProviderDescriptor(provider="github", tarball_url=""))

        async def run():
            async with AsyncCloneClient(
                resolver=resolver, transport=mock_server.transport()
            ) as client:
                await client.clone("user/repo", destination)

        with pytest.raises(ResolutionError):
            asyncio.run(run())

        assert mock_server.calls == []

    def test_timeout(
        self, mock_resolver: MockResolver, sample_tarball: bytes, destination: Path
    ) -> None:
        """A stalled download fails with FetchTimeoutError once the deadline passes."""

        async def run():
            async with AsyncCloneClient(
                resolver=mock_resolver, transport=_stalled_transport(sample_tarball[:20])
            ) as client:
                await client.clone("user/repo", destination, timeout=0.3)

        with pytest.raises(FetchTimeoutError) as exc_info:
            asyncio.run(run())

        assert exc_info.value.code == "TIMEOUT"

    def test_task_cancellation_cancels_token(
        self, mock_resolver: MockResolver, sample_tarball: bytes, destination: Path
    ) -> None:
        token = CancelToken()

        async def run() -> None:
            async with AsyncCloneClient(
                resolver=mock_resolver, transport=_stalled_transport(sample_tarball[:20])
            ) as client:
                task = asyncio.create_task(
                    client.clone("user/repo", destination, cancel_token=token)
                )
                await asyncio.sleep(0.2)
                task.cancel()
                with pytest.raises(asyncio.CancelledError):
                    await task

        asyncio.run(run())

        assert token.cancelled


def test_async_create_clone_reads_environment(
    mock_server: MockServer, destination: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """async_create_clone honours TARCLONE_MAX_REDIRECTS."""
    monkeypatch.setenv("TARCLONE_MAX_REDIRECTS", "0")
    mock_server.redirect("https://codeload.github.com/octocat/hello-world/tar.gz/HEAD", URL_B)
    transport = mock_server.transport()
    real_init = AsyncCloneClient.__init__

    def init_with_transport(self, *args, **kwargs):
        kwargs.setdefault("transport", transport)
        real_init(self, *args, **kwargs)

    with patch.object(AsyncCloneClient, "__init__", init_with_transport):
        with pytest.raises(RedirectLoopError):
            asyncio.run(async_create_clone("octocat/hello-world", destination))

    assert len(mock_server.calls) == 1
