"""
Cancellation and deadline handling for clones.

A CancelToken is shared between the caller, the redirect loop and the
stream the extractor reads from, so cancelling it (or letting its deadline
pass) stops the download at the next read. Abort callbacks registered on
the token interrupt a read that is blocked on the network.
"""

import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from tarclone.exceptions import FetchCancelledError, FetchTimeoutError


class CancelToken:
    """
    Thread-safe cancellation flag with an optional deadline.

    Example:
        ```python
        token = CancelToken(timeout=60.0)
        client.clone("user/repo", "./out", cancel_token=token)

        # from another thread
        token.cancel()
        ```
    """

    def __init__(self, timeout: float | None = None) -> None:
        """
        Initialize the token.

        Args:
            timeout: Seconds from now after which check() raises
                FetchTimeoutError. None means no deadline.
        """
        if timeout is not None and timeout <= 0:
            raise ValueError("timeout must be positive")
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        """Request cancellation and run the registered abort callbacks."""
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks)
        for callback in callbacks:
            callback()

    def add_callback(self, callback: Callable[[], None]) -> None:
        """
        Register a callback that aborts in-flight work on cancel().

        Runs immediately if the token is already cancelled. Callbacks run on
        the thread that calls cancel().
        """
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def remove_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    @contextmanager
    def on_cancel(self, callback: Callable[[], None]) -> Iterator[None]:
        """Keep ``callback`` registered for the duration of the block."""
        self.add_callback(callback)
        try:
            yield
        finally:
            self.remove_callback(callback)

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> float | None:
        """Seconds until the deadline, or None if there is none."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def check(self) -> None:
        """
        Raise if the token has been cancelled or its deadline has passed.

        Raises:
            FetchCancelledError: If cancel() was called
            FetchTimeoutError: If the deadline elapsed
        """
        if self._event.is_set():
            raise FetchCancelledError()
        if self.expired:
            raise FetchTimeoutError()
