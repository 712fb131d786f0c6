"""Single-assignment future used to hand results between threads."""

from __future__ import annotations

import threading
from typing import Generic, TypeVar

from shellscope.errors import OneShotAlreadySet

T = TypeVar("T")


class OneShot(Generic[T]):
    """A value that is written exactly once and read any number of times.

    Readers block in result() until a producer calls set_result() or
    set_exception(). After that every read, from any thread, returns the same
    value (or re-raises the same exception) without blocking. A second write
    raises OneShotAlreadySet.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._resolved = threading.Event()
        self._value: T | None = None
        self._error: BaseException | None = None

    def set_result(self, value: T) -> None:
        with self._lock:
            self._check_unset()
            self._value = value
            self._resolved.set()

    def set_exception(self, error: BaseException) -> None:
        with self._lock:
            self._check_unset()
            self._error = error
            self._resolved.set()

    def _check_unset(self) -> None:
        if self._resolved.is_set():
            raise OneShotAlreadySet("OneShot value has already been set")

    def done(self) -> bool:
        return self._resolved.is_set()

    def failed(self) -> bool:
        return self._resolved.is_set() and self._error is not None

    def result(self, timeout: float | None = None) -> T:
        """Block until the value is available and return it.

        Args:
            timeout: Seconds to wait. None waits forever.

        Raises:
            TimeoutError: If the value is not available within timeout.
            BaseException: Whatever the producer passed to set_exception().
        """
        if not self._resolved.wait(timeout):
            raise TimeoutError(f"OneShot not resolved within {timeout}s")
        if self._error is not None:
            raise self._error
        return self._value  # type: ignore[return-value]

    def __repr__(self) -> str:
        if not self.done():
            return "<OneShot pending>"
        if self._error is not None:
            return f"<OneShot failed: {self._error!r}>"
        return f"<OneShot {self._value!r}>"
