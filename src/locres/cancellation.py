import threading

from locres.errors import CancelledError


class CancellationToken:
    """Cooperative cancellation flag, checked by backends and scans at file boundaries."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise CancelledError("Operation cancelled")


def check(token: CancellationToken | None) -> None:
    if token is not None:
        token.raise_if_cancelled()
