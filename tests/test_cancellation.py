import pytest

from locres.cancellation import CancellationToken, check
from locres.errors import CancelledError


class TestCancellationToken:
    """Cooperative cancellation flag."""

    def test_not_cancelled_by_default(self):
        token = CancellationToken()
        assert not token.cancelled
        token.raise_if_cancelled()
        check(token)
        check(None)

    def test_cancel(self):
        token = CancellationToken()
        token.cancel()
        assert token.cancelled
        with pytest.raises(CancelledError):
            check(token)
