import pytest
from unittest.mock import Mock

from app.integrations.retry import call_with_retry, classify_status
from app.services.errors import DispatchError


class TestCallWithRetry:
    def test_success_first_try(self):
        fn = Mock(return_value="ok")
        sleep = Mock()
        assert call_with_retry(fn, max_retries=3, backoff_seconds=1, sleep=sleep) == "ok"
        fn.assert_called_once()
        sleep.assert_not_called()

    def test_retries_retryable_errors_with_exponential_backoff(self):
        fn = Mock(side_effect=[
            DispatchError("timeout", retryable=True),
            DispatchError("API error 503", retryable=True, status_code=503),
            "ok",
        ])
        sleep = Mock()

        assert call_with_retry(fn, max_retries=3, backoff_seconds=0.5, sleep=sleep) == "ok"

        assert fn.call_count == 3
        assert [c.args[0] for c in sleep.call_args_list] == [0.5, 1.0]

    def test_gives_up_after_max_retries(self):
        fn = Mock(side_effect=DispatchError("API error 500", retryable=True, status_code=500))
        sleep = Mock()

        with pytest.raises(DispatchError):
            call_with_retry(fn, max_retries=2, backoff_seconds=1, sleep=sleep)

        assert fn.call_count == 3
        assert sleep.call_count == 2

    def test_never_retries_client_errors(self):
        fn = Mock(side_effect=DispatchError("API error 400", retryable=False, status_code=400))
        sleep = Mock()

        with pytest.raises(DispatchError):
            call_with_retry(fn, max_retries=5, backoff_seconds=1, sleep=sleep)

        fn.assert_called_once()
        sleep.assert_not_called()

    def test_other_exceptions_propagate_immediately(self):
        fn = Mock(side_effect=RuntimeError("bug"))
        with pytest.raises(RuntimeError):
            call_with_retry(fn, max_retries=5, backoff_seconds=1, sleep=Mock())
        fn.assert_called_once()


@pytest.mark.parametrize("status_code,expected", [
    (400, False), (401, False), (404, False), (429, True), (500, True), (503, True),
])
def test_classify_status(status_code, expected):
    assert classify_status(status_code) is expected
