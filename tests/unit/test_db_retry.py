from unittest.mock import Mock, patch

import pytest
from sqlalchemy.exc import OperationalError

from simstudio.core.exceptions import SlotUnavailableException, UpstreamServiceException
from simstudio.database import with_db_retry


def _operational(message: str) -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception(message))


@pytest.fixture(autouse=True)
def no_sleep():
    with patch("simstudio.database.time.sleep") as sleep:
        yield sleep


def test_returns_result_without_retry():
    func = Mock(return_value="ok")

    assert with_db_retry("op", func) == "ok"
    assert func.call_count == 1


def test_retries_transient_disconnect_once(no_sleep):
    func = Mock(side_effect=[_operational("server closed the connection unexpectedly"), "ok"])

    assert with_db_retry("op", func) == "ok"
    assert func.call_count == 2
    no_sleep.assert_called_once()


def test_second_transient_failure_is_upstream_error():
    func = Mock(side_effect=_operational("connection reset by peer"))

    with pytest.raises(UpstreamServiceException) as exc_info:
        with_db_retry("op", func, max_attempts=2)

    assert func.call_count == 2
    assert exc_info.value.to_http_exception().status_code == 503


def test_non_transient_operational_error_is_not_retried():
    func = Mock(side_effect=_operational("database is locked"))

    with pytest.raises(OperationalError):
        with_db_retry("op", func)

    assert func.call_count == 1


def test_business_errors_are_not_retried():
    func = Mock(side_effect=SlotUnavailableException())

    with pytest.raises(SlotUnavailableException):
        with_db_retry("op", func)

    assert func.call_count == 1
