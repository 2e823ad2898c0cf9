import pytest
from unittest.mock import Mock, patch
from sqlalchemy.exc import IntegrityError, OperationalError

from tourify.core.exceptions import TransientStoreError
from tourify.services.error_handling import store_errors, with_retry


@pytest.fixture(autouse=True)
def no_sleep():
    with patch("tourify.services.error_handling.time.sleep") as mock_sleep:
        yield mock_sleep


def test_retry_decorator_success():
    mock_func = Mock(return_value="success")
    mock_func.__name__ = "resolve"
    decorated = with_retry()(mock_func)

    result = decorated()

    assert result == "success"
    assert mock_func.call_count == 1


def test_retry_decorator_with_temporary_failure(no_sleep):
    mock_func = Mock(side_effect=[TransientStoreError("store down"), "success"])
    mock_func.__name__ = "resolve"
    decorated = with_retry(max_retries=2, initial_delay=0.1)(mock_func)

    result = decorated()

    assert result == "success"
    assert mock_func.call_count == 2
    no_sleep.assert_called_once_with(0.1)


def test_retry_decorator_max_retries_exceeded(no_sleep):
    mock_func = Mock(side_effect=TransientStoreError("persistent outage"))
    mock_func.__name__ = "resolve"
    decorated = with_retry(max_retries=3, initial_delay=0.5)(mock_func)

    with pytest.raises(TransientStoreError, match="persistent outage"):
        decorated()

    assert mock_func.call_count == 3
    assert [c.args[0] for c in no_sleep.call_args_list] == [0.5, 1.0]


def test_retry_with_zero_retries_still_calls_once(no_sleep):
    mock_func = Mock(side_effect=[TransientStoreError("store down"), "success"])
    mock_func.__name__ = "resolve"
    decorated = with_retry(max_retries=0)(mock_func)

    with pytest.raises(TransientStoreError, match="store down"):
        decorated()

    assert mock_func.call_count == 1
    no_sleep.assert_not_called()


def test_retry_ignores_non_transient_errors():
    mock_func = Mock(side_effect=ValueError("bad input"))
    mock_func.__name__ = "resolve"
    decorated = with_retry(max_retries=3)(mock_func)

    with pytest.raises(ValueError):
        decorated()

    assert mock_func.call_count == 1


def test_store_errors_translates_outage():
    db = Mock()

    with pytest.raises(TransientStoreError, match="load account"):
        with store_errors(db, "load account"):
            raise OperationalError("SELECT", {}, Exception("connection refused"))

    db.rollback.assert_called_once()


def test_store_errors_passes_other_errors():
    db = Mock()

    with pytest.raises(IntegrityError):
        with store_errors(db, "insert account"):
            raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))

    db.rollback.assert_not_called()
