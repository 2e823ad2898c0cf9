from contextlib import contextmanager
from functools import wraps
import time
from typing import Any, Callable, Iterator, TypeVar
import logging

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.orm import Session

from tourify.core.exceptions import TransientStoreError

T = TypeVar('T')

logger = logging.getLogger(__name__)


@contextmanager
def store_errors(db: Session, action: str) -> Iterator[None]:
    """
    Translate record store outages into TransientStoreError.

    The session is rolled back so the caller can retry the whole operation
    on the same session.

    Args:
        db: Session used inside the block
        action: Short description used in the log line and error message
    """
    try:
        yield
    except (OperationalError, InterfaceError) as e:
        db.rollback()
        logger.error(f"Record store unavailable while trying to {action}: {str(e)}")
        raise TransientStoreError(f"Record store unavailable while trying to {action}") from e


def with_retry(
    max_retries: int = 3,
    initial_delay: float = 1.0,
    exponential_base: float = 2.0,
    exceptions: tuple = (TransientStoreError,)
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator that retries a whole operation with exponential backoff.

    Only wrap operations that are idempotent end to end; never a single
    sub-step of one.

    Args:
        max_retries: Maximum number of attempts; at least one is always made
        initial_delay: Initial delay between retries in seconds
        exponential_base: Base for exponential backoff calculation
        exceptions: Tuple of exceptions to catch and retry
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            delay = initial_delay
            last_exception = None
            attempts = max(1, max_retries)

            for attempt in range(attempts):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    last_exception = e

                    if attempt == attempts - 1:
                        logger.error(f"Final retry attempt failed for {func.__name__}: {str(e)}")
                        raise

                    logger.warning(
                        f"Attempt {attempt + 1}/{attempts} failed for {func.__name__}: {str(e)}. "
                        f"Retrying in {delay} seconds..."
                    )

                    time.sleep(delay)
                    delay *= exponential_base

            raise last_exception if last_exception else RuntimeError("Unexpected error")

        return wrapper
    return decorator
