import functools
import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import Callable, TypeVar

from .exceptions import LLMTimeoutError

T = TypeVar('T')

LOGGER = logging.getLogger(__name__)


def with_timeout(seconds: float):
    """
    Timeout decorator

    Runs the wrapped call on a worker thread and raises ``LLMTimeoutError``
    when it does not finish within ``seconds``. The worker is abandoned, not
    killed: an SDK call that is already in flight keeps running in the
    background until the SDK's own socket timeout fires.
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> T:
            executor = ThreadPoolExecutor(max_workers=1)
            future = executor.submit(func, *args, **kwargs)
            try:
                return future.result(timeout=seconds)
            except FutureTimeoutError as e:
                raise LLMTimeoutError(
                    message=f"{func.__name__} did not finish within {seconds:g}s",
                    provider=getattr(func, "__qualname__", func.__name__).split(".")[0],
                    error_type="timeout",
                    original_error=e
                )
            finally:
                executor.shutdown(wait=False, cancel_futures=True)

        return wrapper
    return decorator


def log_request(func: Callable[..., T]) -> Callable[..., T]:
    """Log API requests for debugging"""
    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> T:
        provider = args[0].__class__.__name__ if args else "Unknown"
        LOGGER.debug("[%s] Calling %s", provider, func.__name__)

        try:
            result = func(*args, **kwargs)
        except Exception as e:
            LOGGER.debug("[%s] %s failed: %s", provider, func.__name__, e)
            raise

        error = getattr(result, "error", None)
        if error:
            LOGGER.debug("[%s] %s returned an error: %s", provider, func.__name__, error)
        else:
            LOGGER.debug("[%s] %s succeeded", provider, func.__name__)
        return result

    return wrapper
