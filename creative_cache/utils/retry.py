"""Common retry decorators for network calls.

Retries use exponential backoff and re-raise the last exception so callers
can isolate the failure.
"""

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential
import httpx

# Image downloads while building an archive
# - 2 attempts maximum, short backoff (0.5s..2s)
# - Only transport errors and bad statuses are retried
download_retry = retry(
    stop=stop_after_attempt(2),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=2),
    retry=retry_if_exception_type(httpx.HTTPError),
    reraise=True,
)

__all__ = ["download_retry"]
