"""Shared HTTP plumbing for namespace clients."""

import time
import uuid
from typing import Optional

import httpx

from common.constants import DEFAULT_HTTP_TIMEOUT_SECONDS
from common.logging_config import get_logger
from mirror.exceptions import NamespaceUnavailableError

logger = get_logger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_BACKOFF_MULTIPLIER = 2.0


class RetryingHttpClient:
    """httpx client that retries on 5xx responses and network failures."""

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff: float = DEFAULT_BACKOFF_MULTIPLIER,
        session: Optional[httpx.Client] = None
    ):
        """
        Args:
            base_url: Base URL of the remote service
            timeout: Request timeout in seconds
            max_retries: Retry attempts after the first failure
            backoff: Exponential backoff base in seconds
            session: Preconfigured httpx client (tests pass one with a mock transport)
        """
        self.base_url = base_url.rstrip('/')
        self.max_retries = max_retries
        self.backoff = backoff
        self.session = session or httpx.Client(base_url=self.base_url, timeout=timeout)

    def _request_with_retry(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        """
        Make HTTP request with retry logic on 5xx errors and network failures.

        Returns:
            The first response with status < 500, or the last 5xx response

        Raises:
            NamespaceUnavailableError: If every attempt failed at the network level
        """
        request_id = str(uuid.uuid4())
        headers = kwargs.setdefault('headers', {})
        headers['X-Request-ID'] = request_id

        last_exception = None

        for attempt in range(self.max_retries + 1):
            try:
                response = self.session.request(method, endpoint, **kwargs)
                logger.debug(
                    f"Response received: {method} {endpoint} status={response.status_code} [request_id={request_id}]"
                )

                if response.status_code >= 500 and attempt < self.max_retries:
                    delay = self.backoff ** attempt
                    logger.warning(
                        f"Server error (attempt {attempt + 1}/{self.max_retries + 1}): "
                        f"{method} {endpoint} status={response.status_code}, retrying in {delay}s"
                    )
                    time.sleep(delay)
                    continue

                return response

            except (httpx.ConnectError, httpx.TimeoutException) as e:
                last_exception = e
                if attempt < self.max_retries:
                    delay = self.backoff ** attempt
                    logger.warning(
                        f"Network error (attempt {attempt + 1}/{self.max_retries + 1}): "
                        f"{method} {endpoint} error={type(e).__name__}, retrying in {delay}s"
                    )
                    time.sleep(delay)

        logger.error(f"Network error (max retries exceeded): {method} {endpoint} error={last_exception}")
        raise NamespaceUnavailableError(
            f"Cannot reach {self.base_url}{endpoint}: {last_exception}"
        ) from last_exception

    def close(self) -> None:
        self.session.close()
