"""HTTP client for Graph OAuth (graphoauth)."""

import logging
import time
from typing import Callable

import requests

from graphoauth.core.config import MAX_RETRIES, RETRY_DELAY, REQUEST_TIMEOUT

logger = logging.getLogger(__name__)


def retry_request(
    func: Callable[[], requests.Response], max_retries=MAX_RETRIES, delay=RETRY_DELAY, sleep=time.sleep
) -> requests.Response:
    """Retry a function with exponential backoff."""
    for attempt in range(max_retries):
        try:
            return func()
        except requests.exceptions.RequestException as e:
            if attempt == max_retries - 1:
                raise
            logger.warning(
                "Request failed (attempt %d/%d): %s", attempt + 1, max_retries, e
            )
            sleep(delay * (2**attempt))  # Exponential backoff

    raise RuntimeError("retry_request called with max_retries < 1")


class HttpClient:
    """Thin wrapper over a requests session used by credentials and upload sessions."""

    def __init__(self, session=None, timeout=REQUEST_TIMEOUT, max_retries=MAX_RETRIES, retry_delay=RETRY_DELAY):
        self.session = session or requests.Session()
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay

    def _send(self, method, url, **kwargs) -> requests.Response:
        kwargs.setdefault("timeout", self.timeout)

        def send_request():
            return self.session.request(method, url, **kwargs)

        logger.debug("%s %s", method, url)
        return retry_request(send_request, self.max_retries, self.retry_delay)

    def post_form(self, url, data, headers=None, params=None, auth=None) -> requests.Response:
        """POST an application/x-www-form-urlencoded body."""
        request_headers = {"Content-Type": "application/x-www-form-urlencoded"}
        request_headers.update(headers or {})
        return self._send("POST", url, data=data, headers=request_headers, params=params, auth=auth)

    def post_json(self, url, body, headers=None) -> requests.Response:
        request_headers = {"Content-Type": "application/json"}
        request_headers.update(headers or {})
        return self._send("POST", url, json=body, headers=request_headers)

    def put(self, url, data, headers=None) -> requests.Response:
        return self._send("PUT", url, data=data, headers=headers or {})

    def get(self, url, headers=None) -> requests.Response:
        return self._send("GET", url, headers=headers or {})

    def delete(self, url, headers=None) -> requests.Response:
        return self._send("DELETE", url, headers=headers or {})
