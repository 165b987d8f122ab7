"""HTTP readiness probe for freshly started fixtures."""

import time
from typing import Optional

import requests

from dumbrouter_ops.errors import OpsError


class ReadinessProbe:
    """Polls a fixture URL until it answers with any HTTP response."""

    def __init__(self, logger, requests_module=requests, poll_interval: float = 0.25):
        self.logger = logger
        self.requests = requests_module
        self.poll_interval = poll_interval

    def wait(self, url: str, timeout: float):
        deadline = time.monotonic() + timeout
        last_error: Optional[Exception] = None

        while True:
            try:
                response = self.requests.get(url, timeout=min(2.0, max(timeout, 0.1)))
                response.close()
                self.logger.debug("Fixture at %s answered with %s", url, response.status_code)
                return
            except self.requests.RequestException as exc:
                last_error = exc

            if time.monotonic() >= deadline:
                break
            time.sleep(self.poll_interval)

        raise OpsError(f"Fixture at {url} did not answer within {timeout:.1f}s: {last_error}")
