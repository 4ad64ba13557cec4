from __future__ import annotations
import logging
import time
from typing import Optional

import requests
from requests import Response

from apregistry.core.settings import settings

log = logging.getLogger(__name__)


class UpstreamError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def http_get(
    url: str,
    *,
    params: Optional[dict] = None,
    timeout: Optional[float] = None,
    retries: Optional[int] = None,
    backoff: Optional[float] = None,
) -> Response:
    """
    GET with the service User-Agent.
    Connection errors and 5xx responses are retried, the delay starting at
    `backoff` seconds and doubling each time. 4xx responses fail at once.
    """
    timeout = settings.http_timeout if timeout is None else timeout
    retries = max(1, settings.http_retries if retries is None else retries)
    backoff = settings.http_backoff if backoff is None else backoff
    headers = {"User-Agent": settings.user_agent}

    last_exc: Exception | None = None
    for attempt in range(1, retries + 1):
        try:
            r = requests.get(url, params=params, headers=headers, timeout=timeout)
        except requests.RequestException as e:
            last_exc = e
        else:
            if r.status_code < 400:
                return r
            if r.status_code < 500:
                raise UpstreamError(f"HTTP {r.status_code} for {url}", status_code=r.status_code)
            last_exc = UpstreamError(f"HTTP {r.status_code} for {url}", status_code=r.status_code)
        if attempt == retries:
            break
        log.debug("GET %s failed (attempt %d/%d): %s", url, attempt, retries, last_exc)
        time.sleep(backoff * 2 ** (attempt - 1))
    status = last_exc.status_code if isinstance(last_exc, UpstreamError) else None
    raise UpstreamError(f"HTTP GET failed for {url}: {last_exc}", status_code=status)
