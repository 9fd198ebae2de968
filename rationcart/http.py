from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field

import requests

logger = logging.getLogger(__name__)

_RETRY_STATUSES = frozenset({429, 500, 502, 503, 504})


@dataclass(frozen=True)
class HttpClient:
    base_url: str
    headers: dict[str, str] = field(default_factory=dict)
    timeout_s: float = 30.0

    # Bounded retries on connection errors, timeouts and retryable statuses.
    retries: int = 2
    backoff_s: float = 0.5

    def url(self, path: str) -> str:
        if not path:
            return self.base_url.rstrip("/")
        return self.base_url.rstrip("/") + "/" + path.lstrip("/")

    def get(self, path: str, *, params: dict | None = None, headers: dict | None = None) -> requests.Response:
        return self.request("GET", path, params=params, headers=headers)

    def post(self, path: str, *, json: object = None, params: dict | None = None, headers: dict | None = None) -> requests.Response:
        return self.request("POST", path, json=json, params=params, headers=headers)

    def patch(self, path: str, *, json: object = None, params: dict | None = None, headers: dict | None = None) -> requests.Response:
        return self.request("PATCH", path, json=json, params=params, headers=headers)

    def request(self, method: str, path: str, *, headers: dict | None = None, **kwargs) -> requests.Response:
        url = self.url(path)
        merged = {**self.headers, **(headers or {})}

        attempt = 0
        while True:
            try:
                resp = requests.request(method, url, headers=merged, timeout=self.timeout_s, **kwargs)
            except (requests.ConnectionError, requests.Timeout) as exc:
                if attempt >= self.retries:
                    raise
                logger.warning("%s %s failed (%s), retrying", method, url, exc)
            else:
                if resp.status_code not in _RETRY_STATUSES or attempt >= self.retries:
                    return resp
                logger.warning("%s %s returned %s, retrying", method, url, resp.status_code)

            time.sleep(self.backoff_s * (2 ** attempt) * (0.5 + random.random()))
            attempt += 1
