"""HTTP transport: posts one report per request, never retries."""

import json
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

REPORT_PATH = "/api/errors"


class HttpTransport:
    """Sends JSON reports to ``<endpoint>/api/errors`` with an ``X-API-Key`` header.

    ``send()`` is the blocking single attempt; ``dispatch()`` runs it on a
    worker thread and returns immediately.
    """

    def __init__(
        self,
        endpoint: str,
        api_key: str,
        client: Optional[httpx.Client] = None,
        max_workers: Optional[int] = None,
    ):
        self._url = f"{endpoint}{REPORT_PATH}"
        self._api_key = api_key
        self._client = client or httpx.Client()
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="alertiqo-send"
        )

    @property
    def url(self) -> str:
        return self._url

    def send(self, payload: dict) -> bool:
        """POST *payload* once. Returns True on a 2xx response, False otherwise."""
        try:
            body = json.dumps(payload, default=str)
            response = self._client.post(
                self._url,
                content=body,
                headers={
                    "Content-Type": "application/json",
                    "X-API-Key": self._api_key,
                },
            )
        except httpx.HTTPError as exc:
            logger.error("Failed to send error report: %s", exc)
            return False

        if not response.is_success:
            logger.error(
                "Failed to send error report: %d %s",
                response.status_code,
                response.reason_phrase,
            )
            return False
        return True

    def dispatch(self, payload: dict) -> Future:
        """Schedule a send on the worker pool without waiting for it."""
        return self._executor.submit(self._send_detached, payload)

    def _send_detached(self, payload: dict) -> bool:
        # Nobody reads the Future, so anything left on it would vanish unlogged.
        try:
            return self.send(payload)
        except Exception:
            logger.exception("Unexpected error while sending error report")
            return False

    def close(self):
        """Wait for in-flight sends, then close the HTTP client."""
        self._executor.shutdown(wait=True)
        self._client.close()
