"""Post-success check that a published preview is actually reachable."""

from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)


class PreviewCheck:
    """Checks a deploy URL with a single GET request.

    Parameters
    ----------
    client:
        Optional ``httpx.Client``; one is created (and owned) if omitted.
    timeout:
        Request timeout in seconds for an owned client.
    """

    def __init__(self, client: httpx.Client | None = None, timeout: float = 10.0) -> None:
        self._client = client
        self._timeout = timeout

    def reachable(self, url: str) -> bool:
        """Whether *url* answers with a non-error status.

        Transport failures count as unreachable.
        """
        try:
            if self._client is not None:
                resp = self._client.get(url, follow_redirects=True)
            else:
                with httpx.Client(timeout=self._timeout) as client:
                    resp = client.get(url, follow_redirects=True)
        except httpx.TransportError as exc:
            logger.warning("Preview check for %s failed: %s", url, exc)
            return False

        ok = resp.status_code < 400
        if not ok:
            logger.warning("Preview check for %s returned HTTP %d", url, resp.status_code)
        return ok
