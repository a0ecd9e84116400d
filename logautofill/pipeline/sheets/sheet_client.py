"""
HTTP client for the spreadsheet-backed store.

Two endpoints are involved:
- the published CSV export (read side), fetched with a cache-busting param
- the Apps Script web app (write side), which is fire-and-forget: the body is
  sent as text/plain to avoid a CORS pre-flight in browsers, and the response
  is never inspected. A write is only confirmed by a later history refresh.
"""

from __future__ import annotations

import json
import time
from typing import Dict, List, Optional

import httpx
from loguru import logger

from logautofill.pipeline.config.settings import Settings, get_settings
from logautofill.pipeline.errors import AppendAcknowledgmentMissing, TransportUnavailable


class SheetClient:
    """Read/append access to the log spreadsheet."""

    def __init__(
        self,
        csv_url: Optional[str] = None,
        script_url: Optional[str] = None,
        timeout: Optional[float] = None,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        settings = settings or get_settings()
        self.transport = transport
        self.csv_url = csv_url or settings.sheet_csv_url
        self.script_url = script_url or settings.script_url
        self.timeout = timeout if timeout is not None else settings.sheet_timeout_seconds

    def fetch_history_csv(self) -> str:
        """
        Download the full CSV export.

        Raises:
            TransportUnavailable: Network failure or non-2xx status
        """
        params = {"t": str(int(time.time() * 1000))}
        logger.debug("Fetching sheet export from {url}", url=self.csv_url)
        try:
            with httpx.Client(
                timeout=self.timeout, follow_redirects=True, transport=self.transport
            ) as client:
                resp = client.get(self.csv_url, params=params)
                resp.raise_for_status()
                return resp.text
        except httpx.HTTPError as exc:
            logger.error("Sheet export fetch failed: {error}", error=exc)
            raise TransportUnavailable() from exc

    def append_rows(self, rows: List[Dict[str, str]]) -> None:
        """
        Post rows to the Apps Script endpoint.

        Returning normally is the only acknowledgment available; the script's
        response is not read back.

        Raises:
            AppendAcknowledgmentMissing: The request itself failed
        """
        if not rows:
            return

        logger.info("Sending {count} row(s) to the sheet script", count=len(rows))
        payload = json.dumps(rows, ensure_ascii=False)
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                client.post(
                    self.script_url,
                    content=payload.encode("utf-8"),
                    headers={"Content-Type": "text/plain", "Cache-Control": "no-cache"},
                )
        except httpx.HTTPError as exc:
            logger.error("Sheet append failed: {error}", error=exc)
            raise AppendAcknowledgmentMissing() from exc
