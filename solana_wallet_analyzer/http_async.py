"""
Async JSON-over-HTTP client shared by the history and price adapters.
Single attempt per request; failures are mapped onto the analyzer's
exception hierarchy and surfaced to the caller.
"""

import asyncio
import logging
import math
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, Optional

import aiohttp

from .exceptions import (
    SourceUnavailableError,
    WalletAnalyzerError,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30
USER_AGENT = "SolanaWalletAnalyzer/1.0"


class AsyncHttpClient:
    """
    Base aiohttp client with lazily created session.

    Subclasses set ``source_name`` and ``error_class`` so that transport and
    HTTP failures are reported as the right kind of error.
    """

    source_name = "http"
    error_class: type = SourceUnavailableError

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.base_url = str(base_url).rstrip("/")
        self.timeout = timeout

        # An injected session is owned by the caller and never closed here
        self._session: Optional[aiohttp.ClientSession] = session
        self._owns_session = session is None
        self._session_lock = asyncio.Lock()
        self._closed = False

    async def __aenter__(self):
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure aiohttp session exists."""
        async with self._session_lock:
            if self._session is None or self._session.closed:
                timeout = aiohttp.ClientTimeout(total=self.timeout)
                self._session = aiohttp.ClientSession(
                    timeout=timeout,
                    headers={
                        "Accept": "application/json",
                        "User-Agent": USER_AGENT,
                    }
                )
                self._owns_session = True
                self._closed = False
            return self._session

    async def close(self) -> None:
        """Close the client and cleanup resources."""
        if self._closed:
            return
        self._closed = True

        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

        logger.debug(f"{self.__class__.__name__} closed")

    def _error(self, message: str, **kwargs: Any) -> WalletAnalyzerError:
        return self.error_class(message, **kwargs)

    async def _request(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Make one HTTP request and return the decoded JSON body.

        Raises:
            error_class: On transport errors, timeouts and HTTP errors
                (see ``_http_error`` for status mapping)
        """
        session = await self._ensure_session()
        start_time = time.time()

        # Never log credentials
        log_params = {k: v for k, v in (params or {}).items() if k not in ("api-key", "api_key")}
        logger.debug(f"Request {method} {url} params={log_params}")

        try:
            async with session.request(method, url, params=params, json=json_data) as response:
                latency = (time.time() - start_time) * 1000

                if response.status == 429:
                    retry_after = response.headers.get("Retry-After")
                    raise self._error(
                        f"{self.source_name} rate limited the request",
                        status_code=429,
                        retry_after=_parse_retry_after(retry_after),
                    )

                try:
                    data = await response.json(content_type=None)
                except (aiohttp.ContentTypeError, ValueError):
                    data = {"raw": await response.text()}

                if response.status >= 400:
                    error_msg = _extract_error_message(data)
                    raise self._http_error(response.status, error_msg)

                logger.debug(f"Request completed in {latency:.1f}ms")
                return data

        except aiohttp.ClientError as e:
            raise self._error(
                f"{self.source_name} connection error: {e}",
                context={"url": url},
            ) from e

        except asyncio.TimeoutError as e:
            raise self._error(
                f"{self.source_name} request timed out after {self.timeout}s",
                context={"url": url},
            ) from e

    def _http_error(self, status: int, message: str) -> WalletAnalyzerError:
        """Map an HTTP error status to an exception. Subclasses refine this."""
        return self._error(
            f"{self.source_name} returned HTTP {status}: {message}",
            status_code=status,
        )


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Seconds to wait from a Retry-After header, given as seconds or an HTTP-date."""
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        pass
    else:
        return max(seconds, 0.0) if math.isfinite(seconds) else None
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max((when - datetime.now(timezone.utc)).total_seconds(), 0.0)


def _extract_error_message(data: Any) -> str:
    if isinstance(data, dict):
        error = data.get("error", data.get("message", data.get("raw", data)))
        if isinstance(error, dict):
            return str(error.get("message", error))
        return str(error)
    return str(data)


__all__ = [
    "AsyncHttpClient",
    "DEFAULT_TIMEOUT",
]
