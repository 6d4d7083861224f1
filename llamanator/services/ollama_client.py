"""
Backend API client

One shared httpx.AsyncClient serves every in-flight request; each call gets a
hard deadline and exactly one attempt.
"""
import asyncio
import time
from typing import Optional

import httpx

from llamanator.core.config import Settings
from llamanator.core.exceptions import BackendTimeout, BackendUnavailable
from llamanator.core.logging_config import LoggingConfig
from llamanator.core.metrics import (backend_errors_total,
                                     backend_request_duration_seconds,
                                     backend_requests_total)

logger = LoggingConfig.get_logger(__name__)


class OllamaClient:
    """
    Client for the backend generate endpoint
    """

    def __init__(
        self,
        api_url: str,
        api_key: str = "",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.timeout = float(timeout)
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            transport=transport,
            limits=httpx.Limits(
                max_keepalive_connections=10,
                max_connections=100,
            ),
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "OllamaClient":
        """Create a client from gateway settings"""
        return cls(
            api_url=settings.api_url,
            api_key=settings.api_key,
            timeout=settings.request_timeout,
            transport=transport,
        )

    @property
    def headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def _post(self, body: bytes) -> bytes:
        response = await self._client.post(self.api_url, content=body, headers=self.headers)
        if response.status_code >= 400:
            raise BackendUnavailable(
                f"HTTP error from backend: {response.status_code} - {response.text[:200]}",
                metadata={"status_code": response.status_code}
            )
        return response.content

    async def send(self, body: bytes, model: str = "") -> bytes:
        """
        POST an encoded payload to the backend

        Args:
            body: JSON-encoded backend payload
            model: Model name, used for metrics labels only

        Returns:
            Raw response body

        Raises:
            BackendTimeout: If the call does not finish within the timeout
            BackendUnavailable: On transport failure or an error status
        """
        start_time = time.monotonic()
        try:
            content = await asyncio.wait_for(self._post(body), timeout=self.timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            self._record_failure(model, "timeout")
            raise BackendTimeout(
                f"Request to {self.api_url} timed out after {self.timeout:g}s",
                metadata={"timeout": self.timeout}
            ) from e
        except BackendUnavailable:
            self._record_failure(model, "http_status")
            raise
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            self._record_failure(model, type(e).__name__)
            raise BackendUnavailable(
                f"Failed to send request to backend at {self.api_url}: {type(e).__name__}: {e}"
            ) from e

        duration = time.monotonic() - start_time
        backend_requests_total.labels(model=model, status="success").inc()
        backend_request_duration_seconds.labels(model=model).observe(duration)
        logger.debug(f"Backend answered in {duration:.3f}s ({len(content)} bytes)")
        return content

    def _record_failure(self, model: str, error_type: str):
        backend_requests_total.labels(model=model, status="error").inc()
        backend_errors_total.labels(model=model, error_type=error_type).inc()

    async def health_check(self) -> bool:
        """Check if the backend answers on /api/tags"""
        try:
            tags_url = httpx.URL(self.api_url).join("/api/tags")
            response = await self._client.get(tags_url, headers=self.headers, timeout=5.0)
            return response.status_code == 200
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug(f"Backend health check failed: {e}")
            return False

    async def close(self):
        """Close the HTTP client"""
        await self._client.aclose()
