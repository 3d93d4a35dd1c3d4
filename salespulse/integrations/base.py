from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

logger = logging.getLogger(__name__)


class IntegrationError(Exception):
    """Non-2xx answer (or unusable payload) from an external service."""

    def __init__(self, service: str, status_code: Optional[int], message: str):
        super().__init__(f"{service} API error: {status_code} {message}")
        self.service = service
        self.status_code = status_code
        self.message = message


class ApiClient(ABC):
    """Bearer-token JSON client shared by the HubSpot and Gong wrappers."""

    service = "API"

    def __init__(self, access_token: str, base_url: str, timeout: float = 30.0,
                 transport: Optional[httpx.BaseTransport] = None):
        self.access_token = access_token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    def _request(self, method: str, endpoint: str, params: Optional[Dict[str, Any]] = None,
                 json: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{endpoint}"
        with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
            r = client.request(method, url, params=params, json=json, headers=self._headers())
        if r.is_error:
            logger.warning("%s %s %s -> %s", self.service, method, endpoint, r.status_code)
            raise IntegrationError(self.service, r.status_code, r.reason_phrase)
        try:
            return r.json()
        except ValueError:
            raise IntegrationError(self.service, r.status_code, "response is not JSON")

    def test_connection(self) -> Dict[str, Any]:
        try:
            self._ping()
        except (IntegrationError, httpx.HTTPError) as e:
            return {"success": False, "message": f"{self.service} connection failed: {e}"}
        return {"success": True, "message": f"{self.service} connection successful"}

    @abstractmethod
    def _ping(self) -> None:
        """Cheapest authenticated call the service offers."""
