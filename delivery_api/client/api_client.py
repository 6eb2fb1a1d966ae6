"""
Delivery API Client

Async client for the delivery service REST API. Authenticated calls take
a Session explicitly; the client itself keeps no login state, so two
sessions can be used side by side.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from delivery_api.client.session import Session

logger = logging.getLogger(__name__)


class ApiClientError(Exception):
    """Exception raised when the API answers with success=false or is unreachable"""
    def __init__(self, status_code: int, message: str, error: Any = None):
        self.status_code = status_code
        self.message = message
        self.error = error
        super().__init__(f"HTTP {status_code}: {message}")


class DeliveryApiClient:
    """Client for the delivery service API"""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        json: Optional[dict] = None,
        params: Optional[dict] = None,
        session: Optional[Session] = None,
    ) -> Dict[str, Any]:
        """Send one request and return the decoded envelope"""
        headers = session.auth_headers() if session else {}

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                response = await client.request(method, f"/api{endpoint}", json=json, params=params, headers=headers)
        except httpx.ConnectError:
            logger.error(f"Cannot connect to delivery API at {self.base_url}")
            raise ApiClientError(503, "Delivery API not available")
        except httpx.TimeoutException:
            logger.error(f"Timeout calling delivery API: {endpoint}")
            raise ApiClientError(504, "Delivery API timeout")
        except httpx.HTTPError as e:
            logger.error(f"Delivery API request failed: {endpoint} ({e})")
            raise ApiClientError(503, "Delivery API not available")

        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            body = {"success": False, "message": response.text or response.reason_phrase}

        if response.is_error or not body.get("success", False):
            raise ApiClientError(
                response.status_code,
                body.get("message") or "Request failed",
                body.get("error"),
            )
        return body

    @staticmethod
    def _session_from(body: Dict[str, Any]) -> Session:
        return Session(token=body["token"], user=body.get("data") or {})

    # ----------------------------------------------------------------------
    # Public endpoints
    # ----------------------------------------------------------------------

    async def register(self, user_data: dict) -> Session:
        """Register a customer/agent and return the new session"""
        body = await self._make_request("POST", "/register", json=user_data)
        return self._session_from(body)

    async def login(self, email: str, password: str) -> Session:
        body = await self._make_request("POST", "/login", json={"email": email, "password": password})
        return self._session_from(body)

    async def forgot_password(self, email: str) -> Dict[str, Any]:
        """Returns the envelope; it holds `token` only in dev exposure mode"""
        return await self._make_request("POST", "/password/forgot", json={"email": email})

    async def reset_password(self, email: str, token: str, password: str) -> Dict[str, Any]:
        return await self._make_request(
            "POST",
            "/password/reset",
            json={"email": email, "token": token, "password": password},
        )

    async def bootstrap_admin(self, admin_data: dict) -> Session:
        body = await self._make_request("POST", "/admin/bootstrap", json=admin_data)
        return self._session_from(body)

    # ----------------------------------------------------------------------
    # Authenticated endpoints
    # ----------------------------------------------------------------------

    async def me(self, session: Session) -> Dict[str, Any]:
        body = await self._make_request("GET", "/auth/me", session=session)
        return body["data"]

    async def restore_session(self, token: str) -> Session:
        """Rebuild a session from a stored token; raises ApiClientError if it is no longer valid"""
        probe = Session(token=token)
        return Session(token=token, user=await self.me(probe))

    async def create_admin(self, session: Session, admin_data: dict) -> Dict[str, Any]:
        body = await self._make_request("POST", "/admin/create", json=admin_data, session=session)
        return body["data"]

    async def list_customers(self, session: Session, q: str = "", page: int = 1, limit: int = 10) -> Dict[str, Any]:
        body = await self._make_request(
            "GET", "/admin/users", params={"q": q, "page": page, "limit": limit}, session=session
        )
        return body["data"]

    async def list_agents(self, session: Session, q: str = "", page: int = 1, limit: int = 10) -> Dict[str, Any]:
        body = await self._make_request(
            "GET", "/admin/agents", params={"q": q, "page": page, "limit": limit}, session=session
        )
        return body["data"]
