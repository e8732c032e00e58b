"""
HTTP Remote Store Implementation

Production implementation talking to the back-office REST API with httpx.
Used when ENV_MODE=production or ENV_MODE=staging.

Every call reads the Session Context right before it is sent and attaches
the bearer token; the store never writes the session.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from datetime import datetime
from typing import Any, Optional

import httpx

from backoffice.core.config import get_settings
from backoffice.core.session import Session
from backoffice.exceptions import AuthError, ServerError, TransportError
from backoffice.schemas import ErrorResponse
from backoffice.services.remote.base import BaseRemoteStore

logger = logging.getLogger(__name__)


class HttpRemoteStore(BaseRemoteStore):
    """
    Remote store backed by the real API.

    Args:
        session: Session Context supplying the bearer token
        base_url: API root (defaults to settings.api_base_url)
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (tests pass httpx.MockTransport)

    Example:
        >>> remote = HttpRemoteStore(session, base_url="http://localhost:5000")
        >>> await remote.request("GET", "/orders")
    """

    def __init__(
        self,
        session: Optional[Session] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(session)
        settings = get_settings()

        self._base_url = (base_url or settings.api_base_url).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout or settings.request_timeout_seconds,
            transport=transport,
        )

        logger.info(f"HttpRemoteStore initialized (base_url={self._base_url})")

    @property
    def provider_name(self) -> str:
        return "http"

    @staticmethod
    def _error_message(response: httpx.Response) -> Optional[str]:
        """Extract {"error": ...} from a failed response, if present."""
        # pydantic's ValidationError is a ValueError too
        try:
            return ErrorResponse.model_validate(response.json()).error
        except ValueError:
            return None

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[dict[str, Any]] = None,
        files: Optional[list] = None,
    ) -> Any:
        start_time = datetime.now()

        try:
            response = await self._client.request(
                method,
                path,
                json=json,
                files=files,
                headers=self.session.authorization_header(),
            )
        except httpx.TimeoutException as e:
            logger.error(f"HTTP: {method} {path} timed out - {e}")
            raise TransportError("The server did not respond in time")
        except httpx.TransportError as e:
            logger.error(f"HTTP: {method} {path} transport error - {e}")
            raise TransportError()

        elapsed_ms = (datetime.now() - start_time).total_seconds() * 1000
        logger.debug(f"HTTP: {method} {path} -> {response.status_code} ({elapsed_ms:.0f}ms)")

        if response.status_code in (401, 403):
            raise AuthError(self._error_message(response), status_code=response.status_code)
        if response.is_error:
            raise ServerError(self._error_message(response), status_code=response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            raise ServerError("The server sent an unreadable response", status_code=response.status_code)

    async def health_check(self) -> bool:
        """
        Verify API connectivity.

        Any HTTP answer counts as reachable; only transport failures fail.
        """
        try:
            await self._client.get("/", headers=self.session.authorization_header())
            return True
        except httpx.HTTPError as e:
            logger.error(f"HTTP: Health check failed - {e}")
            return False

    async def aclose(self) -> None:
        await self._client.aclose()
