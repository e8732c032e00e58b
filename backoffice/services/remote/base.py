"""
Remote Store Abstract Base Class

Defines the interface contract for talking to the back-office API.
Both MockRemoteStore and HttpRemoteStore implement it, so the orchestrator
and workflow engine behave identically whichever one is active.

Design Pattern: Strategy Pattern
    - Runtime switching between the in-memory mock and the HTTP API
    - Tests drive the engine against the mock without a network

Error contract:
    - No response at all          -> TransportError
    - 401 / 403                   -> AuthError
    - Any other non-2xx status    -> ServerError (message from {"error": ...})

Author: Khalil Bannouri
Version: 1.0.0
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from backoffice.core.session import Session


class BaseRemoteStore(ABC):
    """
    Abstract base class for remote stores.

    Example:
        >>> remote = create_remote_store(session)
        >>> categories = await remote.request("GET", "/categories")
    """

    def __init__(self, session: Optional[Session] = None):
        self._session = session or Session()

    @property
    def session(self) -> Session:
        """Session Context read before each call (never written here)."""
        return self._session

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """
        Return the name of the remote store provider.

        Returns:
            str: Provider name (e.g., "mock", "http")
        """
        pass

    @abstractmethod
    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[dict[str, Any]] = None,
        files: Optional[list] = None,
    ) -> Any:
        """
        Perform one round trip.

        Args:
            method: HTTP verb
            path: Path relative to the API base URL (e.g. "/categories/c1")
            json: JSON body
            files: Multipart parts as (field, (filename|None, content, content_type))

        Returns:
            Decoded JSON body, or None for an empty response

        Raises:
            TransportError, AuthError, ServerError
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Verify connectivity to the remote store.

        Returns:
            bool: True if the store is reachable
        """
        pass

    async def aclose(self) -> None:
        """Release network resources, if any."""
        return None
