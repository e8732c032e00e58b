"""
Session Context and Liveness Token

The Session holds the bearer credential obtained by the authentication
client. Everything else in the package only reads it: the remote store
asks for the authorization header right before each outbound call.

Liveness is the cancellation token owned by whoever consumes the engine
(a dashboard view, a script). Completions that arrive after the owner has
closed must check it and drop their result.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from typing import Optional

logger = logging.getLogger(__name__)


class Session:
    """Current authentication credential, if any."""

    def __init__(self, token: Optional[str] = None):
        self._token = token

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def is_authenticated(self) -> bool:
        return bool(self._token)

    def authorization_header(self) -> dict[str, str]:
        """Header to attach to authenticated calls (empty when logged out)."""
        if not self._token:
            return {}
        return {"Authorization": f"Bearer {self._token}"}

    # Only the auth collaborator calls these two.

    def start(self, token: str) -> None:
        self._token = token
        logger.info("Session started")

    def clear(self) -> None:
        self._token = None
        logger.info("Session cleared")


class Liveness:
    """Flag telling late completions whether their consumer still exists."""

    def __init__(self):
        self._alive = True

    @property
    def alive(self) -> bool:
        return self._alive

    def close(self) -> None:
        if self._alive:
            logger.debug("Liveness token closed, pending completions will be discarded")
        self._alive = False
