"""
Authentication Client

Thin collaborator that owns the Session Context's lifecycle:
login starts it with the returned token, logout clears it. Registration
only creates the admin account; the operator logs in afterwards.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from dataclasses import dataclass
from typing import Optional

from pydantic import ValidationError as SchemaError

from backoffice.core.session import Session
from backoffice.exceptions import BackofficeError
from backoffice.schemas import LoginRequest, RegisterRequest, TokenResponse
from backoffice.services.remote.base import BaseRemoteStore

logger = logging.getLogger(__name__)


@dataclass
class AuthResult:
    """Result of a login or registration attempt."""
    success: bool
    error_message: Optional[str] = None


class AuthClient:
    """Posts credentials and manages the session token."""

    def __init__(self, remote: BaseRemoteStore, session: Session):
        self._remote = remote
        self._session = session

    async def login(self, email: str, password: str) -> AuthResult:
        try:
            body = LoginRequest(email=email, password=password)
        except SchemaError:
            return AuthResult(success=False, error_message="Email and password are required")

        try:
            payload = await self._remote.request("POST", "/auth/login", json=body.model_dump())
            token = TokenResponse.model_validate(payload).token
        except BackofficeError as e:
            logger.warning(f"Auth: Login failed for {email} - {e.message}")
            return AuthResult(success=False, error_message=e.detail or "Login failed")
        except SchemaError:
            logger.error("Auth: Login response carried no token")
            return AuthResult(success=False, error_message="Login failed")

        self._session.start(token)
        logger.info(f"Auth: {email} logged in")
        return AuthResult(success=True)

    async def register(self, name: str, email: str, password: str) -> AuthResult:
        """Create an admin account."""
        try:
            body = RegisterRequest(name=name, email=email, password=password, role="admin")
        except SchemaError:
            return AuthResult(success=False, error_message="Name, email and password are required")

        try:
            await self._remote.request("POST", "/auth/register", json=body.model_dump())
        except BackofficeError as e:
            logger.warning(f"Auth: Signup failed for {email} - {e.message}")
            return AuthResult(success=False, error_message=e.detail or "Signup failed")

        logger.info(f"Auth: admin account created for {email}")
        return AuthResult(success=True)

    def logout(self) -> None:
        self._session.clear()
