"""
Remote Store Factory

Provides a single entry point for obtaining a remote store instance.
Automatically selects the in-memory mock or the HTTP API based on
ENV_MODE configuration.

Usage:
    from backoffice.services.remote import create_remote_store

    remote = create_remote_store(session)
    orders = await remote.request("GET", "/orders")

Environment Switching:
    - ENV_MODE=development → MockRemoteStore (no network)
    - ENV_MODE=staging → HttpRemoteStore
    - ENV_MODE=production → HttpRemoteStore

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from typing import Optional, Union

from backoffice.core.config import Settings, get_settings
from backoffice.core.session import Session
from backoffice.services.remote.base import BaseRemoteStore
from backoffice.services.remote.http import HttpRemoteStore
from backoffice.services.remote.mock import MockRemoteStore

logger = logging.getLogger(__name__)

# Type alias for any remote store
RemoteStore = Union[MockRemoteStore, HttpRemoteStore]


def create_remote_store(
    session: Session,
    settings: Optional[Settings] = None,
) -> BaseRemoteStore:
    """
    Build the configured remote store for a session.

    Not cached: each store is bound to the Session it reads the token from.

    Returns:
        BaseRemoteStore: MockRemoteStore in development, HttpRemoteStore otherwise
    """
    settings = settings or get_settings()

    if settings.is_development:
        logger.info("Remote Store: Using MockRemoteStore (development mode)")
        return MockRemoteStore(
            session=session,
            failure_rate=settings.mock_failure_rate,
            min_latency=settings.mock_min_latency,
            max_latency=settings.mock_max_latency,
        )

    logger.info(
        f"Remote Store: Using HttpRemoteStore "
        f"({settings.env_mode.value} mode)"
    )
    return HttpRemoteStore(
        session=session,
        base_url=settings.api_base_url,
        timeout=settings.request_timeout_seconds,
    )


__all__ = [
    "create_remote_store",
    "BaseRemoteStore",
    "MockRemoteStore",
    "HttpRemoteStore",
    "RemoteStore",
]
