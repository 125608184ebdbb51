"""
==============================================================================
Session Identity Service
==============================================================================

The awaitable identity step that precedes every persistence operation.

A session's identity is its anonymous uid, issued together with the signed
session token (see app.core.security). The workflow awaits ensure() before
writing so a session that lost its identity never produces records.

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol


# Module logger
logger = logging.getLogger(__name__)


class IdentityError(Exception):
    """Session identity could not be established."""


class IdentityProvider(Protocol):
    """Capability interface for session identity."""

    async def ensure(self) -> str:
        ...


class AnonymousIdentity:
    """
    Identity backed by the uid of an anonymous session token.

    Example:
        >>> identity = AnonymousIdentity("4f1c9a")
        >>> await identity.ensure()
        '4f1c9a'
    """

    def __init__(self, session_uid: Optional[str]) -> None:
        self._session_uid = session_uid

    @property
    def session_uid(self) -> Optional[str]:
        return self._session_uid

    async def ensure(self) -> str:
        """
        Return the established session uid.

        Raises:
            IdentityError: if the session has been revoked
        """
        if not self._session_uid:
            raise IdentityError("Session identity has been revoked")
        return self._session_uid

    def revoke(self) -> None:
        """Drop the identity; later ensure() calls fail."""
        if self._session_uid:
            logger.debug(f"Identity revoked for session {self._session_uid}")
        self._session_uid = None
