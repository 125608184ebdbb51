"""
==============================================================================
Security Module - Anonymous Session Identity
==============================================================================

Issues and verifies the signed tokens that identify anonymous sessions.

There are no user accounts: every browser session receives a random session
uid wrapped in a JWT. The uid is stamped on every record the session submits.

Token Structure:
---------------
{
    "sub": "session-uid",         # Subject (anonymous session id)
    "type": "session",            # Token type
    "exp": 1234567890,            # Expiration timestamp
    "iat": 1234567890             # Issued at timestamp
}

==============================================================================
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, Optional, Tuple

from jose import JWTError, jwt

from app.config import get_settings


# Module logger
logger = logging.getLogger(__name__)


class SecurityManager:
    """
    Centralized manager for session token operations.

    Example:
        >>> security = SecurityManager()
        >>> uid, token = security.create_session_token()
        >>> payload = security.verify_token(token)
        >>> payload["sub"] == uid
        True
    """

    TOKEN_TYPE_SESSION = "session"

    def __init__(self) -> None:
        self._settings = get_settings()
        logger.debug("SecurityManager initialized")

    # =========================================================================
    # TOKEN CREATION
    # =========================================================================

    def create_session_token(
        self,
        session_uid: Optional[str] = None,
        expires_delta: Optional[timedelta] = None
    ) -> Tuple[str, str]:
        """
        Create a signed token for a new anonymous session.

        Args:
            session_uid: Use this uid instead of generating one
            expires_delta: Custom expiration time (optional)

        Returns:
            Tuple of (session_uid, encoded token)
        """
        session_uid = session_uid or uuid.uuid4().hex
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(
            minutes=self._settings.session_token_expire_minutes
        ))

        payload = {
            "sub": session_uid,
            "type": self.TOKEN_TYPE_SESSION,
            "exp": expire,
            "iat": now,
        }

        token = jwt.encode(
            payload,
            self._settings.jwt_secret_key,
            algorithm=self._settings.jwt_algorithm
        )

        logger.debug(f"Created session token, expires: {expire.isoformat()}")
        return session_uid, token

    # =========================================================================
    # TOKEN VERIFICATION
    # =========================================================================

    def verify_token(self, token: str) -> Optional[Dict[str, Any]]:
        """
        Verify and decode a session token.

        Validates signature, expiration and token type.

        Returns:
            Decoded payload dictionary if valid, None otherwise
        """
        try:
            payload = jwt.decode(
                token,
                self._settings.jwt_secret_key,
                algorithms=[self._settings.jwt_algorithm]
            )
        except jwt.ExpiredSignatureError:
            logger.debug("Token verification failed: token expired")
            return None
        except JWTError as e:
            logger.warning(f"Token verification failed: {e}")
            return None

        if payload.get("type") != self.TOKEN_TYPE_SESSION:
            logger.warning(
                f"Token type mismatch: expected {self.TOKEN_TYPE_SESSION}, "
                f"got {payload.get('type')}"
            )
            return None

        if not payload.get("sub"):
            logger.warning("Token has no subject")
            return None

        return payload

    def session_uid_from_token(self, token: str) -> Optional[str]:
        """Return the session uid carried by a valid token."""
        payload = self.verify_token(token)
        return payload["sub"] if payload else None


@lru_cache(maxsize=1)
def get_security_manager() -> SecurityManager:
    """Get the global SecurityManager instance."""
    return SecurityManager()
