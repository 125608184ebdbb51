"""
==============================================================================
Session Service Module
==============================================================================

Registry of live workflow sessions and the idle-session sweeper.

This module implements:
- SessionRegistry: session uid → WorkflowController
- SessionSweeper: background task expiring idle sessions

Every session owns a FrameDecoderAdapter and an AnonymousIdentity; all
sessions share one SubmissionGateway. Expiring or closing a session
releases its decoder and feed subscription through WorkflowController.close().

==============================================================================
"""

from __future__ import annotations

import asyncio
import logging
import time
from functools import lru_cache
from typing import Callable, Dict, List, Optional, Tuple

from app.config import get_settings
from app.core import exceptions
from app.core.security import SecurityManager, get_security_manager
from app.scanner.decoder import FrameDecoderAdapter
from app.services.identity_service import AnonymousIdentity
from app.services.submission_gateway import SqlSubmissionGateway, SubmissionGateway
from app.workflow.controller import WorkflowController
from app.workflow.notifications import NotificationQueue


# Module logger
logger = logging.getLogger(__name__)


class SessionEntry:
    """A live session: its controller plus the pieces only the server touches."""

    def __init__(
        self,
        controller: WorkflowController,
        decoder: FrameDecoderAdapter,
        identity: AnonymousIdentity
    ) -> None:
        self.controller = controller
        self.decoder = decoder
        self.identity = identity


class SessionRegistry:
    """
    In-process registry of workflow sessions.

    Example:
        >>> registry = SessionRegistry()
        >>> uid, token, entry = registry.create()
        >>> registry.get(uid) is entry
        True
        >>> registry.close(uid)
    """

    def __init__(
        self,
        gateway: Optional[SubmissionGateway] = None,
        security: Optional[SecurityManager] = None,
        decoder_factory: Callable[[], FrameDecoderAdapter] = FrameDecoderAdapter,
        clock: Callable[[], float] = time.monotonic
    ) -> None:
        self._settings = get_settings()
        self._gateway = gateway
        self._security = security or get_security_manager()
        self._decoder_factory = decoder_factory
        self._clock = clock
        self._sessions: Dict[str, SessionEntry] = {}

    @property
    def gateway(self) -> SubmissionGateway:
        # Created lazily so importing the app never touches the database
        if self._gateway is None:
            self._gateway = SqlSubmissionGateway()
        return self._gateway

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_uid: str) -> bool:
        return session_uid in self._sessions

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def create(self) -> Tuple[str, str, SessionEntry]:
        """
        Open a new anonymous session.

        Returns:
            Tuple of (session_uid, token, entry)
        """
        session_uid, token = self._security.create_session_token()

        decoder = self._decoder_factory()
        identity = AnonymousIdentity(session_uid)
        controller = WorkflowController(
            decoder=decoder,
            gateway=self.gateway,
            identity=identity,
            notifications=NotificationQueue(
                ttl_seconds=self._settings.notification_ttl_seconds,
                clock=self._clock
            ),
            session_uid=session_uid,
            clock=self._clock,
        )

        entry = SessionEntry(controller, decoder, identity)
        self._sessions[session_uid] = entry
        logger.info(f"🆕 Session opened: {session_uid} ({len(self._sessions)} live)")

        return session_uid, token, entry

    def get(self, session_uid: str) -> SessionEntry:
        """
        Look up a live session.

        Raises:
            AppException: SESSION_NOT_FOUND
        """
        entry = self._sessions.get(session_uid)
        if entry is None or entry.controller.is_closed:
            raise exceptions.session_not_found(session_uid)
        return entry

    def resolve_token(self, token: Optional[str]) -> SessionEntry:
        """
        Find the session a token belongs to.

        Raises:
            AppException: TOKEN_MISSING, TOKEN_INVALID or SESSION_NOT_FOUND
        """
        if not token:
            raise exceptions.token_missing()

        session_uid = self._security.session_uid_from_token(token)
        if not session_uid:
            raise exceptions.token_invalid()

        return self.get(session_uid)

    def close(self, session_uid: str) -> bool:
        """Close and forget a session. Returns False if it was unknown."""
        entry = self._sessions.pop(session_uid, None)
        if entry is None:
            return False

        entry.controller.close()
        entry.identity.revoke()
        return True

    def close_all(self) -> int:
        count = 0
        for session_uid in list(self._sessions):
            if self.close(session_uid):
                count += 1
        return count

    def expire_idle(self, idle_minutes: Optional[int] = None) -> List[str]:
        """
        Close sessions with no activity for the given number of minutes.

        Returns:
            uids of the expired sessions
        """
        idle_minutes = idle_minutes or self._settings.session_idle_minutes
        cutoff = self._clock() - idle_minutes * 60

        expired = [
            uid for uid, entry in self._sessions.items()
            if entry.controller.last_activity < cutoff
            and not entry.controller.is_submitting
        ]
        for uid in expired:
            self.close(uid)

        if expired:
            logger.info(f"🧹 Expired {len(expired)} idle sessions")

        return expired


class SessionSweeper:
    """
    Background task that periodically expires idle sessions.

    Example:
        >>> sweeper = SessionSweeper(registry)
        >>> sweeper.start()  # inside a running event loop
        >>> sweeper.stop()
    """

    def __init__(self, registry: SessionRegistry) -> None:
        self._registry = registry
        self._settings = get_settings()
        self._task: Optional[asyncio.Task] = None
        self._running = False

    async def _sweep_loop(self) -> None:
        logger.info("🔄 Session sweeper started")

        while self._running:
            try:
                await asyncio.sleep(self._settings.sweep_interval_seconds)
                self._registry.expire_idle()
            except asyncio.CancelledError:
                logger.info("🛑 Session sweeper cancelled")
                break
            except Exception as e:
                logger.error(f"Session sweeper error: {e}")

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._running = True
            self._task = asyncio.create_task(self._sweep_loop())
        return self._task

    def stop(self) -> None:
        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
            logger.info("🛑 Session sweeper stopped")

    @property
    def is_running(self) -> bool:
        return self._running and self._task is not None and not self._task.done()


@lru_cache(maxsize=1)
def get_session_registry() -> SessionRegistry:
    """Process-wide session registry (FastAPI dependency)."""
    return SessionRegistry()
