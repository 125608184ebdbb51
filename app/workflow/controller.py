"""
==============================================================================
Workflow Controller Module
==============================================================================

The scan → cart → submit workflow of one session.

Responsibilities:
-----------------
- Enforce the view transitions in app.workflow.state
- Own the decoder while the scanner view is active
- Own the feed subscription while the admin view is active
- Validate and issue submissions (one write per cart item)
- Report every outcome through the notification queue

Resource Release:
-----------------
Leaving SCANNER always stops the decoder and leaving ADMIN always cancels
the feed subscription. close() releases both when the session ends.

==============================================================================
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, List, Optional, Union

from app.core import exceptions
from app.db.models import MemberRole
from app.scanner.decoder import CameraError, DecoderAdapter
from app.scanner.parser import ScanParser
from app.schemas.record import RecordCreate, RecordOut
from app.schemas.session import NotificationOut, SessionState
from app.services.identity_service import IdentityProvider
from app.services.submission_gateway import SubmissionGateway, Unsubscribe
from app.workflow.cart import CartStore
from app.workflow.notifications import NotificationQueue
from app.workflow.state import SessionFormState, View, can_transition


# Module logger
logger = logging.getLogger(__name__)


FeedListener = Callable[[List[RecordOut]], None]


class WorkflowController:
    """
    View state machine for one scanning session.

    Example:
        >>> controller = WorkflowController(decoder, gateway, identity)
        >>> controller.select_role(MemberRole.APPLICATOR)
        >>> controller.handle_decode('{"name": "UltraSeal", "id": "P1", ...}')
        >>> controller.view
        <View.CART: 'cart'>
        >>> controller.update_form("Ravi", "m-001")
        >>> await controller.submit()
        True
    """

    MSG_SCANNED = "Item scanned!"
    MSG_EMPTY_CART = "Cart is empty. Scan at least one item."
    MSG_MISSING_MEMBER = "Please enter Member Name and Member ID."
    MSG_SUBMITTED = "Submitted {count} item(s) successfully!"
    MSG_SUBMIT_FAILED = "Error submitting data. Please try again."
    MSG_IDENTITY_FAILED = "Could not establish a session. Check your connection."
    MSG_SUBMIT_BUSY = "Submission already in progress."
    MSG_CAMERA_START_FAILED = "Could not start the camera."
    MSG_FEED_FAILED = "Could not load records."

    def __init__(
        self,
        decoder: DecoderAdapter,
        gateway: SubmissionGateway,
        identity: IdentityProvider,
        parser: Optional[ScanParser] = None,
        notifications: Optional[NotificationQueue] = None,
        session_uid: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic
    ) -> None:
        self._decoder = decoder
        self._gateway = gateway
        self._identity = identity
        self._parser = parser or ScanParser()
        self._notifications = notifications or NotificationQueue()
        self._session_uid = session_uid
        self._clock = clock

        self._view = View.WELCOME
        self._form = SessionFormState()
        self._cart = CartStore()

        self._unsubscribe: Optional[Unsubscribe] = None
        self._admin_return = View.WELCOME
        self._admin_records: List[RecordOut] = []
        self._feed_listeners: List[FeedListener] = []

        self._submitting = False
        self._closed = False
        self._last_activity = self._clock()

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def view(self) -> View:
        return self._view

    @property
    def role(self) -> Optional[MemberRole]:
        return self._form.role

    @property
    def form(self) -> SessionFormState:
        return self._form

    @property
    def cart(self) -> CartStore:
        return self._cart

    @property
    def notifications(self) -> NotificationQueue:
        return self._notifications

    @property
    def admin_records(self) -> List[RecordOut]:
        """Records shown in the admin view, newest first."""
        return list(self._admin_records)

    @property
    def is_submitting(self) -> bool:
        return self._submitting

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def session_uid(self) -> Optional[str]:
        return self._session_uid

    @property
    def last_activity(self) -> float:
        return self._last_activity

    # =========================================================================
    # WELCOME
    # =========================================================================

    def select_role(self, role: Union[MemberRole, str]) -> None:
        """Start a fresh cart for the chosen role and open the scanner."""
        try:
            role = MemberRole(role)
        except ValueError:
            raise exceptions.invalid_role(str(role))

        self._require_view(View.WELCOME, View.SCANNER)
        self._touch()

        self._cart.clear()
        self._form.reset()
        self._form.role = role
        logger.info(f"👤 Session {self._session_uid} started as {role.value}")

        self._transition(View.SCANNER)

    # =========================================================================
    # SCANNER
    # =========================================================================

    def handle_decode(self, text: str) -> None:
        """Decoder callback: parse, add to cart, show the cart."""
        if self._view != View.SCANNER:
            logger.debug(f"Decode ignored in view {self._view.value}")
            return
        self._touch()

        item = self._parser.parse(text)
        self._cart.add(item)
        self._notifications.success(self.MSG_SCANNED)

        self._transition(View.CART)

    def handle_decode_error(self, error: CameraError) -> None:
        """Decoder callback: report camera problems, stay on the scanner."""
        self._touch()
        logger.warning(f"📷 Camera error in session {self._session_uid}: {error.name}")
        self._notifications.error(error.message)

    def view_cart(self) -> None:
        """Leave the scanner for the cart without scanning."""
        self._require_view(View.SCANNER, View.CART)
        self._touch()
        self._transition(View.CART)

    def cancel_scan(self) -> None:
        """Leave the scanner. A non-empty cart is kept and shown."""
        target = View.WELCOME if self._cart.is_empty() else View.CART
        self._require_view(View.SCANNER, target)
        self._touch()
        self._transition(target)

    # =========================================================================
    # CART
    # =========================================================================

    def scan_another(self) -> None:
        """Reopen the scanner keeping the current cart."""
        self._require_view(View.CART, View.SCANNER)
        self._touch()
        self._transition(View.SCANNER)

    def remove_item(self, temp_id: str) -> None:
        """Remove one cart entry. Unknown ids are ignored."""
        self._touch()
        self._cart.remove(temp_id)

    def update_form(
        self,
        member_name: Optional[str] = None,
        member_id: Optional[str] = None
    ) -> None:
        """Store the member identifiers as typed."""
        self._touch()
        self._form.update(member_name, member_id)

    async def submit(self) -> bool:
        """
        Persist every cart item as its own record.

        Input problems (empty cart, blank name or ID), identity failures and
        write failures are reported as notifications; nothing is retried and
        records already written are left in place.

        Returns:
            True if every write succeeded and the session was reset
        """
        self._require_view(View.CART, View.WELCOME)
        self._touch()

        if self._submitting:
            self._notifications.info(self.MSG_SUBMIT_BUSY)
            return False

        if self._cart.is_empty():
            self._notifications.error(self.MSG_EMPTY_CART)
            return False

        if not self._form.is_complete() or self._form.role is None:
            self._notifications.error(self.MSG_MISSING_MEMBER)
            return False

        self._submitting = True
        try:
            try:
                session_uid = await self._identity.ensure()
            except Exception as e:
                logger.error(f"❌ Identity not established: {e}")
                self._notifications.error(self.MSG_IDENTITY_FAILED)
                return False

            records = self._build_records(session_uid)
            results = await asyncio.gather(
                *(self._gateway.write(record) for record in records),
                return_exceptions=True
            )
        finally:
            self._submitting = False

        if self._closed:
            return False

        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            logger.error(
                f"❌ Submission failed: {len(failures)}/{len(records)} writes "
                f"rejected ({failures[0]!r})"
            )
            self._notifications.error(self.MSG_SUBMIT_FAILED)
            return False

        logger.info(
            f"✅ Submitted {len(records)} item(s) for {records[0].member_id} "
            f"({records[0].role.value})"
        )
        self._notifications.success(self.MSG_SUBMITTED.format(count=len(records)))

        self._cart.clear()
        self._form.reset()
        if self._view != View.WELCOME:
            self._transition(View.WELCOME)
        return True

    def _build_records(self, session_uid: str) -> List[RecordCreate]:
        member_name, member_id = self._form.normalized()
        return [
            RecordCreate(
                product_name=item.name,
                batch_number=item.batch,
                bag_number=item.bag,
                product_id=item.id,
                quantity=item.qty,
                member_name=member_name,
                member_id=member_id,
                role=self._form.role,
                session_uid=session_uid,
            )
            for item in self._cart
        ]

    # =========================================================================
    # ADMIN
    # =========================================================================

    def toggle_admin(self) -> None:
        """Enter the admin view, or return to the view it was entered from."""
        self._touch()
        if self._view == View.ADMIN:
            self._transition(self._admin_return)
        else:
            self._admin_return = self._view
            self._transition(View.ADMIN)

    def add_feed_listener(self, listener: FeedListener) -> Callable[[], None]:
        """
        Receive the sorted record list whenever it changes.

        Returns:
            Callable that removes the listener
        """
        self._feed_listeners.append(listener)

        def remove() -> None:
            if listener in self._feed_listeners:
                self._feed_listeners.remove(listener)

        return remove

    async def settle_feed(self) -> None:
        """Wait until the admin view holds the current record set."""
        await self._gateway.settle()

    def _on_records(self, records: List[RecordOut]) -> None:
        if self._view != View.ADMIN:
            return

        self._admin_records = sorted(
            records, key=lambda r: r.timestamp, reverse=True
        )
        for listener in list(self._feed_listeners):
            try:
                listener(self.admin_records)
            except Exception as e:
                logger.error(f"Feed listener failed: {e}")

    # =========================================================================
    # NOTIFICATIONS / STATE
    # =========================================================================

    def dismiss_notification(self, notification_id: int) -> bool:
        self._touch()
        return self._notifications.dismiss(notification_id)

    def snapshot(self) -> SessionState:
        """Render-ready copy of the session state."""
        return SessionState(
            view=self._view,
            role=self._form.role,
            member_name=self._form.member_name,
            member_id=self._form.member_id,
            cart=self._cart.items,
            cart_count=len(self._cart),
            submitting=self._submitting,
            notifications=[
                NotificationOut(id=n.id, message=n.message, severity=n.severity.value)
                for n in self._notifications.pending()
            ],
        )

    def close(self) -> None:
        """End the session, releasing the decoder and the feed."""
        if self._closed:
            return

        self._leave(self._view)
        self._feed_listeners.clear()
        self._closed = True
        logger.info(f"👋 Session {self._session_uid} closed")

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    def _require_view(self, expected: View, target: View) -> None:
        if self._view != expected:
            raise exceptions.invalid_transition(self._view.value, target.value)

    def _require_transition(self, target: View) -> None:
        if not can_transition(self._view, target):
            raise exceptions.invalid_transition(self._view.value, target.value)

    def _transition(self, target: View) -> None:
        self._require_transition(target)

        previous = self._view
        self._leave(previous)
        self._view = target
        logger.debug(f"View {previous.value} → {target.value}")
        self._enter(target)

    def _leave(self, view: View) -> None:
        if view == View.SCANNER:
            self._decoder.stop()
        elif view == View.ADMIN:
            if self._unsubscribe is not None:
                self._unsubscribe()
                self._unsubscribe = None
            self._admin_records = []

    def _enter(self, view: View) -> None:
        if view == View.SCANNER:
            try:
                self._decoder.start(self.handle_decode, self.handle_decode_error)
            except Exception as e:
                logger.error(f"❌ Decoder failed to start: {e}")
                self._notifications.error(self.MSG_CAMERA_START_FAILED)
        elif view == View.ADMIN:
            try:
                self._unsubscribe = self._gateway.subscribe(self._on_records)
            except Exception as e:
                logger.error(f"❌ Feed subscription failed: {e}")
                self._notifications.error(self.MSG_FEED_FAILED)

    def _touch(self) -> None:
        if self._closed:
            raise exceptions.session_not_found(self._session_uid)
        self._last_activity = self._clock()

    def __repr__(self) -> str:
        return (
            f"WorkflowController(session={self._session_uid!r}, "
            f"view={self._view.value!r}, cart={len(self._cart)})"
        )
