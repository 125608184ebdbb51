"""
==============================================================================
Session Endpoints
==============================================================================

REST surface of the scan → cart → submit workflow.

Every endpoint except POST /sessions acts on the session named by the
Bearer token and answers with the resulting session state, so a client can
render the next screen from any response.

==============================================================================
"""

from fastapi import APIRouter, Depends

from app.config import get_settings
from app.core import exceptions
from app.core.dependencies import get_session, get_session_registry
from app.schemas.common import MessageResponse
from app.schemas.record import RecordListResponse
from app.schemas.scan import CameraErrorRequest, ScanTextRequest
from app.schemas.session import (
    MemberFormUpdate,
    RoleSelectRequest,
    SessionCreatedResponse,
    SessionStateResponse,
    SubmitResponse,
)
from app.services.session_service import SessionEntry, SessionRegistry
from app.workflow.state import View


router = APIRouter(tags=["Sessions"])


class SessionController:
    """Controller for workflow session operations."""

    def __init__(self, entry: SessionEntry):
        self._entry = entry
        self._workflow = entry.controller

    def _state(self) -> SessionStateResponse:
        return SessionStateResponse(state=self._workflow.snapshot())

    def state(self) -> SessionStateResponse:
        """Current state."""
        return self._state()

    def select_role(self, data: RoleSelectRequest) -> SessionStateResponse:
        """Pick a role and open the scanner."""
        self._workflow.select_role(data.role)
        return self._state()

    def scan_text(self, data: ScanTextRequest) -> SessionStateResponse:
        """Deliver already-decoded QR text (manual entry or client-side decoding)."""
        if self._workflow.view != View.SCANNER:
            raise exceptions.invalid_transition(
                self._workflow.view.value, View.CART.value
            )
        self._workflow.handle_decode(data.text)
        return self._state()

    def camera_error(self, data: CameraErrorRequest) -> SessionStateResponse:
        """Forward a camera failure reported by the browser."""
        self._entry.decoder.report_error(data.name, data.message)
        return self._state()

    def view_cart(self) -> SessionStateResponse:
        self._workflow.view_cart()
        return self._state()

    def cancel_scan(self) -> SessionStateResponse:
        self._workflow.cancel_scan()
        return self._state()

    def scan_another(self) -> SessionStateResponse:
        self._workflow.scan_another()
        return self._state()

    def remove_item(self, temp_id: str) -> SessionStateResponse:
        self._workflow.remove_item(temp_id)
        return self._state()

    def update_form(self, data: MemberFormUpdate) -> SessionStateResponse:
        self._workflow.update_form(data.member_name, data.member_id)
        return self._state()

    async def submit(self) -> SubmitResponse:
        """Submit the cart, one record per item."""
        count = len(self._workflow.cart)
        ok = await self._workflow.submit()
        return SubmitResponse(
            success=ok,
            submitted=count if ok else 0,
            state=self._workflow.snapshot()
        )

    def toggle_admin(self) -> SessionStateResponse:
        self._workflow.toggle_admin()
        return self._state()

    async def admin_records(self) -> RecordListResponse:
        """Records held by the admin view, newest first."""
        if self._workflow.view != View.ADMIN:
            raise exceptions.invalid_transition(
                self._workflow.view.value, View.ADMIN.value
            )
        await self._workflow.settle_feed()
        records = self._workflow.admin_records
        return RecordListResponse(records=records, total=len(records))

    def dismiss_notification(self, notification_id: int) -> SessionStateResponse:
        self._workflow.dismiss_notification(notification_id)
        return self._state()


# ==== SESSION LIFECYCLE ====

@router.post("/sessions", response_model=SessionCreatedResponse, status_code=201)
async def create_session(
    registry: SessionRegistry = Depends(get_session_registry)
):
    """
    Open an anonymous session.

    The returned token must be sent as `Authorization: Bearer <token>` on
    every other session endpoint.
    """
    _, token, entry = registry.create()
    return SessionCreatedResponse(
        token=token,
        expires_in=get_settings().session_token_expire_seconds,
        state=entry.controller.snapshot()
    )


@router.get("/session", response_model=SessionStateResponse)
async def get_session_state(entry: SessionEntry = Depends(get_session)):
    """Get the current session state."""
    return SessionController(entry).state()


@router.delete("/session", response_model=MessageResponse)
async def end_session(
    entry: SessionEntry = Depends(get_session),
    registry: SessionRegistry = Depends(get_session_registry)
):
    """End the session, releasing the camera and the admin feed."""
    registry.close(entry.controller.session_uid)
    return MessageResponse(message="Session ended")


# ==== WELCOME ====

@router.post("/session/role", response_model=SessionStateResponse)
async def select_role(
    data: RoleSelectRequest,
    entry: SessionEntry = Depends(get_session)
):
    """
    Choose applicator or customer.

    Starts a fresh cart and opens the scanner.
    """
    return SessionController(entry).select_role(data)


# ==== SCANNER ====

@router.post("/session/scan", response_model=SessionStateResponse)
async def scan_text(
    data: ScanTextRequest,
    entry: SessionEntry = Depends(get_session)
):
    """
    Submit decoded QR text while the scanner is open.

    Malformed text still produces a cart entry (with the raw text as its
    product id) and the view moves to the cart.
    """
    return SessionController(entry).scan_text(data)


@router.post("/session/scan/camera-error", response_model=SessionStateResponse)
async def report_camera_error(
    data: CameraErrorRequest,
    entry: SessionEntry = Depends(get_session)
):
    """Report a camera or permission failure. The scanner stays open."""
    return SessionController(entry).camera_error(data)


@router.post("/session/cart/view", response_model=SessionStateResponse)
async def view_cart(entry: SessionEntry = Depends(get_session)):
    """Leave the scanner and show the cart."""
    return SessionController(entry).view_cart()


@router.post("/session/scan/cancel", response_model=SessionStateResponse)
async def cancel_scan(entry: SessionEntry = Depends(get_session)):
    """Leave the scanner: back to welcome, or to the cart if it has items."""
    return SessionController(entry).cancel_scan()


# ==== CART ====

@router.post("/session/cart/scan-another", response_model=SessionStateResponse)
async def scan_another(entry: SessionEntry = Depends(get_session)):
    """Reopen the scanner keeping the cart."""
    return SessionController(entry).scan_another()


@router.delete("/session/cart/{temp_id}", response_model=SessionStateResponse)
async def remove_cart_item(
    temp_id: str,
    entry: SessionEntry = Depends(get_session)
):
    """Remove one item from the cart. Unknown ids are ignored."""
    return SessionController(entry).remove_item(temp_id)


@router.put("/session/form", response_model=SessionStateResponse)
async def update_member_form(
    data: MemberFormUpdate,
    entry: SessionEntry = Depends(get_session)
):
    """Update member name and/or member id."""
    return SessionController(entry).update_form(data)


@router.post("/session/submit", response_model=SubmitResponse)
async def submit_cart(entry: SessionEntry = Depends(get_session)):
    """
    Submit the cart.

    Validation and write failures are reported in `state.notifications`
    with `success: false`; the cart and form are kept for a retry.
    """
    return await SessionController(entry).submit()


# ==== ADMIN ====

@router.post("/session/admin/toggle", response_model=SessionStateResponse)
async def toggle_admin(entry: SessionEntry = Depends(get_session)):
    """Enter the admin view, or return to the view it was entered from."""
    return SessionController(entry).toggle_admin()


@router.get("/session/admin/records", response_model=RecordListResponse)
async def list_admin_records(entry: SessionEntry = Depends(get_session)):
    """All submitted records, newest first (admin view only)."""
    return await SessionController(entry).admin_records()


# ==== NOTIFICATIONS ====

@router.delete(
    "/session/notifications/{notification_id}",
    response_model=SessionStateResponse
)
async def dismiss_notification(
    notification_id: int,
    entry: SessionEntry = Depends(get_session)
):
    """Dismiss a notification before it expires."""
    return SessionController(entry).dismiss_notification(notification_id)
