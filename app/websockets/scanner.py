"""
==============================================================================
Scanner WebSocket Module
==============================================================================

Camera frames in, session state out.

Flow:
-----
1. Client opens the scanner (POST /api/v1/session/role or scan-another)
2. Client connects with its session token as query parameter
3. Client streams camera frames; the first QR code found goes to the cart
4. Server answers every state change with the new session state

Messages (Client → Server):
---------------------------
- {"type": "frame", "frame": "<base64>"}                 → Process camera frame
- {"type": "camera_error", "name": "NotAllowedError",
   "message": "..."}                                      → Report camera failure
- {"type": "stop"}                                        → Close the socket

Messages (Server → Client):
---------------------------
- {"type": "state", "state": {...}}
- {"type": "error", "code": "...", "message": "..."}

Closing the socket does not leave the scanner view; the client does that
through the REST endpoints.

==============================================================================
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect

from app.core.exceptions import AppException
from app.services.session_service import (
    SessionEntry,
    SessionRegistry,
    get_session_registry,
)
from app.workflow.state import View


# Module logger
logger = logging.getLogger(__name__)

router = APIRouter()


class ScannerWebSocketHandler:
    """
    Handler for the scanner WebSocket of one session.

    Feeds frames to the session's FrameDecoderAdapter; a successful decode
    runs the workflow callback, which moves the session to the cart.
    """

    def __init__(self, websocket: WebSocket, registry: SessionRegistry):
        self._websocket = websocket
        self._registry = registry
        self._entry: Optional[SessionEntry] = None

    async def authenticate(self, token: Optional[str]) -> bool:
        """Resolve the session token."""
        try:
            self._entry = self._registry.resolve_token(token)
            return True
        except AppException as e:
            logger.warning(f"Scanner auth failed: {e.code}")
            await self._send_error(e.message, e.code)
            return False

    async def _send_error(self, message: str, code: str = "ERROR") -> None:
        """Send error message to client."""
        await self._websocket.send_json({
            "type": "error",
            "code": code,
            "message": message
        })

    async def send_state(self) -> None:
        """Send the current session state."""
        state = self._entry.controller.snapshot()
        await self._websocket.send_json({
            "type": "state",
            "state": state.model_dump(mode="json")
        })

    async def handle_frame(self, data: dict) -> None:
        """Decode one camera frame."""
        controller = self._entry.controller
        if controller.view != View.SCANNER:
            await self._send_error(
                f"Scanner is not open (view: {controller.view.value})",
                "SCANNER_NOT_ACTIVE"
            )
            return

        frame = data.get("frame")
        if not frame or not isinstance(frame, str):
            await self._send_error("Missing frame data", "MISSING_FRAME")
            return

        if self._entry.decoder.feed_frame(frame):
            logger.info(f"📷 QR decoded in session {controller.session_uid}")
            await self.send_state()

    async def handle_camera_error(self, data: dict) -> None:
        """Forward a browser camera failure to the decoder."""
        name = data.get("name") or "Error"
        self._entry.decoder.report_error(str(name), data.get("message"))
        await self.send_state()

    async def run(self, token: Optional[str]) -> None:
        """Main handler loop."""
        await self._websocket.accept()
        logger.info("📱 Scanner WebSocket connected")

        if not await self.authenticate(token):
            await self._websocket.close(code=1008)
            return

        controller = self._entry.controller
        await self.send_state()

        try:
            while True:
                data = await self._websocket.receive_json()
                if controller.is_closed:
                    await self._send_error("Session has ended", "SESSION_NOT_FOUND")
                    break

                msg_type = data.get("type") if isinstance(data, dict) else None

                if msg_type == "frame":
                    await self.handle_frame(data)
                elif msg_type == "camera_error":
                    await self.handle_camera_error(data)
                elif msg_type == "stop":
                    logger.info("🛑 Client requested stop")
                    break
                else:
                    await self._send_error(f"Unknown message type: {msg_type}", "UNKNOWN_TYPE")

        except WebSocketDisconnect:
            logger.info(f"📱 Scanner disconnected: {controller.session_uid}")
        except AppException as e:
            await self._send_error(e.message, e.code)
        finally:
            logger.info("✅ Scanner WebSocket closed")


@router.websocket("/ws/scan")
async def websocket_scan(
    websocket: WebSocket,
    token: str = Query(None),
    registry: SessionRegistry = Depends(get_session_registry)
):
    """
    WebSocket endpoint for QR scanning.

    Streams camera frames for the session named by `token`; the first QR
    code decoded while the scanner is open is added to the cart.
    """
    handler = ScannerWebSocketHandler(websocket, registry)
    await handler.run(token)
