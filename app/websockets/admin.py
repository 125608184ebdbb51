"""
==============================================================================
Admin WebSocket Module
==============================================================================

Live feed of submitted records.

Connecting puts the session in the admin view, which subscribes it to the
record store; every change is pushed to the client, newest record first.
Disconnecting returns the session to the view it came from, which cancels
the subscription.

Messages (Server → Client):
---------------------------
- {"type": "records", "records": [...], "total": 3}
- {"type": "error", "code": "...", "message": "..."}

Messages (Client → Server):
---------------------------
- {"type": "stop"}   → Leave the admin view and close

==============================================================================
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect

from app.core.exceptions import AppException
from app.schemas.record import RecordOut
from app.services.session_service import (
    SessionEntry,
    SessionRegistry,
    get_session_registry,
)
from app.workflow.state import View


# Module logger
logger = logging.getLogger(__name__)

router = APIRouter()


class AdminWebSocketHandler:
    """Handler for the admin feed WebSocket of one session."""

    def __init__(self, websocket: WebSocket, registry: SessionRegistry):
        self._websocket = websocket
        self._registry = registry
        self._entry: Optional[SessionEntry] = None
        self._queue: "asyncio.Queue[List[RecordOut]]" = asyncio.Queue()

    async def authenticate(self, token: Optional[str]) -> bool:
        """Resolve the session token."""
        try:
            self._entry = self._registry.resolve_token(token)
            return True
        except AppException as e:
            logger.warning(f"Admin feed auth failed: {e.code}")
            await self._send_error(e.message, e.code)
            return False

    async def _send_error(self, message: str, code: str = "ERROR") -> None:
        """Send error message to client."""
        await self._websocket.send_json({
            "type": "error",
            "code": code,
            "message": message
        })

    async def send_records(self, records: List[RecordOut]) -> None:
        await self._websocket.send_json({
            "type": "records",
            "records": [r.model_dump(mode="json") for r in records],
            "total": len(records)
        })

    def _on_records(self, records: List[RecordOut]) -> None:
        self._queue.put_nowait(records)

    async def _receive_until_stop(self) -> None:
        while True:
            data = await self._websocket.receive_json()
            msg_type = data.get("type") if isinstance(data, dict) else None
            if msg_type == "stop":
                logger.info("🛑 Client requested stop")
                return
            await self._send_error(f"Unknown message type: {msg_type}", "UNKNOWN_TYPE")

    async def _pump(self) -> None:
        """Push feed updates until the client stops or disconnects."""
        receiver = asyncio.create_task(self._receive_until_stop())
        try:
            while True:
                getter = asyncio.create_task(self._queue.get())
                done, _ = await asyncio.wait(
                    {getter, receiver}, return_when=asyncio.FIRST_COMPLETED
                )
                if getter in done:
                    await self.send_records(getter.result())
                else:
                    getter.cancel()
                if receiver in done:
                    # Re-raises WebSocketDisconnect from the receiver
                    receiver.result()
                    return
        finally:
            receiver.cancel()

    async def run(self, token: Optional[str]) -> None:
        """Main handler loop."""
        await self._websocket.accept()
        logger.info("📊 Admin WebSocket connected")

        if not await self.authenticate(token):
            await self._websocket.close(code=1008)
            return

        controller = self._entry.controller
        remove_listener = controller.add_feed_listener(self._on_records)

        try:
            if controller.view == View.ADMIN:
                await self.send_records(controller.admin_records)
            else:
                controller.toggle_admin()

            await self._pump()

        except WebSocketDisconnect:
            logger.info(f"📊 Admin disconnected: {controller.session_uid}")
        except AppException as e:
            await self._send_error(e.message, e.code)
        finally:
            remove_listener()
            if not controller.is_closed and controller.view == View.ADMIN:
                controller.toggle_admin()
            logger.info("✅ Admin WebSocket closed")


@router.websocket("/ws/admin")
async def websocket_admin(
    websocket: WebSocket,
    token: str = Query(None),
    registry: SessionRegistry = Depends(get_session_registry)
):
    """
    WebSocket endpoint for the live admin feed.

    Holds the session in the admin view for as long as the socket is open.
    """
    handler = AdminWebSocketHandler(websocket, registry)
    await handler.run(token)
