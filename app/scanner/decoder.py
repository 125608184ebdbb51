"""
==============================================================================
Decoder Adapter Module
==============================================================================

The capability the workflow uses to receive decoded QR text.

    start(on_decode, on_error)   begin delivering decodes
    stop()                       stop delivering and release callbacks

The workflow never talks to OpenCV or pyzbar directly; it only sees this
interface, so tests substitute a fake.

FrameDecoderAdapter is the production implementation: the scanner
WebSocket pushes camera frames into it, and camera failures reported by
the browser are forwarded to on_error.

==============================================================================
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Union

from app.scanner.core import QRCodeReader


# Module logger
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CameraError:
    """A camera or permission failure reported during scanning."""

    name: str
    message: str

    # Browser getUserMedia error names
    PERMISSION_DENIED = "NotAllowedError"
    NOT_FOUND = "NotFoundError"

    @classmethod
    def from_browser(cls, name: str, detail: Optional[str] = None) -> CameraError:
        """Build a user-facing error from a getUserMedia error name."""
        if name == cls.PERMISSION_DENIED:
            message = "Camera permission denied. Allow camera access and try again."
        elif name == cls.NOT_FOUND:
            message = "No camera found on this device."
        else:
            message = f"Camera error: {detail or name}"
        return cls(name=name, message=message)


DecodeCallback = Callable[[str], None]
ErrorCallback = Callable[[CameraError], None]


class DecoderAdapter(Protocol):
    """Capability interface for a QR decode source."""

    def start(self, on_decode: DecodeCallback, on_error: ErrorCallback) -> None:
        ...

    def stop(self) -> None:
        ...


class FrameDecoderAdapter:
    """
    Decoder fed with frames pushed by a client.

    Delivers at most one decode per start(): after a successful decode the
    adapter ignores further frames until it is started again.

    Example:
        >>> adapter = FrameDecoderAdapter()
        >>> adapter.start(on_decode=print, on_error=print)
        >>> adapter.feed_frame(base64_jpeg)
        True
    """

    def __init__(self, reader: Optional[QRCodeReader] = None) -> None:
        self._reader = reader or QRCodeReader()
        self._on_decode: Optional[DecodeCallback] = None
        self._on_error: Optional[ErrorCallback] = None
        self._frames_seen = 0

    @property
    def is_running(self) -> bool:
        return self._on_decode is not None

    @property
    def frames_seen(self) -> int:
        return self._frames_seen

    def start(self, on_decode: DecodeCallback, on_error: ErrorCallback) -> None:
        self._on_decode = on_decode
        self._on_error = on_error
        self._frames_seen = 0
        logger.debug("📷 Frame decoder started")

    def stop(self) -> None:
        if self.is_running:
            logger.debug(f"📷 Frame decoder stopped after {self._frames_seen} frames")
        self._on_decode = None
        self._on_error = None

    def feed_frame(self, frame: Union[bytes, str]) -> bool:
        """
        Decode one frame and deliver the first QR text found.

        Returns:
            True if a decode was delivered
        """
        if not self.is_running:
            return False

        self._frames_seen += 1
        texts = self._reader.decode_encoded(frame)
        if not texts:
            return False

        on_decode = self._on_decode
        # One decode per start(); the consumer decides whether to restart
        self.stop()
        on_decode(texts[0])
        return True

    def report_error(self, name: str, detail: Optional[str] = None) -> None:
        """Forward a camera failure reported by the client."""
        if self._on_error is None:
            logger.debug(f"Camera error '{name}' while stopped, ignoring")
            return
        self._on_error(CameraError.from_browser(name, detail))
