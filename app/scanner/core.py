"""
==============================================================================
QR Code Reader Core Module
==============================================================================

Frame-level QR decoding with OpenCV and pyzbar.

Features:
---------
- Decode raw OpenCV frames (numpy arrays)
- Decode encoded images (JPEG/PNG bytes or base64 strings from a browser)
- Decode static image files
- Restricted to QR symbols so 1D barcodes on packaging are ignored

==============================================================================
"""

from __future__ import annotations

import base64
import binascii
import logging
from pathlib import Path
from typing import List, Optional, Union

import cv2
import numpy as np
from pyzbar.pyzbar import ZBarSymbol, decode


# Module logger
logger = logging.getLogger(__name__)


class QRCodeReader:
    """
    Decodes QR payloads from camera frames.

    Example:
        >>> reader = QRCodeReader()
        >>> texts = reader.decode_encoded(jpeg_bytes)
        >>> texts
        ['{"name": "UltraSeal", ...}']
    """

    SYMBOLS = [ZBarSymbol.QRCODE]

    def __init__(self, encoding: str = "utf-8") -> None:
        self._encoding = encoding

    # =========================================================================
    # FRAME DECODING
    # =========================================================================

    def decode_frame(self, frame: Optional[np.ndarray]) -> List[str]:
        """
        Decode every QR code visible in a frame.

        Args:
            frame: OpenCV image (numpy array)

        Returns:
            Decoded texts in detection order; empty if nothing was found
        """
        if frame is None or frame.size == 0:
            return []

        try:
            symbols = decode(frame, symbols=self.SYMBOLS)
        except Exception as e:
            logger.error(f"Decode error: {e}")
            return []

        texts = []
        for symbol in symbols:
            try:
                texts.append(symbol.data.decode(self._encoding))
            except UnicodeDecodeError:
                logger.warning("QR payload is not valid text, skipping")

        return texts

    def load_frame(self, data: Union[bytes, str]) -> Optional[np.ndarray]:
        """
        Turn an encoded image into an OpenCV frame.

        Args:
            data: Raw image bytes, or a base64 string (data URLs accepted)

        Returns:
            Frame, or None if the data is not a decodable image
        """
        if isinstance(data, str):
            if data.startswith("data:") and "," in data:
                data = data.split(",", 1)[1]
            try:
                data = base64.b64decode(data)
            except (binascii.Error, ValueError):
                logger.debug("Frame is not valid base64")
                return None

        if not data:
            return None

        nparr = np.frombuffer(data, np.uint8)
        return cv2.imdecode(nparr, cv2.IMREAD_COLOR)

    def decode_encoded(self, data: Union[bytes, str]) -> List[str]:
        """Decode QR codes from an encoded image."""
        return self.decode_frame(self.load_frame(data))

    def scan_image(self, image_path: Path) -> List[str]:
        """Decode QR codes from a static image file."""
        if not image_path.exists():
            logger.error(f"Image not found: {image_path}")
            return []

        frame = cv2.imread(str(image_path))
        if frame is None:
            logger.error(f"Could not read image: {image_path}")
            return []

        return self.decode_frame(frame)
