"""
==============================================================================
Scanner Package - QR Decoding
==============================================================================

QR decoding with OpenCV and pyzbar, and parsing of decoded payloads.

Classes:
--------
- QRCodeReader: frame-level QR decoding
- FrameDecoderAdapter: decoder capability fed with client frames
- ScanParser: decoded text → ScannedItem

==============================================================================
"""

from .core import QRCodeReader
from .decoder import CameraError, DecoderAdapter, FrameDecoderAdapter
from .parser import ScanParser, parse_scan

__all__ = [
    "QRCodeReader",
    "CameraError",
    "DecoderAdapter",
    "FrameDecoderAdapter",
    "ScanParser",
    "parse_scan",
]
