"""
Shared Utilities

Common functions used across all modules.
"""

from src.utils.io import decode_image, encode_image_base64, load_image
from src.utils.logging_config import setup_logging

__all__ = [
    "decode_image",
    "encode_image_base64",
    "load_image",
    "setup_logging",
]
