"""
Utility modules for the deal intake service.
"""

from .formatting import format_file_size, mask_secret
from .config import Config

__all__ = ["format_file_size", "mask_secret", "Config"]
