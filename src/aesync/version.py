"""
Single source of truth for the aesync version.
"""

from __future__ import annotations

__version__ = "0.1.0"
