"""Utility functions for Vault Recall"""

import hashlib
from typing import Union

SECONDS_PER_DAY = 24 * 60 * 60


def calculate_content_hash(content: Union[str, bytes]) -> str:
    """
    Calculate SHA256 hash of note content

    Args:
        content: Note text (str, encoded as UTF-8) or raw bytes

    Returns:
        Hexadecimal hash string (64 characters)

    Examples:
        >>> len(calculate_content_hash("# Ideas"))
        64
    """
    if isinstance(content, str):
        content = content.encode("utf-8")
    return hashlib.sha256(content).hexdigest()


def days_since(timestamp: float, now: float) -> float:
    """Fractional days elapsed between two epoch-second timestamps"""
    return (now - timestamp) / SECONDS_PER_DAY
