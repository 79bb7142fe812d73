"""
Page fingerprinting used to short-circuit unchanged website sources.
"""

import hashlib
from typing import Optional, Tuple, Union


def fingerprint(body: Union[bytes, str]) -> str:
    """Opaque hash of a fetched page body."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    return hashlib.sha256(body).hexdigest()


def detect_change(body: Union[bytes, str], previous: Optional[str]) -> Tuple[bool, str]:
    """Returns (changed, new_fingerprint) for a body against the stored fingerprint."""
    current = fingerprint(body)
    return current != previous, current
