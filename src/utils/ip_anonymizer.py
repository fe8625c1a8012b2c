"""
One-way anonymization of client IP addresses.
"""

import hashlib
from typing import Optional


def anonymize_ip(raw_ip: Optional[str]) -> Optional[str]:
    """
    Hash a client address with SHA-256 so repeat visits aggregate without
    the address itself ever being stored.

    No IP validation is performed; malformed input is hashed like any string.

    Args:
        raw_ip: IPv4/IPv6 address text, or None

    Returns:
        64-character hex digest of the trimmed input, or None for empty input
    """
    if not isinstance(raw_ip, str):
        return None

    value = raw_ip.strip()
    if not value:
        return None

    return hashlib.sha256(value.encode("utf-8")).hexdigest()
