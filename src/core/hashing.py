"""
Content hashing for compose dirty-state detection.
"""

import hashlib

FIELD_SEPARATOR = "|"


def compute_content_hash(to: str, cc: str, bcc: str, subject: str, body: str) -> str:
    """
    Digest the five compose fields in order.

    Returns:
        Hex SHA-256 of ``to|cc|bcc|subject|body``
    """
    content = FIELD_SEPARATOR.join((to, cc, bcc, subject, body))
    return hashlib.sha256(content.encode("utf-8")).hexdigest()
