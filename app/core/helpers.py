"""
Infrastructure helpers with no domain knowledge.

- generate_token: URL-safe random token (review links)
- generate_txid: PIX transaction id accepted by gateways

Usage:
    from core.helpers import generate_token, generate_txid

    reservation.review_token = generate_token()
    charge.txid = generate_txid()
"""

from __future__ import annotations

import secrets
import uuid


def generate_token(length: int = 32) -> str:
    """
    Generate a cryptographically secure random token.

    Args:
        length: Number of random bytes (the hex string is twice as long)

    Returns:
        Hexadecimal token string
    """
    return secrets.token_hex(length)


def generate_txid() -> str:
    """
    Generate a transaction id for an immediate PIX charge.

    The PIX standard requires 26 to 35 characters from [a-zA-Z0-9];
    a uuid4 hex string is 32 characters and always qualifies.
    """
    return uuid.uuid4().hex
