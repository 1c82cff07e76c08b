"""Reusable dependency providers for FastAPI routes."""

import hmac
from typing import Optional

from fastapi import Header

from app.core.config import settings
from app.modules.upload.errors import RelayUnauthorized

RELAY_TOKEN_HEADER = "X-Relay-Token"


def verify_relay_token(
    x_relay_token: Optional[str] = Header(default=None, alias=RELAY_TOKEN_HEADER),
) -> None:
    """FastAPI dependency guarding the relay when RELAY_ACCESS_TOKEN is configured."""
    expected = settings.RELAY_ACCESS_TOKEN
    if not expected:
        return
    if not x_relay_token or not hmac.compare_digest(x_relay_token, expected):
        raise RelayUnauthorized()
