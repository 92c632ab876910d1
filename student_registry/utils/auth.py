from __future__ import annotations

from typing import Mapping

AUTH_HEADERS = ("authorization", "x-authorization")


def get_authorization_header(headers: Mapping[str, str] | None) -> str | None:
    """Credential header the JWT authorizer reads; ``Authorization`` wins."""
    if headers is None:
        return None
    for name in AUTH_HEADERS:
        value = headers.get(name) or headers.get(name.title())
        if value:
            return value
    return None


def parse_authorization_token(header_value: str | None) -> str:
    """Token from ``Bearer <token>`` or a bare token; ValueError when empty."""
    raw = (header_value or "").strip()
    if not raw:
        raise ValueError("Authorization header missing")

    scheme, _, rest = raw.partition(" ")
    token = rest.strip() if scheme.lower() == "bearer" else raw
    if not token:
        raise ValueError("Authorization token missing")
    return token


def extract_bearer_token(headers: Mapping[str, str]) -> str:
    return parse_authorization_token(get_authorization_header(headers))
