"""
Runtime configuration for the student registry.

All settings come from environment variables (optionally seeded from a
``.env`` file). Invalid values are logged and replaced by their defaults
instead of aborting start-up.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

STORE_BACKENDS = ("dynamodb", "memory")
AUTH_MODES = ("header", "jwt")

DEFAULT_TABLE = "student_records"
DEFAULT_REGION = "us-east-1"
DEFAULT_UPLOAD_DIR = "uploads"
DEFAULT_API_URL = "http://localhost:5000"


@dataclass(frozen=True)
class Settings:
    store_backend: str = "dynamodb"
    table_name: str = DEFAULT_TABLE
    aws_region: str = DEFAULT_REGION
    aws_endpoint_url: Optional[str] = None
    auth_mode: str = "header"
    admin_header: str = "x-role"
    admin_role: str = "admin"
    jwt_secret: Optional[str] = None
    upload_dir: str = DEFAULT_UPLOAD_DIR
    import_delimiter: str = ","
    cors_origins: Tuple[str, ...] = field(default_factory=lambda: ("*",))


def _choice(env: Mapping[str, str], name: str, allowed: Tuple[str, ...], default: str) -> str:
    raw = env.get(name)
    if not raw:
        return default
    value = raw.strip().lower()
    if value not in allowed:
        logger.warning(
            f"Invalid {name} value: {raw}. Expected one of {', '.join(allowed)}. "
            f"Using default: {default}"
        )
        return default
    return value


def _delimiter(env: Mapping[str, str]) -> str:
    raw = env.get("IMPORT_DELIMITER")
    if not raw:
        return ","
    if raw == "\\t":
        return "\t"
    if len(raw) != 1:
        logger.warning(
            f"Invalid IMPORT_DELIMITER value: {raw!r}. Must be a single character. "
            "Using default: ','"
        )
        return ","
    return raw


def _origins(env: Mapping[str, str]) -> Tuple[str, ...]:
    raw = env.get("CORS_ORIGINS", "*")
    origins = tuple(part.strip() for part in raw.split(",") if part.strip())
    return origins or ("*",)


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Build :class:`Settings` from ``env`` (defaults to ``os.environ`` plus ``.env``)."""
    if env is None:
        load_dotenv()
        env = os.environ

    auth_mode = _choice(env, "AUTH_MODE", AUTH_MODES, "header")
    jwt_secret = env.get("JWT_SECRET") or None
    if auth_mode == "jwt" and not jwt_secret:
        logger.warning("AUTH_MODE=jwt but JWT_SECRET is not set; every admin request will be denied")

    return Settings(
        store_backend=_choice(env, "STORE_BACKEND", STORE_BACKENDS, "dynamodb"),
        table_name=env.get("DDB_TABLE_STUDENTS") or DEFAULT_TABLE,
        aws_region=env.get("AWS_REGION") or env.get("AWS_DEFAULT_REGION") or DEFAULT_REGION,
        aws_endpoint_url=env.get("AWS_ENDPOINT_URL") or None,
        auth_mode=auth_mode,
        admin_header=(env.get("ADMIN_HEADER") or "x-role").strip().lower(),
        admin_role=env.get("ADMIN_ROLE") or "admin",
        jwt_secret=jwt_secret,
        upload_dir=env.get("UPLOAD_DIR") or DEFAULT_UPLOAD_DIR,
        import_delimiter=_delimiter(env),
        cors_origins=_origins(env),
    )
