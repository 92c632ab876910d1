"""
Pluggable authorization for the student API.

Handlers never look at headers themselves. They declare which
:class:`Operation` they perform, and the :class:`Authorizer` installed on the
application decides whether the request's credentials allow it. Two
authorizers ship with the service:

* :class:`HeaderRoleAuthorizer` trusts a role header sent by the caller
  (``x-role: admin`` by default). It is a capability check, not
  authentication.
* :class:`JWTRoleAuthorizer` requires an HS256 bearer token whose ``roles``
  claim contains the admin role.

Only update, delete and import are protected; every other operation is
allowed.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, FrozenSet, Iterable, Mapping, Optional, Protocol

import jwt
from fastapi import Request

from ..errors import Forbidden
from ..utils.auth import extract_bearer_token

logger = logging.getLogger(__name__)


class Operation(str, Enum):
    CREATE = "create"
    READ = "read"
    LIST = "list"
    UPDATE = "update"
    DELETE = "delete"
    SEARCH = "search"
    STATS = "stats"
    IMPORT = "import"


class Decision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


PROTECTED_OPERATIONS: FrozenSet[Operation] = frozenset(
    {Operation.UPDATE, Operation.DELETE, Operation.IMPORT}
)


class Authorizer(Protocol):
    def authorize(self, operation: Operation, credentials: Mapping[str, str]) -> Decision: ...


class HeaderRoleAuthorizer:
    def __init__(
        self,
        header_name: str = "x-role",
        required_role: str = "admin",
        protected: Iterable[Operation] = PROTECTED_OPERATIONS,
    ) -> None:
        self.header_name = header_name.lower()
        self.required_role = required_role
        self.protected = frozenset(protected)

    def authorize(self, operation: Operation, credentials: Mapping[str, str]) -> Decision:
        if operation not in self.protected:
            return Decision.ALLOW
        if credentials.get(self.header_name) == self.required_role:
            return Decision.ALLOW
        return Decision.DENY


class JWTRoleAuthorizer:
    def __init__(
        self,
        secret: Optional[str],
        required_role: str = "admin",
        protected: Iterable[Operation] = PROTECTED_OPERATIONS,
        algorithm: str = "HS256",
    ) -> None:
        if algorithm != "HS256":
            raise ValueError("JWTRoleAuthorizer currently supports HS256 only.")
        self.secret = secret
        self.required_role = required_role
        self.protected = frozenset(protected)
        self.algorithm = algorithm

    def authorize(self, operation: Operation, credentials: Mapping[str, str]) -> Decision:
        if operation not in self.protected:
            return Decision.ALLOW
        if not self.secret:
            logger.error("JWT authorizer has no secret configured; denying")
            return Decision.DENY

        try:
            token = extract_bearer_token(credentials)
        except ValueError as e:
            logger.debug(f"No usable bearer token: {e}")
            return Decision.DENY

        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.PyJWTError as e:
            logger.warning(f"Rejected JWT: {type(e).__name__}")
            return Decision.DENY

        roles = payload.get("roles") or []
        if isinstance(roles, str):
            roles = [roles]
        if self.required_role in roles:
            return Decision.ALLOW
        return Decision.DENY


def build_authorizer(settings) -> Authorizer:
    if settings.auth_mode == "jwt":
        logger.info("Using JWT role authorizer")
        return JWTRoleAuthorizer(settings.jwt_secret, required_role=settings.admin_role)
    logger.info(f"Using header role authorizer (header={settings.admin_header})")
    return HeaderRoleAuthorizer(settings.admin_header, settings.admin_role)


def require(operation: Operation) -> Callable[[Request], None]:
    """FastAPI dependency that enforces ``operation`` with the app's authorizer."""

    def dependency(request: Request) -> None:
        authorizer: Authorizer = request.app.state.authorizer
        decision = authorizer.authorize(operation, request.headers)
        if decision is not Decision.ALLOW:
            client = request.client.host if request.client else "unknown"
            logger.warning(f"Denied {operation.value} on {request.url.path} from {client}")
            raise Forbidden()
        if operation in PROTECTED_OPERATIONS:
            logger.info(f"Admin operation {operation.value} on {request.url.path} allowed")

    return dependency
