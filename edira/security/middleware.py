"""HTTP Basic authentication and path-based access rules.

Public paths skip authentication entirely. Every other path needs valid
credentials, and paths under a role rule also need that role. Failures are
answered by the configured adapters instead of raising.
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Callable
from collections.abc import Iterable
from dataclasses import dataclass
import logging
import secrets

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.base import RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from edira.core.config import AppSettings
from edira.core.config import UserAccount
from edira.core.errors import UnauthorizedError

logger = logging.getLogger(__name__)

SecurityAdapter = Callable[[Request], Response]


@dataclass(frozen=True)
class Principal:
    """Authenticated caller."""

    username: str
    roles: frozenset[str]


def _path_matches(path: str, prefix: str) -> bool:
    base = prefix.rstrip("/")
    if not base:
        return True
    return path == base or path.startswith(base + "/")


@dataclass(frozen=True)
class AccessRules:
    """Which paths are public and which require a role."""

    public_paths: tuple[str, ...]
    role_rules: tuple[tuple[str, str], ...] = ()

    @classmethod
    def from_settings(cls, settings: AppSettings) -> AccessRules:
        return cls(public_paths=settings.public_paths, role_rules=settings.role_rules)

    def is_public(self, path: str) -> bool:
        return any(_path_matches(path, prefix) for prefix in self.public_paths)

    def required_role(self, path: str) -> str | None:
        for prefix, role in self.role_rules:
            if _path_matches(path, prefix):
                return role
        return None


def extract_basic_credentials(authorization: str | None) -> tuple[str, str] | None:
    """Parse an ``Authorization: Basic`` header into username and password."""
    if not authorization:
        return None

    scheme, _, encoded = authorization.partition(" ")
    if scheme.lower() != "basic" or not encoded.strip():
        return None

    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None

    username, separator, password = decoded.partition(":")
    if not separator:
        return None
    return username, password


class BasicAuthenticator:
    """Check HTTP Basic credentials against a static account list."""

    def __init__(self, accounts: Iterable[UserAccount]) -> None:
        self._accounts = tuple(accounts)

    def authenticate(self, request: Request) -> Principal | None:
        credentials = extract_basic_credentials(request.headers.get("Authorization"))
        if credentials is None:
            return None

        username, password = credentials
        for account in self._accounts:
            username_ok = secrets.compare_digest(username.encode("utf-8"), account.username.encode("utf-8"))
            password_ok = secrets.compare_digest(password.encode("utf-8"), account.password.encode("utf-8"))
            if username_ok and password_ok:
                return Principal(username=account.username, roles=account.roles)

        logger.info("Rejected credentials path=%s", request.url.path)
        return None


class SecurityMiddleware(BaseHTTPMiddleware):
    """Authenticate and authorize every non-public request before routing."""

    def __init__(
        self,
        app: ASGIApp,
        *,
        rules: AccessRules,
        authenticator: BasicAuthenticator,
        entry_point: SecurityAdapter,
        access_denied_handler: SecurityAdapter,
    ) -> None:
        super().__init__(app)
        self._rules = rules
        self._authenticator = authenticator
        self._entry_point = entry_point
        self._access_denied_handler = access_denied_handler

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if self._rules.is_public(path):
            return await call_next(request)

        principal = self._authenticator.authenticate(request)
        if principal is None:
            return self._entry_point(request)

        role = self._rules.required_role(path)
        if role is not None and role not in principal.roles:
            return self._access_denied_handler(request)

        request.state.principal = principal
        return await call_next(request)


def get_current_principal(request: Request) -> Principal:
    """FastAPI dependency returning the caller set by ``SecurityMiddleware``."""
    principal = getattr(request.state, "principal", None)
    if principal is None:
        raise UnauthorizedError()
    return principal
