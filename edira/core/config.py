"""Application configuration helpers."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import os

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_USER_NAME = "user"
DEFAULT_ADMIN_NAME = "admin"
DEFAULT_PUBLIC_PATHS = ("/health", "/docs", "/redoc", "/openapi.json")

ADMIN_ROLE = "ADMIN"
USER_ROLE = "USER"


def _get_list_env(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None:
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def redact_secret(secret: str) -> str:
    """Return a non-recoverable placeholder for sensitive values."""
    if not secret:
        return "<empty>"
    return "<redacted>"


@dataclass(frozen=True)
class UserAccount:
    """Static account accepted by HTTP Basic authentication."""

    username: str
    password: str
    roles: frozenset[str] = frozenset({USER_ROLE})


@dataclass(frozen=True)
class AppSettings:
    """Runtime settings for the Edira API."""

    log_level: str = DEFAULT_LOG_LEVEL
    accounts: tuple[UserAccount, ...] = ()
    public_paths: tuple[str, ...] = DEFAULT_PUBLIC_PATHS
    role_rules: tuple[tuple[str, str], ...] = (("/admin", ADMIN_ROLE),)

    def safe_for_logging(self) -> dict[str, object]:
        """Return settings safe for logs."""
        return {
            "log_level": self.log_level,
            "accounts": {
                account.username: {
                    "password": redact_secret(account.password),
                    "roles": sorted(account.roles),
                }
                for account in self.accounts
            },
            "public_paths": list(self.public_paths),
            "role_rules": [list(rule) for rule in self.role_rules],
        }


def _accounts_from_env() -> tuple[UserAccount, ...]:
    accounts: list[UserAccount] = []
    user_password = os.getenv("EDIRA_USER_PASSWORD", "")
    if user_password:
        accounts.append(
            UserAccount(
                username=os.getenv("EDIRA_USER_NAME", DEFAULT_USER_NAME),
                password=user_password,
            )
        )
    admin_password = os.getenv("EDIRA_ADMIN_PASSWORD", "")
    if admin_password:
        accounts.append(
            UserAccount(
                username=os.getenv("EDIRA_ADMIN_NAME", DEFAULT_ADMIN_NAME),
                password=admin_password,
                roles=frozenset({USER_ROLE, ADMIN_ROLE}),
            )
        )
    return tuple(accounts)


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Load application settings from the environment."""
    return AppSettings(
        log_level=os.getenv("EDIRA_LOG_LEVEL", DEFAULT_LOG_LEVEL),
        accounts=_accounts_from_env(),
        public_paths=_get_list_env("EDIRA_PUBLIC_PATHS", DEFAULT_PUBLIC_PATHS),
    )
