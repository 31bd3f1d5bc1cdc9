"""Shared pytest fixtures for Edira test suites."""

from collections.abc import Generator
from pathlib import Path
import sys

import pytest
from fastapi.testclient import TestClient

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from edira.core.config import ADMIN_ROLE  # noqa: E402
from edira.core.config import USER_ROLE  # noqa: E402
from edira.core.config import AppSettings  # noqa: E402
from edira.core.config import UserAccount  # noqa: E402
from edira.main import create_app  # noqa: E402

USER_AUTH = ("alice", "alice-secret")
ADMIN_AUTH = ("root", "root-secret")


@pytest.fixture
def user_auth() -> tuple[str, str]:
    """Basic credentials of the regular user."""
    return USER_AUTH


@pytest.fixture
def admin_auth() -> tuple[str, str]:
    """Basic credentials of the administrator."""
    return ADMIN_AUTH


@pytest.fixture
def settings() -> AppSettings:
    """Settings with one regular user and one administrator."""
    return AppSettings(
        accounts=(
            UserAccount(username=USER_AUTH[0], password=USER_AUTH[1]),
            UserAccount(
                username=ADMIN_AUTH[0],
                password=ADMIN_AUTH[1],
                roles=frozenset({USER_ROLE, ADMIN_ROLE}),
            ),
        ),
    )


@pytest.fixture
def client(settings: AppSettings) -> Generator[TestClient, None, None]:
    """Provide an API test client for contract and integration suites."""
    with TestClient(create_app(settings), raise_server_exceptions=False) as test_client:
        yield test_client
