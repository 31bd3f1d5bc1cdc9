"""Probe routes used to check availability and access rules."""

from __future__ import annotations

from fastapi import APIRouter
from fastapi import Depends

from edira.schemas.error import ERROR_RESPONSES
from edira.security.middleware import Principal
from edira.security.middleware import get_current_principal

router = APIRouter(tags=["probes"])

_PROTECTED_RESPONSES = {status: ERROR_RESPONSES[status] for status in (401, 500)}
_ADMIN_RESPONSES = {status: ERROR_RESPONSES[status] for status in (401, 403, 500)}


@router.get("/ping", responses=_PROTECTED_RESPONSES)
def ping(principal: Principal = Depends(get_current_principal)) -> dict[str, str]:
    """Return pong for any authenticated caller."""
    return {"message": "pong", "user": principal.username}


@router.get("/admin/ping", responses=_ADMIN_RESPONSES)
def admin_ping(principal: Principal = Depends(get_current_principal)) -> dict[str, str]:
    """Return a confirmation for callers holding the ADMIN role."""
    return {"message": "admin ok", "user": principal.username}
