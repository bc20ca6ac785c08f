"""
Request-scoped dependencies.

Authentication happens upstream; the gateway forwards the resolved caller
in X-Tenant-ID / X-Actor-ID / X-Actor-Role headers.
"""

from typing import Optional

from fastapi import Depends, Header

from ..config import settings
from ..errors import AuthorizationError
from ..services.clock import Clock, SystemClock
from ..services.reservation_lifecycle import Actor
from .logging_config import tenant_var, actor_id_var

_system_clock = SystemClock()


def get_clock() -> Clock:
    return _system_clock


def get_tenant(x_tenant_id: Optional[str] = Header(None)) -> str:
    tenant = (x_tenant_id or "").strip() or settings.default_tenant
    tenant_var.set(tenant)
    return tenant


def get_actor(
    x_actor_id: Optional[str] = Header(None),
    x_actor_role: Optional[str] = Header(None)
) -> Actor:
    """Resolved caller; requests without an actor id are rejected."""
    if not x_actor_id or not x_actor_id.strip():
        raise AuthorizationError("Missing caller identity")
    actor = Actor.from_role(x_actor_id.strip(), x_actor_role, settings.operator_role_set)
    actor_id_var.set(actor.id)
    return actor


def require_operator(actor: Actor = Depends(get_actor)) -> Actor:
    if not actor.is_operator:
        raise AuthorizationError("Operator role required")
    return actor
