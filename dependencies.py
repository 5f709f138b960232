"""
FastAPI dependency providers.

Services are built once in the app lifespan and stored on app.state; these
providers only hand them out through FastAPI's Depends() system.

The authenticated Actor is attached to ``request.state.actor`` by the
surrounding authentication layer; this service never inspects credentials.
"""

from __future__ import annotations

from fastapi import Depends, Request

from errors import AuthenticationError, ForbiddenError
from services.account_service import AccountService, Actor
from services.vip_lifecycle import VipLifecycleService


def get_account_service(request: Request) -> AccountService:
    """Return the AccountService stored on app.state."""
    return request.app.state.account_service


def get_vip_service(request: Request) -> VipLifecycleService:
    """Return the VipLifecycleService stored on app.state."""
    return request.app.state.vip_service


def get_current_actor(request: Request) -> Actor:
    actor = getattr(request.state, "actor", None)
    if not isinstance(actor, Actor):
        raise AuthenticationError("Authentication required")
    return actor


def get_admin_actor(actor: Actor = Depends(get_current_actor)) -> Actor:
    if not actor.is_admin:
        raise ForbiddenError("Admin privileges required")
    return actor
