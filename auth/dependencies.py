"""
auth/dependencies.py -- FastAPI Depends() helpers for the auth flows.

The coordinator, identity provider client and user store are created once in
the API lifespan and stored on app.state. Route handlers receive the
coordinator through get_coordinator() rather than reaching into app.state, so
tests can swap the whole stack by patching the lifespan.

Layer rule: no imports from api/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.coordinator import AuthFlowCoordinator
from auth.store import UserStore


def get_coordinator(request: Request) -> AuthFlowCoordinator:
    """Return the process-wide AuthFlowCoordinator.

    Use as a FastAPI dependency:
        @router.post("/auth/signup")
        def signup(coordinator: AuthFlowCoordinator = Depends(get_coordinator)): ...
    """
    return request.app.state.coordinator


def get_user_store(request: Request) -> UserStore:
    return request.app.state.user_store
