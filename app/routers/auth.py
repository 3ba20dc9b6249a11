"""Authentication and account binding endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from app.dependencies import (
    get_auth_email,
    get_auth_uid,
    get_authenticated_user,
    get_binding_service,
    resolve_app_user_id,
    set_binding_cache,
)
from app.schemas.user import AuthBindingResponse, AuthBindRequest
from app.services.binding_service import BindingService

router = APIRouter()


@router.get("/session")
def auth_session(
    user: Any = Depends(get_authenticated_user),
    bindings: BindingService = Depends(get_binding_service),
) -> dict:
    """Return the authenticated user and the app user it is bound to, if any."""
    return {
        "user": user,
        "app_user_id": resolve_app_user_id(get_auth_uid(user), bindings),
    }


@router.get("/binding", response_model=AuthBindingResponse | None)
def get_binding(
    user: Any = Depends(get_authenticated_user),
    bindings: BindingService = Depends(get_binding_service),
) -> dict | None:
    """Return the caller's binding, or null before binding."""
    return bindings.get_binding(get_auth_uid(user))


@router.post("/bind", response_model=AuthBindingResponse)
def bind_account(
    payload: AuthBindRequest,
    user: Any = Depends(get_authenticated_user),
    bindings: BindingService = Depends(get_binding_service),
) -> dict:
    """Bind the signed-in account to one roster member."""
    metadata = getattr(user, "user_metadata", None) or {}
    app_metadata = getattr(user, "app_metadata", None) or {}
    binding = bindings.bind(
        auth_uid=get_auth_uid(user),
        app_user_id=payload.app_user_id,
        provider=str(app_metadata.get("provider") or "email"),
        email=get_auth_email(user),
        display_name=metadata.get("full_name") or metadata.get("name"),
    )
    set_binding_cache(get_auth_uid(user), str(binding["app_user_id"]))
    return binding


@router.get("/app-users")
def list_app_users(
    _: Any = Depends(get_authenticated_user),
    bindings: BindingService = Depends(get_binding_service),
) -> dict:
    """List roster users with whether each one is already bound."""
    return {"users": bindings.list_app_users()}


@router.post("/signout")
def auth_signout() -> dict:
    """Return success for stateless sign-out handling."""
    return {"success": True}
