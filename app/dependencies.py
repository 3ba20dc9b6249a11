"""FastAPI dependency injection helpers."""

from __future__ import annotations

import threading
import time
from typing import Any

from fastapi import Depends, Header

from app.config import settings
from app.services.binding_service import BindingService
from app.services.check_in_service import CheckInService
from app.services.dashboard_service import DashboardService
from app.services.streak_service import StreakService
from app.services.workout_repository import WorkoutRepository
from app.services.workout_service import WorkoutService
from app.utils.errors import BindingRequiredError, ForbiddenError, UnauthorizedError
from app.utils.supabase_client import get_service_client, get_supabase_client
from supabase import Client

_token_cache: dict[str, tuple[float, Any]] = {}
_binding_cache: dict[str, tuple[float, str]] = {}
_cache_lock = threading.Lock()


def _cache_get(cache: dict[Any, tuple[float, Any]], key: Any) -> Any | None:
    """Return a cache value when present and not expired."""
    now = time.monotonic()
    with _cache_lock:
        entry = cache.get(key)
        if not entry:
            return None
        expires_at, value = entry
        if expires_at <= now:
            cache.pop(key, None)
            return None
        return value


def _cache_set(
    cache: dict[Any, tuple[float, Any]],
    key: Any,
    value: Any,
    ttl_seconds: int,
    max_entries: int,
) -> None:
    """Store a bounded cache value with TTL."""
    if ttl_seconds <= 0:
        return

    with _cache_lock:
        bounded_max_entries = max(1, max_entries)
        if len(cache) >= bounded_max_entries:
            oldest_key = next(iter(cache))
            cache.pop(oldest_key, None)
        cache[key] = (time.monotonic() + ttl_seconds, value)


def get_authenticated_user(authorization: str = Header(None)) -> Any:
    """Extract and validate a Supabase JWT from the Authorization header.

    Raises:
        UnauthorizedError: 401 if the header is missing, malformed, or
            the token cannot be validated.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise UnauthorizedError("Missing authorization header")

    token = authorization.split(" ", 1)[1]
    cached_user = _cache_get(_token_cache, token)
    if cached_user is not None:
        return cached_user

    supabase = get_supabase_client()

    try:
        response = supabase.auth.get_user(token)
        if not response or not response.user:
            raise UnauthorizedError("Invalid token")
        _cache_set(
            _token_cache,
            token,
            response.user,
            settings.auth_token_cache_ttl_seconds,
            settings.auth_token_cache_max_entries,
        )
        return response.user
    except UnauthorizedError:
        raise
    except Exception as exc:
        raise UnauthorizedError("Invalid or expired token") from exc


def get_auth_uid(user: Any) -> str:
    """Extract a stable auth account id string from the Supabase user object."""
    return str(user.id)


def get_auth_email(user: Any) -> str | None:
    raw_email = getattr(user, "email", None)
    if not isinstance(raw_email, str) or not raw_email.strip():
        return None
    return raw_email.strip().lower()


def get_db_client() -> Client:
    """Return the privileged Supabase client used by backend services."""
    return get_service_client()


def get_binding_service(client: Client = Depends(get_db_client)) -> BindingService:
    return BindingService(client)


def resolve_app_user_id(auth_uid: str, bindings: BindingService) -> str | None:
    """Return the app user bound to an auth account, or None."""
    cached = _cache_get(_binding_cache, auth_uid)
    if cached is not None:
        return cached

    binding = bindings.get_binding(auth_uid)
    if not binding:
        return None
    app_user_id = str(binding["app_user_id"])
    set_binding_cache(auth_uid, app_user_id)
    return app_user_id


def set_binding_cache(auth_uid: str, app_user_id: str) -> None:
    """Seed the binding cache after a successful bind."""
    _cache_set(
        _binding_cache,
        str(auth_uid),
        str(app_user_id),
        settings.binding_cache_ttl_seconds,
        settings.data_cache_max_entries,
    )


def get_current_app_user_id(
    user: Any = Depends(get_authenticated_user),
    bindings: BindingService = Depends(get_binding_service),
) -> str:
    """Return the app user id for protected squad routes.

    Raises:
        BindingRequiredError: 403 until the account has been bound.
    """
    app_user_id = resolve_app_user_id(get_auth_uid(user), bindings)
    if app_user_id is None:
        raise BindingRequiredError()
    return app_user_id


def get_workout_store(client: Client = Depends(get_db_client)) -> WorkoutRepository:
    return WorkoutRepository(client)


def get_streak_service(client: Client = Depends(get_db_client)) -> StreakService:
    return StreakService.from_client(client)


def get_check_in_service(client: Client = Depends(get_db_client)) -> CheckInService:
    return CheckInService.from_client(client)


def get_workout_service(client: Client = Depends(get_db_client)) -> WorkoutService:
    return WorkoutService.from_client(client)


def get_dashboard_service(client: Client = Depends(get_db_client)) -> DashboardService:
    return DashboardService.from_client(client)


def get_squad_member_id(
    squad_id: str,
    app_user_id: str = Depends(get_current_app_user_id),
    store: WorkoutRepository = Depends(get_workout_store),
) -> str:
    """Return the caller's app user id once squad membership is confirmed."""
    if not store.is_squad_member(app_user_id, squad_id):
        raise ForbiddenError("You are not a member of this squad")
    return app_user_id
