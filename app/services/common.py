"""Shared Supabase data access helpers."""

from __future__ import annotations

import logging
import random
import threading
import time
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from postgrest import APIError

from app.config import settings
from app.utils.errors import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    TransactionConflictError,
)
from supabase import Client

ROLE_PRIORITY = {"captain": 0, "member": 1}
# serialization_failure, deadlock_detected
RETRYABLE_SQLSTATES = {"40001", "40P01"}
UNIQUE_VIOLATION = "23505"
RETRY_BACKOFF_SECONDS = 0.05

logger = logging.getLogger(__name__)
_membership_cache: dict[tuple[str, str], tuple[float, bool]] = {}
_user_cache: dict[str, tuple[float, dict[str, Any]]] = {}
_cache_lock = threading.Lock()

T = TypeVar("T")


def _cache_get(cache: dict[Any, tuple[float, Any]], key: Any) -> Any | None:
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
) -> None:
    if ttl_seconds <= 0:
        return

    with _cache_lock:
        max_entries = max(100, settings.data_cache_max_entries)
        if len(cache) >= max_entries:
            oldest_key = next(iter(cache))
            cache.pop(oldest_key, None)
        cache[key] = (time.monotonic() + ttl_seconds, value)


def invalidate_user_cache(user_id: str) -> None:
    """Drop a cached user row after its counters changed."""
    with _cache_lock:
        _user_cache.pop(str(user_id), None)


def raise_for_api_error(exc: APIError) -> None:
    """Translate a PostgREST error into the application error hierarchy."""
    code = str(getattr(exc, "code", "") or "")
    message = str(getattr(exc, "message", "") or "Database request failed")
    if code in RETRYABLE_SQLSTATES:
        raise TransactionConflictError() from exc
    if code == UNIQUE_VIOLATION:
        raise ConflictError(message, code="DUPLICATE") from exc
    raise InvalidInputError(message) from exc


def _compute_backoff(attempt: int, base_seconds: float) -> float:
    """Jittered exponential backoff, capped at one second."""
    return random.uniform(0, min(1.0, base_seconds * 2 ** (attempt - 1)))


def run_with_retry(
    operation: Callable[[], T],
    attempts: int,
    label: str,
    backoff_seconds: float = RETRY_BACKOFF_SECONDS,
) -> T:
    """Run ``operation``, retrying when it raises ``TransactionConflictError``.

    Each retry first sleeps a jittered delay that doubles per attempt.

    ``operation`` must be safe to re-run: it may only touch the store.
    """
    attempts = max(1, attempts)
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except TransactionConflictError:
            if attempt == attempts:
                logger.warning("%s gave up after %s conflicting attempts", label, attempts)
                raise
            logger.info("%s conflicted (attempt %s/%s), retrying", label, attempt, attempts)
            time.sleep(_compute_backoff(attempt, backoff_seconds))
    raise AssertionError("unreachable")


class SupabaseService:
    """Thin helper wrapper around a Supabase client."""

    def __init__(self, client: Client) -> None:
        self.client = client

    def execute(self, query, default: Any = None) -> Any:
        """Execute a Supabase query and normalize API errors."""
        started = time.perf_counter()
        try:
            response = query.execute()
        except APIError as exc:
            raise_for_api_error(exc)
        elapsed_ms = (time.perf_counter() - started) * 1000
        threshold_ms = settings.slow_query_log_threshold_ms
        if threshold_ms > 0 and elapsed_ms >= threshold_ms:
            logger.warning("Slow Supabase query %.1fms", elapsed_ms)
        data = response.data
        return default if data is None and default is not None else data

    def rpc(self, function: str, params: dict[str, Any]) -> dict[str, Any]:
        """Call a Postgres function and return its single result object."""
        data = self.execute(self.client.rpc(function, params), default={})
        if isinstance(data, list):
            data = data[0] if data else {}
        return data or {}

    def select_one(
        self,
        table: str,
        filters: dict[str, Any],
        columns: str = "*",
        not_found_label: str | None = None,
    ) -> dict[str, Any]:
        """Select a single row and raise NotFoundError when missing."""
        query = self.client.table(table).select(columns)
        for key, value in filters.items():
            query = query.eq(key, value)
        rows = self.execute(query.limit(1), default=[])
        if not rows:
            label = not_found_label or table
            raise NotFoundError(label)
        return rows[0]

    def select_many(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        columns: str = "*",
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Select many rows from a table with optional filters and limit."""
        query = self.client.table(table).select(columns)
        if filters:
            for key, value in filters.items():
                query = query.eq(key, value)
        if order_by:
            query = query.order(order_by, desc=descending)
        if limit:
            query = query.limit(limit)
        return self.execute(query, default=[])

    def upsert_one(
        self,
        table: str,
        payload: dict[str, Any],
        on_conflict: str,
    ) -> dict[str, Any]:
        """Insert or update one row keyed by ``on_conflict`` columns."""
        rows = self.execute(
            self.client.table(table).upsert(payload, on_conflict=on_conflict),
            default=[],
        )
        if not rows:
            raise InvalidInputError(f"Failed to write {table}")
        return rows[0]

    def update(
        self,
        table: str,
        filters: dict[str, Any],
        payload: dict[str, Any],
    ) -> list[dict[str, Any]]:
        """Update rows by equality filters and return the updated rows."""
        query = self.client.table(table).update(payload)
        for key, value in filters.items():
            query = query.eq(key, value)
        return self.execute(query, default=[])

    def get_user(self, user_id: str) -> dict[str, Any]:
        """Return a public user record."""
        cache_key = str(user_id)
        cached_user = _cache_get(_user_cache, cache_key)
        if cached_user is not None:
            return dict(cached_user)

        user = self.select_one("users", {"id": user_id}, not_found_label="User")
        _cache_set(_user_cache, cache_key, dict(user), settings.user_cache_ttl_seconds)
        return user

    def get_users_map(self, user_ids: Iterable[str]) -> dict[str, dict[str, Any]]:
        """Fetch multiple users and return an id-keyed mapping."""
        ids = list({str(uid) for uid in user_ids})
        if not ids:
            return {}

        result: dict[str, dict[str, Any]] = {}
        missing_ids: list[str] = []
        for user_id in ids:
            cached_user = _cache_get(_user_cache, user_id)
            if cached_user is None:
                missing_ids.append(user_id)
                continue
            result[user_id] = dict(cached_user)

        if missing_ids:
            rows = self.execute(
                self.client.table("users").select("*").in_("id", missing_ids),
                default=[],
            )
            for row in rows:
                user_key = str(row["id"])
                user_payload = dict(row)
                result[user_key] = user_payload
                _cache_set(_user_cache, user_key, user_payload, settings.user_cache_ttl_seconds)

        return result

    def is_squad_member(self, user_id: str, squad_id: str) -> bool:
        """Check if a user is on a squad roster in any role."""
        membership_key = (str(user_id), str(squad_id))
        cached_member = _cache_get(_membership_cache, membership_key)
        if cached_member is not None:
            return bool(cached_member)

        rows = self.execute(
            self.client.table("squad_members")
            .select("user_id")
            .eq("user_id", user_id)
            .eq("squad_id", squad_id)
            .limit(1),
            default=[],
        )
        is_member = bool(rows)
        _cache_set(
            _membership_cache,
            membership_key,
            is_member,
            settings.membership_cache_ttl_seconds,
        )
        return is_member

    def get_squad_members(self, squad_id: str) -> list[dict[str, Any]]:
        """Return squad roster rows, captain first then by join time."""
        rows = self.execute(
            self.client.table("squad_members")
            .select("user_id,squad_id,role,joined_at")
            .eq("squad_id", squad_id),
            default=[],
        )
        grouped: dict[str, dict[str, Any]] = {}
        for row in rows:
            user_id = str(row["user_id"])
            current = grouped.get(user_id)
            if current is None or ROLE_PRIORITY.get(row["role"], 99) < ROLE_PRIORITY.get(
                current["role"], 99
            ):
                grouped[user_id] = {
                    "user_id": user_id,
                    "squad_id": str(row["squad_id"]),
                    "role": row["role"],
                    "joined_at": row.get("joined_at"),
                }

        members = list(grouped.values())
        members.sort(
            key=lambda item: (ROLE_PRIORITY.get(item["role"], 99), str(item["joined_at"] or ""))
        )
        return members
