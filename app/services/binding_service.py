"""Auth binding between Supabase accounts and squad app users."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from app.services.common import SupabaseService
from app.utils.errors import ConflictError, InvalidInputError
from supabase import Client

logger = logging.getLogger(__name__)


class BindingService:
    """Look up, create and resolve account bindings.

    A roster member only counts toward squad streaks once some account has
    bound to them.
    """

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    def get_binding(self, auth_uid: str) -> dict[str, Any] | None:
        """Return the binding row for an auth account, or None."""
        rows = self.db.select_many("auth_bindings", filters={"auth_uid": auth_uid}, limit=1)
        return rows[0] if rows else None

    def bind(
        self,
        auth_uid: str,
        app_user_id: str,
        provider: str = "email",
        email: str | None = None,
        display_name: str | None = None,
    ) -> dict[str, Any]:
        """Bind an auth account to an app user that no other account holds."""
        normalized_id = app_user_id.strip()
        if not normalized_id:
            raise InvalidInputError("App user id is required")

        self.db.get_user(normalized_id)

        holders = self.db.select_many(
            "auth_bindings",
            filters={"app_user_id": normalized_id},
            columns="auth_uid",
            limit=1,
        )
        if holders and str(holders[0]["auth_uid"]) != auth_uid:
            raise ConflictError(
                "This member is already bound to another account",
                code="APP_USER_TAKEN",
            )

        binding = self.db.upsert_one(
            "auth_bindings",
            {
                "auth_uid": auth_uid,
                "app_user_id": normalized_id,
                "provider": provider,
                "email": email,
                "display_name": display_name,
            },
            on_conflict="auth_uid",
        )
        logger.info("Bound auth account %s to app user %s", auth_uid, normalized_id)
        return binding

    def get_bound_member_ids(self, candidate_ids: Iterable[str]) -> set[str]:
        """Return the subset of ``candidate_ids`` that some account is bound to."""
        ids = sorted({str(candidate) for candidate in candidate_ids})
        if not ids:
            return set()

        rows = self.db.execute(
            self.db.client.table("auth_bindings").select("app_user_id").in_("app_user_id", ids),
            default=[],
        )
        return {str(row["app_user_id"]) for row in rows}

    def list_app_users(self) -> list[dict[str, Any]]:
        """Return roster users with whether each one is already bound."""
        users = self.db.select_many("users", order_by="id")
        bound = self.get_bound_member_ids(str(user["id"]) for user in users)
        return [{**user, "is_bound": str(user["id"]) in bound} for user in users]
