"""Import squads, users, memberships and historical workouts into Supabase.

The seed file is JSON shaped like::

    {
      "squads": [{"id": "...", "name": "...", "member_ids": [...], "captain_id": "..."}],
      "users": [{"id": "...", "display_name": "...", "initials": "..."}],
      "workouts": [{"user_id": "...", "squad_id": "...", "date": "YYYY-MM-DD",
                    "image_url": "...", "note": "..."}]
    }

Workouts are replayed through the check-in commit so every counter matches
what live check-ins would have produced.
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from postgrest import APIError

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Load squads, users, members and workouts from a JSON seed file.",
    )
    parser.add_argument(
        "seed_file",
        type=Path,
        help="Path to the JSON seed file.",
    )
    parser.add_argument(
        "--skip-workouts",
        action="store_true",
        help="Only import squads, users and memberships.",
    )
    return parser.parse_args(argv)


def load_seed(path: Path) -> dict[str, list[dict[str, Any]]]:
    """Read and minimally validate a seed file."""
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Seed file must contain a JSON object")
    for key in ("squads", "users", "workouts"):
        value = data.setdefault(key, [])
        if not isinstance(value, list):
            raise ValueError(f"'{key}' must be a list")
    return data


def initials_for(name: str) -> str:
    """Return up to two uppercase initials for a display name."""
    parts = [part for part in name.split() if part]
    if not parts:
        return ""
    if len(parts) == 1:
        return parts[0][:2].upper()
    return (parts[0][0] + parts[-1][0]).upper()


def squad_row(squad: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": squad["id"],
        "name": squad["name"],
        "description": squad.get("description") or "",
        "competition_date": squad.get("competition_date"),
        "is_active": squad.get("is_active", True),
    }


def user_row(user: dict[str, Any]) -> dict[str, Any]:
    display_name = user.get("display_name") or user.get("name") or user["id"]
    return {
        "id": user["id"],
        "display_name": display_name,
        "initials": user.get("initials") or initials_for(display_name),
        "avatar_url": user.get("avatar_url"),
    }


def member_rows(squad: dict[str, Any], known_user_ids: set[str]) -> list[dict[str, Any]]:
    """Return roster rows for a squad; the captain defaults to the first member."""
    member_ids = [str(member_id) for member_id in squad.get("member_ids", [])]
    captain_id = str(squad.get("captain_id") or (member_ids[0] if member_ids else ""))
    return [
        {
            "squad_id": squad["id"],
            "user_id": member_id,
            "role": "captain" if member_id == captain_id else "member",
        }
        for member_id in member_ids
        if member_id in known_user_ids
    ]


def upsert_rows(client, table: str, rows: list[dict[str, Any]], on_conflict: str) -> None:
    if rows:
        client.table(table).upsert(rows, on_conflict=on_conflict).execute()


def import_seed(
    data: dict[str, list[dict[str, Any]]],
    skip_workouts: bool = False,
) -> dict[str, int]:
    """Write seed data and return per-kind counts."""
    from app.services.streak_calculator import calculate_longest_streak
    from app.services.streak_service import StreakService
    from app.services.workout_repository import WorkoutRepository
    from app.utils.errors import AlreadyCheckedInError
    from app.utils.supabase_client import get_service_client

    client = get_service_client()
    users = [user_row(user) for user in data["users"]]
    known_user_ids = {user["id"] for user in users}

    upsert_rows(client, "squads", [squad_row(squad) for squad in data["squads"]], "id")
    upsert_rows(client, "users", users, "id")
    members = [row for squad in data["squads"] for row in member_rows(squad, known_user_ids)]
    upsert_rows(client, "squad_members", members, "squad_id,user_id")

    counts = {
        "squads": len(data["squads"]),
        "users": len(users),
        "members": len(members),
        "workouts": 0,
        "skipped": 0,
    }
    if skip_workouts:
        return counts

    repository = WorkoutRepository(client)
    touched_users: set[str] = set()
    for workout in sorted(data["workouts"], key=lambda item: str(item["date"])):
        try:
            repository.commit_check_in(
                str(workout["user_id"]),
                str(workout["squad_id"]),
                str(workout["date"]),
                str(workout.get("image_url") or ""),
                str(workout.get("note") or ""),
            )
        except AlreadyCheckedInError:
            counts["skipped"] += 1
            continue
        touched_users.add(str(workout["user_id"]))
        counts["workouts"] += 1

    for user_id in sorted(touched_users):
        history = repository.get_daily_counts(user_id, max_days=3650)
        repository.raise_longest_streak(user_id, calculate_longest_streak(history))

    streaks = StreakService.from_client(client)
    for squad in data["squads"]:
        streaks.refresh_squad_streaks(str(squad["id"]))

    return counts


def print_summary(counts: dict[str, int]) -> None:
    print("Imported:")
    for key, value in counts.items():
        print(f"  {key}: {value}")


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    from app.utils.errors import AppError

    args = parse_args(argv)
    try:
        counts = import_seed(load_seed(args.seed_file), skip_workouts=args.skip_workouts)
    except APIError as exc:
        raise SystemExit(f"Supabase rejected the import: {getattr(exc, 'message', exc)}") from exc
    except AppError as exc:
        raise SystemExit(f"Import failed: {exc.message}") from exc
    print_summary(counts)


if __name__ == "__main__":
    main()
