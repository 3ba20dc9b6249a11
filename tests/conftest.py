"""Pytest fixtures for backend tests."""

from __future__ import annotations

import os
from collections.abc import Iterator
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient


def _set_default_env() -> None:
    os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
    os.environ.setdefault("SUPABASE_ANON_KEY", "anon-key")
    os.environ.setdefault("SUPABASE_SERVICE_KEY", "service-key")
    os.environ.setdefault("ENABLE_SCHEDULER", "false")
    os.environ.setdefault("SQUAD_STREAK_POLICY", "all_members")
    os.environ.setdefault("TIMEZONE", "Asia/Taipei")


# Settings are read when ``app.config`` is first imported.
_set_default_env()

from app.schemas.streak import StreakPolicy  # noqa: E402
from app.services.check_in_service import CheckInService  # noqa: E402
from app.services.dashboard_service import DashboardService  # noqa: E402
from app.services.streak_service import StreakService  # noqa: E402
from app.services.workout_service import WorkoutService  # noqa: E402
from tests.fakes import FakeArtifactStore, FakeMembership, InMemoryWorkoutStore  # noqa: E402

TODAY = "2024-06-10"


@pytest.fixture(scope="session")
def client() -> TestClient:
    """Create a FastAPI test client."""
    from app.main import app

    return TestClient(app)


@pytest.fixture
def store() -> InMemoryWorkoutStore:
    """Squad s1 with four members; users without a squad are added per test."""
    store = InMemoryWorkoutStore()
    for user_id in ("u1", "u2", "u3", "u4"):
        store.add_user(user_id)
    store.add_squad("s1", ["u1", "u2", "u3", "u4"], competition_date="2024-06-30")
    return store


@pytest.fixture
def membership() -> FakeMembership:
    return FakeMembership({"u1", "u2"})


@pytest.fixture
def artifacts() -> FakeArtifactStore:
    return FakeArtifactStore()


@pytest.fixture
def streaks(store: InMemoryWorkoutStore, membership: FakeMembership) -> StreakService:
    return StreakService(store, membership, StreakPolicy.ALL_MEMBERS)


@pytest.fixture
def check_in_service(
    store: InMemoryWorkoutStore,
    artifacts: FakeArtifactStore,
    streaks: StreakService,
) -> CheckInService:
    return CheckInService(store, artifacts, streaks, max_attempts=3)


@pytest.fixture
def workout_service(
    store: InMemoryWorkoutStore,
    artifacts: FakeArtifactStore,
    streaks: StreakService,
) -> WorkoutService:
    return WorkoutService(store, artifacts, streaks, max_attempts=3)


@pytest.fixture
def dashboard_service(
    store: InMemoryWorkoutStore,
    membership: FakeMembership,
) -> DashboardService:
    return DashboardService(
        store, membership, StreakPolicy.ALL_MEMBERS, history_days=70, heatmap_days=14
    )


@pytest.fixture
def api(
    client: TestClient,
    store: InMemoryWorkoutStore,
    check_in_service: CheckInService,
    workout_service: WorkoutService,
    dashboard_service: DashboardService,
    streaks: StreakService,
) -> Iterator[TestClient]:
    """Test client signed in as app user u1 with in-memory collaborators."""
    from app import dependencies
    from app.main import app

    app.dependency_overrides.update(
        {
            dependencies.get_authenticated_user: lambda: SimpleNamespace(
                id="auth-u1", email="u1@example.com"
            ),
            dependencies.get_current_app_user_id: lambda: "u1",
            dependencies.get_workout_store: lambda: store,
            dependencies.get_check_in_service: lambda: check_in_service,
            dependencies.get_workout_service: lambda: workout_service,
            dependencies.get_dashboard_service: lambda: dashboard_service,
            dependencies.get_streak_service: lambda: streaks,
        }
    )
    yield client
    app.dependency_overrides.clear()
