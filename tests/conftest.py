from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from fakes import NOW, FakeSupabase, RecordingNotifier
from tracker.core.config import Settings
from tracker.reminders.repository import SupabaseReminderRepository


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def db() -> FakeSupabase:
    """One task with assignee `a` (a@x.com), creator `creator` (c@x.com)."""
    return FakeSupabase({
        "tasks": [{"id": "task-1", "name": "Team sync", "created_by": "creator"}],
        "user_tasks": [{"task_id": "task-1", "user_id": "a", "role": "assignee"}],
        "profiles": [
            {"id": "a", "email": "a@x.com"},
            {"id": "creator", "email": "c@x.com"},
        ],
        "reminders": [],
    })


@pytest.fixture
def repo(db) -> SupabaseReminderRepository:
    return SupabaseReminderRepository(db)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_key="anon",
        cron_secret="s3cret",
        allow_dev_header=True,
        site_url="https://tracker.example.com",
    )


@pytest.fixture
def clock(now):
    # Sweep "now" for marking; a second later than the window end
    return lambda: now + timedelta(seconds=1)
