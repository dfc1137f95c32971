"""Tests for tracker.reminders.recipients."""

from __future__ import annotations

import pytest

from fakes import reminder_row
from tracker.reminders.errors import RepositoryError
from tracker.reminders.models import Reminder
from tracker.reminders.recipients import resolve_recipients


def _reminder(**extra) -> Reminder:
    return Reminder.model_validate(reminder_row("r1", **extra))


@pytest.fixture
def team(db):
    db.tables["user_tasks"] = [
        {"task_id": "task-1", "user_id": uid} for uid in ("A", "B", "C")
    ]
    db.tables["profiles"] += [
        {"id": "A", "email": "a@x.com"},
        {"id": "B", "email": "b@x.com"},
        {"id": "C", "email": "c3@x.com"},
        {"id": "D", "email": "d@x.com"},
    ]
    return db


class TestAssignees:
    def test_all_assignees_notified(self, team, repo):
        out = resolve_recipients(repo, _reminder())
        assert out.emails == {"a@x.com", "b@x.com", "c3@x.com"}
        assert out.task_name == "Team sync"

    def test_recipient_list_narrows_to_assigned_users(self, team, repo):
        out = resolve_recipients(repo, _reminder(recipient_user_ids=["B", "D"]))
        assert out.emails == {"b@x.com"}

    def test_empty_recipient_list_means_everyone(self, team, repo):
        out = resolve_recipients(repo, _reminder(recipient_user_ids=[]))
        assert len(out.emails) == 3

    def test_duplicate_addresses_collapsed(self, db, repo):
        db.tables["user_tasks"] = [
            {"task_id": "task-1", "user_id": "x"},
            {"task_id": "task-1", "user_id": "y"},
            {"task_id": "task-1", "user_id": "x"},
        ]
        db.tables["profiles"] += [
            {"id": "x", "email": "shared@x.com"},
            {"id": "y", "email": "shared@x.com"},
        ]
        out = resolve_recipients(repo, _reminder())
        assert out.emails == {"shared@x.com"}

    def test_assignees_without_email_dropped(self, db, repo):
        db.tables["user_tasks"].append({"task_id": "task-1", "user_id": "noemail"})
        db.tables["profiles"].append({"id": "noemail", "email": None})
        out = resolve_recipients(repo, _reminder())
        assert out.emails == {"a@x.com"}


class TestFallback:
    def test_no_assignees_uses_task_creator(self, db, repo):
        db.tables["user_tasks"] = []
        out = resolve_recipients(repo, _reminder())
        assert out.emails == {"c@x.com"}

    def test_assignees_without_email_use_creator(self, db, repo):
        db.tables["profiles"] = [{"id": "a", "email": None}, {"id": "creator", "email": "c@x.com"}]
        out = resolve_recipients(repo, _reminder())
        assert out.emails == {"c@x.com"}

    def test_narrowed_to_nobody_uses_creator(self, team, repo):
        out = resolve_recipients(repo, _reminder(recipient_user_ids=["D"]))
        assert out.emails == {"c@x.com"}

    def test_missing_task_falls_back_to_reminder_creator(self, db, repo):
        db.tables["tasks"] = []
        db.tables["user_tasks"] = []
        db.tables["profiles"].append({"id": "owner", "email": "owner@x.com"})
        out = resolve_recipients(repo, _reminder(created_by="owner"))
        assert out.emails == {"owner@x.com"}
        assert out.task_name is None

    def test_task_creator_preferred_over_reminder_creator(self, db, repo):
        db.tables["user_tasks"] = []
        db.tables["profiles"].append({"id": "owner", "email": "owner@x.com"})
        out = resolve_recipients(repo, _reminder(created_by="owner"))
        assert out.emails == {"c@x.com"}

    def test_nobody_reachable_is_empty(self, db, repo):
        db.tables["user_tasks"] = []
        db.tables["profiles"] = [{"id": "creator", "email": None}]
        out = resolve_recipients(repo, _reminder())
        assert out.emails == frozenset()
        assert not out.deliverable

    def test_no_creator_anywhere_is_empty(self, db, repo):
        db.tables["user_tasks"] = []
        db.tables["tasks"] = [{"id": "task-1", "name": "Orphan", "created_by": None}]
        out = resolve_recipients(repo, _reminder(created_by=None))
        assert not out.deliverable


class TestErrors:
    def test_task_lookup_failure_propagates(self, db, repo):
        db.fail("tasks", "select", "connection reset")
        with pytest.raises(RepositoryError, match="connection reset"):
            resolve_recipients(repo, _reminder())

    def test_profile_lookup_failure_propagates(self, db, repo):
        db.fail("profiles", "select")
        with pytest.raises(RepositoryError):
            resolve_recipients(repo, _reminder())
