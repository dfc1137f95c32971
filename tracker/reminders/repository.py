# tracker/reminders/repository.py

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError
from supabase import Client

from tracker.reminders.errors import RepositoryError
from tracker.reminders.models import Reminder, Task, as_utc
from tracker.reminders.window import DueWindow

logger = logging.getLogger(__name__)

BASE_COLUMNS = "id, task_id, due_at, details, created_by, sent_at"


def _exec(query, what: str) -> List[Dict[str, Any]]:
    """
    Runs a PostgREST query and returns its rows.
    Any client/HTTP error becomes RepositoryError so callers see one failure type.
    """
    try:
        res = query.execute()
    except Exception as e:
        raise RepositoryError(f"[{what}] {e}") from e
    data = getattr(res, "data", None)
    if data is None:
        return []
    if isinstance(data, dict):
        return [data]
    return list(data)


def _to_reminders(rows: List[Dict[str, Any]], what: str) -> List[Reminder]:
    """Validates rows one by one; a row of the wrong shape is logged and left out of the batch."""
    out: List[Reminder] = []
    for r in rows:
        try:
            out.append(Reminder.model_validate(r))
        except ValidationError:
            logger.warning(
                "[%s] skipping reminder %s: unexpected row shape", what, r.get("id"),
                exc_info=True, extra={"reminder_id": r.get("id")},
            )
    return out


class SupabaseReminderRepository:
    """
    Reads and writes the `reminders` table and the task/assignment/profile rows the sweep needs.
    Expects a service-role client: the sweep runs without a user and must see every row.
    """

    def __init__(
        self,
        client: Client,
        *,
        recipients_column: bool = True,
        claim_rpc: str = "",
        claim_lease_seconds: int = 300,
    ):
        self.client = client
        self.recipients_column = recipients_column
        self.claim_rpc = claim_rpc
        self.claim_lease_seconds = claim_lease_seconds
        self.columns = BASE_COLUMNS + (", recipient_user_ids" if recipients_column else "")

    @property
    def claims(self) -> bool:
        return bool(self.claim_rpc)

    # -------------------------
    # Due set
    # -------------------------
    def fetch_due(self, since: datetime, until: datetime, limit: int) -> List[Reminder]:
        rows = _exec(
            self.client.table("reminders")
            .select(self.columns)
            .gte("due_at", as_utc(since).isoformat())
            .lte("due_at", as_utc(until).isoformat())
            .is_("sent_at", "null")
            .order("due_at", desc=False)
            .limit(limit),
            "reminders.fetch_due",
        )
        return _to_reminders(rows, "reminders.fetch_due")

    def claim_due(self, since: datetime, until: datetime, limit: int) -> List[Reminder]:
        """
        Atomically claims due reminders through the configured Postgres function.
        Only rows still unsent and unclaimed (or whose lease expired) come back,
        so two overlapping sweeps never get the same row.
        """
        if not self.claim_rpc:
            raise RepositoryError("claim_due called without a claim RPC configured")
        rows = _exec(
            self.client.rpc(self.claim_rpc, {
                "p_since": as_utc(since).isoformat(),
                "p_until": as_utc(until).isoformat(),
                "p_limit": limit,
                "p_lease_seconds": self.claim_lease_seconds,
            }),
            f"rpc.{self.claim_rpc}",
        )
        reminders = _to_reminders(rows, f"rpc.{self.claim_rpc}")
        reminders.sort(key=lambda r: r.due_at)
        return reminders

    def load_due(self, window: DueWindow, limit: int) -> List[Reminder]:
        if self.claims:
            return self.claim_due(window.since, window.until, limit)
        return self.fetch_due(window.since, window.until, limit)

    def mark_sent(self, reminder_id: str, sent_at: datetime) -> bool:
        """True only when this call moved sent_at from null to a timestamp."""
        rows = _exec(
            self.client.table("reminders")
            .update({"sent_at": as_utc(sent_at).isoformat()})
            .eq("id", reminder_id)
            .is_("sent_at", "null"),
            "reminders.mark_sent",
        )
        return len(rows) > 0

    def release_claim(self, reminder_id: str) -> None:
        if not self.claims:
            return
        _exec(
            self.client.table("reminders")
            .update({"claimed_at": None})
            .eq("id", reminder_id)
            .is_("sent_at", "null"),
            "reminders.release_claim",
        )

    # -------------------------
    # Recipient data
    # -------------------------
    def get_task(self, task_id: str) -> Optional[Task]:
        rows = _exec(
            self.client.table("tasks").select("id, name, created_by").eq("id", task_id).limit(1),
            "tasks.get",
        )
        return Task.model_validate(rows[0]) if rows else None

    def list_assignee_ids(self, task_id: str) -> List[str]:
        rows = _exec(
            self.client.table("user_tasks").select("user_id").eq("task_id", task_id),
            "user_tasks.list",
        )
        seen: Dict[str, None] = {}
        for r in rows:
            uid = r.get("user_id")
            if uid:
                seen.setdefault(str(uid), None)
        return list(seen)

    def get_profile_emails(self, user_ids: Iterable[str]) -> List[str]:
        ids = list(user_ids)
        if not ids:
            return []
        rows = _exec(
            self.client.table("profiles").select("id, email").in_("id", ids),
            "profiles.emails",
        )
        return [r["email"] for r in rows if r.get("email")]

    def get_profile_email(self, user_id: str) -> Optional[str]:
        rows = _exec(
            self.client.table("profiles").select("email").eq("id", user_id).limit(1),
            "profiles.email",
        )
        if not rows:
            return None
        return rows[0].get("email") or None


def build_repository(settings, client: Client) -> SupabaseReminderRepository:
    return SupabaseReminderRepository(
        client,
        recipients_column=settings.reminder_recipients_column,
        claim_rpc=settings.reminder_claim_rpc,
        claim_lease_seconds=settings.reminder_claim_lease_seconds,
    )
