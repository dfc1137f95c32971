# tracker/worker/sweep.py

import hmac
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from tracker.reminders.models import Reminder, SweepResult
from tracker.reminders.recipients import resolve_recipients
from tracker.reminders.window import DEFAULT_WINDOW_MS, compute_window

logger = logging.getLogger(__name__)

DEFAULT_BATCH_LIMIT = 500


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _header_bytes(value: str) -> bytes:
    # Starlette decodes header values as latin-1; this gets back the bytes that were sent
    try:
        return value.encode("latin-1")
    except UnicodeEncodeError:
        return value.encode("utf-8")


def authorize_cron(provided: Optional[str], expected: Optional[str]) -> bool:
    """Shared-secret check for the cron trigger. Both sides must be present and equal byte for byte."""
    if not provided or not expected:
        return False
    return hmac.compare_digest(_header_bytes(provided), expected.encode("utf-8"))


def _fmt_due(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


def compose_message(reminder: Reminder, task_name: Optional[str], site_url: str = "") -> Tuple[str, str]:
    subject = f"Reminder: {task_name or 'Task'}"
    body = (
        f"{reminder.details or 'You have a reminder.'}\n\n"
        f"Task: {task_name or reminder.task_id}\n"
        f"Due at: {_fmt_due(reminder.due_at)}\n\n"
        f"Open Tracker: {site_url.rstrip('/')}/tasks"
    )
    return subject, body


class ReminderSweeper:
    """
    One sweep loads the due reminders of the current window, then notifies and marks each one.

    Reminders are handled one at a time. A failure on one reminder (store error or notifier failure)
    is logged and leaves that reminder pending; the rest of the batch goes on.
    Only a failure loading the batch itself propagates to the caller.
    """

    def __init__(
        self,
        repository,
        notifier,
        *,
        window_ms: int = DEFAULT_WINDOW_MS,
        batch_limit: int = DEFAULT_BATCH_LIMIT,
        site_url: str = "",
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.repository = repository
        self.notifier = notifier
        self.window_ms = window_ms
        self.batch_limit = batch_limit
        self.site_url = site_url
        self.clock = clock

    def run(self, now: Optional[datetime] = None) -> SweepResult:
        window = compute_window(now or self.clock(), self.window_ms)
        reminders = self.repository.load_due(window, self.batch_limit)
        logger.info(
            "[sweep] %d due reminder(s) in [%s, %s]",
            len(reminders), window.since.isoformat(), window.until.isoformat(),
        )
        if not reminders:
            return SweepResult(processed=0)

        processed: List[str] = []
        failed: List[str] = []
        skipped: List[str] = []
        seen = set()
        for reminder in reminders:
            if reminder.id in seen:
                skipped.append(reminder.id)
                continue
            seen.add(reminder.id)
            try:
                done = self._process(reminder)
            except Exception:
                logger.exception(
                    "[sweep] reminder %s failed; left pending", reminder.id,
                    extra={"reminder_id": reminder.id, "task_id": reminder.task_id},
                )
                done = False
            if done:
                processed.append(reminder.id)
            else:
                failed.append(reminder.id)
                self._release(reminder)

        logger.info(
            "[sweep] processed=%d pending=%d skipped=%d", len(processed), len(failed), len(skipped),
        )
        return SweepResult(processed=len(processed), ids=processed, skipped=skipped, failed=failed)

    def _process(self, reminder: Reminder) -> bool:
        recipients = resolve_recipients(self.repository, reminder)

        if not recipients.deliverable:
            # Nobody can ever receive it: mark it so it is not picked up again every sweep
            logger.info(
                "[sweep] reminder %s has no deliverable recipient; marking sent", reminder.id,
                extra={"reminder_id": reminder.id},
            )
            return self._mark_sent(reminder)

        subject, body = compose_message(reminder, recipients.task_name, self.site_url)
        try:
            sent = self.notifier.send(sorted(recipients.emails), subject, body)
        except Exception:
            logger.exception(
                "[sweep] notifier raised for reminder %s", reminder.id,
                extra={"reminder_id": reminder.id},
            )
            sent = False

        if not sent:
            logger.warning(
                "[sweep] delivery failed for reminder %s (%d recipient(s)); left pending",
                reminder.id, len(recipients.emails),
                extra={"reminder_id": reminder.id},
            )
            return False
        return self._mark_sent(reminder)

    def _mark_sent(self, reminder: Reminder) -> bool:
        if self.repository.mark_sent(reminder.id, self.clock()):
            return True
        logger.warning(
            "[sweep] reminder %s was already marked sent by another run", reminder.id,
            extra={"reminder_id": reminder.id},
        )
        return False

    def _release(self, reminder: Reminder) -> None:
        try:
            self.repository.release_claim(reminder.id)
        except Exception:
            logger.exception(
                "[sweep] could not release claim on reminder %s; it frees up when the lease expires",
                reminder.id, extra={"reminder_id": reminder.id},
            )


def build_sweeper(settings, repository, notifier) -> ReminderSweeper:
    return ReminderSweeper(
        repository,
        notifier,
        window_ms=settings.reminder_window_ms,
        batch_limit=settings.reminder_batch_limit,
        site_url=settings.site_url,
    )
