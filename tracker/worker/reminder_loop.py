# tracker/worker/reminder_loop.py
"""
In-process scheduler for deployments without a cron service:

    python -m tracker.worker.reminder_loop

It only calls the same sweep the /api/cron/send-reminders endpoint runs, every DISPATCHER_POLL_SECONDS.
Keep DISPATCHER_POLL_SECONDS <= REMINDER_WINDOW_MS / 1000 or reminders can fall between two windows.
"""
import logging
import time

from tracker.core.config import Settings
from tracker.core.logging import configure_logging
from tracker.core.supabase_client import create_service_client
from tracker.integrations.email_client import build_notifier
from tracker.reminders.repository import build_repository
from tracker.worker.sweep import ReminderSweeper, build_sweeper

logger = logging.getLogger(__name__)


def run_once(sweeper: ReminderSweeper):
    result = sweeper.run()
    if result.processed:
        logger.info("[dispatcher] processed %d reminder(s): %s", result.processed, ", ".join(result.ids or []))
    return result


def _build(settings: Settings) -> ReminderSweeper:
    repository = build_repository(settings, create_service_client(settings))
    return build_sweeper(settings, repository, build_notifier(settings))


def run(settings: Settings = None, sweeper: ReminderSweeper = None, iterations: int = None, sleep=time.sleep):
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    if settings.poll_seconds * 1000 > settings.reminder_window_ms:
        logger.warning(
            "[dispatcher] poll=%ss is longer than the %sms window; some reminders will never be due in a sweep",
            settings.poll_seconds, settings.reminder_window_ms,
        )
    sweeper = sweeper or _build(settings)
    logger.info("[dispatcher] running; poll=%ss window=%sms", settings.poll_seconds, settings.reminder_window_ms)

    done = 0
    while iterations is None or done < iterations:
        try:
            run_once(sweeper)
        except Exception:
            logger.exception("[dispatcher] sweep failed")
        done += 1
        if iterations is None or done < iterations:
            sleep(settings.poll_seconds)


if __name__ == "__main__":
    run()
