# main.py

from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tracker.core.config import Settings
from tracker.core.logging import configure_logging
from tracker.core.supabase_client import create_service_client
from tracker.integrations.email_client import build_notifier
from tracker.reminders.repository import build_repository
from tracker.worker.sweep import build_sweeper

from tracker.api.routers import assignees, cron, reminders


def create_app(settings: Optional[Settings] = None, *, supabase=None, notifier=None) -> FastAPI:
    """
    Builds the API. The service client, repository, notifier and sweeper are created
    once here and kept on app.state; routes get them through dependencies.
    `supabase` / `notifier` can be injected (tests, other transports).
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Tracker API",
        description="""
Task tracker backend on Supabase: reminders, task assignees and the email reminder sweep.

**What it does**
- **Reminders:** per-task reminders with `due_at`, optional `details` and an optional `recipient_user_ids` allow-list.
- **Assignees:** `user_tasks` membership; assignees are who a reminder notifies.
- **Cron sweep:** `POST /api/cron/send-reminders` (header `X-Cron-Secret`) emails every reminder due in the last
  `REMINDER_WINDOW_MS` and marks it sent. Safe to call every minute.

**Notes**
- CRUD routes use the caller's Bearer token so Supabase RLS applies.
- The sweep uses the service role key.
""",
        version="1.0.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.site_url] if settings.site_url else ["http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if supabase is None:
        supabase = create_service_client(settings)
    if notifier is None:
        notifier = build_notifier(settings)

    repository = build_repository(settings, supabase)

    app.state.settings = settings
    app.state.supabase = supabase
    app.state.repository = repository
    app.state.notifier = notifier
    app.state.sweeper = build_sweeper(settings, repository, notifier)

    app.include_router(reminders.router)
    app.include_router(assignees.router)
    app.include_router(cron.router)

    @app.get("/", tags=["Health"])
    def read_root():
        return {"message": "Welcome to Tracker API"}

    @app.get("/health", tags=["Health"])
    def health():
        return {"status": "ok", "time": datetime.now(timezone.utc).isoformat()}

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app(), host="0.0.0.0", port=8000)
