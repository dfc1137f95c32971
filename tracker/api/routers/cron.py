# tracker/api/routers/cron.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status

from tracker.api.deps import get_settings, get_sweeper
from tracker.core.config import Settings
from tracker.reminders.errors import RepositoryError
from tracker.worker.sweep import authorize_cron

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cron", tags=["Cron"])


@router.post("/send-reminders")
def send_reminders(
    x_cron_secret: Optional[str] = Header(default=None, alias="X-Cron-Secret"),
    settings: Settings = Depends(get_settings),
    sweeper=Depends(get_sweeper),
):
    """
    Sends the reminders due in the last REMINDER_WINDOW_MS that are not sent yet.
    Meant to be hit every minute by an external scheduler.
    """
    if not authorize_cron(x_cron_secret, settings.cron_secret):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    try:
        result = sweeper.run()
    except RepositoryError as e:
        logger.error("[cron] could not load due reminders: %s", e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return result.as_response()
