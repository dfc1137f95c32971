# tracker/api/routers/reminders.py

import logging
from typing import Annotated, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from tracker.api.deps import get_settings
from tracker.api.models.user import UserOut
from tracker.core.auth import get_current_user
from tracker.core.config import Settings
from tracker.core.supabase_client import get_supabase_for_request
from tracker.reminders.models import as_utc
from tracker.schemas.reminders import NextReminderOut, ReminderCreate, ReminderOut, ReminderPatch

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tasks/reminders", tags=["Reminders"])


def _exec_or_400(query, fallback_msg="Operation failed") -> list:
    try:
        res = query.execute()
    except Exception as e:
        raise HTTPException(status_code=400, detail=getattr(e, "message", None) or str(e) or fallback_msg)
    data = getattr(res, "data", None)
    if data is None:
        return []
    return data if isinstance(data, list) else [data]


# ===========================
# List reminders of a task
# ===========================
@router.get("", response_model=List[ReminderOut])
def list_reminders(
    current_user: Annotated[UserOut, Depends(get_current_user)],
    task_id: Optional[str] = Query(None),
    sb=Depends(get_supabase_for_request),
):
    if not task_id:
        raise HTTPException(status_code=400, detail="task_id is required")
    return _exec_or_400(
        sb.table("reminders").select("*").eq("task_id", task_id).order("due_at", desc=False)
    )


# ===========================
# Create
# ===========================
@router.post("", response_model=ReminderOut, status_code=status.HTTP_201_CREATED)
def create_reminder(
    body: ReminderCreate,
    current_user: Annotated[UserOut, Depends(get_current_user)],
    settings: Settings = Depends(get_settings),
    sb=Depends(get_supabase_for_request),
):
    row = {
        "task_id": body.task_id,
        "due_at": as_utc(body.due_at).isoformat(),
        "details": body.details,
        "created_by": current_user.id,
    }
    if body.recipient_user_ids:
        if settings.reminder_recipients_column:
            row["recipient_user_ids"] = body.recipient_user_ids
        else:
            logger.info("[reminders] recipient_user_ids ignored: REMINDER_RECIPIENTS_COLUMN disabled")

    data = _exec_or_400(sb.table("reminders").insert(row), "Cannot create reminder")
    if not data:
        raise HTTPException(status_code=500, detail="Insert failed")
    return data[0]


# ===========================
# Earliest pending reminder per task
# ===========================
@router.get("/next", response_model=Dict[str, NextReminderOut])
def next_reminders(
    current_user: Annotated[UserOut, Depends(get_current_user)],
    task_ids: Optional[str] = Query(None, description="Comma separated task UUIDs"),
    sb=Depends(get_supabase_for_request),
):
    ids = [s.strip() for s in (task_ids or "").split(",") if s.strip()]
    if not ids:
        return {}

    rows = _exec_or_400(
        sb.table("reminders")
        .select("id, task_id, due_at, sent_at")
        .is_("sent_at", "null")
        .in_("task_id", ids)
        .order("due_at", desc=False)
    )
    out: Dict[str, dict] = {}
    for r in rows:
        # rows come sorted, so the first one per task is the earliest
        out.setdefault(str(r["task_id"]), {"id": r["id"], "task_id": r["task_id"], "due_at": r["due_at"]})
    return out


# ===========================
# Update
# ===========================
@router.patch("/{reminder_id}", response_model=ReminderOut)
def update_reminder(
    body: ReminderPatch,
    current_user: Annotated[UserOut, Depends(get_current_user)],
    reminder_id: str = Path(...),
    settings: Settings = Depends(get_settings),
    sb=Depends(get_supabase_for_request),
):
    updates = body.model_dump(exclude_unset=True)
    if "due_at" in updates:
        if updates["due_at"] is None:
            raise HTTPException(status_code=400, detail="due_at cannot be null")
        updates["due_at"] = as_utc(updates["due_at"]).isoformat()
    if "recipient_user_ids" in updates and not settings.reminder_recipients_column:
        updates.pop("recipient_user_ids")
        logger.info("[reminders] recipient_user_ids ignored: REMINDER_RECIPIENTS_COLUMN disabled")
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    data = _exec_or_400(sb.table("reminders").update(updates).eq("id", reminder_id))
    if not data:
        raise HTTPException(status_code=404, detail="Reminder not found")
    return data[0]


# ===========================
# Delete
# ===========================
@router.delete("/{reminder_id}")
def delete_reminder(
    current_user: Annotated[UserOut, Depends(get_current_user)],
    reminder_id: str = Path(...),
    sb=Depends(get_supabase_for_request),
):
    _exec_or_400(sb.table("reminders").delete().eq("id", reminder_id))
    return {"ok": True}
