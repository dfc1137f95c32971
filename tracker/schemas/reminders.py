from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ReminderCreate(BaseModel):
    task_id: str = Field(..., min_length=1, description="Task UUID")
    due_at: datetime = Field(..., description="When to notify (ISO 8601, UTC if no offset)")
    details: Optional[str] = None
    recipient_user_ids: Optional[List[str]] = Field(
        None, description="Only notify these assignees. Users not assigned to the task are ignored."
    )

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "task_id": "3d4ac02c-5f8a-4c14-970f-7da20e46af97",
            "due_at": "2025-10-23T16:00:00Z",
            "details": "Reminder for Team sync",
            "recipient_user_ids": ["9b2f7c1e-0c55-4a0e-8f0e-2f7a4b1c9d11"],
        }
    })


class ReminderPatch(BaseModel):
    # sent_at is not patchable: once sent a reminder stays sent
    model_config = ConfigDict(extra="forbid")

    due_at: Optional[datetime] = None
    details: Optional[str] = None
    recipient_user_ids: Optional[List[str]] = None


class ReminderOut(BaseModel):
    id: str
    task_id: str
    due_at: datetime
    details: Optional[str] = None
    created_by: Optional[str] = None
    recipient_user_ids: Optional[List[str]] = None
    sent_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class NextReminderOut(BaseModel):
    id: str
    task_id: str
    due_at: datetime
