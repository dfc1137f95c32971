# tracker/reminders/models.py

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def as_utc(dt: datetime) -> datetime:
    # Naive timestamps coming from the store are UTC
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class Reminder(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    task_id: str
    due_at: datetime
    details: Optional[str] = None
    created_by: Optional[str] = None
    recipient_user_ids: Optional[List[str]] = None
    sent_at: Optional[datetime] = None

    @field_validator("id", "task_id", mode="before")
    @classmethod
    def _stringify_ids(cls, v):
        return str(v) if v is not None else v

    @field_validator("due_at", "sent_at")
    @classmethod
    def _utc(cls, v):
        return as_utc(v) if v is not None else v


class Task(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: Optional[str] = None
    created_by: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, v):
        return str(v) if v is not None else v


class SweepResult(BaseModel):
    """Outcome of one sweep. `skipped` and `failed` are for logs, not for the HTTP body."""
    processed: int = 0
    ids: Optional[List[str]] = None
    skipped: List[str] = Field(default_factory=list)
    failed: List[str] = Field(default_factory=list)

    def as_response(self) -> dict:
        if self.ids is None:
            return {"processed": self.processed}
        return {"processed": self.processed, "ids": list(self.ids)}
