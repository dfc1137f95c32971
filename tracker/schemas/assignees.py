from typing import Optional

from pydantic import BaseModel, Field


class AssigneeCreate(BaseModel):
    task_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    role: str = "assignee"


class AssigneeOut(BaseModel):
    task_id: str
    user_id: str
    role: Optional[str] = None
