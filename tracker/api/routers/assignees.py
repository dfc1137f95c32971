# tracker/api/routers/assignees.py

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from tracker.api.models.user import UserOut
from tracker.core.auth import get_current_user
from tracker.core.supabase_client import get_supabase_for_request
from tracker.schemas.assignees import AssigneeCreate, AssigneeOut

router = APIRouter(prefix="/api/tasks/assignees", tags=["Task assignees"])


def _exec_or_400(query, fallback_msg="Operation failed") -> list:
    try:
        res = query.execute()
    except Exception as e:
        raise HTTPException(status_code=400, detail=getattr(e, "message", None) or str(e) or fallback_msg)
    data = getattr(res, "data", None)
    if data is None:
        return []
    return data if isinstance(data, list) else [data]


@router.get("", response_model=List[AssigneeOut])
def list_assignees(
    current_user: Annotated[UserOut, Depends(get_current_user)],
    task_id: Optional[str] = Query(None),
    sb=Depends(get_supabase_for_request),
):
    if not task_id:
        raise HTTPException(status_code=400, detail="task_id is required")
    return _exec_or_400(sb.table("user_tasks").select("*").eq("task_id", task_id))


@router.post("", response_model=AssigneeOut, status_code=status.HTTP_201_CREATED)
def add_assignee(
    body: AssigneeCreate,
    current_user: Annotated[UserOut, Depends(get_current_user)],
    sb=Depends(get_supabase_for_request),
):
    # upsert: assigning twice keeps a single row
    data = _exec_or_400(
        sb.table("user_tasks").upsert(body.model_dump(), on_conflict="task_id,user_id"),
        "Cannot assign user",
    )
    if not data:
        raise HTTPException(status_code=500, detail="Upsert failed")
    return data[0]


@router.delete("/{user_id}")
def remove_assignee(
    current_user: Annotated[UserOut, Depends(get_current_user)],
    user_id: str = Path(...),
    task_id: Optional[str] = Query(None),
    sb=Depends(get_supabase_for_request),
):
    if not task_id:
        raise HTTPException(status_code=400, detail="task_id is required")
    _exec_or_400(sb.table("user_tasks").delete().match({"task_id": task_id, "user_id": user_id}))
    return {"ok": True}
