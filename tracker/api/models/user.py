# tracker/api/models/user.py

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr


class UserOut(BaseModel):
    """
    Authenticated caller as seen by the API routes.
    """
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: Optional[EmailStr] = None
