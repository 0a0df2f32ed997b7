from pydantic import BaseModel, ConfigDict
from typing import Optional


class UserData(BaseModel):
    """Claims of a bearer token issued by the auth service."""

    model_config = ConfigDict(extra="ignore")

    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    exp: int
    user_role: int = 1
