# schemas.py
from pydantic import BaseModel, ConfigDict, Field
from enum import Enum
from typing import Optional


class UserRoleEnum(str, Enum):
    borrower = "borrower"
    manager = "manager"
    admin = "admin"


class UserSignIn(BaseModel):
    """Profile sent by the web client on every sign-in; extra fields are kept."""
    model_config = ConfigDict(extra="allow")

    email: str = Field(..., min_length=1, description="Email address of the user")
    role: Optional[str] = Field(None, description="Role to use when the user is created")
