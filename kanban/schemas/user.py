"""Schemas for users and authentication"""
from datetime import datetime
from typing import List, Optional

from pydantic import EmailStr, Field

from kanban.models import UserRole, UserType
from kanban.schemas.base import CamelModel


class UserRegister(CamelModel):
    email: EmailStr
    name: Optional[str] = Field(None, max_length=255)
    password: str = Field(..., min_length=6)


class UserLogin(CamelModel):
    email: EmailStr
    password: str


class Token(CamelModel):
    access_token: str
    token_type: str = "bearer"


class UserSummary(CamelModel):
    id: int
    name: Optional[str] = None
    email: str


class UserResponse(UserSummary):
    role: UserRole
    user_type: UserType
    is_active: bool
    created_at: datetime
    project_ids: List[int] = Field(default_factory=list)


class UserUpdate(CamelModel):
    name: Optional[str] = Field(None, max_length=255)
    role: Optional[UserRole] = None
    user_type: Optional[UserType] = None
    is_active: Optional[bool] = None
    project_ids: Optional[List[int]] = None
