"""Schemas for card comments"""
from datetime import datetime

from pydantic import Field

from kanban.schemas.base import CamelModel
from kanban.schemas.user import UserSummary


class CommentCreate(CamelModel):
    content: str = Field(..., min_length=1)


class CommentResponse(CamelModel):
    id: int
    todo_id: int
    content: str
    created_at: datetime
    author: UserSummary
