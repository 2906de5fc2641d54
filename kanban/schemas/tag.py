"""Schemas for tags"""
from typing import Optional

from pydantic import Field

from kanban.schemas.base import CamelModel


class TagCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: Optional[str] = Field(None, max_length=20)


class TagResponse(CamelModel):
    id: int
    name: str
    color: Optional[str] = None
    project_id: int
