"""Schemas for projects"""
from datetime import datetime
from typing import Optional

from pydantic import Field

from kanban.schemas.base import CamelModel


class ProjectCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None


class ProjectUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None


class ProjectSummary(CamelModel):
    id: int
    name: str


class ProjectResponse(ProjectSummary):
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime
