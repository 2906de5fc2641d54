"""Schemas for project columns"""
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from kanban.schemas.base import CamelModel


class ColumnCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    order: int = Field(..., ge=0)


class ColumnUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    order: Optional[int] = Field(None, ge=0)


class ColumnReorder(CamelModel):
    ordered_column_ids: List[int]


class ColumnSummary(CamelModel):
    id: int
    name: str
    order: int


class ColumnResponse(ColumnSummary):
    project_id: int
    created_at: datetime
    updated_at: datetime


class ColumnValidation(CamelModel):
    can_create_column: bool
    reason: str
    has_backlog: bool
    is_admin: bool
    total_columns: int
