"""Schemas for cards (todos)"""
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from kanban.schemas.base import CamelModel
from kanban.schemas.column import ColumnSummary
from kanban.schemas.project import ProjectSummary
from kanban.schemas.user import UserSummary


class TodoCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    column_id: int
    project_id: Optional[int] = None
    order: Optional[int] = Field(None, ge=0)
    deadline: datetime
    assigned_to_ids: List[int] = Field(..., min_length=1)
    tag_ids: List[int] = Field(default_factory=list)
    labels: List[str] = Field(default_factory=list)
    parent_id: Optional[int] = None
    linked_card_ids: List[int] = Field(default_factory=list)
    reference_document: Optional[str] = Field(None, max_length=500)


class TodoUpdate(CamelModel):
    """Edit and/or move a card; only the fields present are applied."""

    id: int
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    column_id: Optional[int] = None
    project_id: Optional[int] = None
    order: Optional[int] = Field(None, ge=0)
    deadline: Optional[datetime] = None
    assigned_to_ids: Optional[List[int]] = None
    tag_ids: Optional[List[int]] = None
    labels: Optional[List[str]] = None
    parent_id: Optional[int] = None
    linked_card_ids: Optional[List[int]] = None
    reference_document: Optional[str] = Field(None, max_length=500)


class TodoArchive(CamelModel):
    id: int


class TodoSummary(CamelModel):
    id: int
    title: str


class MovementResponse(CamelModel):
    id: int
    moved_at: datetime
    moved_by: UserSummary
    from_column: Optional[ColumnSummary] = None
    to_column: Optional[ColumnSummary] = None


class TodoResponse(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    project_id: int
    column_id: Optional[int] = None
    order: int
    owner_id: int
    assigned_to_ids: List[int]
    tag_ids: List[int]
    labels: List[str]
    linked_card_ids: List[int]
    deadline: Optional[datetime] = None
    reference_document: Optional[str] = None
    is_deleted: bool
    parent_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    project: ProjectSummary
    column: Optional[ColumnSummary] = None
    owner: UserSummary
    assigned_to: List[UserSummary] = Field(default_factory=list)
    linked_cards: List[TodoSummary] = Field(default_factory=list)
    parent: Optional[TodoSummary] = None
    children: List[TodoSummary] = Field(default_factory=list)
    movements: List[MovementResponse] = Field(default_factory=list)


class TodoPage(CamelModel):
    todos: List[TodoResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class AvailableMovements(CamelModel):
    todo_id: int
    from_column: Optional[str] = None
    targets: List[ColumnSummary]
