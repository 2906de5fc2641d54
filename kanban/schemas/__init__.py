"""
Pydantic schemas for request/response validation
"""
from kanban.schemas.user import UserRegister, UserLogin, Token, UserSummary, UserResponse, UserUpdate
from kanban.schemas.project import ProjectCreate, ProjectUpdate, ProjectSummary, ProjectResponse
from kanban.schemas.column import (
    ColumnCreate,
    ColumnUpdate,
    ColumnReorder,
    ColumnSummary,
    ColumnResponse,
    ColumnValidation,
)
from kanban.schemas.todo import (
    TodoCreate,
    TodoUpdate,
    TodoArchive,
    TodoSummary,
    TodoResponse,
    TodoPage,
    MovementResponse,
    AvailableMovements,
)
from kanban.schemas.tag import TagCreate, TagResponse
from kanban.schemas.comment import CommentCreate, CommentResponse

__all__ = [
    "UserRegister",
    "UserLogin",
    "Token",
    "UserSummary",
    "UserResponse",
    "UserUpdate",
    "ProjectCreate",
    "ProjectUpdate",
    "ProjectSummary",
    "ProjectResponse",
    "ColumnCreate",
    "ColumnUpdate",
    "ColumnReorder",
    "ColumnSummary",
    "ColumnResponse",
    "ColumnValidation",
    "TodoCreate",
    "TodoUpdate",
    "TodoArchive",
    "TodoSummary",
    "TodoResponse",
    "TodoPage",
    "MovementResponse",
    "AvailableMovements",
    "TagCreate",
    "TagResponse",
    "CommentCreate",
    "CommentResponse",
]
