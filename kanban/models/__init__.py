"""Kanban Database Models"""
from kanban.models.user import User, UserRole, UserType
from kanban.models.project import Project
from kanban.models.project_member import ProjectMember
from kanban.models.project_column import ProjectColumn
from kanban.models.todo import Todo
from kanban.models.todo_movement import TodoMovement
from kanban.models.tag import Tag
from kanban.models.comment import Comment

__all__ = [
    "User",
    "UserRole",
    "UserType",
    "Project",
    "ProjectMember",
    "ProjectColumn",
    "Todo",
    "TodoMovement",
    "Tag",
    "Comment",
]
