"""Version 1 of the HTTP API."""
from fastapi import APIRouter

from kanban.api.v1 import auth, columns, comments, projects, tags, todos, users

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
api_router.include_router(columns.router, tags=["columns"])
api_router.include_router(tags.router, tags=["tags"])
api_router.include_router(todos.router, prefix="/todo", tags=["todo"])
api_router.include_router(todos.compact_router, tags=["columns"])
api_router.include_router(comments.router, tags=["comments"])
