"""Card comment endpoints"""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session, selectinload

from kanban.database import get_db
from kanban.dependencies import Principal, get_current_principal
from kanban.errors import ValidationFailed
from kanban.models import Comment
from kanban.schemas import CommentCreate, CommentResponse
from kanban.services.access import ensure_project_access
from kanban.services.todo import get_todo

router = APIRouter()


def _comment_query(db: Session):
    return db.query(Comment).options(selectinload(Comment.author))


@router.get("/todo/{todo_id}/comments", response_model=List[CommentResponse])
def list_comments(
    todo_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Return a card's comments, oldest first."""
    todo = get_todo(db, todo_id)
    ensure_project_access(db, todo.project_id, principal)
    return (
        _comment_query(db)
        .filter(Comment.todo_id == todo.id)
        .order_by(Comment.created_at.asc(), Comment.id.asc())
        .all()
    )


@router.post("/todo/{todo_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
def create_comment(
    todo_id: int,
    comment_in: CommentCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    todo = get_todo(db, todo_id)
    ensure_project_access(db, todo.project_id, principal)

    content = comment_in.content.strip()
    if not content:
        raise ValidationFailed("Comment content cannot be empty")

    comment = Comment(todo_id=todo.id, author_id=principal.id, content=content)
    db.add(comment)
    db.commit()
    return _comment_query(db).filter(Comment.id == comment.id).first()
