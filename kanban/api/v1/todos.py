"""Card (todo) endpoints"""
import math
from datetime import date
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from kanban.config import settings
from kanban.database import get_db
from kanban.dependencies import Principal, ensure_admin, get_current_principal
from kanban.errors import ValidationFailed
from kanban.models import Todo, User
from kanban.schemas import (
    AvailableMovements,
    ColumnSummary,
    MovementResponse,
    ProjectSummary,
    TodoArchive,
    TodoCreate,
    TodoPage,
    TodoResponse,
    TodoSummary,
    TodoUpdate,
    UserSummary,
)
from kanban.services import todo as todo_service
from kanban.services.access import ensure_project_access

router = APIRouter()


def _parse_ids(raw: Optional[str]) -> List[int]:
    if not raw:
        return []
    try:
        return [int(part) for part in raw.split(",") if part.strip()]
    except ValueError as exc:
        raise ValidationFailed(f"Invalid id list: {raw}") from exc


def _selected_project(raw: Optional[str]) -> Optional[int]:
    """``None`` and ``"all"`` select every accessible project."""
    if not raw or raw == "all":
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ValidationFailed(f"Invalid project ID: {raw}") from exc


def _serialize_todos(db: Session, todos: List[Todo]) -> List[TodoResponse]:
    """Build responses, resolving the id-list references in two batched queries."""
    user_ids = {user_id for todo in todos for user_id in todo.assigned_to_ids or ()}
    card_ids = {card_id for todo in todos for card_id in todo.linked_card_ids or ()}

    users: Dict[int, User] = {}
    if user_ids:
        users = {user.id: user for user in db.query(User).filter(User.id.in_(user_ids)).all()}
    cards: Dict[int, Todo] = {}
    if card_ids:
        cards = {card.id: card for card in db.query(Todo).filter(Todo.id.in_(card_ids)).all()}

    return [
        TodoResponse(
            id=todo.id,
            title=todo.title,
            description=todo.description,
            project_id=todo.project_id,
            column_id=todo.column_id,
            order=todo.order,
            owner_id=todo.owner_id,
            assigned_to_ids=list(todo.assigned_to_ids or []),
            tag_ids=list(todo.tag_ids or []),
            labels=list(todo.labels or []),
            linked_card_ids=list(todo.linked_card_ids or []),
            deadline=todo.deadline,
            reference_document=todo.reference_document,
            is_deleted=todo.is_deleted,
            parent_id=todo.parent_id,
            created_at=todo.created_at,
            updated_at=todo.updated_at,
            project=ProjectSummary.model_validate(todo.project),
            column=ColumnSummary.model_validate(todo.column) if todo.column else None,
            owner=UserSummary.model_validate(todo.owner),
            assigned_to=[UserSummary.model_validate(users[i]) for i in todo.assigned_to_ids or () if i in users],
            linked_cards=[TodoSummary.model_validate(cards[i]) for i in todo.linked_card_ids or () if i in cards],
            parent=TodoSummary.model_validate(todo.parent) if todo.parent else None,
            children=[TodoSummary.model_validate(child) for child in todo.children],
            movements=[MovementResponse.model_validate(movement) for movement in todo.movements],
        )
        for todo in todos
    ]


def serialize_todo(db: Session, todo: Todo) -> TodoResponse:
    return _serialize_todos(db, [todo])[0]


@router.get("", response_model=List[TodoResponse])
def list_todos(
    view: Optional[str] = Query(None, description='"mine" restricts to cards the caller owns'),
    project_id: Optional[str] = Query(None, alias="projectId"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """List non-deleted cards sorted by column and order."""
    selected = _selected_project(project_id)
    return _serialize_todos(db, todo_service.list_todos(db, principal, selected, view))


@router.get("/filter", response_model=TodoPage)
def filter_todos(
    project_id: Optional[str] = Query(None, alias="projectId"),
    tag_ids: Optional[str] = Query(None, alias="tagIds"),
    assigned_to_ids: Optional[str] = Query(None, alias="assignedToIds"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    view: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    selected = _selected_project(project_id)
    todos, total = todo_service.filter_todos(
        db,
        principal,
        project_id=selected,
        tag_ids=_parse_ids(tag_ids),
        assigned_to_ids=_parse_ids(assigned_to_ids),
        start_date=start_date,
        end_date=end_date,
        view=view,
        page=page,
        limit=limit,
    )
    return TodoPage(
        todos=_serialize_todos(db, todos),
        total=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit),
    )


@router.post("", response_model=TodoResponse, status_code=status.HTTP_201_CREATED)
def create_todo(
    todo_in: TodoCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return serialize_todo(db, todo_service.create_todo(db, todo_in, principal))


@router.put("", response_model=TodoResponse)
def update_todo(
    todo_update: TodoUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Edit a card; ``columnId``/``order``/``projectId`` move it on the board."""
    return serialize_todo(db, todo_service.update_todo(db, todo_update, principal))


@router.patch("/archive", response_model=TodoResponse)
def archive_todo(
    archive_in: TodoArchive,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return serialize_todo(db, todo_service.archive_todo(db, archive_in.id, principal))


@router.get("/{todo_id}", response_model=TodoResponse)
def read_todo(
    todo_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    todo = todo_service.get_todo(db, todo_id)
    ensure_project_access(db, todo.project_id, principal)
    return serialize_todo(db, todo)


@router.get("/{todo_id}/movements/available", response_model=AvailableMovements)
def read_available_movements(
    todo_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Columns the caller may move the card to under the workflow rules."""
    todo = todo_service.get_todo(db, todo_id)
    ensure_project_access(db, todo.project_id, principal)
    targets = todo_service.available_targets(db, todo, principal)
    return AvailableMovements(
        todo_id=todo.id,
        from_column=todo.column.name if todo.column else None,
        targets=[ColumnSummary.model_validate(column) for column in targets],
    )


@router.delete("/{todo_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_todo(
    todo_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    todo_service.delete_todo(db, todo_id, principal)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


compact_router = APIRouter()


@compact_router.post("/project-columns/{column_id}/compact", response_model=List[TodoResponse])
def compact_column(
    column_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Repair a column whose card orders drifted from ``0..N-1``."""
    ensure_admin(principal)
    return _serialize_todos(db, todo_service.compact_column(db, column_id))
