"""Card (todo) service: creation, editing, moves and soft deletion.

Within a (project, column) pair the non-deleted cards' ``order`` values form
a dense ``0..N-1`` sequence. A move removes the card from its source
sequence (closing the gap) and inserts it into the destination sequence
(opening a slot), inside a single transaction. Sibling rows are locked with
``SELECT ... FOR UPDATE`` first, which serializes concurrent moves on
databases with row locks; readers always sort by ``(order, id)``.
"""
import logging
from datetime import date, datetime, time
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from kanban.dependencies import Principal
from kanban.errors import Forbidden, NotFound, OperationFailed, ValidationFailed
from kanban.models import ProjectColumn, Tag, Todo, TodoMovement, User
from kanban.ordering import clamp_order
from kanban.permissions import available_movements, can_create_task_in_column, can_move_card
from kanban.schemas import TodoCreate, TodoUpdate
from kanban.services.access import accessible_project_ids, ensure_project_access

logger = logging.getLogger(__name__)

MOVE_FIELDS = ("column_id", "order", "project_id")
NULLABLE_FIELDS = ("description", "deadline", "parent_id", "reference_document")


def _siblings(db: Session, project_id: int, column_id: Optional[int]) -> Query:
    """Non-deleted cards sharing a (project, column) order sequence."""
    query = db.query(Todo).filter(Todo.project_id == project_id, Todo.is_deleted.is_(False))
    if column_id is None:
        return query.filter(Todo.column_id.is_(None))
    return query.filter(Todo.column_id == column_id)


def _lock_siblings(db: Session, project_id: int, column_id: Optional[int]) -> None:
    _siblings(db, project_id, column_id).with_for_update().all()


def _close_gap(db: Session, todo: Todo) -> None:
    """Pull the cards after ``todo`` one slot up in its current column."""
    _siblings(db, todo.project_id, todo.column_id).filter(
        Todo.id != todo.id,
        Todo.order > todo.order,
    ).update({Todo.order: Todo.order - 1}, synchronize_session="fetch")


def _open_slot(db: Session, project_id: int, column_id: int, order: int, exclude_id: Optional[int] = None) -> None:
    query = _siblings(db, project_id, column_id).filter(Todo.order >= order)
    if exclude_id is not None:
        query = query.filter(Todo.id != exclude_id)
    query.update({Todo.order: Todo.order + 1}, synchronize_session="fetch")


def _slot_count(db: Session, project_id: int, column_id: int, exclude_id: Optional[int] = None) -> int:
    query = _siblings(db, project_id, column_id)
    if exclude_id is not None:
        query = query.filter(Todo.id != exclude_id)
    return query.count()


def get_todo(db: Session, todo_id: int) -> Todo:
    todo = db.query(Todo).filter(Todo.id == todo_id).first()
    if not todo:
        raise NotFound("Task not found")
    return todo


def _get_column(db: Session, column_id: int) -> ProjectColumn:
    column = db.query(ProjectColumn).filter(ProjectColumn.id == column_id).first()
    if not column:
        raise NotFound(f"Column with ID {column_id} not found.")
    return column


def _validate_users(db: Session, user_ids: Iterable[int]) -> None:
    wanted = set(user_ids)
    if not wanted:
        return
    found = {row[0] for row in db.query(User.id).filter(User.id.in_(wanted)).all()}
    if found != wanted:
        raise ValidationFailed("One or more assigned user IDs are invalid")


def _validate_tags(db: Session, project_id: int, tag_ids: Iterable[int]) -> None:
    wanted = set(tag_ids)
    if not wanted:
        return
    found = {
        row[0]
        for row in db.query(Tag.id).filter(Tag.id.in_(wanted), Tag.project_id == project_id).all()
    }
    if found != wanted:
        raise ValidationFailed("One or more tags do not belong to the project")


def _validate_linked_cards(db: Session, card_ids: Iterable[int], todo_id: Optional[int] = None) -> None:
    wanted = set(card_ids)
    if todo_id is not None and todo_id in wanted:
        raise ValidationFailed("A card cannot be linked to itself")
    if not wanted:
        return
    found = {row[0] for row in db.query(Todo.id).filter(Todo.id.in_(wanted)).all()}
    if found != wanted:
        raise ValidationFailed("One or more linked card IDs are invalid")


def _validate_parent(db: Session, parent_id: Optional[int], todo: Optional[Todo] = None) -> None:
    """Parents are one level deep: a parent has no parent, a child has no children."""
    if parent_id is None:
        return
    if todo is not None and parent_id == todo.id:
        raise ValidationFailed("A card cannot be its own parent")
    parent = db.query(Todo).filter(Todo.id == parent_id).first()
    if parent is None:
        raise ValidationFailed("Parent card not found")
    if parent.parent_id is not None:
        raise ValidationFailed("The parent card is itself a sub-card")
    if todo is not None and todo.children:
        raise ValidationFailed("A card with sub-cards cannot have a parent")


def _check_transition(db: Session, todo: Todo, destination: ProjectColumn, principal: Principal) -> None:
    if principal.is_admin or todo.column_id is None or todo.column_id == destination.id:
        return
    source = _get_column(db, todo.column_id)
    result = can_move_card(source.name, destination.name, principal.user_type)
    if not result.allowed:
        raise Forbidden(result.error)


def _resolve_move(db: Session, todo: Todo, fields: Dict[str, Any],
                  principal: Principal) -> Tuple[ProjectColumn, Optional[int]]:
    """Validate a move request before anything is written."""
    column_id = fields.get("column_id") or todo.column_id
    if column_id is None:
        raise ValidationFailed("A destination column is required")

    destination = _get_column(db, column_id)
    project_id = fields.get("project_id")
    if project_id is not None and project_id != destination.project_id:
        raise ValidationFailed("Column does not belong to the specified project")

    if destination.project_id != todo.project_id:
        ensure_project_access(db, destination.project_id, principal)
    _check_transition(db, todo, destination, principal)
    return destination, fields.get("order")


def _apply_move(db: Session, todo: Todo, destination: ProjectColumn, order: Optional[int],
                moved_by_id: int) -> None:
    """Relocate ``todo`` and shift its siblings; the caller commits."""
    source_column_id = todo.column_id

    _lock_siblings(db, todo.project_id, todo.column_id)
    if (destination.project_id, destination.id) != (todo.project_id, todo.column_id):
        _lock_siblings(db, destination.project_id, destination.id)

    _close_gap(db, todo)

    size = _slot_count(db, destination.project_id, destination.id, exclude_id=todo.id)
    position = clamp_order(order, size)
    _open_slot(db, destination.project_id, destination.id, position, exclude_id=todo.id)

    todo.column_id = destination.id
    todo.project_id = destination.project_id
    todo.order = position

    if source_column_id != destination.id:
        db.add(TodoMovement(
            todo_id=todo.id,
            moved_by_id=moved_by_id,
            from_column_id=source_column_id,
            to_column_id=destination.id,
        ))


def move_todo(db: Session, todo_id: int, column_id: int, order: Optional[int], principal: Principal) -> Todo:
    """Move a card to ``column_id`` at ``order`` (appended when ``None``)."""
    return update_todo(db, TodoUpdate(id=todo_id, column_id=column_id, order=order), principal)


def create_todo(db: Session, todo_in: TodoCreate, principal: Principal) -> Todo:
    column = _get_column(db, todo_in.column_id)
    if todo_in.project_id is not None and todo_in.project_id != column.project_id:
        raise ValidationFailed("Column does not belong to the specified project")

    ensure_project_access(db, column.project_id, principal)
    if not principal.is_admin and not can_create_task_in_column(column.name):
        raise Forbidden("Cards can only be created in the Backlog column")

    _validate_users(db, todo_in.assigned_to_ids)
    _validate_tags(db, column.project_id, todo_in.tag_ids)
    _validate_parent(db, todo_in.parent_id)
    _validate_linked_cards(db, todo_in.linked_card_ids)

    try:
        _lock_siblings(db, column.project_id, column.id)
        position = clamp_order(todo_in.order, _slot_count(db, column.project_id, column.id))
        _open_slot(db, column.project_id, column.id, position)
        todo = Todo(
            title=todo_in.title,
            description=todo_in.description,
            project_id=column.project_id,
            column_id=column.id,
            order=position,
            owner_id=principal.id,
            assigned_to_ids=list(todo_in.assigned_to_ids),
            tag_ids=list(todo_in.tag_ids),
            labels=list(todo_in.labels),
            linked_card_ids=list(todo_in.linked_card_ids),
            deadline=todo_in.deadline,
            reference_document=todo_in.reference_document,
            parent_id=todo_in.parent_id,
        )
        db.add(todo)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Error creating card in column %s", column.id)
        raise OperationFailed("Failed to create card. Please try again.") from exc

    db.refresh(todo)
    return todo


def update_todo(db: Session, todo_update: TodoUpdate, principal: Principal) -> Todo:
    """Apply edits and, when column/order/project are given, move the card."""
    data = todo_update.model_dump(exclude_unset=True)
    todo = get_todo(db, data.pop("id"))
    if todo.is_deleted:
        raise NotFound("Task not found")
    ensure_project_access(db, todo.project_id, principal)

    move_fields = {field: data.pop(field) for field in MOVE_FIELDS if field in data}
    # Explicit nulls only clear the fields that may be empty
    data = {field: value for field, value in data.items() if value is not None or field in NULLABLE_FIELDS}

    destination = None
    if any(value is not None for value in move_fields.values()):
        destination, order = _resolve_move(db, todo, move_fields, principal)

    project_id = destination.project_id if destination is not None else todo.project_id
    _validate_users(db, data.get("assigned_to_ids", ()))
    _validate_tags(db, project_id, data.get("tag_ids", ()))
    _validate_linked_cards(db, data.get("linked_card_ids", ()), todo.id)
    if "parent_id" in data:
        _validate_parent(db, data["parent_id"], todo)

    try:
        if destination is not None:
            _apply_move(db, todo, destination, order, principal.id)
        for field, value in data.items():
            setattr(todo, field, value)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Error updating card %s", todo.id)
        raise OperationFailed("Failed to update card. Please try again.") from exc

    db.refresh(todo)
    return todo


def _ensure_can_remove(todo: Todo, principal: Principal) -> None:
    if not principal.is_admin and todo.owner_id != principal.id:
        raise Forbidden("Only the owner or an admin can remove this card")


def archive_todo(db: Session, todo_id: int, principal: Principal) -> Todo:
    """Soft delete a card and compact the column it leaves."""
    todo = get_todo(db, todo_id)
    if todo.is_deleted:
        raise NotFound("Task not found")
    ensure_project_access(db, todo.project_id, principal)
    _ensure_can_remove(todo, principal)

    try:
        _lock_siblings(db, todo.project_id, todo.column_id)
        _close_gap(db, todo)
        todo.is_deleted = True
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Error archiving card %s", todo_id)
        raise OperationFailed("Failed to archive card. Please try again.") from exc

    db.refresh(todo)
    return todo


def delete_todo(db: Session, todo_id: int, principal: Principal) -> None:
    todo = get_todo(db, todo_id)
    ensure_project_access(db, todo.project_id, principal)
    _ensure_can_remove(todo, principal)

    try:
        if not todo.is_deleted:
            _lock_siblings(db, todo.project_id, todo.column_id)
            _close_gap(db, todo)
        for child in todo.children:
            child.parent_id = None
        db.delete(todo)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Error deleting card %s", todo_id)
        raise OperationFailed("Failed to delete card. Please try again.") from exc


def compact_column(db: Session, column_id: int) -> List[Todo]:
    """Rewrite a column's card orders as ``0..N-1`` following the current sort."""
    column = _get_column(db, column_id)
    try:
        _lock_siblings(db, column.project_id, column.id)
        cards = _siblings(db, column.project_id, column.id).order_by(Todo.order.asc(), Todo.id.asc()).all()
        for index, card in enumerate(cards):
            card.order = index
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Error compacting column %s", column_id)
        raise OperationFailed("Failed to compact column. Please try again.") from exc

    return _siblings(db, column.project_id, column.id).order_by(Todo.order.asc(), Todo.id.asc()).all()


def _visible_todos(db: Session, principal: Principal, project_id: Optional[int], view: Optional[str]) -> Query:
    query = db.query(Todo).filter(Todo.is_deleted.is_(False))
    if project_id is not None:
        ensure_project_access(db, project_id, principal)
        query = query.filter(Todo.project_id == project_id)
    else:
        allowed = accessible_project_ids(db, principal)
        if allowed is not None:
            query = query.filter(Todo.project_id.in_(allowed))
    if view == "mine":
        query = query.filter(Todo.owner_id == principal.id)
    return query.order_by(Todo.project_id.asc(), Todo.column_id.asc(), Todo.order.asc(), Todo.id.asc())


def list_todos(db: Session, principal: Principal, project_id: Optional[int] = None,
               view: Optional[str] = None) -> List[Todo]:
    return _visible_todos(db, principal, project_id, view).all()


def _end_of_day(value: date) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.max)


def _start_of_day(value: date) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def filter_todos(
    db: Session,
    principal: Principal,
    project_id: Optional[int] = None,
    tag_ids: Iterable[int] = (),
    assigned_to_ids: Iterable[int] = (),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    view: Optional[str] = None,
    page: int = 1,
    limit: int = 50,
) -> Tuple[List[Todo], int]:
    """Return one page of matching cards and the total number of matches.

    Tag and assignee filters match cards carrying any of the given ids.
    """
    query = _visible_todos(db, principal, project_id, view)
    if start_date is not None:
        query = query.filter(Todo.deadline >= _start_of_day(start_date))
    if end_date is not None:
        query = query.filter(Todo.deadline <= _end_of_day(end_date))

    todos = query.all()
    wanted_tags, wanted_users = set(tag_ids), set(assigned_to_ids)
    if wanted_tags:
        todos = [todo for todo in todos if wanted_tags.intersection(todo.tag_ids or ())]
    if wanted_users:
        todos = [todo for todo in todos if wanted_users.intersection(todo.assigned_to_ids or ())]

    skip = (page - 1) * limit
    return todos[skip:skip + limit], len(todos)


def available_targets(db: Session, todo: Todo, principal: Principal) -> List[ProjectColumn]:
    """Columns of the card's project it may be moved to by ``principal``."""
    columns = (
        db.query(ProjectColumn)
        .filter(ProjectColumn.project_id == todo.project_id, ProjectColumn.id != todo.column_id)
        .order_by(ProjectColumn.order.asc())
        .all()
    )
    if principal.is_admin or todo.column is None:
        return columns
    names = set(available_movements(todo.column.name, principal.user_type))
    return [column for column in columns if column.name in names]

