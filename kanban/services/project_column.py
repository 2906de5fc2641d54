"""Project column service: CRUD and ordering of a project's columns.

Every operation keeps a project's column ``order`` values a dense
``0..M-1`` sequence. Writes run in the request session's transaction and are
rolled back as a whole on failure.
"""
import logging
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from kanban.dependencies import Principal
from kanban.errors import Conflict, NotFound, OperationFailed, ValidationFailed
from kanban.models import ProjectColumn, Todo
from kanban.ordering import clamp_order
from kanban.permissions import BACKLOG_ORDER, DEFAULT_COLUMNS
from kanban.services.access import get_project

logger = logging.getLogger(__name__)


def get_project_columns(db: Session, project_id: int) -> List[ProjectColumn]:
    """Return the columns of a project ordered by their ``order`` field."""
    return (
        db.query(ProjectColumn)
        .filter(ProjectColumn.project_id == project_id)
        .order_by(ProjectColumn.order.asc(), ProjectColumn.id.asc())
        .all()
    )


def get_project_column(db: Session, column_id: int) -> ProjectColumn:
    column = db.query(ProjectColumn).filter(ProjectColumn.id == column_id).first()
    if not column:
        raise NotFound(f"ProjectColumn with ID {column_id} not found.")
    return column


def _column_count(db: Session, project_id: int) -> int:
    return db.query(func.count(ProjectColumn.id)).filter(ProjectColumn.project_id == project_id).scalar()


def _name_taken(db: Session, project_id: int, name: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(ProjectColumn.id).filter(
        ProjectColumn.project_id == project_id,
        ProjectColumn.name == name,
    )
    if exclude_id is not None:
        query = query.filter(ProjectColumn.id != exclude_id)
    return query.first() is not None


def _shift_columns(db: Session, project_id: int, delta: int, start: int, end: Optional[int] = None,
                   exclude_id: Optional[int] = None) -> None:
    """Add ``delta`` to the order of columns in ``start..end`` (inclusive)."""
    query = db.query(ProjectColumn).filter(
        ProjectColumn.project_id == project_id,
        ProjectColumn.order >= start,
    )
    if end is not None:
        query = query.filter(ProjectColumn.order <= end)
    if exclude_id is not None:
        query = query.filter(ProjectColumn.id != exclude_id)
    query.update({ProjectColumn.order: ProjectColumn.order + delta}, synchronize_session="fetch")


def create_project_column(db: Session, project_id: int, name: str, order: int) -> ProjectColumn:
    """Insert a column at ``order`` (clamped to the end), shifting later columns."""
    get_project(db, project_id)

    if _name_taken(db, project_id, name):
        raise Conflict(f'A column with the name "{name}" already exists in project {project_id}.')

    position = clamp_order(order, _column_count(db, project_id))
    column = ProjectColumn(name=name, order=position, project_id=project_id)
    try:
        _shift_columns(db, project_id, +1, start=position)
        db.add(column)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise Conflict(f'A column with the name "{name}" already exists in project {project_id}.') from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Error creating column %r for project %s", name, project_id)
        raise OperationFailed("Failed to create column. Please try again.") from exc

    db.refresh(column)
    logger.info("Created column %s (%r) at order %s in project %s", column.id, name, position, project_id)
    return column


def update_project_column(db: Session, column_id: int, name: Optional[str] = None,
                          order: Optional[int] = None) -> ProjectColumn:
    """Rename and/or move a column; a move shifts the columns in between by one."""
    if name is None and order is None:
        raise ValidationFailed("No data provided for update.")

    column = get_project_column(db, column_id)

    if name is not None and name != column.name and _name_taken(db, column.project_id, name, column.id):
        raise Conflict(f'A column with the name "{name}" already exists in project {column.project_id}.')

    try:
        if order is not None:
            last = _column_count(db, column.project_id) - 1
            target = clamp_order(order, last)
            if target > column.order:
                _shift_columns(db, column.project_id, -1, start=column.order + 1, end=target, exclude_id=column.id)
            elif target < column.order:
                _shift_columns(db, column.project_id, +1, start=target, end=column.order - 1, exclude_id=column.id)
            column.order = target
        if name is not None:
            column.name = name
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise Conflict(f'A column with the name "{name}" already exists in the project.') from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Error updating column %s", column_id)
        raise OperationFailed("Failed to update column. Please try again.") from exc

    db.refresh(column)
    return column


def _detach_cards(db: Session, column: ProjectColumn) -> None:
    """Move a column's cards to the end of the project's column-less sequence."""
    tail = (
        db.query(func.count(Todo.id))
        .filter(Todo.project_id == column.project_id, Todo.column_id.is_(None), Todo.is_deleted.is_(False))
        .scalar()
    )
    cards = db.query(Todo).filter(Todo.column_id == column.id).order_by(Todo.order.asc(), Todo.id.asc()).all()
    for card in cards:
        card.column = None
        if not card.is_deleted:
            card.order = tail
            tail += 1


def delete_project_column(db: Session, column_id: int) -> None:
    """Delete a column, detach its cards and close the gap in the column order."""
    column = get_project_column(db, column_id)
    project_id, removed_order = column.project_id, column.order

    try:
        _detach_cards(db, column)
        db.flush()
        db.delete(column)
        db.flush()
        _shift_columns(db, project_id, -1, start=removed_order + 1)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Error deleting column %s", column_id)
        raise OperationFailed("Failed to delete column. Please try again.") from exc

    logger.info("Deleted column %s from project %s", column_id, project_id)


def reorder_project_columns(db: Session, project_id: int, ordered_column_ids: List[int]) -> List[ProjectColumn]:
    """Rewrite every column's order to its index in ``ordered_column_ids``.

    The list must name exactly the project's columns, each once; otherwise
    nothing is written. The updates share one transaction.
    """
    get_project(db, project_id)

    columns = db.query(ProjectColumn).filter(ProjectColumn.project_id == project_id).all()
    by_id: Dict[int, ProjectColumn] = {column.id: column for column in columns}

    if len(ordered_column_ids) != len(by_id) or set(ordered_column_ids) != set(by_id):
        raise ValidationFailed("Invalid column IDs provided or mismatch in column count for the project.")

    try:
        for index, column_id in enumerate(ordered_column_ids):
            by_id[column_id].order = index
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Error during column reordering transaction for project %s", project_id)
        raise OperationFailed("Failed to reorder columns. Please try again.") from exc

    return get_project_columns(db, project_id)


def validate_column_creation(db: Session, project_id: int, principal: Principal) -> Dict[str, object]:
    """Advisory check: admins may add columns once the board has a backlog."""
    columns = get_project_columns(db, get_project(db, project_id).id)
    has_backlog = any(column.order == BACKLOG_ORDER for column in columns)

    if not principal.is_admin:
        reason = "Only administrators can create columns"
    elif not has_backlog:
        reason = "The project needs a Backlog column first"
    else:
        reason = "New columns are created after the Backlog"

    return {
        "can_create_column": principal.is_admin and has_backlog,
        "reason": reason,
        "has_backlog": has_backlog,
        "is_admin": principal.is_admin,
        "total_columns": len(columns),
    }


def bootstrap_project_columns(db: Session, project_id: int) -> List[ProjectColumn]:
    """Append any missing default workflow columns; safe to call repeatedly."""
    get_project(db, project_id)

    existing = {column.name for column in get_project_columns(db, project_id)}
    missing = [name for name in DEFAULT_COLUMNS if name not in existing]
    if missing:
        next_order = len(existing)
        try:
            for offset, name in enumerate(missing):
                db.add(ProjectColumn(name=name, order=next_order + offset, project_id=project_id))
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("Error bootstrapping columns for project %s", project_id)
            raise OperationFailed("Failed to set up project columns.") from exc
        logger.info("Bootstrapped columns %s for project %s", missing, project_id)

    return get_project_columns(db, project_id)
