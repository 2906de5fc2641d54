"""Project column endpoints"""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from kanban.database import get_db
from kanban.dependencies import Principal, ensure_admin, get_current_principal
from kanban.schemas import ColumnCreate, ColumnReorder, ColumnResponse, ColumnUpdate, ColumnValidation
from kanban.services import project_column as column_service
from kanban.services.access import ensure_project_access

router = APIRouter()


@router.get("/projects/{project_id}/columns", response_model=List[ColumnResponse])
def list_project_columns(
    project_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Return the project's columns ordered by ``order``."""
    ensure_project_access(db, project_id, principal)
    return column_service.get_project_columns(db, project_id)


@router.post(
    "/projects/{project_id}/columns",
    response_model=ColumnResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_project_column(
    project_id: int,
    column_in: ColumnCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    ensure_admin(principal)
    return column_service.create_project_column(db, project_id, column_in.name, column_in.order)


@router.post("/projects/{project_id}/columns/reorder", response_model=List[ColumnResponse])
def reorder_project_columns(
    project_id: int,
    reorder_in: ColumnReorder,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Rewrite the column order to match ``orderedColumnIds``."""
    ensure_admin(principal)
    return column_service.reorder_project_columns(db, project_id, reorder_in.ordered_column_ids)


@router.get("/projects/{project_id}/columns/validate", response_model=ColumnValidation)
def validate_column_creation(
    project_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return ColumnValidation(**column_service.validate_column_creation(db, project_id, principal))


@router.post("/projects/{project_id}/columns/bootstrap", response_model=List[ColumnResponse])
def bootstrap_project_columns(
    project_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Create the default workflow columns the project is missing."""
    ensure_admin(principal)
    return column_service.bootstrap_project_columns(db, project_id)


@router.put("/project-columns/{column_id}", response_model=ColumnResponse)
def update_project_column(
    column_id: int,
    column_update: ColumnUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    ensure_admin(principal)
    return column_service.update_project_column(db, column_id, column_update.name, column_update.order)


@router.delete("/project-columns/{column_id}", response_model=ColumnResponse)
def delete_project_column(
    column_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Delete a column and return it as it was before deletion."""
    ensure_admin(principal)
    deleted = ColumnResponse.model_validate(column_service.get_project_column(db, column_id))
    column_service.delete_project_column(db, column_id)
    return deleted
