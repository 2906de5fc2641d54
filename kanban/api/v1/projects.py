"""Project endpoints"""
import logging
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from kanban.database import get_db
from kanban.dependencies import Principal, ensure_admin, get_current_principal
from kanban.models import Project
from kanban.schemas import ProjectCreate, ProjectResponse, ProjectUpdate
from kanban.services.access import accessible_project_ids, get_project

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=List[ProjectResponse])
def list_projects(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Admins see every project; other users see the projects they are members of."""
    query = db.query(Project)
    allowed = accessible_project_ids(db, principal)
    if allowed is not None:
        query = query.filter(Project.id.in_(allowed))
    return query.order_by(Project.name.asc()).all()


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
def create_project(
    project_in: ProjectCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    ensure_admin(principal)
    project = Project(name=project_in.name, description=project_in.description)
    db.add(project)
    db.commit()
    db.refresh(project)
    logger.info("Created project %s (%r)", project.id, project.name)
    return project


@router.put("/{project_id}", response_model=ProjectResponse)
def update_project(
    project_id: int,
    project_update: ProjectUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    ensure_admin(principal)
    project = get_project(db, project_id)

    for field, value in project_update.model_dump(exclude_unset=True).items():
        if field == "name" and value is None:
            continue
        setattr(project, field, value)

    db.commit()
    db.refresh(project)
    return project


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(
    project_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    ensure_admin(principal)
    project = get_project(db, project_id)
    db.delete(project)
    db.commit()
    logger.info("Deleted project %s", project_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
