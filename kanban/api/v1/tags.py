"""Tag endpoints"""
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from kanban.database import get_db
from kanban.dependencies import Principal, ensure_admin, get_current_principal
from kanban.errors import Conflict, NotFound
from kanban.models import Tag
from kanban.schemas import TagCreate, TagResponse
from kanban.services.access import ensure_project_access, get_project

router = APIRouter()

PRIORITY_TAG_NAME = "Priority"
PRIORITY_TAG_COLOR = "#EF4444"


@router.get("/projects/{project_id}/tags", response_model=List[TagResponse])
def list_tags(
    project_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    ensure_project_access(db, project_id, principal)
    return db.query(Tag).filter(Tag.project_id == project_id).order_by(Tag.name.asc()).all()


@router.post("/projects/{project_id}/tags", response_model=TagResponse, status_code=status.HTTP_201_CREATED)
def create_tag(
    project_id: int,
    tag_in: TagCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    ensure_admin(principal)
    get_project(db, project_id)

    name = tag_in.name.strip()
    existing = db.query(Tag).filter(Tag.project_id == project_id, Tag.name == name).first()
    if existing:
        raise Conflict(f'A tag named "{name}" already exists in this project.')

    tag = Tag(name=name, color=tag_in.color, project_id=project_id)
    db.add(tag)
    db.commit()
    db.refresh(tag)
    return tag


@router.post(
    "/projects/{project_id}/tags/priority", response_model=TagResponse, status_code=status.HTTP_201_CREATED
)
def create_priority_tag(
    project_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Seed the project's priority tag; any project member may do it once."""
    ensure_project_access(db, project_id, principal)

    existing = db.query(Tag).filter(Tag.project_id == project_id, Tag.name == PRIORITY_TAG_NAME).first()
    if existing:
        raise Conflict("Priority tag already exists for this project")

    tag = Tag(name=PRIORITY_TAG_NAME, color=PRIORITY_TAG_COLOR, project_id=project_id)
    db.add(tag)
    db.commit()
    db.refresh(tag)
    return tag


@router.delete("/tags/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_tag(
    tag_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    ensure_admin(principal)
    tag = db.query(Tag).filter(Tag.id == tag_id).first()
    if not tag:
        raise NotFound("Tag not found")
    db.delete(tag)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
