"""Project access rules for authenticated principals."""
from typing import List, Optional

from sqlalchemy.orm import Session

from kanban.dependencies import Principal
from kanban.errors import Forbidden, NotFound
from kanban.models import Project, ProjectMember


def get_project(db: Session, project_id: int) -> Project:
    project = db.query(Project).filter(Project.id == project_id).first()
    if not project:
        raise NotFound(f"Project with ID {project_id} not found.")
    return project


def accessible_project_ids(db: Session, principal: Principal) -> Optional[List[int]]:
    """Project ids visible to ``principal``; ``None`` means every project."""
    if principal.is_admin:
        return None
    rows = db.query(ProjectMember.project_id).filter(ProjectMember.user_id == principal.id).all()
    return [row[0] for row in rows]


def ensure_project_access(db: Session, project_id: int, principal: Principal) -> Project:
    project = get_project(db, project_id)
    if principal.is_admin:
        return project

    membership = db.query(ProjectMember).filter(
        ProjectMember.project_id == project.id,
        ProjectMember.user_id == principal.id,
    ).first()
    if membership is None:
        raise Forbidden("Forbidden: No access to this project")
    return project
