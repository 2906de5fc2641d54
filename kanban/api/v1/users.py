"""User administration endpoints"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from kanban.database import get_db
from kanban.dependencies import Principal, ensure_admin, get_current_principal
from kanban.errors import NotFound, ValidationFailed
from kanban.models import Project, ProjectMember, User
from kanban.schemas import UserResponse, UserUpdate

router = APIRouter()


def serialize_user(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        user_type=user.user_type,
        is_active=user.is_active,
        created_at=user.created_at,
        project_ids=sorted(membership.project_id for membership in user.project_memberships),
    )


@router.get("", response_model=List[UserResponse])
def list_users(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    ensure_admin(principal)
    users = db.query(User).order_by(User.name.asc(), User.email.asc()).all()
    return [serialize_user(user) for user in users]


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    user_update: UserUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Change a user's role, type or project memberships."""
    ensure_admin(principal)
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("User not found")

    update_data = user_update.model_dump(exclude_unset=True)
    project_ids = update_data.pop("project_ids", None)

    for field, value in update_data.items():
        if value is not None:
            setattr(user, field, value)

    if project_ids is not None:
        wanted = set(project_ids)
        found = {row[0] for row in db.query(Project.id).filter(Project.id.in_(wanted)).all()}
        if found != wanted:
            raise ValidationFailed("One or more project IDs are invalid")
        user.project_memberships = [
            membership for membership in user.project_memberships if membership.project_id in wanted
        ]
        current = {membership.project_id for membership in user.project_memberships}
        for project_id in sorted(wanted - current):
            user.project_memberships.append(ProjectMember(project_id=project_id))

    db.commit()
    db.refresh(user)
    return serialize_user(user)
