"""Authentication endpoints"""
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from kanban import auth
from kanban.database import get_db
from kanban.dependencies import Principal, get_current_principal, issue_token
from kanban.errors import Conflict, NotFound, Unauthorized
from kanban.models import User, UserRole, UserType
from kanban.schemas import Token, UserLogin, UserRegister, UserResponse
from kanban.api.v1.users import serialize_user

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(user_in: UserRegister, db: Session = Depends(get_db)):
    """Create an account; the very first account becomes an admin."""
    if db.query(User).filter(User.email == user_in.email).first():
        raise Conflict("Email already registered")

    is_first_user = db.query(func.count(User.id)).scalar() == 0
    user = User(
        email=user_in.email,
        name=user_in.name,
        password_hash=auth.get_password_hash(user_in.password),
        role=UserRole.ADMIN if is_first_user else UserRole.USER,
        user_type=UserType.STAFF if is_first_user else UserType.CONTRACTOR,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s (%s)", user.id, user.role.value)
    return serialize_user(user)


@router.post("/login", response_model=Token)
def login(credentials: UserLogin, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == credentials.email).first()
    if not user or not auth.verify_password(credentials.password, user.password_hash):
        raise Unauthorized("Invalid credentials")
    if not user.is_active:
        raise Unauthorized("Account is disabled")
    return Token(access_token=issue_token(user))


@router.get("/me", response_model=UserResponse)
def read_current_user(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    user = db.query(User).filter(User.id == principal.id).first()
    if not user:
        raise NotFound("User not found")
    return serialize_user(user)
