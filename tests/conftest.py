from datetime import datetime
from typing import Iterable, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from kanban.auth import get_password_hash
from kanban.database import Base, get_db
from kanban.dependencies import Principal, issue_token
from kanban.main import app
from kanban.models import Project, ProjectColumn, ProjectMember, Todo, User, UserRole, UserType

TEST_DATABASE_URL = "sqlite://"
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def db_session() -> Session:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db_session: Session):
    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session: Session):
    def _make_user(email: str, role: UserRole = UserRole.USER, user_type: UserType = UserType.CONTRACTOR,
                   projects: Iterable[Project] = (), password: str = "secret123") -> User:
        user = User(
            email=email,
            name=email.split("@")[0],
            password_hash=get_password_hash(password),
            role=role,
            user_type=user_type,
        )
        db_session.add(user)
        db_session.flush()
        for project in projects:
            db_session.add(ProjectMember(project_id=project.id, user_id=user.id))
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def admin(make_user) -> User:
    return make_user("admin@example.com", role=UserRole.ADMIN, user_type=UserType.STAFF)


@pytest.fixture
def admin_principal(admin: User) -> Principal:
    return Principal.from_user(admin)


@pytest.fixture
def make_project(db_session: Session):
    def _make_project(name: str = "Board", columns: Iterable[str] = ("Backlog", "Doing")) -> Project:
        project = Project(name=name, description=f"{name} project")
        db_session.add(project)
        db_session.flush()
        for index, column_name in enumerate(columns):
            db_session.add(ProjectColumn(name=column_name, order=index, project_id=project.id))
        db_session.commit()
        db_session.refresh(project)
        return project

    return _make_project


@pytest.fixture
def make_card(db_session: Session):
    def _make_card(column: ProjectColumn, title: str, owner: User, order: Optional[int] = None, **fields) -> Todo:
        if order is None:
            order = (
                db_session.query(Todo)
                .filter(Todo.column_id == column.id, Todo.is_deleted.is_(False))
                .count()
            )
        card = Todo(
            title=title,
            project_id=column.project_id,
            column_id=column.id,
            order=order,
            owner_id=owner.id,
            assigned_to_ids=fields.pop("assigned_to_ids", [owner.id]),
            tag_ids=fields.pop("tag_ids", []),
            labels=fields.pop("labels", []),
            linked_card_ids=fields.pop("linked_card_ids", []),
            deadline=fields.pop("deadline", datetime(2030, 1, 1)),
            **fields,
        )
        db_session.add(card)
        db_session.commit()
        db_session.refresh(card)
        return card

    return _make_card


@pytest.fixture
def column_named(db_session: Session):
    def _column_named(project: Project, name: str) -> ProjectColumn:
        return (
            db_session.query(ProjectColumn)
            .filter(ProjectColumn.project_id == project.id, ProjectColumn.name == name)
            .one()
        )

    return _column_named


@pytest.fixture
def board_state(db_session: Session):
    """Titles and orders of a column's live cards, in display order."""

    def _board_state(column: ProjectColumn):
        db_session.expire_all()
        cards = (
            db_session.query(Todo)
            .filter(Todo.column_id == column.id, Todo.is_deleted.is_(False))
            .order_by(Todo.order.asc(), Todo.id.asc())
            .all()
        )
        return [(card.title, card.order) for card in cards]

    return _board_state


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {issue_token(user)}"}


@pytest.fixture
def headers_for():
    return auth_headers
