import itertools

import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from kanban.api.v1 import columns as column_routes
from kanban.dependencies import Principal
from kanban.errors import Conflict, NotFound, OperationFailed, ValidationFailed
from kanban.models import Todo
from kanban.ordering import is_dense
from kanban.permissions import DEFAULT_COLUMNS
from kanban.schemas import ColumnCreate, ColumnReorder
from kanban.services import project_column as column_service


def _layout(session: Session, project_id: int):
    session.expire_all()
    return [(column.name, column.order) for column in column_service.get_project_columns(session, project_id)]


@pytest.mark.parametrize("permutation", list(itertools.permutations(range(3))))
def test_reorder_applies_any_permutation(db_session: Session, make_project, permutation):
    project = make_project(columns=("colX", "colY", "colZ"))
    columns = column_service.get_project_columns(db_session, project.id)
    ordered_ids = [columns[index].id for index in permutation]

    result = column_service.reorder_project_columns(db_session, project.id, ordered_ids)

    assert [column.id for column in result] == ordered_ids
    assert [column.order for column in result] == [0, 1, 2]
    assert [column.id for column in column_service.get_project_columns(db_session, project.id)] == ordered_ids


def test_reorder_is_idempotent(db_session: Session, make_project):
    project = make_project(columns=("colX", "colY", "colZ"))
    x, y, z = column_service.get_project_columns(db_session, project.id)

    column_service.reorder_project_columns(db_session, project.id, [z.id, x.id, y.id])
    column_service.reorder_project_columns(db_session, project.id, [z.id, x.id, y.id])

    assert _layout(db_session, project.id) == [("colZ", 0), ("colX", 1), ("colY", 2)]


def test_reorder_with_missing_column_writes_nothing(db_session: Session, make_project):
    project = make_project(columns=("colX", "colY", "colZ"))
    x, y, _ = column_service.get_project_columns(db_session, project.id)

    with pytest.raises(ValidationFailed) as exc:
        column_service.reorder_project_columns(db_session, project.id, [y.id, x.id])
    assert exc.value.status_code == 400
    assert exc.value.detail == "Invalid column IDs provided or mismatch in column count for the project."

    assert _layout(db_session, project.id) == [("colX", 0), ("colY", 1), ("colZ", 2)]


def test_reorder_rejects_foreign_and_duplicate_ids(db_session: Session, make_project):
    project = make_project(columns=("colX", "colY"))
    other = make_project(name="Other", columns=("Elsewhere",))
    x, y = column_service.get_project_columns(db_session, project.id)
    (foreign,) = column_service.get_project_columns(db_session, other.id)

    with pytest.raises(ValidationFailed):
        column_service.reorder_project_columns(db_session, project.id, [x.id, foreign.id])
    with pytest.raises(ValidationFailed):
        column_service.reorder_project_columns(db_session, project.id, [x.id, x.id])
    with pytest.raises(ValidationFailed):
        column_service.reorder_project_columns(db_session, project.id, [x.id, y.id, y.id])

    assert _layout(db_session, project.id) == [("colX", 0), ("colY", 1)]


def test_reorder_unknown_project(db_session: Session):
    with pytest.raises(NotFound) as exc:
        column_service.reorder_project_columns(db_session, 999, [])
    assert exc.value.detail == "Project with ID 999 not found."


def test_create_column_inserts_and_shifts(db_session: Session, make_project):
    project = make_project(columns=("Backlog", "Doing", "Done"))

    column_service.create_project_column(db_session, project.id, "Review", 2)

    assert _layout(db_session, project.id) == [("Backlog", 0), ("Doing", 1), ("Review", 2), ("Done", 3)]


def test_create_column_past_end_is_appended(db_session: Session, make_project):
    project = make_project(columns=("Backlog", "Doing"))

    column = column_service.create_project_column(db_session, project.id, "Done", 40)

    assert column.order == 2
    assert is_dense(order for _, order in _layout(db_session, project.id))


def test_create_column_with_duplicate_name(db_session: Session, make_project):
    project = make_project(columns=("Backlog", "Doing"))

    with pytest.raises(Conflict) as exc:
        column_service.create_project_column(db_session, project.id, "Doing", 0)
    assert exc.value.status_code == 409
    assert exc.value.detail == f'A column with the name "Doing" already exists in project {project.id}.'
    assert _layout(db_session, project.id) == [("Backlog", 0), ("Doing", 1)]


def test_same_name_allowed_in_another_project(db_session: Session, make_project):
    make_project(columns=("Backlog", "Doing"))
    other = make_project(name="Other", columns=("Backlog",))

    column = column_service.create_project_column(db_session, other.id, "Doing", 1)
    assert column.project_id == other.id


def test_update_column_moves_forward_and_back(db_session: Session, make_project):
    project = make_project(columns=("A", "B", "C", "D"))
    a = column_service.get_project_columns(db_session, project.id)[0]

    column_service.update_project_column(db_session, a.id, order=2)
    assert _layout(db_session, project.id) == [("B", 0), ("C", 1), ("A", 2), ("D", 3)]

    column_service.update_project_column(db_session, a.id, order=0)
    assert _layout(db_session, project.id) == [("A", 0), ("B", 1), ("C", 2), ("D", 3)]

    column_service.update_project_column(db_session, a.id, order=99)
    assert _layout(db_session, project.id) == [("B", 0), ("C", 1), ("D", 2), ("A", 3)]


def test_update_column_rename(db_session: Session, make_project):
    project = make_project(columns=("A", "B"))
    a, _ = column_service.get_project_columns(db_session, project.id)

    renamed = column_service.update_project_column(db_session, a.id, name="Inbox")
    assert (renamed.name, renamed.order) == ("Inbox", 0)

    with pytest.raises(Conflict):
        column_service.update_project_column(db_session, a.id, name="B")
    with pytest.raises(ValidationFailed) as exc:
        column_service.update_project_column(db_session, a.id)
    assert exc.value.detail == "No data provided for update."


def test_update_unknown_column(db_session: Session):
    with pytest.raises(NotFound) as exc:
        column_service.update_project_column(db_session, 404, name="x")
    assert exc.value.detail == "ProjectColumn with ID 404 not found."


def test_delete_column_closes_gap_and_detaches_cards(db_session: Session, make_project, make_card, admin,
                                                     column_named):
    project = make_project(columns=("A", "B", "C"))
    b = column_named(project, "B")
    card = make_card(b, "Orphan", admin)

    column_service.delete_project_column(db_session, b.id)

    assert _layout(db_session, project.id) == [("A", 0), ("C", 1)]
    assert db_session.query(Todo).filter(Todo.id == card.id).one().column_id is None


def test_validate_column_creation(db_session: Session, make_project, admin, make_user):
    project = make_project(columns=("Backlog", "Doing"))
    empty = make_project(name="Empty", columns=())
    member = make_user("member@example.com", projects=[project])

    result = column_service.validate_column_creation(db_session, project.id, Principal.from_user(admin))
    assert result["can_create_column"] is True
    assert result["has_backlog"] is True
    assert result["total_columns"] == 2

    result = column_service.validate_column_creation(db_session, project.id, Principal.from_user(member))
    assert result["can_create_column"] is False
    assert result["is_admin"] is False
    assert result["reason"] == "Only administrators can create columns"

    result = column_service.validate_column_creation(db_session, empty.id, Principal.from_user(admin))
    assert result["can_create_column"] is False
    assert result["has_backlog"] is False


def test_bootstrap_appends_missing_defaults_once(db_session: Session, make_project):
    project = make_project(columns=("Backlog", "Triage"))

    first = column_service.bootstrap_project_columns(db_session, project.id)
    second = column_service.bootstrap_project_columns(db_session, project.id)

    names = [column.name for column in first]
    assert names[:2] == ["Backlog", "Triage"]
    assert set(DEFAULT_COLUMNS) <= set(names)
    assert len(names) == len(DEFAULT_COLUMNS) + 1
    assert [(c.name, c.order) for c in second] == [(c.name, c.order) for c in first]
    assert is_dense(column.order for column in second)


def test_column_routes_called_directly(db_session: Session, make_project, admin_principal):
    project = make_project(columns=("Backlog", "Doing"))

    created = column_routes.create_project_column(
        project.id, ColumnCreate(name="Done", order=5), db_session, admin_principal
    )
    assert created.order == 2

    backlog, doing, done = column_routes.list_project_columns(project.id, db_session, admin_principal)
    reordered = column_routes.reorder_project_columns(
        project.id, ColumnReorder(ordered_column_ids=[backlog.id, done.id, doing.id]), db_session, admin_principal
    )
    assert [column.name for column in reordered] == ["Backlog", "Done", "Doing"]


def test_reorder_failure_rolls_back(db_session: Session, make_project, monkeypatch):
    project = make_project(columns=("colX", "colY", "colZ"))
    x, y, z = column_service.get_project_columns(db_session, project.id)

    def failing_commit():
        raise SQLAlchemyError("database is locked")

    monkeypatch.setattr(db_session, "commit", failing_commit)
    with pytest.raises(OperationFailed) as exc:
        column_service.reorder_project_columns(db_session, project.id, [z.id, y.id, x.id])
    monkeypatch.undo()

    assert exc.value.status_code == 500
    assert exc.value.detail == "Failed to reorder columns. Please try again."
    assert _layout(db_session, project.id) == [("colX", 0), ("colY", 1), ("colZ", 2)]


def test_deleting_columns_appends_detached_cards(db_session: Session, make_project, make_card, admin,
                                                 column_named):
    project = make_project(columns=("Backlog", "Doing", "Done"))
    doing, done = column_named(project, "Doing"), column_named(project, "Done")
    make_card(doing, "D", admin)
    make_card(doing, "E", admin)
    make_card(done, "X", admin)
    archived = make_card(done, "Old", admin, order=5, is_deleted=True)
    doing_id, done_id = doing.id, done.id

    column_service.delete_project_column(db_session, doing_id)
    column_service.delete_project_column(db_session, done_id)

    db_session.expire_all()
    detached = (
        db_session.query(Todo)
        .filter(Todo.project_id == project.id, Todo.column_id.is_(None), Todo.is_deleted.is_(False))
        .order_by(Todo.order.asc(), Todo.id.asc())
        .all()
    )
    assert [(card.title, card.order) for card in detached] == [("D", 0), ("E", 1), ("X", 2)]
    assert db_session.query(Todo).filter(Todo.id == archived.id).one().column_id is None
    assert _layout(db_session, project.id) == [("Backlog", 0)]
