import httpx
import pytest
from fastapi.testclient import TestClient

from kanban.client import BoardController, KanbanAPIError, KanbanClient, QueryCache, project_card_move
from kanban.dependencies import issue_token
from kanban.services import project_column as column_service


def _card(card_id, column_id, order, project_id=1, **extra):
    return dict(id=card_id, projectId=project_id, columnId=column_id, order=order, isDeleted=False, **extra)


def _positions(cards):
    return [(card["id"], card["columnId"], card["order"]) for card in cards]


def test_projection_moves_card_and_shifts_siblings():
    cards = [_card(1, 10, 0), _card(2, 10, 1), _card(3, 10, 2), _card(4, 20, 0)]

    projected = project_card_move(cards, 2, 20, 0)

    assert _positions(projected) == [(1, 10, 0), (3, 10, 1), (2, 20, 0), (4, 20, 1)]
    assert _positions(cards) == [(1, 10, 0), (2, 10, 1), (3, 10, 2), (4, 20, 0)]


def test_projection_within_column_and_ignored_cards():
    cards = [_card(1, 10, 0), _card(2, 10, 1), _card(3, 10, 2), _card(9, 10, 1)]
    cards[3]["isDeleted"] = True

    projected = project_card_move(cards, 1, 10, 2)

    live = [card for card in projected if not card["isDeleted"]]
    assert _positions(live) == [(2, 10, 0), (3, 10, 1), (1, 10, 2)]
    assert next(card for card in projected if card["id"] == 9)["order"] == 1
    assert project_card_move(cards, 42, 10, 0) == cards


def test_projection_across_projects():
    cards = [_card(1, 10, 0, project_id=1), _card(2, 30, 0, project_id=2)]

    projected = project_card_move(cards, 1, 30, 0, project_id=2)

    assert [(card["id"], card["projectId"], card["order"]) for card in projected] == [(1, 2, 0), (2, 2, 1)]


class _ObservedClient(KanbanClient):
    """Records the cached board as it stood when each move was sent."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.board = None
        self.board_project = None
        self.sent = []

    def update_todo(self, payload):
        self.sent.append((payload, _positions(self.board.todos(self.board_project))))
        return super().update_todo(payload)


@pytest.fixture
def board_for(client: TestClient):
    def _board_for(user, project_id=None, notify=None):
        api = _ObservedClient(http=client, token=issue_token(user))
        board = BoardController(api, notify=notify)
        api.board, api.board_project = board, project_id
        return board

    return _board_for


def test_optimistic_move_matches_server(make_project, make_card, admin, column_named, board_for):
    project = make_project(columns=("Backlog", "Doing"))
    backlog, doing = column_named(project, "Backlog"), column_named(project, "Doing")
    a = make_card(backlog, "A", admin)
    b = make_card(backlog, "B", admin)
    d = make_card(doing, "D", admin)
    board = board_for(admin, project.id)
    board.load_todos(project.id)

    updated = board.move_card(a.id, doing.id, 1, board_project_id=project.id)

    payload, optimistic = board.client.sent[0]
    assert payload == {"id": a.id, "columnId": doing.id, "order": 1}
    assert optimistic == [(b.id, backlog.id, 0), (d.id, doing.id, 0), (a.id, doing.id, 1)]
    assert (updated["columnId"], updated["order"]) == (doing.id, 1)
    assert _positions(board.todos(project.id)) == _positions(board.client.list_todos(project_id=project.id))
    assert next(card for card in board.todos(project.id) if card["id"] == a.id)["column"]["name"] == "Doing"


def test_rejected_move_rolls_back_and_notifies(make_project, make_card, make_user, column_named, board_for):
    project = make_project(columns=("Backlog", "In Progress", "In Review", "Done"))
    contractor = make_user("contractor@example.com", projects=[project])
    card = make_card(column_named(project, "In Review"), "Review", contractor)
    messages = []
    board = board_for(contractor, project.id, notify=messages.append)
    before = board.load_todos(project.id)

    with pytest.raises(KanbanAPIError) as exc:
        board.move_card(card.id, column_named(project, "Done").id, 0, board_project_id=project.id)

    assert exc.value.status_code == 403
    assert board.client.sent[0][1] == [(card.id, column_named(project, "Done").id, 0)]
    assert board.todos(project.id) == before
    assert messages == ["You do not have permission to perform this move."]


def test_cross_project_move_refreshes_both_boards(make_project, make_card, admin, column_named, board_for):
    first = make_project(name="First", columns=("Backlog",))
    second = make_project(name="Second", columns=("Backlog",))
    source, target = column_named(first, "Backlog"), column_named(second, "Backlog")
    a = make_card(source, "A", admin)
    b = make_card(source, "B", admin)
    x = make_card(target, "X", admin)
    board = board_for(admin, first.id)
    board.load_todos(first.id)
    board.load_todos(second.id)
    board.load_columns(second.id)

    board.move_card(a.id, target.id, 0, board_project_id=first.id)

    assert board.client.sent[0][0] == {"id": a.id, "columnId": target.id, "order": 0, "projectId": second.id}
    assert _positions(board.todos(first.id)) == [(b.id, source.id, 0)]
    assert _positions(board.todos(second.id)) == [(a.id, target.id, 0), (x.id, target.id, 1)]
    assert not board.cache.is_stale(board.todos_key(first.id))


def test_reorder_columns_optimistic_and_rollback(db_session, make_project, admin, board_for):
    project = make_project(columns=("colX", "colY", "colZ"))
    x, y, z = column_service.get_project_columns(db_session, project.id)
    messages = []
    board = board_for(admin, notify=messages.append)
    board.load_columns(project.id)

    columns = board.reorder_columns(project.id, [z.id, x.id, y.id])
    assert [column["name"] for column in columns] == ["colZ", "colX", "colY"]

    with pytest.raises(KanbanAPIError) as exc:
        board.reorder_columns(project.id, [x.id, y.id])
    assert exc.value.status_code == 400
    cached = board.cache.get_query_data(board.columns_key(project.id))
    assert [column["name"] for column in cached] == ["colZ", "colX", "colY"]
    assert messages == ["Invalid column IDs provided or mismatch in column count for the project."]


def test_transport_failure_rolls_back():
    def unreachable(request):
        raise httpx.ConnectError("connection refused", request=request)

    http = httpx.Client(base_url="http://kanban.local", transport=httpx.MockTransport(unreachable))
    messages = []
    board = BoardController(KanbanClient(http=http, token="token"), notify=messages.append)
    cards = [_card(1, 10, 0), _card(2, 10, 1)]
    board.cache.set_query_data(board.todos_key(1), cards)

    with pytest.raises(KanbanAPIError) as exc:
        board.move_card(2, 10, 0, board_project_id=1)

    assert exc.value.status_code is None
    assert board.todos(1) == cards
    assert messages == ["connection refused"]


def test_query_cache_invalidation_by_prefix():
    cache = QueryCache()
    cache.set_query_data(("todos", 1, None), [])
    cache.set_query_data(("todos", 2, None), [])
    cache.set_query_data(("columns", 1), [])

    assert sorted(cache.invalidate_queries(("todos",))) == [("todos", 1, None), ("todos", 2, None)]
    assert cache.is_stale(("todos", 1, None))
    assert not cache.is_stale(("columns", 1))

    cache.fetch_query(("todos", 1, None), lambda: ["fresh"])
    assert not cache.is_stale(("todos", 1, None))
    assert cache.get_query_data(("todos", 1, None)) == ["fresh"]
    assert cache.keys(("columns",)) == [("columns", 1)]
