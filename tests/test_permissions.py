import pytest

from kanban.models import UserType
from kanban.ordering import clamp_order, is_dense
from kanban.permissions import (
    ALLOWED_MOVEMENTS,
    Columns,
    available_movements,
    can_create_task_in_column,
    can_move_card,
)


@pytest.mark.parametrize("user_type", [UserType.STAFF, UserType.CONTRACTOR])
@pytest.mark.parametrize(
    "source,target",
    [
        (Columns.BACKLOG, Columns.IN_PROGRESS),
        (Columns.IN_PROGRESS, Columns.IN_REVIEW),
        (Columns.MONITORING, Columns.IN_PROGRESS),
    ],
)
def test_open_transitions_allow_everyone(source, target, user_type):
    assert can_move_card(source, target, user_type).allowed


@pytest.mark.parametrize(
    "source,target",
    [
        (Columns.IN_REVIEW, Columns.MONITORING),
        (Columns.IN_REVIEW, Columns.DONE),
        (Columns.IN_REVIEW, Columns.IN_PROGRESS),
        (Columns.MONITORING, Columns.DONE),
    ],
)
def test_review_transitions_are_staff_only(source, target):
    assert can_move_card(source, target, UserType.STAFF).allowed

    result = can_move_card(source, target, UserType.CONTRACTOR)
    assert not result.allowed
    assert result.error == "You do not have permission to perform this move."


def test_unlisted_transition_names_both_columns():
    result = can_move_card(Columns.DONE, Columns.BACKLOG, UserType.STAFF)
    assert not result.allowed
    assert result.error == 'Moving from "Done" to "Backlog" is not allowed.'


def test_available_movements_per_user_type():
    assert available_movements(Columns.IN_REVIEW, UserType.CONTRACTOR) == []
    assert set(available_movements(Columns.IN_REVIEW, UserType.STAFF)) == {
        Columns.MONITORING,
        Columns.DONE,
        Columns.IN_PROGRESS,
    }
    assert available_movements(Columns.BACKLOG, UserType.CONTRACTOR) == [Columns.IN_PROGRESS]
    assert available_movements(Columns.DONE, UserType.STAFF) == []


def test_every_rule_is_reachable_for_staff():
    for source, target in ALLOWED_MOVEMENTS:
        assert target in available_movements(source, UserType.STAFF)


def test_cards_are_created_in_backlog_only():
    assert can_create_task_in_column(Columns.BACKLOG)
    assert not can_create_task_in_column(Columns.IN_PROGRESS)
    assert not can_create_task_in_column("backlog")


@pytest.mark.parametrize("order,size,expected", [(None, 3, 3), (-2, 3, 0), (1, 3, 1), (9, 3, 3), (0, 0, 0)])
def test_clamp_order(order, size, expected):
    assert clamp_order(order, size) == expected


def test_is_dense():
    assert is_dense([])
    assert is_dense([2, 0, 1])
    assert not is_dense([0, 0, 1])
    assert not is_dense([1, 2])
