"""Workflow rules for moving cards between named columns."""
from typing import Dict, List, NamedTuple, Optional, Tuple, Union

from kanban.models import UserType


class Columns:
    BACKLOG = "Backlog"
    IN_PROGRESS = "In Progress"
    IN_REVIEW = "In Review"
    MONITORING = "Monitoring"
    DONE = "Done"


# Default board layout, in display order
DEFAULT_COLUMNS: Tuple[str, ...] = (
    Columns.BACKLOG,
    Columns.IN_PROGRESS,
    Columns.IN_REVIEW,
    Columns.MONITORING,
    Columns.DONE,
)

# Cards may only be created here by non-admins
ALLOWED_CREATION_COLUMNS = (Columns.BACKLOG,)

# The backlog sits first on every board
BACKLOG_ORDER = 0

ALL = "ALL"

ALLOWED_MOVEMENTS: Dict[Tuple[str, str], Union[str, Tuple[UserType, ...]]] = {
    (Columns.BACKLOG, Columns.IN_PROGRESS): ALL,
    (Columns.IN_PROGRESS, Columns.IN_REVIEW): ALL,
    (Columns.IN_REVIEW, Columns.MONITORING): (UserType.STAFF,),
    (Columns.IN_REVIEW, Columns.DONE): (UserType.STAFF,),
    (Columns.IN_REVIEW, Columns.IN_PROGRESS): (UserType.STAFF,),
    (Columns.MONITORING, Columns.IN_PROGRESS): ALL,
    (Columns.MONITORING, Columns.DONE): (UserType.STAFF,),
}


class PermissionResult(NamedTuple):
    allowed: bool
    error: Optional[str] = None


def _permits(permission, user_type: UserType) -> bool:
    return permission == ALL or user_type in permission


def can_move_card(from_column_name: str, to_column_name: str, user_type: UserType) -> PermissionResult:
    permission = ALLOWED_MOVEMENTS.get((from_column_name, to_column_name))
    if permission is None:
        return PermissionResult(
            False, f'Moving from "{from_column_name}" to "{to_column_name}" is not allowed.'
        )
    if _permits(permission, user_type):
        return PermissionResult(True)
    return PermissionResult(False, "You do not have permission to perform this move.")


def available_movements(from_column_name: str, user_type: UserType) -> List[str]:
    """Column names a card in ``from_column_name`` may be moved to."""
    targets: List[str] = []
    for (source, target), permission in ALLOWED_MOVEMENTS.items():
        if source == from_column_name and _permits(permission, user_type) and target not in targets:
            targets.append(target)
    return targets


def can_create_task_in_column(column_name: str) -> bool:
    return column_name in ALLOWED_CREATION_COLUMNS
