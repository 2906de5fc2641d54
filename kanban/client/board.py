"""Board controller: optimistic card moves over the local query cache.

A drag end patches the cached card list immediately with the same shift the
server applies, then sends the move. Only foreign keys and ``order`` are
projected locally; nested display objects (``column``, ``project``) come
from the server's answer or a refetch. A rejected move restores the snapshot
taken before the patch.
"""
import copy
import logging
from typing import Any, Callable, Dict, List, Optional

from kanban.client.api import KanbanAPIError, KanbanClient
from kanban.client.cache import QueryCache, QueryKey
from kanban.ordering import clamp_order

logger = logging.getLogger(__name__)

Card = Dict[str, Any]

DEFAULT_ERROR_MESSAGE = "You do not have permission to perform this action."


def _in_sequence(card: Card, project_id: Any, column_id: Any) -> bool:
    return (
        card.get("projectId") == project_id
        and card.get("columnId") == column_id
        and not card.get("isDeleted", False)
    )


def _sort_key(card: Card):
    column_id = card.get("columnId")
    return (card.get("projectId"), column_id is None, column_id or 0, card.get("order", 0), card.get("id"))


def project_card_move(cards: List[Card], card_id: Any, column_id: Any, order: Optional[int],
                      project_id: Any = None) -> List[Card]:
    """Return a copy of ``cards`` with ``card_id`` moved, siblings shifted.

    ``project_id`` defaults to the card's current project. Unknown cards
    leave the list unchanged.
    """
    result = copy.deepcopy(cards)
    moved = next((card for card in result if card.get("id") == card_id), None)
    if moved is None:
        return result

    remaining = [card for card in result if card is not moved]
    source_project, source_column, source_order = moved.get("projectId"), moved.get("columnId"), moved.get("order")
    target_project = project_id if project_id is not None else source_project

    if not moved.get("isDeleted", False):
        for card in remaining:
            if _in_sequence(card, source_project, source_column) and card["order"] > source_order:
                card["order"] -= 1

    siblings = [card for card in remaining if _in_sequence(card, target_project, column_id)]
    position = clamp_order(order, len(siblings))
    for card in siblings:
        if card["order"] >= position:
            card["order"] += 1

    moved.update(projectId=target_project, columnId=column_id, order=position)
    remaining.append(moved)
    remaining.sort(key=_sort_key)
    return remaining


class BoardController:
    """Loads board queries into a ``QueryCache`` and performs card moves."""

    def __init__(self, client: KanbanClient, cache: Optional[QueryCache] = None,
                 notify: Optional[Callable[[str], None]] = None, view: Optional[str] = None):
        self.client = client
        self.cache = cache if cache is not None else QueryCache()
        self.view = view
        self._notify = notify or (lambda message: logger.warning("Move rejected: %s", message))
        self._column_projects: Dict[Any, Any] = {}

    def todos_key(self, project_id: Any = None) -> QueryKey:
        return ("todos", project_id if project_id is not None else "all", self.view)

    @staticmethod
    def columns_key(project_id: Any) -> QueryKey:
        return ("columns", project_id)

    def load_todos(self, project_id: Any = None) -> List[Card]:
        return self.cache.fetch_query(
            self.todos_key(project_id),
            lambda: self.client.list_todos(project_id=project_id, view=self.view),
        )

    def load_columns(self, project_id: Any) -> List[Card]:
        columns = self.cache.fetch_query(self.columns_key(project_id), lambda: self.client.list_columns(project_id))
        for column in columns:
            self._column_projects[column["id"]] = column["projectId"]
        return columns

    def todos(self, project_id: Any = None) -> List[Card]:
        return self.cache.get_query_data(self.todos_key(project_id)) or []

    def _refetch_stale(self) -> None:
        for key in self.cache.keys(("todos",)):
            if self.cache.is_stale(key):
                project_id = None if key[1] == "all" else key[1]
                self.load_todos(project_id)

    def move_card(self, card_id: Any, column_id: Any, order: int, board_project_id: Any = None,
                  project_id: Any = None) -> Card:
        """Move a card shown on the board keyed by ``board_project_id``.

        Returns the card as stored by the server. On failure the cache is
        rolled back, the notifier is called and ``KanbanAPIError`` propagates.
        """
        key = self.todos_key(board_project_id)
        with self.cache.lock(key):
            previous = self.cache.snapshot(key)
            card = next((item for item in previous or () if item.get("id") == card_id), None)
            source_project = card.get("projectId") if card else None
            target_project = project_id or self._column_projects.get(column_id) or source_project
            if card is not None:
                self.cache.set_query_data(key, project_card_move(previous, card_id, column_id, order, target_project))

        payload: Dict[str, Any] = {"id": card_id, "columnId": column_id, "order": order}
        if target_project is not None and target_project != source_project:
            payload["projectId"] = target_project

        try:
            updated = self.client.update_todo(payload)
        except KanbanAPIError as exc:
            with self.cache.lock(key):
                if previous is not None:
                    self.cache.set_query_data(key, previous)
            self._notify(exc.detail or DEFAULT_ERROR_MESSAGE)
            raise

        self._reconcile(key, updated, source_project)
        return updated

    def _reconcile(self, key: QueryKey, updated: Card, source_project: Any) -> None:
        with self.cache.lock(key):
            cards = self.cache.get_query_data(key)
            if cards is not None:
                merged = [updated if card.get("id") == updated["id"] else card for card in cards]
                merged.sort(key=_sort_key)
                self.cache.set_query_data(key, merged)

        if source_project is not None and updated.get("projectId") != source_project:
            for project in (source_project, updated.get("projectId"), "all"):
                self.cache.invalidate_queries(("todos", project))
            self._refetch_stale()

    def reorder_columns(self, project_id: Any, ordered_column_ids: List[Any]) -> List[Card]:
        """Optimistically reorder a project's cached columns, then confirm."""
        key = self.columns_key(project_id)
        with self.cache.lock(key):
            previous = self.cache.snapshot(key)
            if previous is not None:
                positions = {column_id: index for index, column_id in enumerate(ordered_column_ids)}
                projected = copy.deepcopy(previous)
                for column in projected:
                    column["order"] = positions.get(column["id"], column["order"])
                projected.sort(key=lambda column: column["order"])
                self.cache.set_query_data(key, projected)

        try:
            columns = self.client.reorder_columns(project_id, ordered_column_ids)
        except KanbanAPIError as exc:
            with self.cache.lock(key):
                if previous is not None:
                    self.cache.set_query_data(key, previous)
            self._notify(exc.detail or DEFAULT_ERROR_MESSAGE)
            raise

        self.cache.set_query_data(key, columns)
        return columns
