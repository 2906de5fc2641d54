"""Python client for the board API with an optimistic local query cache."""
from kanban.client.api import KanbanAPIError, KanbanClient
from kanban.client.board import BoardController, project_card_move
from kanban.client.cache import QueryCache

__all__ = ["BoardController", "KanbanAPIError", "KanbanClient", "QueryCache", "project_card_move"]
