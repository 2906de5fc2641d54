"""Keyed query cache mirroring server lists on the client side."""
import copy
import threading
from collections import defaultdict
from typing import Any, Callable, Dict, Hashable, List, Optional, Set, Tuple

QueryKey = Tuple[Hashable, ...]


class QueryCache:
    """Holds query results by key, with staleness tracking and per-key locks.

    Keys are tuples such as ``("todos", project_id, view)``; invalidation
    matches on a key prefix.
    """

    def __init__(self):
        self._data: Dict[QueryKey, Any] = {}
        self._stale: Set[QueryKey] = set()
        self._guard = threading.Lock()
        self._locks: Dict[QueryKey, threading.RLock] = defaultdict(threading.RLock)

    def lock(self, key: QueryKey) -> threading.RLock:
        """Lock serializing state transitions of one query key."""
        with self._guard:
            return self._locks[key]

    def get_query_data(self, key: QueryKey) -> Optional[Any]:
        return self._data.get(key)

    def set_query_data(self, key: QueryKey, data: Any) -> None:
        self._data[key] = data
        self._stale.discard(key)

    def snapshot(self, key: QueryKey) -> Optional[Any]:
        """Deep copy of the cached data, for rollback."""
        data = self._data.get(key)
        return copy.deepcopy(data) if data is not None else None

    def keys(self, prefix: QueryKey = ()) -> List[QueryKey]:
        return [key for key in self._data if key[:len(prefix)] == prefix]

    def invalidate_queries(self, prefix: QueryKey) -> List[QueryKey]:
        """Mark every cached key starting with ``prefix`` as stale."""
        matched = self.keys(prefix)
        self._stale.update(matched)
        return matched

    def is_stale(self, key: QueryKey) -> bool:
        return key in self._stale

    def fetch_query(self, key: QueryKey, fetcher: Callable[[], Any]) -> Any:
        with self.lock(key):
            data = fetcher()
            self.set_query_data(key, data)
            return data
