"""Thin httpx wrapper over the board HTTP API."""
import logging
from typing import Any, Dict, List, Optional

import httpx

from kanban.config import settings

logger = logging.getLogger(__name__)


class KanbanAPIError(Exception):
    """The server rejected a request, or it never reached the server."""

    def __init__(self, status_code: Optional[int], detail: str):
        super().__init__(f"{status_code}: {detail}" if status_code else detail)
        self.status_code = status_code
        self.detail = detail


class KanbanClient:
    """Blocking API client.

    ``http`` may be any ``httpx.Client``; tests pass a ``TestClient`` bound to
    the application.
    """

    def __init__(self, base_url: str = "", token: Optional[str] = None,
                 http: Optional[httpx.Client] = None, api_prefix: str = settings.API_PREFIX,
                 timeout: float = settings.CLIENT_TIMEOUT_SECONDS):
        self._http = http if http is not None else httpx.Client(base_url=base_url, timeout=timeout)
        self._prefix = api_prefix.rstrip("/")
        self.token = token

    def close(self) -> None:
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            response = self._http.request(method, self._prefix + path, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise KanbanAPIError(None, str(exc)) from exc

        if response.is_error:
            try:
                detail = response.json().get("detail", response.text)
            except ValueError:
                detail = response.text
            raise KanbanAPIError(response.status_code, str(detail))
        if response.status_code == httpx.codes.NO_CONTENT or not response.content:
            return None
        return response.json()

    # Auth

    def login(self, email: str, password: str) -> str:
        data = self._request("POST", "/auth/login", json={"email": email, "password": password})
        self.token = data["accessToken"]
        return self.token

    # Columns

    def list_columns(self, project_id: int) -> List[Dict[str, Any]]:
        return self._request("GET", f"/projects/{project_id}/columns")

    def reorder_columns(self, project_id: int, ordered_column_ids: List[int]) -> List[Dict[str, Any]]:
        return self._request(
            "POST",
            f"/projects/{project_id}/columns/reorder",
            json={"orderedColumnIds": list(ordered_column_ids)},
        )

    # Cards

    def list_todos(self, project_id: Optional[int] = None, view: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {}
        if project_id is not None:
            params["projectId"] = project_id
        if view:
            params["view"] = view
        return self._request("GET", "/todo", params=params)

    def update_todo(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", "/todo", json=payload)
