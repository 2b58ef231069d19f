"""
HTTP client for the task tracker REST API.

Wraps every endpoint, attaches the bearer token, and unwraps the
``{success, data, message, count}`` envelope. Failures surface as ``ApiError``.
"""

from __future__ import annotations

from typing import Any

import httpx

from app.utils.logger import setup_logger

logger = setup_logger("client.api")

DEFAULT_BASE_URL = "http://localhost:5000"


class ApiError(Exception):
    """A request the API answered with ``success: false`` or a non-2xx status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class TaskTrackerClient:
    """
    Thin synchronous client for the task tracker API.

    ``http_client`` may be any ``httpx.Client`` (including FastAPI's
    ``TestClient``); otherwise one is created for ``base_url``.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        token: str | None = None,
        http_client: httpx.Client | None = None,
        timeout: float = 10.0,
    ):
        self._http = http_client or httpx.Client(base_url=base_url, timeout=timeout)
        self._owns_http = http_client is None
        self.token = token

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> TaskTrackerClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def set_token(self, token: str | None) -> None:
        self.token = token

    def _headers(self) -> dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        response = self._http.request(
            method, f"/api{path}", headers=self._headers(), **kwargs
        )
        try:
            payload = response.json()
        except ValueError:
            payload = {"success": False, "message": response.text or "Invalid response"}

        if response.is_error or not payload.get("success", False):
            message = payload.get("message") or response.reason_phrase
            logger.warning(f"{method} {path} failed with {response.status_code}: {message}")
            raise ApiError(response.status_code, message)
        return payload

    # ===== Authentication =====

    def register(
        self, name: str, email: str, password: str, role: str = "user"
    ) -> dict[str, Any]:
        data = self._request(
            "POST",
            "/auth/register",
            json={"name": name, "email": email, "password": password, "role": role},
        )["data"]
        self.token = data["token"]
        return data["user"]

    def login(self, email: str, password: str) -> dict[str, Any]:
        data = self._request(
            "POST", "/auth/login", json={"email": email, "password": password}
        )["data"]
        self.token = data["token"]
        return data["user"]

    def get_profile(self) -> dict[str, Any]:
        return self._request("GET", "/auth/profile")["data"]

    def update_profile(self, **fields: Any) -> dict[str, Any]:
        return self._request("PUT", "/auth/profile", json=fields)["data"]

    def get_devices(self) -> list[dict[str, Any]]:
        return self._request("GET", "/auth/devices")["data"]

    def get_all_users(self) -> list[dict[str, Any]]:
        return self._request("GET", "/auth/users")["data"]

    def delete_user(self, user_id: str) -> None:
        self._request("DELETE", f"/auth/users/{user_id}")

    def update_user_role(self, user_id: str, role: str) -> dict[str, Any]:
        return self._request("PUT", f"/auth/users/{user_id}/role", json={"role": role})[
            "data"
        ]

    # ===== Tasks =====

    def get_tasks(self, **filters: str) -> list[dict[str, Any]]:
        params = {k: v for k, v in filters.items() if v is not None}
        return self._request("GET", "/tasks", params=params)["data"]

    def get_task(self, task_id: str) -> dict[str, Any]:
        return self._request("GET", f"/tasks/{task_id}")["data"]

    def create_task(self, task_data: dict[str, Any]) -> dict[str, Any]:
        return self._request("POST", "/tasks", json=task_data)["data"]

    def update_task(self, task_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        return self._request("PUT", f"/tasks/{task_id}", json=changes)["data"]

    def delete_task(self, task_id: str) -> None:
        self._request("DELETE", f"/tasks/{task_id}")

    def add_comment(self, task_id: str, text: str) -> dict[str, Any]:
        return self._request("POST", f"/tasks/{task_id}/comments", json={"text": text})[
            "data"
        ]

    def delete_comment(self, task_id: str, comment_id: str) -> dict[str, Any]:
        return self._request("DELETE", f"/tasks/{task_id}/comments/{comment_id}")["data"]

    def upload_photo(
        self,
        task_id: str,
        filename: str,
        content: bytes,
        content_type: str = "image/jpeg",
        caption: str | None = None,
    ) -> dict[str, Any]:
        data = {"caption": caption} if caption else None
        return self._request(
            "POST",
            f"/tasks/{task_id}/photos",
            files={"photo": (filename, content, content_type)},
            data=data,
        )["data"]

    def delete_photo(self, task_id: str, photo_id: str) -> dict[str, Any]:
        return self._request("DELETE", f"/tasks/{task_id}/photos/{photo_id}")["data"]
