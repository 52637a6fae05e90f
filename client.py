"""
Python client for the task manager API.

Reads are kept in a TTLCache for a short freshness window so repeated views do
not refetch; every write patches or invalidates the entries it affects, and
`force_refresh=True` always goes to the server. Failed requests raise ApiError
and are not retried.
"""
import logging
import time
from typing import Optional

import requests

import config

logger = logging.getLogger(__name__)

_MISSING = object()


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class TTLCache:
    """Entries expire `ttl` seconds after they were stored."""

    def __init__(self, ttl: float = 300, clock=time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries = {}

    def get(self, key, default=None):
        entry = self._entries.get(key, _MISSING)
        if entry is _MISSING:
            return default
        stored_at, value = entry
        if self._clock() - stored_at >= self.ttl:
            del self._entries[key]
            return default
        return value

    def set(self, key, value):
        self._entries[key] = (self._clock(), value)

    def invalidate(self, key):
        self._entries.pop(key, None)

    def invalidate_group(self, name: str):
        """Drop every key of the form (name, ...)."""
        for key in [k for k in self._entries if k[0] == name]:
            del self._entries[key]

    def clear(self):
        self._entries.clear()

    def __contains__(self, key):
        return self.get(key, _MISSING) is not _MISSING


class TaskApiClient:
    def __init__(self, base_url: str = config.API_BASE_URL, token: Optional[str] = None,
                 cache_seconds: float = config.CLIENT_CACHE_SECONDS,
                 session: Optional[requests.Session] = None, timeout: float = 15):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()
        self.cache = TTLCache(cache_seconds)

    def _request(self, method: str, path: str, **kwargs) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        resp = self.session.request(
            method, f"{self.base_url}{path}", headers=headers, timeout=self.timeout, **kwargs
        )
        try:
            body = resp.json()
        except ValueError:
            body = {}
        if not resp.ok:
            message = body.get("error") if isinstance(body, dict) else None
            logger.warning("%s %s failed: %s %s", method, path, resp.status_code, message)
            raise ApiError(resp.status_code, message or resp.reason or "Request failed")
        return body

    def _cached(self, key, force_refresh: bool, fetch):
        if not force_refresh:
            value = self.cache.get(key, _MISSING)
            if value is not _MISSING:
                return value
        value = fetch()
        self.cache.set(key, value)
        return value

    # Auth

    def login(self, email: str, password: str) -> dict:
        body = self._request("POST", "/auth/login", json={"email": email, "password": password})
        self.token = body["token"]
        self.cache.clear()
        return body["user"]

    def logout(self):
        self.token = None
        self.cache.clear()

    def profile(self) -> dict:
        return self._request("GET", "/auth/profile")["user"]

    # Projects

    def list_projects(self, force_refresh: bool = False) -> list:
        return self._cached(
            ("projects",), force_refresh, lambda: self._request("GET", "/project")["projects"]
        )

    def get_project(self, project_id: int, force_refresh: bool = False) -> dict:
        return self._cached(
            ("project", project_id), force_refresh,
            lambda: self._request("GET", f"/project/{project_id}")["project"],
        )

    def create_project(self, title: str, description: Optional[str] = None) -> dict:
        project = self._request("POST", "/project/create", json={"title": title, "description": description})["project"]
        self.cache.invalidate_group("projects")
        self.cache.set(("project", project["id"]), project)
        return project

    def update_project(self, project_id: int, **fields) -> dict:
        project = self._request("POST", f"/project/{project_id}/update", json=fields)["project"]
        self.cache.invalidate_group("projects")
        self.cache.set(("project", project_id), project)
        # task rows carry the project name
        self.cache.invalidate_group("tasks")
        return project

    def delete_project(self, project_id: int):
        self._request("POST", f"/project/{project_id}/delete")
        self.cache.invalidate_group("projects")
        self.cache.invalidate(("project", project_id))
        self.cache.invalidate_group("tasks")
        self.cache.invalidate_group("task")

    # Tasks

    def list_tasks(self, force_refresh: bool = False, **filters) -> dict:
        """One page of tasks: the response body with `data`, pagination meta and `links`."""
        params = {k: v for k, v in filters.items() if v is not None}
        key = ("tasks", tuple(sorted(params.items())))
        return self._cached(key, force_refresh, lambda: self._request("GET", "/task", params=params))

    def get_task(self, task_id: int, force_refresh: bool = False) -> dict:
        return self._cached(
            ("task", task_id), force_refresh, lambda: self._request("GET", f"/task/{task_id}")["task"]
        )

    def _store_task(self, task: dict) -> dict:
        self.cache.invalidate_group("tasks")
        self.cache.set(("task", task["id"]), task)
        return task

    def create_task(self, **fields) -> dict:
        return self._store_task(self._request("POST", "/task/create", json=fields)["task"])

    def fast_create_task(self, project_id: int, title: str, project_meeting_id: Optional[int] = None) -> dict:
        payload = {"projectId": project_id, "title": title.strip(), "projectMeetingId": project_meeting_id}
        return self._store_task(self._request("POST", "/task/fast-create", json=payload)["task"])

    def update_task(self, task_id: int, **fields) -> dict:
        return self._store_task(self._request("POST", f"/task/{task_id}/update", json=fields)["task"])

    def delete_task(self, task_id: int):
        self._request("POST", f"/task/{task_id}/delete")
        self.cache.invalidate(("task", task_id))
        self.cache.invalidate_group("tasks")

    def set_target_date(self, task_id: int, target_date: Optional[str] = None, clear: bool = False) -> dict:
        payload = {"task_id": task_id, "target_date": target_date, "clear": clear}
        return self._store_task(self._request("POST", "/task/set-target-date", json=payload)["task"])
