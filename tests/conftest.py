"""
Shared fixtures: an in-process stand-in for the PostgREST ``users`` endpoint.
"""

import json
import logging
from itertools import count

import httpx
import pytest

from config.app_config import BackendConfig
from services.auth_service.auth_manager import AuthManager
from services.auth_service.session_store import InMemoryStorage, SessionStore
from services.auth_service.user_repository import UserRepository
from utils.logging_config import ErrorTracker


class FakeUsersTable:
    """
    Minimal PostgREST emulation for /rest/v1/users.

    Supports eq filters on username and id, select column lists, limit,
    insert with return=representation and PATCH. Set ``missing`` to make every
    request answer with the table-not-found error, or ``fail_patch_fields`` to
    make PATCH requests touching those columns fail.
    """

    def __init__(self):
        self.rows = []
        self.requests = []
        self.missing = False
        self.fail_patch_fields = set()
        self._ids = count(1)

    def add(self, **row):
        row.setdefault("id", next(self._ids))
        row.setdefault("role", "user")
        row.setdefault("is_active", True)
        row.setdefault("email", None)
        row.setdefault("created_at", "2024-01-01T00:00:00+00:00")
        row.setdefault("last_login", None)
        self.rows.append(row)
        return row

    def get(self, username):
        return next((row for row in self.rows if row["username"] == username), None)

    @staticmethod
    def _project(row, select):
        if not select or select == "*":
            return dict(row)
        columns = [column.strip() for column in select.split(",")]
        return {column: row.get(column) for column in columns}

    @staticmethod
    def _matches(row, params):
        for column in ("username", "id"):
            if column in params:
                expected = params[column].split("eq.", 1)[1]
                if str(row.get(column)) != expected:
                    return False
        return True

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        params = dict(request.url.params)

        if self.missing:
            return httpx.Response(404, json={
                "code": "PGRST205",
                "message": "Could not find the table 'public.users' in the schema cache",
                "details": None,
                "hint": None,
            })

        select = params.get("select")

        if request.method == "GET":
            rows = [self._project(row, select) for row in self.rows if self._matches(row, params)]
            if "limit" in params:
                rows = rows[:int(params["limit"])]
            return httpx.Response(200, json=rows)

        if request.method == "POST":
            payload = json.loads(request.content)
            created = []
            for values in payload:
                if self.get(values["username"]):
                    return httpx.Response(409, json={
                        "code": "23505",
                        "message": 'duplicate key value violates unique constraint "users_username_key"',
                    })
                created.append(self._project(self.add(**values), select))
            return httpx.Response(201, json=created)

        if request.method == "PATCH":
            values = json.loads(request.content)
            if self.fail_patch_fields & set(values):
                return httpx.Response(500, json={"code": "XX000", "message": "internal error"})
            updated = []
            for row in self.rows:
                if self._matches(row, params):
                    row.update(values)
                    updated.append(self._project(row, select))
            return httpx.Response(200, json=updated)

        return httpx.Response(405, json={"code": "PGRST000", "message": "method not allowed"})


@pytest.fixture
def backend_config():
    return BackendConfig(supabase_url="https://hospital.supabase.co", supabase_anon_key="anon-key")


@pytest.fixture
def users_table():
    return FakeUsersTable()


@pytest.fixture
def repository(backend_config, users_table):
    return UserRepository(backend_config, transport=httpx.MockTransport(users_table.handler))


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def session_store(storage):
    return SessionStore(storage)


@pytest.fixture
def auth_manager(repository, session_store):
    return AuthManager(
        user_repository=repository,
        session_store=session_store,
        error_tracker=ErrorTracker(logging.getLogger("tests.errors")),
    )
