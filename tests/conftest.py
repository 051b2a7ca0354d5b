import itertools
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from postgrest.exceptions import APIError
from supabase import AuthApiError

from auth import SessionUser, get_current_user
from db import ProjectStore, get_store
from main import app

BASE_TIME = datetime(2026, 10, 1, 9, 0, tzinfo=timezone.utc)


class FakeQuery:
    """Just enough of the postgrest query builder for the store."""

    def __init__(self, backend, table):
        self.backend = backend
        self.table = table
        self.action = "select"
        self.payload = None
        self.filters = []
        self.order_by = None

    def select(self, columns="*"):
        self.action = "select"
        return self

    def insert(self, payload):
        self.action, self.payload = "insert", payload
        return self

    def upsert(self, payload):
        self.action, self.payload = "upsert", payload
        return self

    def update(self, payload):
        self.action, self.payload = "update", payload
        return self

    def delete(self):
        self.action = "delete"
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def _matches(self, row):
        return all(f(row) for f in self.filters)

    def execute(self):
        self.backend.calls.append((self.table, self.action))
        if (self.table, self.action) in self.backend.failures:
            raise APIError({"message": f"{self.action} on {self.table} failed", "code": "500"})

        rows = self.backend.tables.setdefault(self.table, [])
        if self.action == "select":
            data = [dict(r) for r in rows if self._matches(r)]
            if self.order_by:
                column, desc = self.order_by
                data.sort(key=lambda r: r.get(column) or "", reverse=desc)
        elif self.action == "insert":
            payload = self.payload if isinstance(self.payload, list) else [self.payload]
            data = [self.backend.add(self.table, record) for record in payload]
        elif self.action == "upsert":
            existing = next((r for r in rows if r["id"] == self.payload["id"]), None)
            if existing:
                existing.update(self.payload)
                data = [dict(existing)]
            else:
                data = [self.backend.add(self.table, self.payload)]
        elif self.action == "update":
            data = []
            for row in rows:
                if self._matches(row):
                    row.update(self.payload)
                    data.append(dict(row))
        else:
            data = [dict(r) for r in rows if self._matches(r)]
            self.backend.tables[self.table] = [r for r in rows if not self._matches(r)]
        return SimpleNamespace(data=data)


class FakeAuth:
    def __init__(self):
        self.tokens = {}
        self.failure = None

    def get_user(self, token):
        if self.failure is not None:
            raise self.failure
        if token not in self.tokens:
            raise AuthApiError("invalid JWT", 401, "bad_jwt")
        return SimpleNamespace(user=self.tokens[token])


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.calls = []
        self.failures = set()
        self.auth = FakeAuth()
        self._ids = itertools.count(1)
        self._ticks = itertools.count()

    def table(self, name):
        return FakeQuery(self, name)

    def add(self, table, record):
        row = {"id": f"{table}-{next(self._ids)}", **record}
        if "created_at" not in row:
            stamp = (BASE_TIME + timedelta(minutes=next(self._ticks))).isoformat()
            row["created_at"] = stamp
            row.setdefault("updated_at", stamp)
        self.tables.setdefault(table, []).append(row)
        return dict(row)


@pytest.fixture
def supabase():
    return FakeSupabase()


@pytest.fixture
def store(supabase):
    return ProjectStore(supabase)


@pytest.fixture
def user():
    return SessionUser(id="user-1", email="ada@example.com")


@pytest.fixture
def client(store, user):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_current_user] = lambda: user
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
