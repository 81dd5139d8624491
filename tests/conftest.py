"""
Shared test fixtures.
"""

import os
import sys
from pathlib import Path

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Settings are loaded at import time and require Supabase credentials
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

import copy
import pytest
from io import BytesIO
from unittest.mock import patch
from typing import Generator, Optional

from models.redirect import UploadedFile


# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data or []
        self.count = count if count is not None else len(self.data)


class MockSupabaseQuery:
    """
    Mock Supabase query builder with chainable methods.

    Filters (eq/neq/is_/or_) are honoured and writes go to the table's rows, so
    a read after a write sees the new data.
    """

    def __init__(self, table: "MockSupabaseTable", op: str = "select", payload=None):
        self._table = table
        self._op = op
        self._payload = payload
        self._filters: list = []
        self._limit: Optional[int] = None

    def select(self, *args, **kwargs):
        return self

    def eq(self, column, value):
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self._filters.append(lambda row: row.get(column) != value)
        return self

    def is_(self, column, value):
        expected = None if value in (None, "null") else value
        self._filters.append(lambda row: row.get(column) is expected)
        return self

    def or_(self, filters: str):
        """PostgREST or-filter, e.g. "version.eq.0,version.is.null"."""
        conditions = []
        for condition in filters.split(","):
            column, op, value = condition.split(".", 2)
            if op == "is":
                conditions.append(lambda row, c=column: row.get(c) is None)
            else:
                conditions.append(lambda row, c=column, v=value: str(row.get(c)) == v)
        self._filters.append(lambda row: any(cond(row) for cond in conditions))
        return self

    def order(self, column, **kwargs):
        return self

    def limit(self, count):
        self._limit = count
        return self

    def _matches(self, row: dict) -> bool:
        return all(f(row) for f in self._filters)

    def execute(self) -> MockSupabaseResponse:
        if self._table.error is not None:
            raise self._table.error

        if self._op == "insert":
            items = self._payload if isinstance(self._payload, list) else [self._payload]
            inserted = []
            for item in items:
                row = copy.deepcopy(item)
                row.setdefault("id", f"test-uuid-{len(self._table.rows) + 1}")
                self._table.rows.append(row)
                inserted.append(copy.deepcopy(row))
            return MockSupabaseResponse(data=inserted)

        matched = [row for row in self._table.rows if self._matches(row)]

        if self._op == "update":
            for row in matched:
                row.update(copy.deepcopy(self._payload))
        elif self._op == "delete":
            self._table.rows = [row for row in self._table.rows if not self._matches(row)]

        data = [copy.deepcopy(row) for row in matched]
        if self._limit is not None:
            data = data[:self._limit]
        return MockSupabaseResponse(data=data)


class MockSupabaseTable:
    """Mock Supabase table backed by a list of dicts."""

    def __init__(self, data: list = None):
        self.rows = [copy.deepcopy(r) for r in (data or [])]
        self.error: Optional[Exception] = None

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(self, "select")

    def insert(self, data):
        return MockSupabaseQuery(self, "insert", data)

    def update(self, data):
        return MockSupabaseQuery(self, "update", data)

    def delete(self):
        return MockSupabaseQuery(self, "delete")


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self._tables: dict[str, MockSupabaseTable] = {}

    def set_table_data(self, table_name: str, data: list):
        """Configure mock data for a table."""
        self._tables[table_name] = MockSupabaseTable(data)

    def fail_table(self, table_name: str, error: Exception):
        """Make every query on a table raise error."""
        self.table(table_name).error = error

    def rows(self, table_name: str) -> list:
        """Current rows of a table."""
        return self.table(table_name).rows

    def table(self, name: str) -> MockSupabaseTable:
        """Get mock table."""
        if name not in self._tables:
            self._tables[name] = MockSupabaseTable()
        return self._tables[name]


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("options", [
                {"key": "redirects", "value": {"/old": "/new"}, "version": 1}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("options", [...])
            # Now any code using get_supabase_client() gets the mock
    """
    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.redirect_store.get_supabase_client", return_value=mock_supabase):
            yield mock_supabase


@pytest.fixture
def stored_redirects(mock_supabase):
    """
    Seed the options table with a redirect record.

    Usage:
        def test_something(mock_db, stored_redirects):
            stored_redirects({"/old": "/new"})
    """
    def _seed(mapping: dict, version: Optional[int] = 1, key: str = "redirects"):
        mock_supabase.set_table_data("options", [
            {"id": "opt-1", "key": key, "value": mapping, "version": version}
        ])
    return _seed


@pytest.fixture
def make_upload():
    """
    Build an UploadedFile from CSV text or bytes.

    Usage:
        def test_something(make_upload):
            upload = make_upload("/a,/b\\n")
    """
    def _make(
        content="",
        name: str = "redirects.csv",
        content_type: str = "text/csv",
        size: Optional[int] = None,
        error: int = 0,
    ) -> UploadedFile:
        raw = content.encode("utf-8") if isinstance(content, str) else content
        return UploadedFile(
            name=name,
            content_type=content_type,
            size=len(raw) if size is None else size,
            stream=BytesIO(raw),
            error=error,
        )
    return _make


# ===================
# API TEST CLIENT
# ===================

def _reset_singletons(monkeypatch):
    monkeypatch.setattr("services.redirect_store._redirect_store", None)
    monkeypatch.setattr("services.redirect_import_service._redirect_import_service", None)
    monkeypatch.setattr("services.redirect_export_service._redirect_export_service", None)
    monkeypatch.setattr("services.redirect_clear_service._redirect_clear_service", None)


@pytest.fixture
def test_client_with_mock_db(mock_db, monkeypatch):
    """
    Create FastAPI test client with mocked database.

    Usage:
        def test_endpoint(test_client_with_mock_db, mock_supabase):
            mock_supabase.set_table_data("options", [...])
            response = test_client_with_mock_db.get("/api/redirects")
    """
    from fastapi.testclient import TestClient
    from main import app

    _reset_singletons(monkeypatch)
    yield TestClient(app)
