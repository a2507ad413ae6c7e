import os

# Ensure config reads these during import in tests.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-key")

import re
import uuid
from datetime import datetime, timedelta

import pytest
import pytest_asyncio
from postgrest.exceptions import APIError
from sqlalchemy.ext.asyncio import create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

import backend.src.db.models  # noqa: F401  (registers tables on SQLModel.metadata)


@pytest_asyncio.fixture
async def engine(monkeypatch):
    test_engine = create_async_engine(os.environ["DATABASE_URL"])

    import backend.src.db.session as session_module

    session_module._ENGINE = test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    try:
        yield test_engine
    finally:
        await test_engine.dispose()
        session_module._ENGINE = None


@pytest_asyncio.fixture
async def session(engine):
    async with AsyncSession(engine, expire_on_commit=False) as s:
        yield s


class FakeResponse:
    def __init__(self, data):
        self.data = data


_OR_TERM = re.compile(r'(\w+)\.eq\."((?:[^"\\]|\\.)*)"')


def _unescape(value: str) -> str:
    return re.sub(r"\\(.)", r"\1", value)


class FakeQuery:
    """Just enough of the postgrest request builder for the messaging store."""

    def __init__(self, client: "FakeSupabaseClient", table: str):
        self._client = client
        self._table = table
        self._op = "select"
        self._payload = None
        self._filters: list[tuple[str, object]] = []
        self._or: str | None = None
        self._order: tuple[str, bool] | None = None
        self._limit: int | None = None

    def select(self, columns="*"):
        self._op = "select"
        return self

    def insert(self, payload):
        self._op = "insert"
        self._payload = payload
        return self

    def eq(self, column, value):
        self._filters.append((column, value))
        return self

    def or_(self, filters):
        self._or = filters
        return self

    def order(self, column, *, desc=False):
        self._order = (column, desc)
        return self

    def limit(self, size):
        self._limit = size
        return self

    async def execute(self):
        self._client.calls.append((self._table, self._op))
        error = self._client.failures.get((self._table, self._op))
        if error is not None:
            raise error
        rows = self._client.tables.setdefault(self._table, [])
        if self._op == "insert":
            return FakeResponse([self._client.insert_row(self._table, dict(self._payload))])

        result = [r for r in rows if all(r.get(c) == v for c, v in self._filters)]
        if self._or:
            terms = [(c, _unescape(v)) for c, v in _OR_TERM.findall(self._or)]
            result = [r for r in result if any(r.get(c) == v for c, v in terms)]
        if self._order:
            column, desc = self._order
            result.sort(key=lambda r: r[column], reverse=desc)
        if self._limit is not None:
            result = result[: self._limit]
        return FakeResponse([dict(r) for r in result])


class FakeChannel:
    def __init__(self, name: str):
        self.name = name
        self.bindings: list[dict] = []
        self.subscribed = False

    def on_postgres_changes(self, event, callback, table="*", schema="public", filter=None):
        self.bindings.append(
            {"event": event, "callback": callback, "table": table, "schema": schema, "filter": filter}
        )
        return self

    async def subscribe(self, callback=None):
        self.subscribed = True
        return self


class FakePostgrest:
    def __init__(self):
        self.closed = False

    async def aclose(self):
        self.closed = True


class FakeSupabaseClient:
    """In-memory stand-in for the async Supabase client (tables + realtime)."""

    def __init__(self):
        self.tables: dict[str, list[dict]] = {"conversations": [], "messages": []}
        self.calls: list[tuple[str, str]] = []
        self.failures: dict[tuple[str, str], Exception] = {}
        self.channels: list[FakeChannel] = []
        self.postgrest = FakePostgrest()
        self._clock = datetime(2026, 1, 1, 12, 0, 0)

    def _now(self) -> str:
        self._clock += timedelta(seconds=1)
        return self._clock.isoformat()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def insert_row(self, table: str, row: dict) -> dict:
        rows = self.tables.setdefault(table, [])
        if table == "conversations":
            if any(r["user1_id"] == row["user1_id"] and r["user2_id"] == row["user2_id"] for r in rows):
                raise APIError({"code": "23505", "message": "duplicate key value", "details": "", "hint": ""})
            row.setdefault("created_at", self._now())
        if table == "messages":
            row.setdefault("timestamp", self._now())
        row.setdefault("id", str(uuid.uuid4()))
        rows.append(row)
        if table == "messages":
            self.emit_insert(table, row)
        return dict(row)

    def emit_insert(self, table: str, row: dict) -> None:
        for channel in list(self.channels):
            if not channel.subscribed:
                continue
            for binding in channel.bindings:
                if binding["event"] != "INSERT" or binding["table"] != table:
                    continue
                flt = binding["filter"]
                if flt and flt != f"conversation_id=eq.{row.get('conversation_id')}":
                    continue
                binding["callback"]({"data": {"type": "INSERT", "table": table, "record": dict(row)}, "ids": [1]})

    def channel(self, name: str) -> FakeChannel:
        ch = FakeChannel(name)
        self.channels.append(ch)
        return ch

    async def remove_channel(self, channel: FakeChannel) -> None:
        channel.subscribed = False
        if channel in self.channels:
            self.channels.remove(channel)

    async def remove_all_channels(self) -> None:
        for ch in list(self.channels):
            await self.remove_channel(ch)


@pytest.fixture
def fake_supabase():
    return FakeSupabaseClient()


@pytest.fixture
def supabase_provider(fake_supabase):
    from backend.src.services.supabase_client import SupabaseClientProvider

    return SupabaseClientProvider("http://localhost:54321", "test-key", client=fake_supabase)
