"""In-memory stand-ins for the Supabase client and the email notifier."""

from __future__ import annotations

import copy
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional


class FakeAPIError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def _coerce(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    return value


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self.op = "select"
        self.columns = "*"
        self.payload: Any = None
        self.on_conflict: Optional[str] = None
        self.filters: List[Callable[[dict], bool]] = []
        self.order_by: Optional[tuple] = None
        self.max_rows: Optional[int] = None

    # --- operations ---
    def select(self, columns: str = "*", count: Optional[str] = None):
        self.op, self.columns = "select", columns
        return self

    def insert(self, payload):
        self.op, self.payload = "insert", payload
        return self

    def upsert(self, payload, on_conflict: Optional[str] = None):
        self.op, self.payload, self.on_conflict = "upsert", payload, on_conflict
        return self

    def update(self, payload):
        self.op, self.payload = "update", payload
        return self

    def delete(self):
        self.op = "delete"
        return self

    # --- filters ---
    def eq(self, column, value):
        self.filters.append(lambda r: r.get(column) == value)
        return self

    def match(self, query: dict):
        for k, v in query.items():
            self.eq(k, v)
        return self

    def in_(self, column, values):
        allowed = set(values)
        self.filters.append(lambda r: r.get(column) in allowed)
        return self

    def is_(self, column, value):
        assert value in ("null", None)
        self.filters.append(lambda r: r.get(column) is None)
        return self

    def gte(self, column, value):
        self.filters.append(lambda r: r.get(column) is not None and _coerce(r[column]) >= _coerce(value))
        return self

    def lte(self, column, value):
        self.filters.append(lambda r: r.get(column) is not None and _coerce(r[column]) <= _coerce(value))
        return self

    def order(self, column, desc: bool = False):
        self.order_by = (column, desc)
        return self

    def limit(self, n: int):
        self.max_rows = n
        return self

    # --- execution ---
    def _matching(self) -> List[dict]:
        return [r for r in self.db.tables.setdefault(self.table_name, []) if all(f(r) for f in self.filters)]

    def _project(self, row: dict) -> dict:
        if self.columns.strip() == "*":
            return copy.deepcopy(row)
        cols = [c.strip() for c in self.columns.split(",")]
        return {c: copy.deepcopy(row.get(c)) for c in cols}

    def execute(self):
        self.db.calls.append((self.table_name, self.op))
        failure = self.db.failures.get((self.table_name, self.op))
        if failure is not None:
            raise FakeAPIError(failure)

        rows = self.db.tables.setdefault(self.table_name, [])
        if self.op == "select":
            found = self._matching()
            if self.order_by:
                col, desc = self.order_by
                found.sort(key=lambda r: _coerce(r.get(col)), reverse=desc)
            if self.max_rows is not None:
                found = found[: self.max_rows]
            return SimpleNamespace(data=[self._project(r) for r in found])

        if self.op in ("insert", "upsert"):
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            out = []
            for item in items:
                item = dict(item)
                if self.op == "upsert" and self.on_conflict:
                    keys = [k.strip() for k in self.on_conflict.split(",")]
                    existing = [r for r in rows if all(r.get(k) == item.get(k) for k in keys)]
                    if existing:
                        existing[0].update(item)
                        out.append(copy.deepcopy(existing[0]))
                        continue
                item.setdefault("id", str(uuid.uuid4()))
                item.setdefault("created_at", "2025-01-01T00:00:00+00:00")
                rows.append(item)
                out.append(copy.deepcopy(item))
            return SimpleNamespace(data=out)

        if self.op == "update":
            found = self._matching()
            for r in found:
                r.update(copy.deepcopy(self.payload))
            return SimpleNamespace(data=[copy.deepcopy(r) for r in found])

        if self.op == "delete":
            found = self._matching()
            self.db.tables[self.table_name] = [r for r in rows if r not in found]
            return SimpleNamespace(data=[copy.deepcopy(r) for r in found])

        raise AssertionError(f"unsupported op {self.op}")


class FakeRpc:
    def __init__(self, db: "FakeSupabase", name: str, params: dict):
        self.db, self.name, self.params = db, name, params

    def execute(self):
        self.db.calls.append((self.name, "rpc"))
        handler = self.db.rpcs.get(self.name)
        if handler is None:
            raise FakeAPIError(f"function {self.name} does not exist")
        return SimpleNamespace(data=handler(self.db, **self.params))


class FakeSupabase:
    """Enough of supabase-py's query builder for the repository and routers."""

    def __init__(self, tables: Optional[Dict[str, List[dict]]] = None):
        self.tables: Dict[str, List[dict]] = {k: [dict(r) for r in v] for k, v in (tables or {}).items()}
        self.failures: Dict[tuple, str] = {}
        self.rpcs: Dict[str, Callable[..., Any]] = {}
        self.calls: List[tuple] = []

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params: dict) -> FakeRpc:
        return FakeRpc(self, name, params)

    def fail(self, table: str, op: str, message: str = "boom"):
        self.failures[(table, op)] = message

    def row(self, table: str, row_id: str) -> Optional[dict]:
        for r in self.tables.get(table, []):
            if r.get("id") == row_id:
                return r
        return None


class RecordingNotifier:
    def __init__(self, result: bool = True, raises: Optional[Exception] = None):
        self.result = result
        self.raises = raises
        self.sent: List[dict] = []

    def send(self, addresses, subject, body) -> bool:
        self.sent.append({"to": list(addresses), "subject": subject, "body": body})
        if self.raises is not None:
            raise self.raises
        return self.result


NOW = datetime(2025, 10, 23, 16, 0, 0, tzinfo=timezone.utc)


def reminder_row(rid: str, task_id: str = "task-1", due_at: datetime = NOW, **extra) -> dict:
    row = {
        "id": rid,
        "task_id": task_id,
        "due_at": due_at.isoformat(),
        "details": None,
        "created_by": "creator",
        "recipient_user_ids": None,
        "sent_at": None,
    }
    row.update(extra)
    return row
