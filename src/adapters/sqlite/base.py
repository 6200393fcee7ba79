import json
import sqlite3
from datetime import date, datetime
from typing import Any, TypeVar
from uuid import UUID

from pydantic import BaseModel

M = TypeVar("M", bound=BaseModel)


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def to_db(value: Any) -> Any:
    """Convert a python value to its stored SQLite representation."""
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, bool):
        return int(value)
    return value


class TableMapping:
    """Maps a pydantic entity onto a table; list/dict fields live in ``<field>_json`` columns."""

    def __init__(self, table: str, model: type[M], json_fields: tuple[str, ...] = ()):
        self.table = table
        self.model = model
        self.json_fields = json_fields

    def to_row(self, entity: BaseModel) -> dict[str, Any]:
        plain = entity.model_dump()
        as_json = entity.model_dump(mode="json", include=set(self.json_fields))
        row: dict[str, Any] = {}
        for key, value in plain.items():
            if key in self.json_fields:
                row[f"{key}_json"] = json.dumps(as_json[key])
            else:
                row[key] = to_db(value)
        return row

    def from_row(self, row: dict[str, Any]) -> Any:
        data = dict(row)
        for key in self.json_fields:
            raw = data.pop(f"{key}_json", None)
            if raw is not None:
                data[key] = json.loads(raw)
        return self.model.model_validate(data)


class SQLiteRepo:
    """Connection handling and generic upsert/select helpers shared by the repositories."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    @staticmethod
    def _write(conn: sqlite3.Connection, mapping: TableMapping, entity: BaseModel) -> None:
        row = mapping.to_row(entity)
        columns = list(row.keys())
        quoted = ", ".join(f'"{c}"' for c in columns)
        placeholders = ", ".join("?" for _ in columns)
        updates = ", ".join(
            f'"{c}"=excluded."{c}"' for c in columns if c not in ("id", "created_at")
        )
        conn.execute(
            f"INSERT INTO {mapping.table} ({quoted}) VALUES ({placeholders}) "
            f"ON CONFLICT(id) DO UPDATE SET {updates}",
            tuple(row[c] for c in columns),
        )

    def _upsert(self, mapping: TableMapping, entity: M) -> M:
        self._upsert_all([(mapping, entity)])
        return entity

    def _upsert_all(self, writes: list[tuple[TableMapping, BaseModel]]) -> None:
        """Write every entity in one transaction; nothing is stored if any write fails."""
        conn = self._get_conn()
        try:
            for mapping, entity in writes:
                self._write(conn, mapping, entity)
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _select_one(self, mapping: TableMapping, where: str, params: tuple[Any, ...]) -> Any:
        conn = self._get_conn()
        try:
            row = conn.execute(
                f"SELECT * FROM {mapping.table} WHERE {where}", tuple(to_db(p) for p in params)
            ).fetchone()
            return mapping.from_row(row) if row else None
        finally:
            conn.close()

    def _select_many(
        self,
        mapping: TableMapping,
        where: str,
        params: tuple[Any, ...],
        order_by: str | None = None,
        limit: int | None = None,
    ) -> list[Any]:
        query = f"SELECT * FROM {mapping.table} WHERE {where}"
        if order_by:
            query += f" ORDER BY {order_by}"
        if limit is not None:
            query += f" LIMIT {int(limit)}"
        conn = self._get_conn()
        try:
            rows = conn.execute(query, tuple(to_db(p) for p in params)).fetchall()
            return [mapping.from_row(r) for r in rows]
        finally:
            conn.close()

    def _execute(self, statement: str, params: tuple[Any, ...]) -> int:
        conn = self._get_conn()
        try:
            cursor = conn.execute(statement, tuple(to_db(p) for p in params))
            conn.commit()
            return cursor.rowcount
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
