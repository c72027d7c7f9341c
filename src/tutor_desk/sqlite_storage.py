"""SQLite-backed storage. Every create and update is its own committed statement."""
import sqlite3
from dataclasses import asdict, fields

from tutor_desk.db import TABLES, decode_column, encode_column, get_connection
from tutor_desk.errors import DuplicateUserError
from tutor_desk.models import ENUM_FIELDS, User
from tutor_desk.storage import Storage


def _integrity_to_duplicate(record, exc: sqlite3.IntegrityError) -> DuplicateUserError:
    # "UNIQUE constraint failed: users.email"
    column = str(exc).rsplit(".", 1)[-1]
    return DuplicateUserError(column, getattr(record, column, ""))


class SqliteStorage(Storage):
    def __init__(self, db_path: str):
        super().__init__()
        self.db_path = db_path

    def _row_to_record(self, model, row: sqlite3.Row):
        values = {f.name: decode_column(f.name, row[f.name]) for f in fields(model)}
        for name, enum_cls in ENUM_FIELDS.get(model, {}).items():
            if values[name] is not None:
                values[name] = enum_cls(values[name])
        return model(**values)

    def _insert(self, record) -> int:
        data = asdict(record)
        data.pop("id")
        columns = list(data)
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute(
                f"INSERT INTO {TABLES[type(record)]} ({', '.join(columns)}) "
                f"VALUES ({', '.join('?' for _ in columns)})",
                [encode_column(c, data[c]) for c in columns],
            )
            conn.commit()
            record_id = cursor.lastrowid
        except sqlite3.IntegrityError as exc:
            if isinstance(record, User):
                raise _integrity_to_duplicate(record, exc) from exc
            raise
        finally:
            conn.close()
        return record_id

    def _load(self, model, record_id: int):
        conn = get_connection(self.db_path)
        try:
            row = conn.execute(
                f"SELECT * FROM {TABLES[model]} WHERE id = ?", (record_id,)
            ).fetchone()
        finally:
            conn.close()
        return self._row_to_record(model, row) if row else None

    def _load_all(self, model, filters: dict) -> list:
        # Filter names were checked against the model's fields by Storage._list.
        sql = f"SELECT * FROM {TABLES[model]}"
        params = []
        if filters:
            clauses = []
            for name, value in filters.items():
                if value is None:
                    clauses.append(f"{name} IS NULL")
                else:
                    clauses.append(f"{name} = ?")
                    params.append(encode_column(name, value))
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY id"
        conn = get_connection(self.db_path)
        try:
            rows = conn.execute(sql, params).fetchall()
        finally:
            conn.close()
        return [self._row_to_record(model, row) for row in rows]

    def _store(self, record) -> None:
        data = asdict(record)
        record_id = data.pop("id")
        columns = list(data)
        conn = get_connection(self.db_path)
        try:
            conn.execute(
                f"UPDATE {TABLES[type(record)]} SET {', '.join(f'{c} = ?' for c in columns)} WHERE id = ?",
                [encode_column(c, data[c]) for c in columns] + [record_id],
            )
            conn.commit()
        except sqlite3.IntegrityError as exc:
            if isinstance(record, User):
                raise _integrity_to_duplicate(record, exc) from exc
            raise
        finally:
            conn.close()
