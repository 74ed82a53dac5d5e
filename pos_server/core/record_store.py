"""
通用记录存储
业务服务只通过 find/get/insert/update/delete 访问持久化层，不直接拼 SQL。

过滤条件约定：
- {"status": "paid"}                 等值
- {"status": ["pending", "ready"]}  IN
- {"created_at__gte": dt}           >=，同理 __lte / __gt / __lt / __ne
排序：order_by="created_at" 升序，"-created_at" 降序
"""

import json
import re
from contextlib import contextmanager
from typing import Any, Dict, Generator, List, Optional, Protocol, Sequence, Tuple

import duckdb

from .database import DatabaseManager
from .exceptions import DatabaseError, DuplicateRecordError, RecordNotFoundError


# 每个集合允许的列，以及需要以 JSON 文本存储的列
COLLECTIONS: Dict[str, Dict[str, frozenset]] = {
    "orders": {
        "columns": frozenset({
            "id", "table_number", "items", "status", "total", "service_fee",
            "payment_method", "paid_amount", "change_amount", "parent_order_id",
            "split_with", "created_at", "updated_at",
        }),
        "json": frozenset({"items", "split_with"}),
    },
    "cash_registers": {
        "columns": frozenset({
            "id", "opened_at", "initial_amount", "status", "cash_sales", "card_sales",
            "pix_sales", "meal_ticket_sales", "notes", "closed_at", "final_amount",
            "difference",
        }),
        "json": frozenset(),
    },
    "register_locks": {
        "columns": frozenset({"id", "register_id", "created_at"}),
        "json": frozenset(),
    },
    "logs": {
        "columns": frozenset({"id", "actor_id", "action", "ref_id", "detail_json", "created_at"}),
        "json": frozenset({"detail_json"}),
    },
}

_OPERATORS = {
    "gte": ">=",
    "lte": "<=",
    "gt": ">",
    "lt": "<",
    "ne": "<>",
}

_IDENT = re.compile(r"^[a-z_]+$")


class RecordStore(Protocol):
    """持久化协作者接口"""

    def find(self, collection: str, filters: Optional[Dict[str, Any]] = None,
             order_by: Optional[str] = None, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        ...

    def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        ...

    def insert(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def update(self, collection: str, record_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def delete(self, collection: str, record_id: str) -> None:
        ...

    def transaction(self):
        ...


class DuckDBRecordStore:
    """基于 DuckDB 的记录存储实现"""

    def __init__(self, db: DatabaseManager):
        self.db = db

    def find(self, collection: str, filters: Optional[Dict[str, Any]] = None,
             order_by: Optional[str] = None, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        layout = self._layout(collection)
        where, params = self._build_where(collection, layout, filters or {})
        sql = f"SELECT * FROM {collection}{where}"
        if order_by:
            descending = order_by.startswith("-")
            column = order_by.lstrip("-")
            self._check_column(collection, layout, column)
            sql += f" ORDER BY {column} {'DESC' if descending else 'ASC'}"
        if limit is not None:
            sql += f" LIMIT {int(limit)}"
        return self._fetch(collection, layout, sql, params)

    def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        rows = self.find(collection, {"id": record_id})
        return rows[0] if rows else None

    def insert(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        layout = self._layout(collection)
        if not record.get("id"):
            raise DatabaseError(f"插入 {collection} 记录缺少 id")
        columns = list(record.keys())
        for column in columns:
            self._check_column(collection, layout, column)
        placeholders = ", ".join("?" for _ in columns)
        sql = (
            f"INSERT INTO {collection} ({', '.join(columns)}) "
            f"VALUES ({placeholders}) RETURNING *"
        )
        params = [self._encode(layout, c, record[c]) for c in columns]
        rows = self._fetch(collection, layout, sql, params)
        return rows[0]

    def update(self, collection: str, record_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        layout = self._layout(collection)
        if not patch:
            existing = self.get(collection, record_id)
            if existing is None:
                raise RecordNotFoundError(collection, record_id)
            return existing
        assignments = []
        params = []
        for column, value in patch.items():
            self._check_column(collection, layout, column)
            if column == "id":
                raise DatabaseError("不允许修改记录 id")
            assignments.append(f"{column} = ?")
            params.append(self._encode(layout, column, value))
        params.append(record_id)
        sql = f"UPDATE {collection} SET {', '.join(assignments)} WHERE id = ? RETURNING *"
        rows = self._fetch(collection, layout, sql, params)
        if not rows:
            raise RecordNotFoundError(collection, record_id)
        return rows[0]

    def delete(self, collection: str, record_id: str) -> None:
        layout = self._layout(collection)
        rows = self._fetch(collection, layout, f"DELETE FROM {collection} WHERE id = ? RETURNING id", [record_id])
        if not rows:
            raise RecordNotFoundError(collection, record_id)

    @contextmanager
    def transaction(self) -> Generator[None, None, None]:
        """多条写操作的原子性边界"""
        try:
            with self.db.transaction():
                yield
        except duckdb.Error as e:
            raise DatabaseError(f"数据库事务失败: {e}")

    def _layout(self, collection: str) -> Dict[str, frozenset]:
        layout = COLLECTIONS.get(collection)
        if layout is None:
            raise DatabaseError(f"未知集合: {collection}")
        return layout

    def _check_column(self, collection: str, layout: Dict[str, frozenset], column: str):
        if not _IDENT.match(column) or column not in layout["columns"]:
            raise DatabaseError(f"{collection} 不存在字段 {column}")

    def _build_where(self, collection: str, layout: Dict[str, frozenset],
                     filters: Dict[str, Any]) -> Tuple[str, List[Any]]:
        clauses = []
        params: List[Any] = []
        for key, value in filters.items():
            column, _, op = key.partition("__")
            self._check_column(collection, layout, column)
            if op:
                if op not in _OPERATORS:
                    raise DatabaseError(f"不支持的过滤操作: {op}")
                clauses.append(f"{column} {_OPERATORS[op]} ?")
                params.append(self._encode(layout, column, value))
            elif value is None:
                clauses.append(f"{column} IS NULL")
            elif isinstance(value, (list, tuple, set, frozenset)):
                values = list(value)
                if not values:
                    clauses.append("FALSE")
                    continue
                clauses.append(f"{column} IN ({', '.join('?' for _ in values)})")
                params.extend(self._encode(layout, column, v) for v in values)
            else:
                clauses.append(f"{column} = ?")
                params.append(self._encode(layout, column, value))
        if not clauses:
            return "", params
        return " WHERE " + " AND ".join(clauses), params

    def _encode(self, layout: Dict[str, frozenset], column: str, value: Any) -> Any:
        if column in layout["json"] and value is not None:
            return json.dumps(value, ensure_ascii=False, default=str)
        # str 枚举按值存储
        if hasattr(value, "value") and isinstance(getattr(value, "value"), str):
            return value.value
        return value

    def _decode_row(self, layout: Dict[str, frozenset], columns: Sequence[str],
                    row: Sequence[Any]) -> Dict[str, Any]:
        record = dict(zip(columns, row))
        for column in layout["json"]:
            raw = record.get(column)
            if isinstance(raw, str):
                record[column] = json.loads(raw)
        return record

    def _fetch(self, collection: str, layout: Dict[str, frozenset], sql: str,
               params: List[Any]) -> List[Dict[str, Any]]:
        with self.db.locked() as conn:
            try:
                cursor = conn.execute(sql, params)
                columns = [d[0] for d in cursor.description] if cursor.description else []
                rows = cursor.fetchall() if columns else []
            except duckdb.ConstraintException as e:
                text = str(e).lower()
                if "duplicate key" in text or "unique" in text or "primary key" in text:
                    raise DuplicateRecordError(collection)
                raise DatabaseError(f"数据约束冲突: {e}")
            except duckdb.Error as e:
                raise DatabaseError(f"数据库操作失败: {e}")
        return [self._decode_row(layout, columns, row) for row in rows]
