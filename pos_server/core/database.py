"""
数据库连接和管理模块
负责 DuckDB 数据库的初始化、连接管理和表结构定义

数据库表说明：
- orders: 桌台订单（含分账生成的子订单）
- cash_registers: 收银台开关记录
- register_locks: 开启中的收银台占位（主键唯一，保证同一时间只有一个收银台开启）
- logs: 系统操作日志
"""

import duckdb
from pathlib import Path
from typing import Optional, Generator
from contextlib import contextmanager
import threading

from .exceptions import DatabaseError
from ..config.settings import Settings

# 金额统一使用 DECIMAL(18,4)：单价两位小数，服务费按未舍入的总额计算，需要额外精度
SCHEMA_SQL = r"""
CREATE TABLE IF NOT EXISTS orders (
  id TEXT PRIMARY KEY,
  table_number TEXT NOT NULL,
  items TEXT NOT NULL,
  status TEXT CHECK(status IN ('pending','preparing','ready','delivered','paid','cancelled')) NOT NULL,
  total DECIMAL(18,4) NOT NULL,
  service_fee DECIMAL(18,4) NOT NULL DEFAULT 0,
  payment_method TEXT CHECK(payment_method IN ('credit','debit','pix','cash','meal-ticket')),
  paid_amount DECIMAL(18,4),
  change_amount DECIMAL(18,4),
  parent_order_id TEXT,
  split_with TEXT,
  created_at TIMESTAMP NOT NULL,
  updated_at TIMESTAMP
);

CREATE TABLE IF NOT EXISTS cash_registers (
  id TEXT PRIMARY KEY,
  opened_at TIMESTAMP NOT NULL,
  initial_amount DECIMAL(18,4) NOT NULL,
  status TEXT CHECK(status IN ('open','closed')) NOT NULL,
  cash_sales DECIMAL(18,4) NOT NULL DEFAULT 0,
  card_sales DECIMAL(18,4) NOT NULL DEFAULT 0,
  pix_sales DECIMAL(18,4) NOT NULL DEFAULT 0,
  meal_ticket_sales DECIMAL(18,4) NOT NULL DEFAULT 0,
  notes TEXT,
  closed_at TIMESTAMP,
  final_amount DECIMAL(18,4),
  difference DECIMAL(18,4)
);

CREATE TABLE IF NOT EXISTS register_locks (
  id TEXT PRIMARY KEY,
  register_id TEXT NOT NULL,
  created_at TIMESTAMP NOT NULL
);

CREATE TABLE IF NOT EXISTS logs (
  id TEXT PRIMARY KEY,
  actor_id TEXT,
  action TEXT NOT NULL,
  ref_id TEXT,
  detail_json TEXT,
  created_at TIMESTAMP NOT NULL
);
"""


def resolve_db_path(database_url: str) -> str:
    """把 duckdb:// 形式的地址转换为文件路径，:memory: 原样返回"""
    if database_url.startswith("duckdb://"):
        path = database_url.replace("duckdb://", "", 1)
    else:
        path = database_url
    if path in ("", ":memory:"):
        return ":memory:"
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    return path


class DatabaseManager:
    """数据库管理器，持有单一连接并串行化所有访问"""

    def __init__(self, settings: Settings):
        self._connection: Optional[duckdb.DuckDBPyConnection] = None
        self._lock = threading.RLock()
        self._tx_depth = 0
        self.db_path = resolve_db_path(settings.database_url)

    @property
    def connection(self) -> duckdb.DuckDBPyConnection:
        """获取数据库连接"""
        with self._lock:
            if self._connection is None:
                try:
                    self._connection = duckdb.connect(self.db_path)
                except duckdb.Error as e:
                    raise DatabaseError(f"无法连接数据库: {e}")
                self._init_schema()
            return self._connection

    def _init_schema(self):
        """初始化数据库表结构"""
        try:
            self._connection.execute(SCHEMA_SQL)
        except duckdb.Error as e:
            raise DatabaseError(f"Failed to initialize schema: {e}")

    def init_database(self):
        """初始化数据库（首次访问连接时建表）"""
        return self.connection

    @contextmanager
    def locked(self) -> Generator[duckdb.DuckDBPyConnection, None, None]:
        """在锁内使用连接，单条语句自动提交"""
        with self._lock:
            yield self.connection

    @contextmanager
    def transaction(self) -> Generator[duckdb.DuckDBPyConnection, None, None]:
        """
        数据库事务上下文管理器

        任何异常都会回滚；driver 异常之外的应用异常原样抛出。
        嵌套调用并入最外层事务，由最外层统一提交或回滚
        """
        with self._lock:
            conn = self.connection
            if self._tx_depth:
                self._tx_depth += 1
                try:
                    yield conn
                finally:
                    self._tx_depth -= 1
                return

            conn.execute("BEGIN")
            self._tx_depth = 1
            try:
                yield conn
                conn.execute("COMMIT")
            except Exception:
                conn.execute("ROLLBACK")
                raise
            finally:
                self._tx_depth = 0

    def close(self):
        """关闭连接"""
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None
