"""MPSデータ永続化レイヤ。

品目・BOM・期首残高・出荷計画・製造指示・発注の各テーブルへの読み書きを
一元化する。接続は生成関数として注入し、操作ごとに開いて閉じる。
statusの大文字小文字はここで正規化し、上位ロジックでは再正規化しない。
"""

from __future__ import annotations

import logging
import sqlite3
import time
from collections.abc import Callable, Iterable, Iterator, Sequence
from contextlib import closing, contextmanager
from typing import Any, Dict, List, Optional, Tuple

from domain.models import (
    BomLine,
    ItemType,
    OpeningBalance,
    ProductionStatus,
    PurchaseStatus,
)
from engine.ledger import MovementRow
from engine.week_calendar import WeekKey

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class MpsStorageError(RuntimeError):
    """ストレージ障害のラップド例外。"""


class MpsIntegrityError(MpsStorageError):
    """一意制約・外部キー制約違反。"""


class MpsTransactionError(MpsStorageError):
    """複数行の一括書込みに失敗し、バッチ全体をロールバックした。"""


class ItemNotFoundError(LookupError):
    """参照された品目が存在しない。"""


class _NullMetric:
    def labels(self, **_kwargs):  # pragma: no cover - noop
        return self

    def observe(self, *_args, **_kwargs):  # pragma: no cover - noop
        return None

    def inc(self, *_args, **_kwargs):  # pragma: no cover - noop
        return None


_ITEM_TABLES: Dict[ItemType, Tuple[str, str, str, str]] = {
    # table, id column, code column, name column
    ItemType.PRODUCT: ("products", "product_id", "product_code", "product_name"),
    ItemType.MATERIAL: ("materials", "material_id", "material_code", "material_name"),
}

# (year, week) の複合キー範囲条件
_RANGE_SQL = (
    "({y} > ? OR ({y} = ? AND {w} >= ?)) AND ({y} < ? OR ({y} = ? AND {w} <= ?))"
)


def _range_clause(year_col: str, week_col: str) -> str:
    return _RANGE_SQL.format(y=year_col, w=week_col)


def _range_params(start: WeekKey, end: WeekKey) -> Tuple[int, ...]:
    return (start.year, start.year, start.week, end.year, end.year, end.week)


def _float(value: Any, default: float = 0.0) -> float:
    if value is None:
        return default
    return float(value)


class MpsRepository:
    """MPSテーブル群へのアクセサ。"""

    def __init__(
        self,
        conn_factory: Callable[[], sqlite3.Connection],
        db_write_total: Any | None = None,
        db_write_error_total: Any | None = None,
        db_write_latency: Any | None = None,
    ):
        self._conn_factory = conn_factory
        self._db_write_total = db_write_total or _NullMetric()
        self._db_write_error_total = db_write_error_total or _NullMetric()
        self._db_write_latency = db_write_latency or _NullMetric()

    # --- connection helpers -----------------------------------------
    @contextmanager
    def _read(self) -> Iterator[sqlite3.Connection]:
        try:
            with closing(self._conn_factory()) as conn:
                yield conn
        except sqlite3.Error as exc:
            raise MpsStorageError(f"読出しに失敗しました: {exc}") from exc

    @contextmanager
    def _write(self, entity: str, *, batch: bool = False) -> Iterator[sqlite3.Connection]:
        """1トランザクションで書き込む。失敗時は全体をロールバックする。"""
        t0 = time.monotonic()
        try:
            conn = self._conn_factory()
        except sqlite3.Error as exc:
            self._db_write_error_total.labels(entity=entity, error_type=type(exc).__name__).inc()
            raise MpsStorageError(f"{entity}: DB接続に失敗しました: {exc}") from exc
        try:
            conn.execute("BEGIN IMMEDIATE")
            yield conn
            conn.commit()
            self._db_write_total.labels(entity=entity).inc()
        except sqlite3.Error as exc:
            conn.rollback()
            self._db_write_error_total.labels(entity=entity, error_type=type(exc).__name__).inc()
            logger.error(
                "mps_repository_write_failed",
                extra={"entity": entity, "batch": batch, "error": str(exc)},
            )
            if batch:
                raise MpsTransactionError(f"{entity}: 一括書込みに失敗しました: {exc}") from exc
            if isinstance(exc, sqlite3.IntegrityError):
                raise MpsIntegrityError(f"{entity}: 制約違反です: {exc}") from exc
            raise MpsStorageError(f"{entity}: 書込みに失敗しました: {exc}") from exc
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
            self._db_write_latency.labels(entity=entity).observe(time.monotonic() - t0)

    def _fetch_rows(self, sql: str, params: Sequence[Any] = ()) -> list[dict]:
        with self._read() as conn:
            return [dict(r) for r in conn.execute(sql, tuple(params)).fetchall()]

    # --- items ------------------------------------------------------
    def list_products(self) -> list[dict]:
        return self._fetch_rows(
            """
            SELECT product_id AS id, product_code AS code, product_name AS name,
                   image_url AS imageUrl
            FROM products
            ORDER BY product_code
            """
        )

    def list_bom_materials(self, product_id: int) -> list[dict]:
        return self._fetch_rows(
            """
            SELECT m.material_id AS id, m.material_code AS code, m.material_name AS name,
                   m.image_url AS imageUrl, b.consume_per_unit AS consumePerUnit
            FROM bom_lines b
            JOIN materials m ON m.material_id = b.material_id
            WHERE b.product_id = ?
            ORDER BY m.material_code
            """,
            (product_id,),
        )

    def list_items(
        self, item_type: Optional[ItemType] = None, search: Optional[str] = None
    ) -> list[dict]:
        parts: list[str] = []
        params: list[Any] = []
        like = f"%{search.strip()}%" if search and search.strip() else None
        for itype, (table, id_col, code_col, name_col) in _ITEM_TABLES.items():
            if item_type is not None and item_type != itype:
                continue
            where = ""
            if like:
                where = f"WHERE (t.{code_col} LIKE ? OR t.{name_col} LIKE ?)"
                params.extend([like, like])
            parts.append(
                f"""
                SELECT '{itype.value}' AS itemType, t.{id_col} AS id, t.{code_col} AS code,
                       t.{name_col} AS name, t.image_url AS imageUrl,
                       ob.start_year AS startYear, ob.start_week AS startWeek,
                       ob.balance_qty AS balanceQty
                FROM {table} t
                LEFT JOIN opening_balances ob
                  ON ob.item_type = '{itype.value}' AND ob.item_id = t.{id_col}
                {where}
                """
            )
        sql = " UNION ALL ".join(parts) + " ORDER BY itemType, code"
        return self._fetch_rows(sql, params)

    def get_item(self, item_type: ItemType, item_id: int) -> Optional[dict]:
        table, id_col, code_col, name_col = _ITEM_TABLES[item_type]
        rows = self._fetch_rows(
            f"""
            SELECT {id_col} AS id, {code_col} AS code, {name_col} AS name,
                   image_url AS imageUrl
            FROM {table} WHERE {id_col} = ?
            """,
            (item_id,),
        )
        return rows[0] if rows else None

    def create_item(
        self,
        item_type: ItemType,
        *,
        code: str,
        name: str,
        image_url: Optional[str] = None,
        opening: Optional[Tuple[WeekKey, float]] = None,
    ) -> int:
        table, _id_col, code_col, name_col = _ITEM_TABLES[item_type]
        now = _now_ms()
        with self._write(table) as conn:
            cur = conn.execute(
                f"INSERT INTO {table}({code_col}, {name_col}, image_url, created_at, updated_at) "
                "VALUES(?,?,?,?,?)",
                (code, name, image_url, now, now),
            )
            new_id = int(cur.lastrowid)
            if opening is not None:
                self._upsert_opening(conn, item_type, new_id, opening[0], opening[1], now)
        return new_id

    def update_item(
        self,
        item_type: ItemType,
        item_id: int,
        *,
        code: Optional[str] = None,
        name: Optional[str] = None,
        image_url: Optional[str] = None,
        opening: Optional[Tuple[WeekKey, float]] = None,
    ) -> None:
        table, id_col, code_col, name_col = _ITEM_TABLES[item_type]
        now = _now_ms()
        with self._write(table) as conn:
            cur = conn.execute(
                f"""
                UPDATE {table}
                SET {code_col} = COALESCE(?, {code_col}),
                    {name_col} = COALESCE(?, {name_col}),
                    image_url = COALESCE(?, image_url),
                    updated_at = ?
                WHERE {id_col} = ?
                """,
                (code or None, name or None, image_url, now, item_id),
            )
            if cur.rowcount == 0:
                raise ItemNotFoundError(f"{item_type.name.lower()} {item_id} not found")
            if opening is not None:
                self._upsert_opening(conn, item_type, item_id, opening[0], opening[1], now)

    def delete_item(self, item_type: ItemType, item_id: int) -> bool:
        """品目と期首残高を削除。BOM・台帳行は外部キーのCASCADEで消える。"""
        table, id_col, _code_col, _name_col = _ITEM_TABLES[item_type]
        with self._write(table) as conn:
            conn.execute(
                "DELETE FROM opening_balances WHERE item_type = ? AND item_id = ?",
                (item_type.value, item_id),
            )
            cur = conn.execute(f"DELETE FROM {table} WHERE {id_col} = ?", (item_id,))
            return cur.rowcount > 0

    # --- BOM --------------------------------------------------------
    def list_bom_lines(self, product_id: int) -> List[BomLine]:
        rows = self._fetch_rows(
            "SELECT product_id, material_id, consume_per_unit FROM bom_lines "
            "WHERE product_id = ? ORDER BY material_id",
            (product_id,),
        )
        return [self._row_to_bom_line(r) for r in rows]

    def list_bom_lines_for_material(self, material_id: int) -> List[BomLine]:
        rows = self._fetch_rows(
            "SELECT product_id, material_id, consume_per_unit FROM bom_lines "
            "WHERE material_id = ? ORDER BY product_id",
            (material_id,),
        )
        return [self._row_to_bom_line(r) for r in rows]

    def upsert_bom_line(self, product_id: int, material_id: int, consume_per_unit: float) -> None:
        now = _now_ms()
        with self._write("bom_lines") as conn:
            conn.execute(
                """
                INSERT INTO bom_lines(product_id, material_id, consume_per_unit, created_at, updated_at)
                VALUES(?,?,?,?,?)
                ON CONFLICT(product_id, material_id) DO UPDATE SET
                    consume_per_unit = excluded.consume_per_unit,
                    updated_at = excluded.updated_at
                """,
                (product_id, material_id, consume_per_unit, now, now),
            )

    def delete_bom_line(self, product_id: int, material_id: int) -> bool:
        with self._write("bom_lines") as conn:
            cur = conn.execute(
                "DELETE FROM bom_lines WHERE product_id = ? AND material_id = ?",
                (product_id, material_id),
            )
            return cur.rowcount > 0

    @staticmethod
    def _row_to_bom_line(row: dict) -> BomLine:
        return BomLine(
            product_id=int(row["product_id"]),
            material_id=int(row["material_id"]),
            consume_per_unit=_float(row["consume_per_unit"]),
        )

    # --- opening balances -------------------------------------------
    def get_opening_balance(self, item_type: ItemType, item_id: int) -> Optional[OpeningBalance]:
        rows = self._fetch_rows(
            "SELECT start_year, start_week, balance_qty FROM opening_balances "
            "WHERE item_type = ? AND item_id = ?",
            (item_type.value, item_id),
        )
        if not rows:
            return None
        r = rows[0]
        return OpeningBalance(
            item_type=item_type,
            item_id=item_id,
            anchor=WeekKey(int(r["start_year"]), int(r["start_week"])),
            balance_qty=_float(r["balance_qty"]),
        )

    def upsert_opening_balance(
        self, item_type: ItemType, item_id: int, anchor: WeekKey, balance_qty: float
    ) -> None:
        with self._write("opening_balances") as conn:
            self._upsert_opening(conn, item_type, item_id, anchor, balance_qty, _now_ms())

    @staticmethod
    def _upsert_opening(
        conn: sqlite3.Connection,
        item_type: ItemType,
        item_id: int,
        anchor: WeekKey,
        balance_qty: float,
        now: int,
    ) -> None:
        table, id_col, _code_col, _name_col = _ITEM_TABLES[item_type]
        exists = conn.execute(f"SELECT 1 FROM {table} WHERE {id_col} = ?", (item_id,)).fetchone()
        if not exists:
            raise ItemNotFoundError(f"{item_type.name.lower()} {item_id} not found")
        # UNIQUE(item_type, item_id) に対する単一文のupsert（2行目は作らない）
        conn.execute(
            """
            INSERT INTO opening_balances(item_type, item_id, start_year, start_week,
                                         balance_qty, created_at, updated_at)
            VALUES(?,?,?,?,?,?,?)
            ON CONFLICT(item_type, item_id) DO UPDATE SET
                start_year = excluded.start_year,
                start_week = excluded.start_week,
                balance_qty = excluded.balance_qty,
                updated_at = excluded.updated_at
            """,
            (item_type.value, item_id, anchor.year, anchor.week, balance_qty, now, now),
        )

    # --- sales plans ------------------------------------------------
    def list_sales_plan(self, product_id: int, start: WeekKey, end: WeekKey) -> List[MovementRow]:
        rows = self._fetch_rows(
            f"""
            SELECT product_id, plan_year, plan_week, ship_qty FROM sales_plans
            WHERE product_id = ? AND {_range_clause('plan_year', 'plan_week')}
            ORDER BY plan_year, plan_week
            """,
            (product_id, *_range_params(start, end)),
        )
        return [
            MovementRow(
                item_id=int(r["product_id"]),
                week=WeekKey(int(r["plan_year"]), int(r["plan_week"])),
                qty=_float(r["ship_qty"]),
            )
            for r in rows
        ]

    def upsert_sales_plan(
        self, product_id: int, plans: Iterable[Tuple[WeekKey, float]]
    ) -> int:
        """複数週の出荷計画を all-or-nothing で反映する。"""
        now = _now_ms()
        rows = [
            (product_id, week.year, week.week, float(qty or 0), now, now)
            for week, qty in plans
        ]
        with self._write("sales_plans", batch=True) as conn:
            conn.executemany(
                """
                INSERT INTO sales_plans(product_id, plan_year, plan_week, ship_qty,
                                        created_at, updated_at)
                VALUES(?,?,?,?,?,?)
                ON CONFLICT(product_id, plan_year, plan_week) DO UPDATE SET
                    ship_qty = excluded.ship_qty,
                    updated_at = excluded.updated_at
                """,
                rows,
            )
        return len(rows)

    # --- production -------------------------------------------------
    def list_production(
        self,
        product_id: Optional[int],
        start: WeekKey,
        end: WeekKey,
        statuses: Optional[Iterable[ProductionStatus]] = None,
    ) -> List[MovementRow]:
        sql = [
            "SELECT product_id, plan_year, plan_week, quantity, status FROM production_orders",
            f"WHERE {_range_clause('plan_year', 'plan_week')}",
        ]
        params: list[Any] = list(_range_params(start, end))
        if product_id is not None:
            sql.append("AND product_id = ?")
            params.append(product_id)
        if statuses is not None:
            values = [ProductionStatus.parse(s).value for s in statuses]
            sql.append(f"AND UPPER(status) IN ({','.join('?' * len(values))})")
            params.extend(values)
        sql.append("ORDER BY plan_year, plan_week, production_order_id")
        out: List[MovementRow] = []
        for r in self._fetch_rows(" ".join(sql), params):
            status = ProductionStatus.try_parse(r["status"])
            out.append(
                MovementRow(
                    item_id=int(r["product_id"]),
                    week=WeekKey(int(r["plan_year"]), int(r["plan_week"])),
                    qty=_float(r["quantity"]),
                    status=status.value if status else None,
                )
            )
        return out

    def list_production_orders(
        self,
        *,
        product_id: Optional[int] = None,
        status: Optional[ProductionStatus] = None,
        start: Optional[WeekKey] = None,
        end: Optional[WeekKey] = None,
    ) -> list[dict]:
        where: list[str] = []
        params: list[Any] = []
        if product_id:
            where.append("o.product_id = ?")
            params.append(product_id)
        if start is not None:
            where.append("(o.plan_year > ? OR (o.plan_year = ? AND o.plan_week >= ?))")
            params.extend([start.year, start.year, start.week])
        if end is not None:
            where.append("(o.plan_year < ? OR (o.plan_year = ? AND o.plan_week <= ?))")
            params.extend([end.year, end.year, end.week])
        if status is not None:
            where.append("UPPER(o.status) = ?")
            params.append(status.value)
        where_sql = (" WHERE " + " AND ".join(where)) if where else ""
        return self._fetch_rows(
            f"""
            SELECT o.production_order_id AS id, o.product_id AS productId,
                   p.product_code AS productCode, p.product_name AS productName,
                   o.quantity AS quantity, o.plan_year AS planYear, o.plan_week AS planWeek,
                   UPPER(o.status) AS status, o.created_at AS createdAt
            FROM production_orders o
            JOIN products p ON p.product_id = o.product_id
            {where_sql}
            ORDER BY o.plan_year DESC, o.plan_week DESC, o.production_order_id DESC
            """,
            params,
        )

    def create_production_order(
        self,
        *,
        product_id: int,
        quantity: float,
        week: WeekKey,
        status: ProductionStatus = ProductionStatus.INITIAL,
    ) -> int:
        now = _now_ms()
        with self._write("production_orders") as conn:
            cur = conn.execute(
                "INSERT INTO production_orders(product_id, quantity, plan_year, plan_week, status, "
                "created_at, updated_at) VALUES(?,?,?,?,?,?,?)",
                (product_id, quantity, week.year, week.week, status.value, now, now),
            )
            return int(cur.lastrowid)

    def update_production_order(self, order_id: int, **fields: Any) -> bool:
        """指定された列のみ更新（None は据え置き）。"""
        columns = {
            "product_id": "product_id",
            "quantity": "quantity",
            "plan_year": "plan_year",
            "plan_week": "plan_week",
            "status": "status",
        }
        sets: list[str] = []
        params: list[Any] = []
        for key, col in columns.items():
            value = fields.get(key)
            if value is None:
                continue
            if isinstance(value, ProductionStatus):
                value = value.value
            sets.append(f"{col} = ?")
            params.append(value)
        sets.append("updated_at = ?")
        params.append(_now_ms())
        params.append(order_id)
        with self._write("production_orders") as conn:
            cur = conn.execute(
                f"UPDATE production_orders SET {', '.join(sets)} WHERE production_order_id = ?",
                tuple(params),
            )
            return cur.rowcount > 0

    def delete_production_order(self, order_id: int) -> bool:
        with self._write("production_orders") as conn:
            cur = conn.execute(
                "DELETE FROM production_orders WHERE production_order_id = ?", (order_id,)
            )
            return cur.rowcount > 0

    # --- purchase ---------------------------------------------------
    def list_purchase(
        self,
        material_id: Optional[int],
        start: WeekKey,
        end: WeekKey,
        statuses: Optional[Iterable[PurchaseStatus]] = None,
    ) -> List[MovementRow]:
        sql = [
            "SELECT pol.material_id, pol.eta_year, pol.eta_week, pol.quantity, po.status",
            "FROM purchase_order_lines pol",
            "JOIN purchase_orders po ON po.purchase_order_id = pol.purchase_order_id",
            f"WHERE {_range_clause('pol.eta_year', 'pol.eta_week')}",
        ]
        params: list[Any] = list(_range_params(start, end))
        if material_id is not None:
            sql.append("AND pol.material_id = ?")
            params.append(material_id)
        if statuses is not None:
            values = [PurchaseStatus.parse(s).value for s in statuses]
            sql.append(f"AND UPPER(po.status) IN ({','.join('?' * len(values))})")
            params.extend(values)
        sql.append("ORDER BY pol.eta_year, pol.eta_week, pol.purchase_order_line_id")
        out: List[MovementRow] = []
        for r in self._fetch_rows(" ".join(sql), params):
            status = PurchaseStatus.try_parse(r["status"])
            out.append(
                MovementRow(
                    item_id=int(r["material_id"]),
                    week=WeekKey(int(r["eta_year"]), int(r["eta_week"])),
                    qty=_float(r["quantity"]),
                    status=status.value if status else None,
                )
            )
        return out

    _PO_HEADER_COLUMNS: Sequence[str] = (
        "po_number",
        "invoice_number",
        "supplier_name",
        "customer_code",
        "warehouse_code",
        "currency",
        "invoice_date",
        "status",
        "created_by",
        "assigned_to",
    )

    _PO_SELECT = """
        SELECT po.purchase_order_id AS id, po.po_number AS poNumber,
               po.invoice_number AS invoiceNumber, po.supplier_name AS supplierName,
               po.customer_code AS customerCode, po.warehouse_code AS warehouseCode,
               po.currency AS currency, po.invoice_date AS invoiceDate,
               po.total_amount AS totalAmount, UPPER(po.status) AS status,
               po.created_by AS createdBy, po.assigned_to AS assignedTo,
               po.created_at AS createdAt, po.updated_at AS updatedAt
    """

    def list_purchase_orders(
        self,
        *,
        status: Optional[PurchaseStatus] = None,
        supplier_name: Optional[str] = None,
        po_number: Optional[str] = None,
    ) -> list[dict]:
        where: list[str] = []
        params: list[Any] = []
        if status is not None:
            where.append("UPPER(po.status) = ?")
            params.append(status.value)
        if supplier_name:
            where.append("po.supplier_name LIKE ?")
            params.append(f"%{supplier_name}%")
        if po_number:
            where.append("po.po_number LIKE ?")
            params.append(f"%{po_number}%")
        where_sql = (" WHERE " + " AND ".join(where)) if where else ""
        return self._fetch_rows(
            self._PO_SELECT
            + """,
               (SELECT COUNT(*) FROM purchase_order_lines pol
                 WHERE pol.purchase_order_id = po.purchase_order_id) AS lineCount
            FROM purchase_orders po
            """
            + where_sql
            + " ORDER BY po.created_at DESC, po.purchase_order_id DESC",
            params,
        )

    def get_purchase_order(self, order_id: int) -> Optional[dict]:
        rows = self._fetch_rows(
            self._PO_SELECT + " FROM purchase_orders po WHERE po.purchase_order_id = ?",
            (order_id,),
        )
        return rows[0] if rows else None

    def list_purchase_order_lines(self, order_id: int) -> list[dict]:
        return self._fetch_rows(
            """
            SELECT pol.purchase_order_line_id AS id, pol.purchase_order_id AS purchaseOrderId,
                   pol.material_id AS materialId, m.material_code AS materialCode,
                   m.material_name AS materialName, pol.quantity AS quantity,
                   pol.unit AS unit, pol.unit_price AS unitPrice,
                   pol.total_amount AS totalAmount, pol.eta_year AS etaYear,
                   pol.eta_week AS etaWeek
            FROM purchase_order_lines pol
            JOIN materials m ON m.material_id = pol.material_id
            WHERE pol.purchase_order_id = ?
            ORDER BY pol.purchase_order_line_id
            """,
            (order_id,),
        )

    def create_purchase_order(self, header: Dict[str, Any], lines: Sequence[Dict[str, Any]]) -> int:
        """発注ヘッダと明細を1トランザクションで登録。合計金額は明細から算出。"""
        now = _now_ms()
        values = {col: header.get(col) for col in self._PO_HEADER_COLUMNS}
        values["currency"] = values.get("currency") or "VND"
        values["status"] = PurchaseStatus.parse(values.get("status") or "INITIAL").value
        total = sum(_float(ln.get("total_amount")) for ln in lines)
        cols = list(values.keys()) + ["total_amount", "created_at", "updated_at"]
        with self._write("purchase_orders", batch=True) as conn:
            cur = conn.execute(
                f"INSERT INTO purchase_orders({', '.join(cols)}) "
                f"VALUES({', '.join('?' * len(cols))})",
                (*values.values(), total, now, now),
            )
            po_id = int(cur.lastrowid)
            self._insert_po_lines(conn, po_id, lines, now)
        return po_id

    def update_purchase_order(
        self,
        order_id: int,
        header: Dict[str, Any],
        lines: Optional[Sequence[Dict[str, Any]]] = None,
    ) -> bool:
        """渡された列のみ更新。明細指定時は全置換し、合計金額を再計算する。"""
        now = _now_ms()
        sets: list[str] = []
        params: list[Any] = []
        for col in self._PO_HEADER_COLUMNS:
            if col not in header:
                continue
            value = header[col]
            if col == "status":
                value = PurchaseStatus.parse(value).value
            elif col == "currency":
                value = value or "VND"
            sets.append(f"{col} = ?")
            params.append(value)
        with self._write("purchase_orders", batch=True) as conn:
            exists = conn.execute(
                "SELECT 1 FROM purchase_orders WHERE purchase_order_id = ?", (order_id,)
            ).fetchone()
            if not exists:
                return False
            if sets:
                sets.append("updated_at = ?")
                conn.execute(
                    f"UPDATE purchase_orders SET {', '.join(sets)} WHERE purchase_order_id = ?",
                    (*params, now, order_id),
                )
            if lines is not None:
                conn.execute(
                    "DELETE FROM purchase_order_lines WHERE purchase_order_id = ?", (order_id,)
                )
                self._insert_po_lines(conn, order_id, lines, now)
                total = conn.execute(
                    "SELECT COALESCE(SUM(total_amount), 0) AS total FROM purchase_order_lines "
                    "WHERE purchase_order_id = ?",
                    (order_id,),
                ).fetchone()["total"]
                conn.execute(
                    "UPDATE purchase_orders SET total_amount = ?, updated_at = ? "
                    "WHERE purchase_order_id = ?",
                    (total, now, order_id),
                )
        return True

    def delete_purchase_order(self, order_id: int) -> bool:
        with self._write("purchase_orders") as conn:
            cur = conn.execute(
                "DELETE FROM purchase_orders WHERE purchase_order_id = ?", (order_id,)
            )
            return cur.rowcount > 0

    @staticmethod
    def _insert_po_lines(
        conn: sqlite3.Connection, po_id: int, lines: Sequence[Dict[str, Any]], now: int
    ) -> None:
        conn.executemany(
            """
            INSERT INTO purchase_order_lines(purchase_order_id, material_id, quantity, unit,
                                             unit_price, total_amount, eta_year, eta_week,
                                             created_at, updated_at)
            VALUES(?,?,?,?,?,?,?,?,?,?)
            """,
            [
                (
                    po_id,
                    ln["material_id"],
                    ln["quantity"],
                    ln.get("unit") or "PCS",
                    _float(ln.get("unit_price")),
                    _float(ln.get("total_amount")),
                    ln["eta_year"],
                    ln["eta_week"],
                    now,
                    now,
                )
                for ln in lines
            ],
        )
