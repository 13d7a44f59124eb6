"""サンプルの品目・BOM・期首残高・製造指示・発注をDBへ投入するスクリプト。

既に同じコードの品目があれば再作成しない。製造指示・発注は空のときのみ投入する。
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

_ROOT = Path(__file__).resolve().parents[1]
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from app import db  # noqa: E402
from core.mps_repository import MpsRepository  # noqa: E402
from domain.models import ItemType, ProductionStatus  # noqa: E402
from engine.week_calendar import WeekKey  # noqa: E402

ANCHOR = WeekKey(2025, 47)

PRODUCTS = [("589", "Thành phẩm A"), ("990", "Thành phẩm B"), ("P001", "Sản phẩm mẫu 1")]
MATERIALS = [
    ("NVL3", "Nguyên vật liệu 3"),
    ("NVL4", "Nguyên vật liệu 4"),
    ("NVL5", "Nguyên vật liệu 5"),
    ("M001", "Vật liệu mẫu 1"),
]
# (product code, material code, consume per unit)
BOM = [
    ("589", "NVL3", 1),
    ("589", "NVL4", 1),
    ("589", "NVL5", 1),
    ("990", "NVL3", 2),
    ("990", "NVL4", 1),
]
OPENING = [
    (ItemType.PRODUCT, "589", 20),
    (ItemType.PRODUCT, "990", 50),
    (ItemType.MATERIAL, "NVL3", 10),
    (ItemType.MATERIAL, "NVL4", 10),
    (ItemType.MATERIAL, "NVL5", 10),
]
# INITIAL はMPSに影響しない
PRODUCTION = [
    ("589", 5, WeekKey(2025, 48), ProductionStatus.ACTIVE),
    ("589", 5, WeekKey(2025, 49), ProductionStatus.ACTIVE),
    ("990", 3, WeekKey(2025, 49), ProductionStatus.COMPLETE),
    ("589", 10, WeekKey(2025, 50), ProductionStatus.INITIAL),
]
# (status, [(material code, qty, eta)])
PURCHASES = [
    ("CONFIRM", [("NVL3", 5, WeekKey(2025, 49))]),
    ("CONFIRM", [("NVL4", 5, WeekKey(2025, 49)), ("NVL5", 5, WeekKey(2025, 49))]),
    ("INITIAL", []),
]


def _ensure_items(repo: MpsRepository, item_type: ItemType, rows) -> dict[str, int]:
    existing = {r["code"]: int(r["id"]) for r in repo.list_items(item_type)}
    for code, name in rows:
        if code not in existing:
            existing[code] = repo.create_item(item_type, code=code, name=name)
    return existing


def seed(repo: MpsRepository) -> dict[str, int]:
    products = _ensure_items(repo, ItemType.PRODUCT, PRODUCTS)
    materials = _ensure_items(repo, ItemType.MATERIAL, MATERIALS)
    for p_code, m_code, rate in BOM:
        repo.upsert_bom_line(products[p_code], materials[m_code], rate)
    for item_type, code, qty in OPENING:
        ids = products if item_type is ItemType.PRODUCT else materials
        repo.upsert_opening_balance(item_type, ids[code], ANCHOR, qty)

    created_orders = 0
    if not repo.list_production_orders():
        for code, qty, week, status in PRODUCTION:
            repo.create_production_order(
                product_id=products[code], quantity=qty, week=week, status=status
            )
            created_orders += 1
    created_pos = 0
    if not repo.list_purchase_orders():
        for status, lines in PURCHASES:
            # 明細なしの発注はヘッダのみ登録
            repo.create_purchase_order(
                {"status": status},
                [
                    {
                        "material_id": materials[code],
                        "quantity": qty,
                        "eta_year": eta.year,
                        "eta_week": eta.week,
                    }
                    for code, qty, eta in lines
                ],
            )
            created_pos += 1
    return {
        "products": len(products),
        "materials": len(materials),
        "production_orders": created_orders,
        "purchase_orders": created_pos,
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="MPSサンプルデータを投入します。")
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="SQLite DBパス（未指定時は MPS_DB もしくは既定DB）",
    )
    args = parser.parse_args()

    if args.db:
        db.set_db_path(str(args.db))
    db.init_db()
    counts = seed(MpsRepository(db._conn))
    print(
        "sample seeded: "
        + ", ".join(f"{k}={v}" for k, v in counts.items())
        + f" (db={db._db_path()})"
    )


if __name__ == "__main__":
    main()
