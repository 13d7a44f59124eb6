"""週次台帳（出荷計画・生産・入荷）の参照・更新API。"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from fastapi import APIRouter, Depends, Query

from app.deps import get_repository, week_range
from app.metrics import SALES_PLAN_ROWS_WRITTEN
from core.mps_repository import MpsRepository
from domain.models import ProductionStatus, PurchaseStatus, SalesPlanBatch
from engine.ledger import (
    PRODUCTION_POLICY,
    PURCHASE_POLICY,
    aggregate_movements,
    to_records,
)
from engine.week_calendar import WeekKey

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/api/production")
def list_production(
    rng: Tuple[WeekKey, WeekKey] = Depends(week_range),
    product_id: Optional[int] = Query(None, alias="productId"),
    repo: MpsRepository = Depends(get_repository),
):
    """ACTIVE/COMPLETE の製造指示を製品×週で合算。"""
    start, end = rng
    rows = repo.list_production(
        product_id,
        start,
        end,
        statuses=(ProductionStatus.ACTIVE, ProductionStatus.COMPLETE),
    )
    return to_records(aggregate_movements(rows, start, end, policy=PRODUCTION_POLICY), "productId")


@router.get("/api/purchase")
def list_purchase(
    rng: Tuple[WeekKey, WeekKey] = Depends(week_range),
    material_id: Optional[int] = Query(None, alias="materialId"),
    repo: MpsRepository = Depends(get_repository),
):
    """CONFIRM 発注の明細を資材×入荷週で合算。"""
    start, end = rng
    rows = repo.list_purchase(material_id, start, end, statuses=(PurchaseStatus.CONFIRM,))
    return to_records(aggregate_movements(rows, start, end, policy=PURCHASE_POLICY), "materialId")


@router.get("/api/sales-plan")
def list_sales_plan(
    product_id: int = Query(..., alias="productId"),
    rng: Tuple[WeekKey, WeekKey] = Depends(week_range),
    repo: MpsRepository = Depends(get_repository),
):
    start, end = rng
    return [
        {"productId": r.item_id, "year": r.week.year, "week": r.week.week, "qty": r.qty}
        for r in repo.list_sales_plan(product_id, start, end)
    ]


@router.put("/api/sales-plan")
def upsert_sales_plan(payload: SalesPlanBatch, repo: MpsRepository = Depends(get_repository)):
    """複数週をまとめて反映。途中で失敗した場合は1件も反映しない。"""
    written = repo.upsert_sales_plan(
        payload.product_id,
        [(WeekKey(p.year, p.week), float(p.qty or 0)) for p in payload.plans],
    )
    SALES_PLAN_ROWS_WRITTEN.inc(written)
    logger.info(f"sales plan upserted: product={payload.product_id} rows={written}")
    return {"success": True, "count": written}
