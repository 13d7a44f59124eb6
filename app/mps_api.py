from __future__ import annotations

import time
from typing import Tuple

from fastapi import APIRouter, Depends, Query

from app.deps import get_planner, week_range
from app.metrics import PROJECTION_DURATION, PROJECTION_REQUESTS, PROJECTION_WEEKS
from core.mps_planner import MpsPlanner
from engine.week_calendar import WeekKey

router = APIRouter()


def _observe(item_type: str, t0: float, weeks: int) -> None:
    PROJECTION_REQUESTS.labels(item_type=item_type).inc()
    PROJECTION_DURATION.labels(item_type=item_type).observe(time.monotonic() - t0)
    PROJECTION_WEEKS.observe(weeks)


@router.get("/api/mps/products/{product_id}/balances")
def product_balances(
    product_id: int,
    rng: Tuple[WeekKey, WeekKey] = Depends(week_range),
    planner: MpsPlanner = Depends(get_planner),
):
    t0 = time.monotonic()
    start, end = rng
    points = planner.product_projection(product_id, start, end)
    _observe("product", t0, len(points))
    return {"productId": product_id, "balances": [p.to_record() for p in points]}


@router.get("/api/mps/materials/{material_id}/balances")
def material_balances(
    material_id: int,
    rng: Tuple[WeekKey, WeekKey] = Depends(week_range),
    planner: MpsPlanner = Depends(get_planner),
):
    t0 = time.monotonic()
    start, end = rng
    points = planner.material_projection(material_id, start, end)
    _observe("material", t0, len(points))
    return {"materialId": material_id, "balances": [p.to_record() for p in points]}


@router.get("/api/mps/overview")
def overview(
    product_id: int = Query(..., alias="productId"),
    rng: Tuple[WeekKey, WeekKey] = Depends(week_range),
    planner: MpsPlanner = Depends(get_planner),
):
    """製品と、そのBOM構成資材の残高推移をまとめて返す。"""
    t0 = time.monotonic()
    start, end = rng
    result = planner.product_overview(product_id, start, end)
    _observe("overview", t0, len(result["product"]["balances"]))
    return result
