"""製造指示・発注の CRUD API。"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.deps import get_repository
from app.utils import parse_status_param, week_or_none
from core.mps_repository import MpsRepository
from domain.models import (
    ProductionOrderCreate,
    ProductionOrderUpdate,
    ProductionStatus,
    PurchaseOrderCreate,
    PurchaseOrderUpdate,
    PurchaseStatus,
)
from engine.week_calendar import WeekKey

router = APIRouter()
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Production orders
# ---------------------------------------------------------------------------


@router.get("/api/production-orders")
def list_production_orders(
    product_id: Optional[int] = Query(None, alias="productId"),
    status: Optional[str] = Query(None),
    from_year: Optional[str] = Query(None, alias="fromYear"),
    from_week: Optional[str] = Query(None, alias="fromWeek"),
    to_year: Optional[str] = Query(None, alias="toYear"),
    to_week: Optional[str] = Query(None, alias="toWeek"),
    repo: MpsRepository = Depends(get_repository),
):
    # 一覧の週範囲は任意（片側だけの指定も可）
    return repo.list_production_orders(
        product_id=product_id,
        status=parse_status_param(ProductionStatus, status),
        start=week_or_none(from_year, from_week, prefix="from"),
        end=week_or_none(to_year, to_week, prefix="to"),
    )


@router.post("/api/production-orders", status_code=201)
def create_production_order(
    payload: ProductionOrderCreate, repo: MpsRepository = Depends(get_repository)
):
    new_id = repo.create_production_order(
        product_id=payload.product_id,
        quantity=payload.quantity,
        week=WeekKey(payload.plan_year, payload.plan_week),
        status=payload.status,
    )
    logger.info(f"production order created: id={new_id} status={payload.status.value}")
    return {"success": True, "id": new_id}


@router.put("/api/production-orders/{order_id}")
def update_production_order(
    order_id: int,
    payload: ProductionOrderUpdate,
    repo: MpsRepository = Depends(get_repository),
):
    if not repo.update_production_order(order_id, **payload.model_dump(exclude_unset=True)):
        raise HTTPException(status_code=404, detail="production order not found")
    return {"success": True}


@router.delete("/api/production-orders/{order_id}")
def delete_production_order(order_id: int, repo: MpsRepository = Depends(get_repository)):
    if not repo.delete_production_order(order_id):
        raise HTTPException(status_code=404, detail="production order not found")
    return {"success": True}


# ---------------------------------------------------------------------------
# Purchase orders
# ---------------------------------------------------------------------------


@router.get("/api/purchase-orders")
def list_purchase_orders(
    status: Optional[str] = Query(None),
    supplier_name: Optional[str] = Query(None, alias="supplierName"),
    po_number: Optional[str] = Query(None, alias="poNumber"),
    repo: MpsRepository = Depends(get_repository),
):
    return repo.list_purchase_orders(
        status=parse_status_param(PurchaseStatus, status),
        supplier_name=supplier_name,
        po_number=po_number,
    )


@router.get("/api/purchase-orders/{order_id}")
def get_purchase_order(order_id: int, repo: MpsRepository = Depends(get_repository)):
    header = repo.get_purchase_order(order_id)
    if header is None:
        raise HTTPException(status_code=404, detail="purchase order not found")
    return {**header, "lines": repo.list_purchase_order_lines(order_id)}


@router.get("/api/purchase-orders/{order_id}/lines")
def list_purchase_order_lines(order_id: int, repo: MpsRepository = Depends(get_repository)):
    if repo.get_purchase_order(order_id) is None:
        raise HTTPException(status_code=404, detail="purchase order not found")
    return repo.list_purchase_order_lines(order_id)


def _line_dicts(lines) -> list[dict]:
    out = []
    for ln in lines:
        row = ln.model_dump()
        # 明細金額の指定が無ければ 数量×単価
        if row.get("total_amount") is None:
            row["total_amount"] = float(row["quantity"]) * float(row.get("unit_price") or 0)
        out.append(row)
    return out


@router.post("/api/purchase-orders", status_code=201)
def create_purchase_order(
    payload: PurchaseOrderCreate, repo: MpsRepository = Depends(get_repository)
):
    header = payload.model_dump(exclude={"lines"})
    header["status"] = payload.status.value
    new_id = repo.create_purchase_order(header, _line_dicts(payload.lines))
    logger.info(
        f"purchase order created: id={new_id} lines={len(payload.lines)} status={payload.status.value}"
    )
    return {"success": True, "id": new_id}


@router.put("/api/purchase-orders/{order_id}")
def update_purchase_order(
    order_id: int,
    payload: PurchaseOrderUpdate,
    repo: MpsRepository = Depends(get_repository),
):
    header = payload.model_dump(exclude={"lines"}, exclude_unset=True)
    if header.get("status") is None:
        header.pop("status", None)
    else:
        header["status"] = header["status"].value
    lines = _line_dicts(payload.lines) if payload.lines is not None else None
    if not repo.update_purchase_order(order_id, header, lines):
        raise HTTPException(status_code=404, detail="purchase order not found")
    return {"success": True}


@router.delete("/api/purchase-orders/{order_id}")
def delete_purchase_order(order_id: int, repo: MpsRepository = Depends(get_repository)):
    if not repo.delete_purchase_order(order_id):
        raise HTTPException(status_code=404, detail="purchase order not found")
    return {"success": True}
