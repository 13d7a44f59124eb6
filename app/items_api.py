from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.deps import get_repository
from core.mps_repository import ItemNotFoundError, MpsRepository
from domain.models import ItemCreate, ItemType, ItemUpdate, OpeningBalanceUpsert
from engine.week_calendar import WeekKey

router = APIRouter()
logger = logging.getLogger(__name__)


def _item_type(value: str) -> ItemType:
    try:
        return ItemType.parse(value)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _opening_from(payload) -> Optional[tuple[WeekKey, float]]:
    # 年・週・数量の3つが揃ったときだけ期首残高を登録する
    if (
        payload.opening_year is None
        or payload.opening_week is None
        or payload.opening_balance is None
    ):
        return None
    return WeekKey(payload.opening_year, payload.opening_week), float(payload.opening_balance)


@router.get("/api/products")
def list_products(repo: MpsRepository = Depends(get_repository)):
    return repo.list_products()


@router.get("/api/materials")
def list_materials(
    product_id: int = Query(..., alias="productId"),
    repo: MpsRepository = Depends(get_repository),
):
    """製品のBOM構成資材。"""
    return repo.list_bom_materials(product_id)


@router.get("/api/items")
def list_items(
    type: Optional[str] = Query(None),
    q: Optional[str] = Query(None),
    repo: MpsRepository = Depends(get_repository),
):
    item_type = _item_type(type) if type else None
    return repo.list_items(item_type, q)


@router.post("/api/items", status_code=201)
def create_item(payload: ItemCreate, repo: MpsRepository = Depends(get_repository)):
    new_id = repo.create_item(
        payload.type,
        code=payload.code.strip(),
        name=payload.name.strip(),
        image_url=payload.image_url,
        opening=_opening_from(payload),
    )
    logger.info(f"item created: type={payload.type.value} id={new_id}")
    return {"success": True, "id": new_id}


@router.put("/api/items/{item_type}/{item_id}")
def update_item(
    item_type: str,
    item_id: int,
    payload: ItemUpdate,
    repo: MpsRepository = Depends(get_repository),
):
    repo.update_item(
        _item_type(item_type),
        item_id,
        code=(payload.code or "").strip() or None,
        name=(payload.name or "").strip() or None,
        image_url=payload.image_url,
        opening=_opening_from(payload),
    )
    return {"success": True}


@router.delete("/api/items/{item_type}/{item_id}")
def delete_item(item_type: str, item_id: int, repo: MpsRepository = Depends(get_repository)):
    itype = _item_type(item_type)
    if not repo.delete_item(itype, item_id):
        raise ItemNotFoundError(f"{itype.name.lower()} {item_id} not found")
    logger.info(f"item deleted: type={itype.value} id={item_id}")
    return {"success": True}


@router.get("/api/opening-balance/{item_type}/{item_id}")
def get_opening_balance(
    item_type: str, item_id: int, repo: MpsRepository = Depends(get_repository)
):
    """未登録なら null を返す（404にはしない）。"""
    ob = repo.get_opening_balance(_item_type(item_type), item_id)
    if ob is None:
        return None
    return {
        "itemType": ob.item_type.value,
        "itemId": ob.item_id,
        "startYear": ob.anchor.year,
        "startWeek": ob.anchor.week,
        "balanceQty": ob.balance_qty,
    }


@router.put("/api/opening-balance")
def upsert_opening_balance(
    payload: OpeningBalanceUpsert, repo: MpsRepository = Depends(get_repository)
):
    repo.upsert_opening_balance(
        payload.item_type,
        payload.item_id,
        WeekKey(payload.start_year, payload.start_week),
        payload.balance_qty,
    )
    return {"success": True}
