from fastapi import APIRouter, Depends, HTTPException, Query

from app.deps import get_repository
from core.mps_repository import MpsRepository
from domain.models import BomLineUpsert

router = APIRouter()


@router.get("/api/bom")
def list_bom(
    product_id: int = Query(..., alias="productId"),
    repo: MpsRepository = Depends(get_repository),
):
    return [
        {
            "productId": line.product_id,
            "materialId": line.material_id,
            "consumePerUnit": line.consume_per_unit,
        }
        for line in repo.list_bom_lines(product_id)
    ]


@router.put("/api/bom")
def upsert_bom(payload: BomLineUpsert, repo: MpsRepository = Depends(get_repository)):
    repo.upsert_bom_line(payload.product_id, payload.material_id, payload.consume_per_unit)
    return {"success": True}


@router.delete("/api/bom/{product_id}/{material_id}")
def delete_bom(product_id: int, material_id: int, repo: MpsRepository = Depends(get_repository)):
    if not repo.delete_bom_line(product_id, material_id):
        raise HTTPException(status_code=404, detail="bom line not found")
    return {"success": True}
