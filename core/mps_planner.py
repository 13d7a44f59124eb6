"""製品・資材の週次残高推移を組み立てるオーケストレーション層。

リポジトリから期首残高と台帳行を読み出し、engine 側の集計・BOM展開・推移計算を
順に適用する。台帳の読出し範囲はアンカー週まで遡るため、要求範囲の一部だけを
照会しても残高は全期間計算の切り出しと一致する。
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from domain.models import ItemType, OpeningBalance, ProductionStatus, PurchaseStatus
from engine.bom import material_consumption
from engine.ledger import (
    PRODUCTION_POLICY,
    PURCHASE_POLICY,
    aggregate_movements,
    series_for,
)
from engine.projection import BalancePoint, project_balances
from engine.week_calendar import WeekKey, validate_range

from core.mps_repository import MpsRepository

logger = logging.getLogger(__name__)

_INFLOW_PRODUCTION = (ProductionStatus.ACTIVE, ProductionStatus.COMPLETE)
_INFLOW_PURCHASE = (PurchaseStatus.CONFIRM,)


def _walk_start(opening: Optional[OpeningBalance], start: WeekKey) -> WeekKey:
    if opening is not None and opening.anchor < start:
        return opening.anchor
    return start


class MpsPlanner:
    def __init__(self, repository: MpsRepository):
        self._repo = repository

    def _production_by_product(
        self, product_id: Optional[int], start: WeekKey, end: WeekKey
    ) -> Dict[Tuple[int, WeekKey], float]:
        rows = self._repo.list_production(product_id, start, end, statuses=_INFLOW_PRODUCTION)
        return aggregate_movements(rows, start, end, policy=PRODUCTION_POLICY)

    def product_projection(
        self, product_id: int, start: WeekKey, end: WeekKey
    ) -> List[BalancePoint]:
        """製品残高: outflow=出荷計画, inflow=ACTIVE/COMPLETEの製造指示。"""
        validate_range(start, end)
        opening = self._repo.get_opening_balance(ItemType.PRODUCT, product_id)
        walk_from = _walk_start(opening, start)

        shipped = aggregate_movements(
            self._repo.list_sales_plan(product_id, walk_from, end), walk_from, end
        )
        produced = self._production_by_product(product_id, walk_from, end)
        points = project_balances(
            opening,
            series_for(shipped, product_id),
            series_for(produced, product_id),
            start,
            end,
        )
        logger.debug(
            "product projection computed",
            extra={"product_id": product_id, "weeks": len(points), "has_opening": bool(opening)},
        )
        return points

    def material_projection(
        self, material_id: int, start: WeekKey, end: WeekKey
    ) -> List[BalancePoint]:
        """資材残高: outflow=全製品のBOM派生消費, inflow=CONFIRM発注の入荷。"""
        validate_range(start, end)
        opening = self._repo.get_opening_balance(ItemType.MATERIAL, material_id)
        walk_from = _walk_start(opening, start)

        bom_lines = self._repo.list_bom_lines_for_material(material_id)
        bom_by_product: Dict[int, list] = {}
        for line in bom_lines:
            bom_by_product.setdefault(line.product_id, []).append(line)

        production_by_product: Dict[int, Dict[WeekKey, float]] = {}
        if bom_by_product:
            produced = self._production_by_product(None, walk_from, end)
            for product_id in bom_by_product:
                production_by_product[product_id] = series_for(produced, product_id)
        consumed = material_consumption(material_id, production_by_product, bom_by_product)

        purchased = aggregate_movements(
            self._repo.list_purchase(material_id, walk_from, end, statuses=_INFLOW_PURCHASE),
            walk_from,
            end,
            policy=PURCHASE_POLICY,
        )
        points = project_balances(
            opening, consumed, series_for(purchased, material_id), start, end
        )
        logger.debug(
            "material projection computed",
            extra={
                "material_id": material_id,
                "weeks": len(points),
                "products": len(bom_by_product),
            },
        )
        return points

    def product_overview(self, product_id: int, start: WeekKey, end: WeekKey) -> Dict[str, Any]:
        """製品の残高推移と、BOM構成資材ごとの残高推移をまとめて返す。"""
        validate_range(start, end)
        # 未登録の製品でも残高0の系列を返す
        product = self._repo.get_item(ItemType.PRODUCT, product_id) or {}
        materials = []
        for m in self._repo.list_bom_materials(product_id):
            series = self.material_projection(int(m["id"]), start, end)
            materials.append(
                {
                    "materialId": m["id"],
                    "code": m["code"],
                    "name": m["name"],
                    "consumePerUnit": m["consumePerUnit"],
                    "balances": [p.to_record() for p in series],
                }
            )
        return {
            "product": {
                "productId": product_id,
                "code": product.get("code"),
                "name": product.get("name"),
                "balances": [
                    p.to_record() for p in self.product_projection(product_id, start, end)
                ],
            },
            "materials": materials,
        }
