from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, Mapping, Sequence

from domain.models import BomLine
from engine.ledger import LedgerKey
from engine.week_calendar import WeekKey


def derive_consumption(
    production_by_week: Mapping[WeekKey, float],
    bom_lines: Iterable[BomLine],
) -> Dict[LedgerKey, float]:
    """1製品の週別生産量をBOM原単位で資材の週別消費量へ展開する。

    BOM行が無ければ空（全資材・全週で消費0）。行同士は独立で按分はしない。
    """
    out: Dict[LedgerKey, float] = defaultdict(float)
    for line in bom_lines:
        rate = float(line.consume_per_unit or 0)
        for week, qty in production_by_week.items():
            out[(line.material_id, week)] += float(qty) * rate
    return dict(out)


def material_consumption(
    material_id: int,
    production_by_product: Mapping[int, Mapping[WeekKey, float]],
    bom_by_product: Mapping[int, Sequence[BomLine]],
) -> Dict[WeekKey, float]:
    """資材を使う全製品の派生消費を週単位で合算（単段BOMのみ）。"""
    total: Dict[WeekKey, float] = defaultdict(float)
    for product_id, series in production_by_product.items():
        lines = [
            ln for ln in bom_by_product.get(product_id, ()) if ln.material_id == material_id
        ]
        if not lines:
            continue
        for (mid, week), qty in derive_consumption(series, lines).items():
            total[week] += qty
    return dict(total)
