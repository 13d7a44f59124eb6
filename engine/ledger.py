from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Optional, Tuple

from domain.models import ProductionStatus, PurchaseStatus
from engine.projection import QTY_DECIMALS
from engine.week_calendar import WeekKey, in_range

logger = logging.getLogger(__name__)

LedgerKey = Tuple[int, WeekKey]


@dataclass(frozen=True)
class MovementRow:
    """台帳の1行（品目×週×数量）。statusは受注・発注系のみ。"""

    item_id: int
    week: WeekKey
    qty: float
    status: Optional[str] = None


@dataclass(frozen=True)
class StatusPolicy:
    """集計対象とするstatus集合。比較は大文字小文字を無視する。"""

    accepted: FrozenSet[str]

    @classmethod
    def of(cls, *statuses: object) -> "StatusPolicy":
        return cls(frozenset(_normalize(s) for s in statuses))

    def accepts(self, status: object) -> bool:
        if status is None:
            return False
        return _normalize(status) in self.accepted


def _normalize(status: object) -> str:
    value = getattr(status, "value", status)
    return str(value).strip().upper()


PRODUCTION_POLICY = StatusPolicy.of(ProductionStatus.ACTIVE, ProductionStatus.COMPLETE)
PURCHASE_POLICY = StatusPolicy.of(PurchaseStatus.CONFIRM)


def aggregate_movements(
    rows: Iterable[MovementRow],
    start: WeekKey,
    end: WeekKey,
    *,
    policy: Optional[StatusPolicy] = None,
) -> Dict[LedgerKey, float]:
    """(item_id, week) 単位に数量を合算する。

    - [start, end] の範囲外の行は合算前に除外
    - policy 指定時、受け付けないstatusの行は黙って除外（エラーにしない）
    - 行が無い週はキー自体が存在しない（=0扱い）
    """
    agg: Dict[LedgerKey, float] = defaultdict(float)
    dropped = 0
    for row in rows:
        if not in_range(row.week, start, end):
            continue
        if policy is not None and not policy.accepts(row.status):
            dropped += 1
            continue
        agg[(row.item_id, row.week)] += float(row.qty or 0)
    if dropped:
        logger.debug("ledger: dropped %d rows by status policy", dropped)
    return dict(agg)


def series_for(aggregated: Dict[LedgerKey, float], item_id: int) -> Dict[WeekKey, float]:
    return {week: qty for (iid, week), qty in aggregated.items() if iid == item_id}


def to_records(aggregated: Dict[LedgerKey, float], id_field: str) -> list[dict]:
    """APIレスポンス用に (year, week) 順へ並べた配列に変換。"""
    out = []
    for (item_id, week), qty in sorted(
        aggregated.items(), key=lambda kv: (kv[0][1], kv[0][0])
    ):
        out.append(
            {
                id_field: item_id,
                "year": week.year,
                "week": week.week,
                "qty": round(qty, QTY_DECIMALS),
            }
        )
    return out
