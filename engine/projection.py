"""週次在庫残高の推移計算。

期首残高（アンカー週）から週ごとに
    balance(w) = balance(w-1) - outflow(w) + inflow(w)
を積み上げる。製品は outflow=出荷, inflow=生産、資材は outflow=BOM派生消費,
inflow=確定発注の入荷。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Mapping, Optional

from domain.models import OpeningBalance
from engine.week_calendar import WeekKey, enumerate_weeks

QTY_DECIMALS = 3


@dataclass(frozen=True)
class BalancePoint:
    week: WeekKey
    balance: float
    outflow: float = 0.0
    inflow: float = 0.0

    def to_record(self) -> dict:
        return {
            "year": self.week.year,
            "week": self.week.week,
            "balance": self.balance,
            "outflow": self.outflow,
            "inflow": self.inflow,
        }


def project_balances(
    opening: Optional[OpeningBalance],
    outflow: Mapping[WeekKey, float],
    inflow: Mapping[WeekKey, float],
    start: WeekKey,
    end: WeekKey,
) -> List[BalancePoint]:
    """[start, end] の各週の残高を返す（1週1要素、昇順）。

    - 期首未登録、またはアンカーより前の週は残高0（未知ではなく確定の0）
    - アンカー週は期首残高で固定（同週の入出庫は反映しない）
    - start がアンカーより後でもアンカーから連続して積み上げ、要求範囲のみ返す
    - 負の残高はそのまま返す
    """
    if start > end:
        return []

    anchor = opening.anchor if opening is not None else None
    walk_from = start if anchor is None or anchor >= start else anchor

    out: List[BalancePoint] = []
    balance = 0.0
    for week in enumerate_weeks(walk_from, end):
        out_qty = float(outflow.get(week, 0.0))
        in_qty = float(inflow.get(week, 0.0))
        if anchor is None or week < anchor:
            balance = 0.0
        elif week == anchor:
            balance = float(opening.balance_qty)
        else:
            balance = balance - out_qty + in_qty
        if week >= start:
            out.append(
                BalancePoint(
                    week=week,
                    balance=round(balance, QTY_DECIMALS),
                    outflow=round(out_qty, QTY_DECIMALS),
                    inflow=round(in_qty, QTY_DECIMALS),
                )
            )
    return out
