from __future__ import annotations

from typing import Optional, Tuple

from fastapi import Depends, Query

from app import db
from app.utils import parse_week_range
from app.metrics import (
    MPS_DB_WRITE_ERROR_TOTAL,
    MPS_DB_WRITE_LATENCY,
    MPS_DB_WRITE_TOTAL,
)
from core.mps_planner import MpsPlanner
from core.mps_repository import MpsRepository
from engine.week_calendar import WeekKey


def get_repository() -> MpsRepository:
    # db._conn はテストで差し替えられるため、呼出し時に解決する
    return MpsRepository(
        lambda: db._conn(),
        db_write_total=MPS_DB_WRITE_TOTAL,
        db_write_error_total=MPS_DB_WRITE_ERROR_TOTAL,
        db_write_latency=MPS_DB_WRITE_LATENCY,
    )


def get_planner(repository: MpsRepository = Depends(get_repository)) -> MpsPlanner:
    return MpsPlanner(repository)


def week_range(
    from_year: Optional[str] = Query(None, alias="fromYear"),
    from_week: Optional[str] = Query(None, alias="fromWeek"),
    to_year: Optional[str] = Query(None, alias="toYear"),
    to_week: Optional[str] = Query(None, alias="toWeek"),
) -> Tuple[WeekKey, WeekKey]:
    """必須の週範囲クエリ。不正値は WeekRangeError として 400 になる。"""
    return parse_week_range(from_year, from_week, to_year, to_week)
