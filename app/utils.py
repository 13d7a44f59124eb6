from __future__ import annotations

from typing import Any, Optional, Tuple

from fastapi import HTTPException

from engine.week_calendar import WeekKey, WeekRangeError, validate_range


def _coerce_int(value: Any, field: str) -> Optional[int]:
    """クエリ文字列などの任意入力を int に変換。空は None。"""
    if value is None:
        return None
    if isinstance(value, bool):
        raise WeekRangeError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        raise WeekRangeError(f"{field} must be an integer") from None


def week_or_none(year: Any, week: Any, *, prefix: str = "") -> Optional[WeekKey]:
    y = _coerce_int(year, f"{prefix}Year" if prefix else "year")
    w = _coerce_int(week, f"{prefix}Week" if prefix else "week")
    if y is None or w is None:
        return None
    if y <= 0:
        field = f"{prefix}Year" if prefix else "year"
        raise WeekRangeError(f"{field} must be a positive integer")
    return WeekKey(y, w)


def parse_week_range(
    from_year: Any, from_week: Any, to_year: Any, to_week: Any
) -> Tuple[WeekKey, WeekKey]:
    """fromYear/fromWeek/toYear/toWeek を検証済みの (start, end) に変換する。

    欠落・非数値・週番号範囲外・start > end は WeekRangeError（HTTP 400）。
    """
    start = week_or_none(from_year, from_week, prefix="from")
    end = week_or_none(to_year, to_week, prefix="to")
    return validate_range(start, end)


def parse_status_param(enum_cls: Any, value: Optional[str]) -> Any:
    """クエリの status を列挙型へ。未指定は None、不正値は 400。"""
    if value is None or not str(value).strip():
        return None
    try:
        return enum_cls.parse(value)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
