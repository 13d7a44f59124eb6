"""週カレンダー: (year, week) の複合キーによる順序付き時間軸。

week はISO週の厳密な検証を行わず、1..53 の序数タグとして扱う。
年またぎは (year, week) の辞書式順序で解決する。
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

MIN_WEEK = 1
MAX_WEEK = 53

_WEEK_CODE_PATTERN = re.compile(r"^(\d{4})-W(\d{1,2})$")


class WeekRangeError(ValueError):
    """週キーまたは週範囲が不正な場合に送出。"""


@dataclass(frozen=True, order=True)
class WeekKey:
    year: int
    week: int

    def __post_init__(self) -> None:
        if isinstance(self.year, bool) or not isinstance(self.year, int):
            raise WeekRangeError(f"year must be an integer: {self.year!r}")
        if isinstance(self.week, bool) or not isinstance(self.week, int):
            raise WeekRangeError(f"week must be an integer: {self.week!r}")
        if not MIN_WEEK <= self.week <= MAX_WEEK:
            raise WeekRangeError(
                f"week must be between {MIN_WEEK} and {MAX_WEEK}: {self.week}"
            )

    def __str__(self) -> str:
        return week_code(self)

    def as_tuple(self) -> Tuple[int, int]:
        return (self.year, self.week)


def compare(a: WeekKey, b: WeekKey) -> int:
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


def in_range(w: WeekKey, start: WeekKey, end: WeekKey) -> bool:
    return start <= w <= end


def next_week(w: WeekKey) -> WeekKey:
    if w.week >= MAX_WEEK:
        return WeekKey(w.year + 1, MIN_WEEK)
    return WeekKey(w.year, w.week + 1)


def prev_week(w: WeekKey) -> WeekKey:
    if w.week <= MIN_WEEK:
        return WeekKey(w.year - 1, MAX_WEEK)
    return WeekKey(w.year, w.week - 1)


def week_span(start: WeekKey, end: WeekKey) -> int:
    """start..end（両端含む）の週数。start > end のときは0。"""
    if start > end:
        return 0
    per_year = MAX_WEEK - MIN_WEEK + 1
    return (end.year - start.year) * per_year + (end.week - start.week) + 1


class WeekRange:
    """[start, end] の週列。反復のたびに先頭から列挙し直す（再開可能）。"""

    __slots__ = ("start", "end")

    def __init__(self, start: WeekKey, end: WeekKey):
        self.start = start
        self.end = end

    def __iter__(self) -> Iterator[WeekKey]:
        cur = self.start
        while cur <= self.end:
            yield cur
            cur = next_week(cur)

    def __len__(self) -> int:
        return week_span(self.start, self.end)

    def __contains__(self, w: object) -> bool:
        return isinstance(w, WeekKey) and in_range(w, self.start, self.end)

    def __repr__(self) -> str:
        return f"WeekRange({self.start}, {self.end})"


def enumerate_weeks(start: WeekKey, end: WeekKey) -> WeekRange:
    """start > end の場合は空の列（エラーにはしない）。"""
    return WeekRange(start, end)


def validate_range(start: Optional[WeekKey], end: Optional[WeekKey]) -> Tuple[WeekKey, WeekKey]:
    """厳密な順序を要求する呼出し側向け: 欠落や start > end を拒否する。"""
    if start is None or end is None:
        raise WeekRangeError("fromYear/fromWeek/toYear/toWeek required")
    if start > end:
        raise WeekRangeError(f"invalid week range: {start} is after {end}")
    return start, end


def week_code(w: WeekKey) -> str:
    return f"{w.year}-W{w.week:02d}"


def parse_week_code(code: str) -> WeekKey:
    m = _WEEK_CODE_PATTERN.match(str(code).strip())
    if not m:
        raise WeekRangeError(f"invalid week code: {code!r}")
    return WeekKey(int(m.group(1)), int(m.group(2)))
