from domain.models import ItemType, OpeningBalance
from engine.projection import project_balances
from engine.week_calendar import WeekKey


def wk(n, year=2025):
    return WeekKey(year, n)


def _balances(points):
    return {p.week.week: p.balance for p in points}


def _opening(qty, week=47, item_type=ItemType.PRODUCT):
    return OpeningBalance(item_type=item_type, item_id=1, anchor=wk(week), balance_qty=qty)


def test_product_production_accumulates_from_anchor():
    # 期首20、出荷0、生産 wk48:+5 wk49:+5
    points = project_balances(_opening(20), {}, {wk(48): 5, wk(49): 5}, wk(47), wk(49))
    assert _balances(points) == {47: 20, 48: 25, 49: 30}


def test_initial_production_is_excluded_by_caller_so_balance_carries():
    # INITIAL の生産は inflow に含まれない前提で wk50 は wk49 と同値
    points = project_balances(_opening(20), {}, {wk(48): 5, wk(49): 5}, wk(47), wk(50))
    assert _balances(points)[50] == 30


def test_material_consumption_then_purchase():
    opening = _opening(10, item_type=ItemType.MATERIAL)
    points = project_balances(opening, {wk(48): 5}, {wk(49): 5}, wk(47), wk(49))
    assert _balances(points) == {47: 10, 48: 5, 49: 10}
    assert points[1].outflow == 5
    assert points[2].inflow == 5


def test_range_after_anchor_still_walks_from_anchor():
    full = project_balances(_opening(20), {}, {wk(48): 5, wk(49): 5}, wk(47), wk(49))
    partial = project_balances(_opening(20), {}, {wk(48): 5, wk(49): 5}, wk(48), wk(49))
    assert _balances(partial) == {48: 25, 49: 30}
    assert [p.balance for p in partial] == [p.balance for p in full[1:]]


def test_no_opening_balance_yields_zero_every_week():
    points = project_balances(None, {wk(48): 3}, {wk(49): 9}, wk(47), wk(50))
    assert [p.balance for p in points] == [0, 0, 0, 0]
    assert len(points) == 4


def test_weeks_before_anchor_are_zero():
    points = project_balances(_opening(20, week=49), {wk(47): 4}, {wk(48): 4}, wk(46), wk(50))
    assert _balances(points) == {46: 0, 47: 0, 48: 0, 49: 20, 50: 20}


def test_anchor_week_ignores_same_week_movements():
    points = project_balances(_opening(20), {wk(47): 7}, {wk(47): 100}, wk(47), wk(48))
    assert _balances(points) == {47: 20, 48: 20}


def test_negative_balance_is_returned_as_is():
    points = project_balances(_opening(2), {wk(48): 5}, {}, wk(47), wk(48))
    assert points[-1].balance == -3


def test_reversed_range_yields_empty():
    assert project_balances(_opening(20), {}, {}, wk(50), wk(48)) == []


def test_projection_crosses_year_boundary():
    opening = OpeningBalance(ItemType.PRODUCT, 1, WeekKey(2025, 52), 10)
    points = project_balances(
        opening, {WeekKey(2026, 1): 4}, {WeekKey(2025, 53): 1}, WeekKey(2025, 52), WeekKey(2026, 1)
    )
    assert [(p.week.as_tuple(), p.balance) for p in points] == [
        ((2025, 52), 10),
        ((2025, 53), 11),
        ((2026, 1), 7),
    ]


def test_records_are_rounded():
    points = project_balances(_opening(0.1), {}, {wk(48): 0.2}, wk(47), wk(48))
    assert points[-1].to_record() == {
        "year": 2025,
        "week": 48,
        "balance": 0.3,
        "outflow": 0.0,
        "inflow": 0.2,
    }
