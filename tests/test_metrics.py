from datetime import date

import pytest

from metrics import (
    active_days,
    category_totals,
    entries_on,
    filter_by_period,
    icon_for,
    payment_method_totals,
    totals,
    trend,
)
from models import Category, IconName, PaymentMethod
from schemas import Entry, VoiceMapping


def _entry(
    entry_id: str,
    amount: float,
    category: Category,
    day: date,
    *,
    description: str = "Item",
    method: PaymentMethod = PaymentMethod.pix,
) -> Entry:
    return Entry(
        id=entry_id,
        description=description,
        amount=amount,
        category=category,
        payment_method=method,
        date=day,
    )


ENTRIES = [
    _entry("1", 5000, Category.revenue, date(2024, 3, 5)),
    _entry("2", 1500, Category.fixed, date(2024, 3, 10)),
    _entry("3", 800.1, Category.variable, date(2024, 3, 10), method=PaymentMethod.debit_card),
    _entry("4", 0.2, Category.variable, date(2024, 3, 31), method=PaymentMethod.credit_card),
    _entry("5", 500, Category.investment, date(2024, 2, 29), method=PaymentMethod.cash),
    _entry("6", 300, Category.lifestyle, date(2023, 3, 10)),
]


def test_filter_by_period_matches_year_and_month():
    march = filter_by_period(ENTRIES, 2024, 3)
    assert [e.id for e in march] == ["1", "2", "3", "4"]
    assert filter_by_period(ENTRIES, 2023, 3)[0].id == "6"
    assert filter_by_period(ENTRIES, 2024, 4) == []


def test_category_totals_lists_every_expense_category():
    march = filter_by_period(ENTRIES, 2024, 3)
    result = category_totals(march)
    assert list(result) == [
        Category.fixed,
        Category.variable,
        Category.lifestyle,
        Category.investment,
    ]
    assert result[Category.fixed] == 1500
    assert result[Category.variable] == 800.1 + 0.2
    assert result[Category.lifestyle] == 0
    assert result[Category.investment] == 0


def test_category_totals_empty_period_is_all_zero():
    result = category_totals([])
    assert len(result) == 4
    assert Category.revenue not in result
    assert all(value == 0 for value in result.values())


def test_payment_method_totals_excludes_revenue():
    march = filter_by_period(ENTRIES, 2024, 3)
    result = payment_method_totals(march)
    assert set(result) == set(PaymentMethod)
    assert result[PaymentMethod.pix] == 1500
    assert result[PaymentMethod.debit_card] == 800.1
    assert result[PaymentMethod.cash] == 0


def test_totals_balance():
    result = totals(filter_by_period(ENTRIES, 2024, 3))
    assert result["revenue"] == 5000
    assert result["expenses"] == 1500 + 800.1 + 0.2
    assert result["balance"] == result["revenue"] - result["expenses"]


def test_totals_without_revenue_is_negative():
    result = totals([ENTRIES[4], ENTRIES[5]])
    assert result["revenue"] == 0
    assert result["balance"] == -800
    assert totals([]) == {"revenue": 0, "expenses": 0, "balance": 0}


def test_trend_covers_six_months_oldest_first():
    points = trend(ENTRIES, date(2024, 3, 20))
    assert [p["label"] for p in points] == [
        "2023-10",
        "2023-11",
        "2023-12",
        "2024-01",
        "2024-02",
        "2024-03",
    ]
    assert points[-1]["revenue"] == 5000
    assert points[-1]["expenses"] == pytest.approx(2300.3)
    assert points[-1]["expenses"] == round(1500 + 800.1 + 0.2, 2)
    assert points[-2]["expenses"] == 500
    assert points[0]["revenue"] == 0 and points[0]["expenses"] == 0


def test_trend_crosses_year_boundary_with_custom_window():
    points = trend(ENTRIES, date(2024, 1, 1), months_back=2)
    assert [(p["year"], p["month"]) for p in points] == [(2023, 12), (2024, 1)]


def test_calendar_helpers():
    assert [e.id for e in entries_on(ENTRIES, date(2024, 3, 10))] == ["2", "3"]
    assert active_days(ENTRIES, 2024, 3) == [5, 10, 31]
    assert active_days(ENTRIES, 2024, 5) == []


def test_icon_lookup_by_substring():
    voices = [
        VoiceMapping(description="Aluguel", icon=IconName.home),
        VoiceMapping(description="mercado", icon=IconName.cart),
    ]
    assert icon_for("Aluguel (Fixo)", voices) == "home"
    assert icon_for("SUPERMERCADO (2/3)", voices) == "cart"
    assert icon_for("Cinema", voices) == "chart"
    assert icon_for("Cinema", []) == "chart"
