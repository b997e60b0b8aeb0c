from __future__ import annotations

from datetime import date
from typing import Iterable, Sequence

from models import DEFAULT_ICON, Category, PaymentMethod
from periods import MonthPeriod
from schemas import Entry, VoiceMapping

EXPENSE_CATEGORIES = [c for c in Category if c != Category.revenue]


def filter_by_period(entries: Iterable[Entry], year: int, month: int) -> list[Entry]:
    period = MonthPeriod(year, month)
    return [e for e in entries if period.contains(e.date)]


def category_totals(entries: Iterable[Entry]) -> dict[Category, float]:
    totals: dict[Category, float] = {c: 0.0 for c in EXPENSE_CATEGORIES}
    for entry in entries:
        if entry.category != Category.revenue:
            totals[entry.category] += entry.amount
    return totals


def payment_method_totals(entries: Iterable[Entry]) -> dict[PaymentMethod, float]:
    totals: dict[PaymentMethod, float] = {m: 0.0 for m in PaymentMethod}
    for entry in entries:
        if entry.category != Category.revenue:
            totals[entry.payment_method] += entry.amount
    return totals


def totals(entries: Iterable[Entry]) -> dict[str, float]:
    revenue = 0.0
    expenses = 0.0
    for entry in entries:
        if entry.category == Category.revenue:
            revenue += entry.amount
        else:
            expenses += entry.amount
    return {"revenue": revenue, "expenses": expenses, "balance": revenue - expenses}


def trend(
    entries: Sequence[Entry], reference: date, months_back: int = 6
) -> list[dict[str, object]]:
    last = MonthPeriod.of(reference)
    out: list[dict[str, object]] = []
    for offset in range(months_back - 1, -1, -1):
        period = last.shift(-offset)
        month_totals = totals(filter_by_period(entries, period.year, period.month))
        out.append(
            {
                "year": period.year,
                "month": period.month,
                "label": period.label,
                "revenue": round(month_totals["revenue"], 2),
                "expenses": round(month_totals["expenses"], 2),
            }
        )
    return out


def entries_on(entries: Iterable[Entry], day: date) -> list[Entry]:
    return [e for e in entries if e.date == day]


def active_days(entries: Iterable[Entry], year: int, month: int) -> list[int]:
    return sorted({e.date.day for e in filter_by_period(entries, year, month)})


def icon_for(description: str, mappings: Iterable[VoiceMapping]) -> str:
    lowered = description.lower()
    for mapping in mappings:
        if mapping.description.lower() in lowered:
            return mapping.icon.value
    return DEFAULT_ICON.value
