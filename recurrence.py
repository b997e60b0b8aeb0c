from datetime import date, timedelta
from typing import Callable

from config import get_settings
from models import Category, MonthDayPolicy
from periods import days_in_month
from schemas import EntryFields, EntryIn

FIXED_SERIES_MONTHS = 12

_ENTRY_FIELDS = set(EntryFields.model_fields)


def configured_policy() -> MonthDayPolicy:
    return MonthDayPolicy(get_settings().month_day_policy)


def add_months(
    base: date,
    months: int,
    *,
    policy: MonthDayPolicy = MonthDayPolicy.snap_to_end,
) -> date:
    total_months = base.month - 1 + months
    year = base.year + total_months // 12
    month = total_months % 12 + 1

    dim = days_in_month(year, month)
    if base.day <= dim:
        return date(year, month, base.day)
    if policy == MonthDayPolicy.roll_over:
        return date(year, month, dim) + timedelta(days=base.day - dim)
    return date(year, month, dim)


def _series(
    data: EntryIn,
    count: int,
    *,
    amount: float,
    describe: Callable[[int], str],
    policy: MonthDayPolicy,
) -> list[EntryFields]:
    # Every occurrence is offset from the start date so a clamped month
    # does not drag the following ones.
    return [
        EntryFields(
            description=describe(i),
            amount=amount,
            category=data.category,
            payment_method=data.payment_method,
            date=add_months(data.date, i, policy=policy),
        )
        for i in range(count)
    ]


def expand_draft(
    data: EntryIn,
    *,
    policy: MonthDayPolicy = MonthDayPolicy.snap_to_end,
) -> list[EntryFields]:
    description = data.description

    if data.category == Category.revenue and data.recurring:
        count = max(1, data.recurring_months)
        return _series(
            data,
            count,
            amount=data.amount,
            describe=lambda i: description if i == 0 else f"{description} (Recorrente)",
            policy=policy,
        )

    # TODO: confirm with product whether fixed entries should ask for a month count.
    if data.category == Category.fixed:
        return _series(
            data,
            FIXED_SERIES_MONTHS,
            amount=data.amount,
            describe=lambda i: description if i == 0 else f"{description} (Fixo)",
            policy=policy,
        )

    if data.category != Category.revenue and data.installments > 1:
        count = data.installments
        return _series(
            data,
            count,
            amount=data.amount / count,
            describe=lambda i: f"{description} ({i + 1}/{count})",
            policy=policy,
        )

    return [EntryFields.model_validate(data.model_dump(include=_ENTRY_FIELDS))]
