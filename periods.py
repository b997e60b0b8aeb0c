from dataclasses import dataclass
from datetime import date
from typing import Optional


def days_in_month(year: int, month: int) -> int:
    if month == 12:
        next_month = date(year + 1, 1, 1)
    else:
        next_month = date(year, month + 1, 1)
    return (next_month - date(year, month, 1)).days


@dataclass(frozen=True)
class MonthPeriod:
    year: int
    month: int

    @classmethod
    def of(cls, day: date) -> "MonthPeriod":
        return cls(day.year, day.month)

    @property
    def start(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def end(self) -> date:
        return date(self.year, self.month, days_in_month(self.year, self.month))

    @property
    def label(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    def contains(self, day: date) -> bool:
        return day.year == self.year and day.month == self.month

    def shift(self, months: int) -> "MonthPeriod":
        month_index = (self.year * 12) + (self.month - 1) + months
        return MonthPeriod(month_index // 12, (month_index % 12) + 1)


def resolve_month(value: Optional[str], *, today: Optional[date] = None) -> MonthPeriod:
    today = today or date.today()
    if not value:
        return MonthPeriod.of(today)
    try:
        year_str, month_str = value.split("-", 1)
        year = int(year_str)
        month = int(month_str)
    except ValueError as exc:
        raise ValueError("Month must be formatted as YYYY-MM") from exc
    if not 1 <= month <= 12 or not 1970 <= year <= 3000:
        raise ValueError("Month out of range")
    return MonthPeriod(year, month)
