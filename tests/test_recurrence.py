from datetime import date

import pytest
from pydantic import ValidationError

from models import Category, MonthDayPolicy, PaymentMethod
from config import get_settings
from recurrence import add_months, configured_policy, expand_draft
from schemas import EntryIn


def _draft(**overrides) -> EntryIn:
    values = {
        "description": "Aluguel",
        "amount": 1200,
        "category": Category.fixed,
        "payment_method": PaymentMethod.pix,
        "date": date(2024, 1, 15),
    }
    values.update(overrides)
    return EntryIn(**values)


def test_add_months_snap_to_end():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2024, 1, 31), 2) == date(2024, 3, 31)
    assert add_months(date(2023, 12, 15), 1) == date(2024, 1, 15)


def test_add_months_roll_over_policy():
    assert add_months(
        date(2024, 1, 31), 1, policy=MonthDayPolicy.roll_over
    ) == date(2024, 3, 2)
    assert add_months(
        date(2024, 3, 31), 1, policy=MonthDayPolicy.roll_over
    ) == date(2024, 5, 1)


def test_fixed_expands_to_twelve_months():
    drafts = expand_draft(_draft())

    assert len(drafts) == 12
    assert [d.date for d in drafts] == [date(2024, m, 15) for m in range(1, 13)]
    assert drafts[0].description == "Aluguel"
    assert all(d.description == "Aluguel (Fixo)" for d in drafts[1:])
    assert all(d.amount == 1200 for d in drafts)
    assert all(d.category == Category.fixed for d in drafts)


def test_fixed_ignores_installment_flag():
    drafts = expand_draft(_draft(installments=3))
    assert len(drafts) == 12
    assert all(d.amount == 1200 for d in drafts)


def test_fixed_series_from_month_end_does_not_drift():
    drafts = expand_draft(_draft(date=date(2024, 1, 31)))
    assert drafts[1].date == date(2024, 2, 29)
    assert drafts[2].date == date(2024, 3, 31)
    assert drafts[3].date == date(2024, 4, 30)


def test_fixed_series_from_month_end_rolls_over():
    drafts = expand_draft(
        _draft(date=date(2024, 1, 31)), policy=MonthDayPolicy.roll_over
    )

    assert [d.date for d in drafts] == [
        date(2024, 1, 31),
        date(2024, 3, 2),
        date(2024, 3, 31),
        date(2024, 5, 1),
        date(2024, 5, 31),
        date(2024, 7, 1),
        date(2024, 7, 31),
        date(2024, 8, 31),
        date(2024, 10, 1),
        date(2024, 10, 31),
        date(2024, 12, 1),
        date(2024, 12, 31),
    ]
    months = [d.date.month for d in drafts]
    assert months.count(3) == 2
    assert 2 not in months


@pytest.fixture()
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_policy_follows_environment(monkeypatch, fresh_settings):
    monkeypatch.delenv("ZEN_MONTH_DAY_POLICY", raising=False)
    get_settings.cache_clear()
    assert configured_policy() == MonthDayPolicy.snap_to_end

    monkeypatch.setenv("ZEN_MONTH_DAY_POLICY", "roll_over")
    get_settings.cache_clear()
    assert configured_policy() == MonthDayPolicy.roll_over

def test_installments_split_amount():
    drafts = expand_draft(
        _draft(
            description="X",
            amount=300,
            category=Category.variable,
            installments=3,
            date=date(2024, 3, 1),
        )
    )

    assert [d.date for d in drafts] == [
        date(2024, 3, 1),
        date(2024, 4, 1),
        date(2024, 5, 1),
    ]
    assert [d.amount for d in drafts] == [100, 100, 100]
    assert [d.description for d in drafts] == ["X (1/3)", "X (2/3)", "X (3/3)"]


def test_installments_sum_within_tolerance():
    drafts = expand_draft(
        _draft(amount=100, category=Category.lifestyle, installments=7)
    )
    assert len(drafts) == 7
    assert sum(d.amount for d in drafts) == pytest.approx(100)
    # No remainder redistribution: every share is the same float.
    assert len({d.amount for d in drafts}) == 1


def test_recurring_revenue_defaults_to_twelve():
    drafts = expand_draft(
        _draft(description="Salário", amount=5000, category=Category.revenue, recurring=True)
    )
    assert len(drafts) == 12
    assert drafts[0].description == "Salário"
    assert drafts[11].description == "Salário (Recorrente)"
    assert drafts[11].date == date(2024, 12, 15)
    assert all(d.amount == 5000 for d in drafts)


def test_recurring_revenue_count_is_clamped_to_one():
    drafts = expand_draft(
        _draft(category=Category.revenue, recurring=True, recurring_months=0)
    )
    assert len(drafts) == 1
    assert drafts[0].description == "Aluguel"


def test_revenue_without_recurring_is_never_split():
    drafts = expand_draft(_draft(category=Category.revenue, installments=4))
    assert len(drafts) == 1
    assert drafts[0].amount == 1200


def test_default_emits_single_unchanged_entry():
    draft = _draft(
        description="Supermercado",
        amount=80.5,
        category=Category.variable,
        payment_method=PaymentMethod.debit_card,
    )
    drafts = expand_draft(draft)
    assert len(drafts) == 1
    assert drafts[0].model_dump() == {
        "description": "Supermercado",
        "amount": 80.5,
        "category": Category.variable,
        "payment_method": PaymentMethod.debit_card,
        "date": date(2024, 1, 15),
    }


def test_single_installment_is_default_rule():
    drafts = expand_draft(_draft(category=Category.investment, installments=1))
    assert len(drafts) == 1
    assert drafts[0].description == "Aluguel"


@pytest.mark.parametrize(
    "overrides",
    [
        {"description": ""},
        {"description": "   "},
        {"date": "not-a-date"},
        {"category": "Lazer"},
        {"payment_method": "Boleto"},
        {"amount": None},
        {"amount": -5},
        {"amount": float("inf")},
        {"installments": 0},
        {"installments": 121},
        {"recurring_months": 121},
    ],
)
def test_invalid_drafts_are_rejected(overrides):
    with pytest.raises(ValidationError):
        _draft(**overrides)


def test_draft_accepts_iso_datetime_and_wire_alias():
    draft = EntryIn.model_validate(
        {
            "description": "Pix",
            "amount": "10.5",
            "category": "Variável",
            "paymentMethod": "Pix",
            "date": "2024-02-10T03:00:00.000Z",
        }
    )
    assert draft.date == date(2024, 2, 10)
    assert draft.payment_method == PaymentMethod.pix
    assert draft.amount == 10.5
