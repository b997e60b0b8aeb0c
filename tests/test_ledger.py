from datetime import date

import pytest

from ledger import (
    add_entries,
    build_entry,
    merge_entries,
    new_entry_id,
    remove_entry,
    replace_entry,
)
from models import Category, PaymentMethod
from schemas import Entry, EntryFields, EntryIn


def _fields(description: str, day: date, amount: float = 10) -> EntryFields:
    return EntryFields(
        description=description,
        amount=amount,
        category=Category.variable,
        payment_method=PaymentMethod.pix,
        date=day,
    )


def test_new_entry_ids_are_unique():
    ids = {new_entry_id() for _ in range(1000)}
    assert len(ids) == 1000


def test_build_entry_drops_expansion_flags():
    draft = EntryIn(
        description="Curso",
        amount=90,
        category=Category.investment,
        payment_method=PaymentMethod.credit_card,
        date=date(2024, 5, 1),
        installments=3,
    )
    entry = build_entry(draft)
    assert entry.id
    assert entry.description == "Curso"
    assert not hasattr(entry, "installments")


def test_add_entries_keeps_collection_sorted_descending():
    existing = [build_entry(_fields("a", date(2024, 1, 10)))]
    new_items = [
        build_entry(_fields("b", date(2024, 3, 1))),
        build_entry(_fields("c", date(2023, 12, 1))),
    ]
    merged = add_entries(existing, new_items)
    assert [e.description for e in merged] == ["b", "a", "c"]


def test_add_entries_rejects_duplicate_ids():
    entry = build_entry(_fields("a", date(2024, 1, 10)))
    with pytest.raises(ValueError):
        add_entries([entry], [entry])


def test_replace_entry_preserves_id_and_others():
    first = build_entry(_fields("a", date(2024, 1, 10)))
    second = build_entry(_fields("b", date(2024, 2, 10)))
    third = build_entry(_fields("c", date(2024, 3, 10)))
    entries = [third, second, first]
    before = [e.model_dump_json() for e in (first, third)]

    updated_list, updated = replace_entry(
        entries, second.id, _fields("b2", date(2024, 2, 11), amount=99)
    )

    assert updated.id == second.id
    assert updated.description == "b2"
    assert updated.amount == 99
    assert len(updated_list) == 3
    assert [e.model_dump_json() for e in updated_list if e.id != second.id] == list(
        reversed(before)
    )


def test_replace_entry_never_expands():
    fixed = EntryFields(
        description="Aluguel",
        amount=1200,
        category=Category.fixed,
        payment_method=PaymentMethod.pix,
        date=date(2024, 1, 15),
    )
    entry = build_entry(fixed)
    updated_list, _ = replace_entry([entry], entry.id, fixed)
    assert len(updated_list) == 1


def test_replace_and_remove_unknown_id_raise():
    entry = build_entry(_fields("a", date(2024, 1, 10)))
    with pytest.raises(ValueError, match="Entry not found"):
        replace_entry([entry], "missing", _fields("x", date(2024, 1, 1)))
    with pytest.raises(ValueError, match="Entry not found"):
        remove_entry([entry], "missing")


def test_remove_entry():
    a = build_entry(_fields("a", date(2024, 1, 10)))
    b = build_entry(_fields("b", date(2024, 1, 11)))
    assert remove_entry([b, a], a.id) == [b]


def test_merge_entries_last_write_wins_by_id():
    local = build_entry(_fields("local", date(2024, 1, 10)))
    other = build_entry(_fields("other", date(2024, 1, 5)))
    remote = Entry(id=local.id, **_fields("remote", date(2024, 1, 20)).model_dump())
    fresh = build_entry(_fields("fresh", date(2024, 2, 1)))

    merged = merge_entries([local, other], [remote, fresh])

    assert [e.description for e in merged] == ["fresh", "remote", "other"]
