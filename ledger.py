from __future__ import annotations

import uuid
from typing import Iterable, Optional, Sequence

from schemas import Entry, EntryFields


def new_entry_id() -> str:
    return uuid.uuid4().hex


def build_entry(data: EntryFields, entry_id: Optional[str] = None) -> Entry:
    fields = data.model_dump(include=set(EntryFields.model_fields))
    return Entry(id=entry_id or new_entry_id(), **fields)


def sort_entries(entries: Iterable[Entry]) -> list[Entry]:
    return sorted(entries, key=lambda e: e.date, reverse=True)


def find_entry(entries: Sequence[Entry], entry_id: str) -> Entry:
    for entry in entries:
        if entry.id == entry_id:
            return entry
    raise ValueError("Entry not found")


def add_entries(entries: Sequence[Entry], new_items: Sequence[Entry]) -> list[Entry]:
    taken = {e.id for e in entries}
    for item in new_items:
        if item.id in taken:
            raise ValueError(f"Duplicate entry id {item.id}")
        taken.add(item.id)
    return sort_entries([*new_items, *entries])


def replace_entry(
    entries: Sequence[Entry], entry_id: str, data: EntryFields
) -> tuple[list[Entry], Entry]:
    find_entry(entries, entry_id)
    updated = build_entry(data, entry_id)
    replaced = [updated if e.id == entry_id else e for e in entries]
    return sort_entries(replaced), updated


def remove_entry(entries: Sequence[Entry], entry_id: str) -> list[Entry]:
    find_entry(entries, entry_id)
    return [e for e in entries if e.id != entry_id]


def merge_entries(entries: Sequence[Entry], incoming: Iterable[Entry]) -> list[Entry]:
    merged = {e.id: e for e in entries}
    for item in incoming:
        merged[item.id] = item
    return sort_entries(merged.values())
