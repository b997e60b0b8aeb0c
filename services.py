from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from ledger import (
    add_entries,
    build_entry,
    find_entry,
    merge_entries,
    new_entry_id,
    remove_entry,
    replace_entry,
)
from metrics import filter_by_period, icon_for
from models import MonthDayPolicy, RemoteEntryRecord, Theme
from periods import MonthPeriod
from recurrence import configured_policy, expand_draft
from schemas import (
    Entry,
    EntryFields,
    EntryIn,
    RemoteEntryIn,
    UserProfile,
    VoiceMapping,
)
from storage import AppState, LocalStore
from sync import RemoteStoreClient

logger = logging.getLogger(__name__)

UPSERT_CHUNK_SIZE = 500


class EntryService:
    def __init__(
        self, session: Session, policy: Optional[MonthDayPolicy] = None
    ) -> None:
        self.session = session
        self.store = LocalStore(session)
        self.policy = policy or configured_policy()

    def list(self, period: Optional[MonthPeriod] = None) -> list[Entry]:
        entries = self.store.load_entries()
        if period is None:
            return entries
        return filter_by_period(entries, period.year, period.month)

    def get(self, entry_id: str) -> Entry:
        return find_entry(self.store.load_entries(), entry_id)

    def create(self, data: EntryIn) -> list[Entry]:
        new_items = [build_entry(draft) for draft in expand_draft(data, policy=self.policy)]
        entries = add_entries(self.store.load_entries(), new_items)
        self.store.save_entries(entries)
        logger.info(
            f"entries_created: category={data.category.value} count={len(new_items)}"
        )
        return new_items

    def update(self, entry_id: str, data: EntryFields) -> Entry:
        entries, updated = replace_entry(self.store.load_entries(), entry_id, data)
        self.store.save_entries(entries)
        return updated

    def delete(self, entry_id: str) -> None:
        entries = remove_entry(self.store.load_entries(), entry_id)
        self.store.save_entries(entries)

    def pull_remote(self, client: RemoteStoreClient, base_url: str) -> list[Entry]:
        remote = client.pull(base_url)
        self.store.save_entries(merge_entries(self.store.load_entries(), remote))
        logger.info(f"entries_pulled: count={len(remote)}")
        return remote


class PreferenceService:
    def __init__(self, session: Session) -> None:
        self.session = session
        self.store = LocalStore(session)

    def state(self) -> AppState:
        return self.store.load_state()

    def theme(self) -> Theme:
        return self.store.load_theme()

    def set_theme(self, theme: Theme) -> Theme:
        self.store.save_theme(theme)
        return theme

    def toggle_theme(self) -> Theme:
        current = self.store.load_theme()
        return self.set_theme(Theme.light if current == Theme.dark else Theme.dark)

    def profile(self) -> UserProfile:
        return self.store.load_profile()

    def set_profile(self, profile: UserProfile) -> UserProfile:
        self.store.save_profile(profile)
        return profile

    def voices(self) -> list[VoiceMapping]:
        return self.store.load_voices()

    def add_voice(self, voice: VoiceMapping) -> list[VoiceMapping]:
        voices = self.store.load_voices()
        if any(v.description == voice.description for v in voices):
            return voices
        voices.append(voice)
        self.store.save_voices(voices)
        return voices

    def remove_voice(self, description: str) -> list[VoiceMapping]:
        voices = [v for v in self.store.load_voices() if v.description != description]
        self.store.save_voices(voices)
        return voices

    def icon_for(self, description: str) -> str:
        return icon_for(description, self.store.load_voices())

    def sync_url(self) -> str:
        return self.store.load_sync_url()

    def set_sync_url(self, url: str) -> str:
        self.store.save_sync_url(url)
        return url


def _dialect_insert(session: Session):
    if session.get_bind().dialect.name == "postgresql":
        return postgresql.insert
    return sqlite.insert


def _remote_row(record: RemoteEntryRecord) -> dict[str, object]:
    return {
        "id": record.id,
        "descricao": record.descricao,
        "data": record.data.isoformat(),
        "categoria": record.categoria,
        "metodo_pagamento": record.metodo_pagamento,
        "valor": record.valor,
        "sincronizado_em": (
            record.sincronizado_em.isoformat() if record.sincronizado_em else None
        ),
    }


class RemoteStoreService:
    """Server side of the remote store: insert, read and batched upsert."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, data: RemoteEntryIn) -> dict[str, object]:
        now = datetime.utcnow()
        record = RemoteEntryRecord(
            id=new_entry_id(),
            descricao=data.descricao,
            data=data.data,
            categoria=data.categoria.value,
            metodo_pagamento=data.metodo_pagamento.value,
            valor=data.valor,
            sincronizado_em=now,
            created_at=now,
        )
        self.session.add(record)
        self.session.commit()
        return _remote_row(record)

    def list_all(self) -> list[dict[str, object]]:
        stmt = select(RemoteEntryRecord).order_by(
            RemoteEntryRecord.data.desc(), RemoteEntryRecord.created_at.desc()
        )
        return [_remote_row(record) for record in self.session.scalars(stmt).all()]

    def upsert_many(self, entries: Sequence[Entry]) -> int:
        # The last occurrence of an id in one batch wins.
        unique = list({e.id: e for e in entries}.values())
        if not unique:
            return 0
        insert = _dialect_insert(self.session)
        now = datetime.utcnow()
        for start in range(0, len(unique), UPSERT_CHUNK_SIZE):
            chunk = unique[start : start + UPSERT_CHUNK_SIZE]
            stmt = insert(RemoteEntryRecord).values(
                [
                    {
                        "id": e.id,
                        "descricao": e.description,
                        "data": e.date,
                        "categoria": e.category.value,
                        "metodo_pagamento": e.payment_method.value,
                        "valor": e.amount,
                        "sincronizado_em": now,
                        "created_at": now,
                    }
                    for e in chunk
                ]
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["id"],
                set_={
                    "descricao": stmt.excluded.descricao,
                    "valor": stmt.excluded.valor,
                    "categoria": stmt.excluded.categoria,
                    "sincronizado_em": stmt.excluded.sincronizado_em,
                },
            )
            self.session.execute(stmt)
        self.session.commit()
        logger.info(f"remote_upsert: count={len(unique)}")
        return len(unique)
