from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Sequence

from pydantic import ValidationError
from sqlalchemy import String, cast, delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import get_settings
from models import EntryRecord, IconName, Preference, Theme
from schemas import Entry, UserProfile, VoiceMapping

logger = logging.getLogger(__name__)

PREF_THEME = "theme"
PREF_PROFILE = "profile"
PREF_VOICES = "voices"
PREF_SYNC_URL = "sync_url"

DEFAULT_PROFILE = UserProfile(
    name="Gestor Zen",
    photo_url="https://cdn-icons-png.flaticon.com/512/2617/2617304.png",
)

DEFAULT_VOICES = [
    VoiceMapping(description="Aluguel", icon=IconName.home),
    VoiceMapping(description="Supermercado", icon=IconName.cart),
    VoiceMapping(description="Salário", icon=IconName.cash),
    VoiceMapping(description="Lazer", icon=IconName.leisure),
]

_MISSING = object()


@dataclass
class AppState:
    theme: Theme
    profile: UserProfile
    voices: list[VoiceMapping] = field(default_factory=list)
    sync_url: str = ""
    entries: list[Entry] = field(default_factory=list)


class LocalStore:
    """Durable store for the entry collection and the user preferences.

    Loads never raise: unreadable content is logged and replaced by the
    default for that key only. Saves are fire-and-forget.
    """

    def __init__(self, session: Session) -> None:
        self.session = session
        self.settings = get_settings()
        self._load_failed = False
        self._unreadable_ids: set[str] = set()

    def load_entries(self) -> list[Entry]:
        # Enum and date columns are read as text so one bad row cannot fail the query.
        stmt = select(
            EntryRecord.id,
            EntryRecord.description,
            EntryRecord.amount,
            cast(EntryRecord.category, String).label("category"),
            cast(EntryRecord.payment_method, String).label("payment_method"),
            cast(EntryRecord.date, String).label("date"),
        ).order_by(EntryRecord.date.desc())
        try:
            rows = self.session.execute(stmt).all()
        except SQLAlchemyError as exc:
            self.session.rollback()
            self._load_failed = True
            logger.warning(f"storage_read_failed: key=entries error={exc}")
            return []

        self._load_failed = False
        self._unreadable_ids = set()
        entries: list[Entry] = []
        for row in rows:
            try:
                entries.append(Entry.model_validate(row._asdict()))
            except ValidationError as exc:
                self._unreadable_ids.add(row.id)
                logger.warning(
                    f"storage_row_skipped: key=entries id={row.id} "
                    f"errors={exc.error_count()}"
                )
        return entries

    def save_entries(self, entries: Sequence[Entry]) -> None:
        ids = [e.id for e in entries]
        values = [
            {
                "id": e.id,
                "description": e.description,
                "amount": e.amount,
                "category": e.category,
                "payment_method": e.payment_method,
                "date": e.date,
            }
            for e in entries
        ]
        try:
            if self._load_failed:
                logger.warning("storage_prune_skipped: key=entries reason=unread")
            else:
                keep = ids + sorted(self._unreadable_ids)
                self.session.execute(
                    delete(EntryRecord).where(EntryRecord.id.not_in(keep))
                )
            existing = set(
                self.session.scalars(
                    select(EntryRecord.id).where(EntryRecord.id.in_(ids))
                ).all()
            )
            updates = [v for v in values if v["id"] in existing]
            inserts = [v for v in values if v["id"] not in existing]
            if updates:
                self.session.execute(update(EntryRecord), updates)
            if inserts:
                self.session.execute(insert(EntryRecord), inserts)
            self.session.commit()
        except (SQLAlchemyError, LookupError):
            self.session.rollback()
            logger.exception(f"storage_write_failed: key=entries count={len(ids)}")

    def _read(self, key: str) -> object:
        try:
            pref = self.session.get(Preference, key)
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.warning(f"storage_read_failed: key={key} error={exc}")
            return _MISSING
        if pref is None or pref.value is None:
            return _MISSING
        try:
            return json.loads(pref.value)
        except json.JSONDecodeError:
            logger.warning(f"storage_read_failed: key={key} error=invalid_json")
            return _MISSING

    def _write(self, key: str, value: object) -> None:
        try:
            pref = self.session.get(Preference, key)
            if pref is None:
                pref = Preference(key=key)
                self.session.add(pref)
            pref.value = json.dumps(value, ensure_ascii=False)
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception(f"storage_write_failed: key={key}")

    def load_theme(self) -> Theme:
        raw = self._read(PREF_THEME)
        if raw is not _MISSING:
            try:
                return Theme(raw)
            except ValueError:
                logger.warning(f"storage_read_failed: key={PREF_THEME} value={raw!r}")
        return Theme(self.settings.default_theme)

    def save_theme(self, theme: Theme) -> None:
        self._write(PREF_THEME, theme.value)

    def load_profile(self) -> UserProfile:
        raw = self._read(PREF_PROFILE)
        if raw is not _MISSING:
            try:
                return UserProfile.model_validate(raw)
            except ValidationError:
                logger.warning(f"storage_read_failed: key={PREF_PROFILE}")
        return DEFAULT_PROFILE

    def save_profile(self, profile: UserProfile) -> None:
        self._write(PREF_PROFILE, profile.model_dump(by_alias=True))

    def load_voices(self) -> list[VoiceMapping]:
        raw = self._read(PREF_VOICES)
        if raw is _MISSING:
            return list(DEFAULT_VOICES)
        try:
            return [VoiceMapping.model_validate(item) for item in raw]
        except (ValidationError, TypeError):
            logger.warning(f"storage_read_failed: key={PREF_VOICES}")
        return list(DEFAULT_VOICES)

    def save_voices(self, voices: Sequence[VoiceMapping]) -> None:
        self._write(PREF_VOICES, [v.model_dump(mode="json") for v in voices])

    def load_sync_url(self) -> str:
        raw = self._read(PREF_SYNC_URL)
        if isinstance(raw, str):
            return raw
        if raw is not _MISSING:
            logger.warning(f"storage_read_failed: key={PREF_SYNC_URL}")
        return ""

    def save_sync_url(self, url: str) -> None:
        self._write(PREF_SYNC_URL, url)

    def load_state(self) -> AppState:
        return AppState(
            theme=self.load_theme(),
            profile=self.load_profile(),
            voices=self.load_voices(),
            sync_url=self.load_sync_url(),
            entries=self.load_entries(),
        )

    def save_state(self, state: AppState) -> None:
        self.save_theme(state.theme)
        self.save_profile(state.profile)
        self.save_voices(state.voices)
        self.save_sync_url(state.sync_url)
        self.save_entries(state.entries)
