from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence
from urllib.error import URLError
from urllib.request import Request, urlopen

from pydantic import ValidationError

from config import get_settings
from models import SyncStatus
from scheduler import SchedulerManager
from schemas import Entry, StoredEntryRow

logger = logging.getLogger(__name__)


class SyncError(RuntimeError):
    pass


def sync_payload(entries: Iterable[Entry]) -> dict[str, object]:
    ordered = sorted(entries, key=lambda e: e.date)
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "data": [e.model_dump(mode="json", by_alias=True) for e in ordered],
    }


def entries_from_rows(rows: Iterable[object]) -> list[Entry]:
    entries: list[Entry] = []
    for row in rows:
        try:
            entries.append(StoredEntryRow.model_validate(row).to_entry())
        except ValidationError as exc:
            row_id = row.get("id") if isinstance(row, dict) else None
            logger.warning(
                f"sync_row_skipped: id={row_id} errors={exc.error_count()}"
            )
    return entries


def _endpoint(base_url: str, path: str) -> str:
    return f"{base_url.rstrip('/')}/{path}"


class RemoteStoreClient:
    def __init__(self, timeout: Optional[float] = None) -> None:
        if timeout is None:
            timeout = get_settings().sync_timeout_secs
        self.timeout = timeout

    def push(self, base_url: str, entries: Sequence[Entry]) -> None:
        body = json.dumps(sync_payload(entries), ensure_ascii=False).encode("utf-8")
        req = Request(
            _endpoint(base_url, "sync"),
            data=body,
            method="POST",
            headers={"Content-Type": "application/json", "Accept": "application/json"},
        )
        self._send(req)

    def pull(self, base_url: str) -> list[Entry]:
        req = Request(_endpoint(base_url, "gastos"), headers={"Accept": "application/json"})
        payload = self._send(req)
        if not isinstance(payload, list):
            raise SyncError("Unexpected remote store response")
        return entries_from_rows(payload)

    def _send(self, req: Request) -> object:
        try:
            with urlopen(req, timeout=self.timeout) as resp:
                raw = resp.read().decode("utf-8")
        except (URLError, OSError, ValueError) as exc:
            raise SyncError(f"Remote store request failed: {req.full_url}") from exc
        if not raw:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise SyncError("Unexpected remote store response") from exc


class SyncCoordinator:
    """Runs at most one push at a time and reports a tri-state status."""

    def __init__(
        self,
        client: RemoteStoreClient,
        scheduler: SchedulerManager,
        *,
        success_reset_secs: Optional[float] = None,
        error_reset_secs: Optional[float] = None,
    ) -> None:
        settings = get_settings()
        self.client = client
        self.scheduler = scheduler
        self.success_reset_secs = (
            settings.sync_success_reset_secs
            if success_reset_secs is None
            else success_reset_secs
        )
        self.error_reset_secs = (
            settings.sync_error_reset_secs
            if error_reset_secs is None
            else error_reset_secs
        )
        self.status = SyncStatus.idle
        self._lock = threading.Lock()
        self._in_flight = False
        self._attempt = 0

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def _begin(self) -> Optional[int]:
        with self._lock:
            if self._in_flight:
                return None
            self._in_flight = True
            self._attempt += 1
            self.status = SyncStatus.idle
            return self._attempt

    def request_sync(self, url: str, entries: Sequence[Entry]) -> bool:
        if not url:
            return False
        attempt = self._begin()
        if attempt is None:
            logger.info("sync_skipped: reason=in_flight")
            return False
        self.scheduler.submit(
            self._run, job_id="remote_sync", args=[attempt, url, list(entries)]
        )
        return True

    def sync(self, url: str, entries: Sequence[Entry]) -> SyncStatus:
        if not url:
            return self.status
        attempt = self._begin()
        if attempt is None:
            logger.info("sync_skipped: reason=in_flight")
            return self.status
        return self._run(attempt, url, list(entries))

    def _run(self, attempt: int, url: str, entries: list[Entry]) -> SyncStatus:
        logger.info(f"sync_started: attempt={attempt} count={len(entries)}")
        status = SyncStatus.error
        try:
            self.client.push(url, entries)
            status = SyncStatus.success
        except SyncError as exc:
            logger.warning(f"sync_failed: attempt={attempt} error={exc}")
        finally:
            with self._lock:
                self.status = status
                self._in_flight = False

        delay = (
            self.success_reset_secs
            if status == SyncStatus.success
            else self.error_reset_secs
        )
        self.scheduler.run_later(
            self._reset, delay, job_id="sync_status_reset", args=[attempt]
        )
        logger.info(f"sync_finished: attempt={attempt} status={status.value}")
        return status

    def _reset(self, attempt: int) -> None:
        with self._lock:
            # A newer attempt owns the status now.
            if attempt != self._attempt or self._in_flight:
                return
            self.status = SyncStatus.idle
