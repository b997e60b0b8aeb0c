import logging
from datetime import date
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Response
from fastapi.responses import PlainTextResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from csrf import generate_csrf_token, validate_csrf_token
from csv_utils import export_entries
from database import SessionLocal
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
from periods import MonthPeriod, resolve_month
from scheduler import SchedulerManager
from schemas import (
    Entry,
    EntryFields,
    EntryIn,
    RemoteEntryIn,
    RemoteSyncIn,
    SyncTargetIn,
    ThemeIn,
    UserProfile,
    VoiceMapping,
)
from services import EntryService, PreferenceService, RemoteStoreService
from sync import RemoteStoreClient, SyncCoordinator, SyncError

logger = logging.getLogger(__name__)

app = FastAPI(title="ZenFinanças")


def _load_app_version() -> str:
    try:
        import tomllib
    except Exception:
        return "unknown"
    try:
        with open("pyproject.toml", "rb") as f:
            data = tomllib.load(f)
        return str(data.get("project", {}).get("version", "unknown"))
    except Exception:
        return "unknown"


APP_VERSION = _load_app_version()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


scheduler_manager = SchedulerManager()
remote_client = RemoteStoreClient()
sync_coordinator = SyncCoordinator(remote_client, scheduler_manager)


@app.on_event("startup")
def startup_event():
    scheduler_manager.start()


@app.on_event("shutdown")
def shutdown_event():
    scheduler_manager.stop()


def require_csrf(x_csrf_token: str = Header(default="")) -> None:
    if not validate_csrf_token(x_csrf_token):
        raise HTTPException(status_code=400, detail="Invalid CSRF token")


def month_from_query(month: Optional[str]) -> MonthPeriod:
    try:
        return resolve_month(month)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def entry_payload(entry: Entry, voices: list[VoiceMapping]) -> dict[str, object]:
    payload = entry.model_dump(mode="json", by_alias=True)
    payload["icon"] = icon_for(entry.description, voices)
    return payload


def sync_state() -> dict[str, object]:
    return {
        "status": sync_coordinator.status.value,
        "in_flight": sync_coordinator.in_flight,
    }


@app.get("/api/health")
def health():
    return {"status": "ok", "version": APP_VERSION}


@app.get("/api/csrf-token")
def csrf_token():
    return {"token": generate_csrf_token()}


@app.get("/api/state")
def app_state(db: Session = Depends(get_db)):
    state = PreferenceService(db).state()
    return {
        "theme": state.theme.value,
        "profile": state.profile.model_dump(by_alias=True),
        "voices": [v.model_dump(mode="json") for v in state.voices],
        "sync_url": state.sync_url,
        "entries": [entry_payload(e, state.voices) for e in state.entries],
        "sync": sync_state(),
    }


@app.get("/api/entries")
def list_entries(month: Optional[str] = None, db: Session = Depends(get_db)):
    period = month_from_query(month) if month else None
    entries = EntryService(db).list(period)
    voices = PreferenceService(db).voices()
    return [entry_payload(e, voices) for e in entries]


@app.get("/api/entries/export.csv")
def export_entries_csv(db: Session = Depends(get_db)):
    content = export_entries(EntryService(db).list())
    return PlainTextResponse(
        content,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="lancamentos.csv"'},
    )


@app.post(
    "/api/entries",
    status_code=201,
    response_model=list[Entry],
    dependencies=[Depends(require_csrf)],
)
def create_entry(data: EntryIn, db: Session = Depends(get_db)):
    try:
        return EntryService(db).create(data)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.put(
    "/api/entries/{entry_id}",
    response_model=Entry,
    dependencies=[Depends(require_csrf)],
)
def update_entry(entry_id: str, data: EntryFields, db: Session = Depends(get_db)):
    try:
        return EntryService(db).update(entry_id, data)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.delete(
    "/api/entries/{entry_id}",
    status_code=204,
    dependencies=[Depends(require_csrf)],
)
def delete_entry(entry_id: str, db: Session = Depends(get_db)):
    try:
        EntryService(db).delete(entry_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=204)


@app.get("/api/summary")
def summary(month: Optional[str] = None, db: Session = Depends(get_db)):
    period = month_from_query(month)
    entries = filter_by_period(EntryService(db).list(), period.year, period.month)
    by_category = category_totals(entries)
    by_method = payment_method_totals(entries)
    return {
        "month": period.label,
        "totals": totals(entries),
        "categories": {c.value: amount for c, amount in by_category.items()},
        "payment_methods": {m.value: amount for m, amount in by_method.items()},
        "has_data": any(amount > 0 for amount in by_category.values()),
        "count": len(entries),
    }


@app.get("/api/trend")
def monthly_trend(
    month: Optional[str] = None,
    months_back: int = 6,
    db: Session = Depends(get_db),
):
    if not 1 <= months_back <= 24:
        raise HTTPException(status_code=400, detail="months_back must be 1..24")
    period = month_from_query(month)
    return trend(EntryService(db).list(), period.start, months_back)


@app.get("/api/calendar")
def calendar_day(day: Optional[date] = None, db: Session = Depends(get_db)):
    day = day or date.today()
    entries = EntryService(db).list()
    voices = PreferenceService(db).voices()
    return {
        "day": day.isoformat(),
        "active_days": active_days(entries, day.year, day.month),
        "entries": [entry_payload(e, voices) for e in entries_on(entries, day)],
    }


@app.get("/api/profile")
def get_profile(db: Session = Depends(get_db)):
    return PreferenceService(db).profile().model_dump(by_alias=True)


@app.put("/api/profile", dependencies=[Depends(require_csrf)])
def put_profile(data: UserProfile, db: Session = Depends(get_db)):
    return PreferenceService(db).set_profile(data).model_dump(by_alias=True)


@app.get("/api/theme")
def get_theme(db: Session = Depends(get_db)):
    return {"theme": PreferenceService(db).theme().value}


@app.put("/api/theme", dependencies=[Depends(require_csrf)])
def put_theme(data: ThemeIn, db: Session = Depends(get_db)):
    return {"theme": PreferenceService(db).set_theme(data.theme).value}


@app.post("/api/theme/toggle", dependencies=[Depends(require_csrf)])
def toggle_theme(db: Session = Depends(get_db)):
    return {"theme": PreferenceService(db).toggle_theme().value}


@app.get("/api/voices")
def list_voices(db: Session = Depends(get_db)):
    return [v.model_dump(mode="json") for v in PreferenceService(db).voices()]


@app.get("/api/voices/icon")
def voice_icon(description: str, db: Session = Depends(get_db)):
    return {"description": description, "icon": PreferenceService(db).icon_for(description)}


@app.post("/api/voices", status_code=201, dependencies=[Depends(require_csrf)])
def add_voice(data: VoiceMapping, db: Session = Depends(get_db)):
    return [v.model_dump(mode="json") for v in PreferenceService(db).add_voice(data)]


@app.delete("/api/voices/{description}", dependencies=[Depends(require_csrf)])
def remove_voice(description: str, db: Session = Depends(get_db)):
    return [v.model_dump(mode="json") for v in PreferenceService(db).remove_voice(description)]


@app.get("/api/sync-target")
def get_sync_target(db: Session = Depends(get_db)):
    return {"url": PreferenceService(db).sync_url()}


@app.put("/api/sync-target", dependencies=[Depends(require_csrf)])
def put_sync_target(data: SyncTargetIn, db: Session = Depends(get_db)):
    url = PreferenceService(db).set_sync_url(data.url)
    started = sync_coordinator.request_sync(url, EntryService(db).list())
    return {"url": url, "started": started, **sync_state()}


@app.post("/api/sync", dependencies=[Depends(require_csrf)])
def start_sync(db: Session = Depends(get_db)):
    url = PreferenceService(db).sync_url()
    started = sync_coordinator.request_sync(url, EntryService(db).list())
    return {"started": started, **sync_state()}


@app.get("/api/sync/status")
def get_sync_status():
    return sync_state()


@app.post("/api/sync/pull", dependencies=[Depends(require_csrf)])
def pull_sync(db: Session = Depends(get_db)):
    url = PreferenceService(db).sync_url()
    if not url:
        raise HTTPException(status_code=400, detail="Sync target not configured")
    try:
        pulled = EntryService(db).pull_remote(remote_client, url)
    except SyncError as exc:
        logger.warning(f"sync_pull_failed: error={exc}")
        return {"status": "error", "count": 0}
    return {"status": "success", "count": len(pulled)}


@app.get("/remote/gastos")
def remote_list(db: Session = Depends(get_db)):
    try:
        return RemoteStoreService(db).list_all()
    except SQLAlchemyError as exc:
        logger.exception("remote_list_failed")
        raise HTTPException(status_code=500, detail="Failed to read entries") from exc


@app.post("/remote/gastos", status_code=201)
def remote_create(data: RemoteEntryIn, db: Session = Depends(get_db)):
    try:
        row = RemoteStoreService(db).create(data)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("remote_create_failed")
        raise HTTPException(status_code=500, detail="Failed to create entry") from exc
    return {"success": True, "id": row["id"]}


@app.post("/remote/sync")
def remote_sync(data: RemoteSyncIn, db: Session = Depends(get_db)):
    try:
        count = RemoteStoreService(db).upsert_many(data.data)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("remote_sync_failed")
        raise HTTPException(status_code=500, detail="Failed to sync entries") from exc
    return {"message": "Sync completed", "count": count}


def main():
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=False)


if __name__ == "__main__":
    main()
