import os
from functools import lru_cache
from pathlib import Path


class Settings:
    def __init__(
        self,
        database_url: str,
        timezone: str,
        csrf_secret: str,
        sync_timeout_secs: float,
        sync_success_reset_secs: float,
        sync_error_reset_secs: float,
        month_day_policy: str,
        default_theme: str,
    ) -> None:
        self.database_url = database_url
        self.timezone = timezone
        self.csrf_secret = csrf_secret
        self.sync_timeout_secs = sync_timeout_secs
        self.sync_success_reset_secs = sync_success_reset_secs
        self.sync_error_reset_secs = sync_error_reset_secs
        self.month_day_policy = month_day_policy
        self.default_theme = default_theme


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("ZEN_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    data_dir = _ensure_data_dir()
    default_db = data_dir / "zenfinancas.db"
    database_url = os.getenv("ZEN_DATABASE_URL", f"sqlite:///{default_db}")
    timezone = os.getenv("ZEN_TIMEZONE", "America/Sao_Paulo")
    csrf_secret = os.getenv(
        "ZEN_CSRF_SECRET",
        "5a0f3c9be2d14e7f8a61b0c2d9e4f7a13c5b8d0e2f4a6c8e0b1d3f5a7c9e1b2d",
    )
    sync_timeout_secs = float(os.getenv("ZEN_SYNC_TIMEOUT_SECS", "10"))
    sync_success_reset_secs = float(os.getenv("ZEN_SYNC_SUCCESS_RESET_SECS", "3"))
    sync_error_reset_secs = float(os.getenv("ZEN_SYNC_ERROR_RESET_SECS", "4"))
    month_day_policy = os.getenv("ZEN_MONTH_DAY_POLICY", "snap_to_end")
    default_theme = os.getenv("ZEN_DEFAULT_THEME", "light")
    return Settings(
        database_url=database_url,
        timezone=timezone,
        csrf_secret=csrf_secret,
        sync_timeout_secs=sync_timeout_secs,
        sync_success_reset_secs=sync_success_reset_secs,
        sync_error_reset_secs=sync_error_reset_secs,
        month_day_policy=month_day_policy,
        default_theme=default_theme,
    )
