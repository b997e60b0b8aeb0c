import logging
from datetime import datetime, timedelta
from typing import Callable, Optional, Sequence
from zoneinfo import ZoneInfo

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger

from config import get_settings


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class SchedulerManager:
    def __init__(self) -> None:
        settings = get_settings()
        self.tz = ZoneInfo(settings.timezone)
        self.scheduler = BackgroundScheduler(timezone=settings.timezone)

    def submit(
        self,
        func: Callable[..., object],
        *,
        job_id: str,
        args: Optional[Sequence[object]] = None,
    ) -> None:
        self.run_later(func, 0, job_id=job_id, args=args)

    def run_later(
        self,
        func: Callable[..., object],
        delay_secs: float,
        *,
        job_id: str,
        args: Optional[Sequence[object]] = None,
    ) -> None:
        run_date = datetime.now(self.tz) + timedelta(seconds=delay_secs)
        self.scheduler.add_job(
            func,
            DateTrigger(run_date=run_date, timezone=self.tz),
            args=list(args or []),
            id=job_id,
            replace_existing=True,
            misfire_grace_time=60,
        )
        logger.info(f"scheduler_job_added: id={job_id} delay_secs={delay_secs}")

    def start(self) -> None:
        self.scheduler.start()
        logger.info("Scheduler started")

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")
