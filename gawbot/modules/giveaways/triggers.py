import logging
from datetime import datetime
from typing import Any, Callable, Coroutine, Optional, Protocol

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler

TriggerCallback = Callable[[int], Coroutine[Any, Any, Any]]


class CompletionTrigger(Protocol):
    "Something able to call a coroutine once, at a given date, for a giveaway"

    def arm(self, giveaway_id: int, run_date: datetime, callback: TriggerCallback) -> None: ...

    def disarm(self, giveaway_id: int) -> None: ...


class SchedulerTrigger:
    "Completion triggers backed by an APScheduler date job per giveaway"

    def __init__(self, scheduler: Optional[AsyncIOScheduler] = None):
        self.scheduler = scheduler or AsyncIOScheduler()
        self.log = logging.getLogger("gawbot.giveaways.triggers")

    @staticmethod
    def job_id(giveaway_id: int):
        "Get the scheduler job ID of a giveaway"
        return f"giveaway-{giveaway_id}"

    def start(self):
        "Start the underlying scheduler (requires a running event loop)"
        self.scheduler.start()

    def shutdown(self):
        "Stop the underlying scheduler, dropping pending jobs"
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

    def arm(self, giveaway_id: int, run_date: datetime, callback: TriggerCallback):
        self.log.debug("Scheduling closing of giveaway %s at %s", giveaway_id, run_date)
        self.scheduler.add_job(
            callback, "date",
            run_date=run_date,
            args=[giveaway_id],
            id=self.job_id(giveaway_id),
            replace_existing=True,
            misfire_grace_time=None,
        )

    def disarm(self, giveaway_id: int):
        try:
            self.scheduler.remove_job(self.job_id(giveaway_id))
        except JobLookupError:
            pass # already fired, or never armed
