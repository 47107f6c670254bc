"""Recurring trigger for synchronization passes."""

from datetime import datetime, timezone

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.base import BaseTrigger
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from notion_mirror.models.config import ScheduleConfig
from notion_mirror.sync.sync_orchestrator import SyncOrchestrator

log = structlog.stdlib.get_logger()

JOB_ID = "notion_mirror_sync"


def build_trigger(config: ScheduleConfig) -> BaseTrigger:
    """Cron expression when configured, otherwise a fixed interval."""
    if config.cron:
        return CronTrigger.from_crontab(config.cron, timezone=timezone.utc)
    return IntervalTrigger(minutes=config.interval_minutes, timezone=timezone.utc)


class SyncScheduler:
    """Invokes ``SyncOrchestrator.run_pass`` on a schedule, never overlapping runs."""

    def __init__(self, orchestrator: SyncOrchestrator, config: ScheduleConfig):
        self._orchestrator = orchestrator
        self._config = config
        self._scheduler: AsyncIOScheduler | None = None

    @property
    def started(self) -> bool:
        return self._scheduler is not None

    def start(self) -> None:
        """Start the scheduler. Must be called from within a running event loop."""
        if self._scheduler is not None:
            log.warning("scheduler_already_started")
            return

        trigger = build_trigger(self._config)
        scheduler = AsyncIOScheduler(timezone=timezone.utc)
        job_kwargs = {}
        if self._config.run_on_startup:
            job_kwargs["next_run_time"] = datetime.now(timezone.utc)

        scheduler.add_job(
            self._run,
            trigger=trigger,
            id=JOB_ID,
            name="Local store to Notion sync",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            **job_kwargs,
        )
        scheduler.start()
        self._scheduler = scheduler

        log.info(
            "scheduler_started",
            trigger=str(trigger),
            run_on_startup=self._config.run_on_startup,
        )

    def shutdown(self) -> None:
        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        log.info("scheduler_stopped")

    async def _run(self) -> None:
        try:
            report = await self._orchestrator.run_pass()
        except Exception:
            log.exception("scheduled_sync_failed")
            return

        if not report.success and not report.skipped:
            log.warning(
                "scheduled_sync_incomplete",
                state=report.state.value,
                errors=len(report.errors),
            )
