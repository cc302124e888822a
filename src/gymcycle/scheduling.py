"""Periodic execution of the lifecycle passes with APScheduler."""

from __future__ import annotations

import json
from logging import getLogger
from typing import TYPE_CHECKING, Final

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from gymcycle.app import run_contract_lifecycle, run_subscription_lifecycle
from gymcycle.config import get_lifecycle_config

if TYPE_CHECKING:
    from collections.abc import Callable

    from apscheduler.schedulers.base import BaseScheduler

    from gymcycle.config import LifecycleConfig
    from gymcycle.domain.lifecycle import ReconciliationSummary

    type LifecycleJob = Callable[[], ReconciliationSummary]

log = getLogger(__name__)

SCHEDULER_TIMEZONE: Final = "UTC"
CONTRACT_JOB_ID: Final = "contract_lifecycle"
SUBSCRIPTION_JOB_ID: Final = "subscription_lifecycle"


def run_job(name: str, job: LifecycleJob) -> ReconciliationSummary:
    """Execute one pass and log its summary.

    Exceptions propagate so the scheduler records the run as failed.
    """

    log.info("Scheduled %s run starting", name)
    summary = job()
    log.info("Scheduled %s run finished: %s", name, json.dumps(summary.to_dict()))
    return summary


def build_scheduler(
    *,
    config: LifecycleConfig | None = None,
    scheduler: BaseScheduler | None = None,
    contract_job: LifecycleJob = run_contract_lifecycle,
    subscription_job: LifecycleJob = run_subscription_lifecycle,
) -> BaseScheduler:
    """Register both lifecycle passes on their cron schedules.

    Overlapping runs of the same job are skipped and missed runs coalesced into
    one; the passes are idempotent, so the next tick catches up.
    """

    effective_config = config or get_lifecycle_config()
    effective_scheduler = scheduler or BlockingScheduler(timezone=SCHEDULER_TIMEZONE)

    for job_id, name, cron, job in (
        (CONTRACT_JOB_ID, "contracts", effective_config.contract_cron, contract_job),
        (
            SUBSCRIPTION_JOB_ID,
            "subscriptions",
            effective_config.subscription_cron,
            subscription_job,
        ),
    ):
        effective_scheduler.add_job(
            run_job,
            trigger=CronTrigger.from_crontab(cron, timezone=SCHEDULER_TIMEZONE),
            args=(name, job),
            id=job_id,
            name=f"{name} lifecycle",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        log.info("Scheduled %s lifecycle with cron %r (%s)", name, cron, SCHEDULER_TIMEZONE)

    return effective_scheduler
