"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING

from gymcycle.adapters.notifications import LoggingNotifier
from gymcycle.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyLifecycleUnitOfWork,
    is_started,
    startup,
)
from gymcycle.config import get_lifecycle_config
from gymcycle.domain.lifecycle import (
    ContractLifecycle,
    ContractStatsReporter,
    SubscriptionLifecycle,
    SubscriptionStatsReporter,
)
from gymcycle.domain.ports.unit_of_work import LifecycleUnitOfWork
from gymcycle.domain.time_windows import LifecycleWindows, utcnow

if TYPE_CHECKING:
    from uuid import UUID

    from gymcycle.config import LifecycleConfig
    from gymcycle.domain.lifecycle import LifecycleStats, ReconciliationSummary
    from gymcycle.domain.ports.notifications import LifecycleNotifier
    from gymcycle.domain.time_windows import Clock

UnitOfWorkFactory = Callable[[], LifecycleUnitOfWork]


log = getLogger(__name__)


def _resolve_unit_of_work_factory(
    factory: UnitOfWorkFactory | None, clock: Clock
) -> UnitOfWorkFactory:
    if factory is not None:
        return factory
    if not is_started():
        startup()
    return partial(SqlAlchemyLifecycleUnitOfWork, clock=clock)


def run_contract_lifecycle(
    *,
    gym_id: UUID | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: LifecycleConfig | None = None,
    clock: Clock | None = None,
    notifier: LifecycleNotifier | None = None,
) -> ReconciliationSummary:
    """Run one contract reconciliation pass using the configured adapters."""

    clock = clock or utcnow
    lifecycle = ContractLifecycle(
        unit_of_work_factory=_resolve_unit_of_work_factory(unit_of_work_factory, clock),
        config=config or get_lifecycle_config(),
        clock=clock,
        notifier=notifier or LoggingNotifier(),
    )
    summary = lifecycle.run(gym_id=gym_id)
    if not summary.success:
        log.error("Contract lifecycle pass finished with failed stages")
    return summary


def run_subscription_lifecycle(
    *,
    organization_id: UUID | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: LifecycleConfig | None = None,
    clock: Clock | None = None,
    notifier: LifecycleNotifier | None = None,
) -> ReconciliationSummary:
    """Run one subscription reconciliation pass using the configured adapters."""

    clock = clock or utcnow
    lifecycle = SubscriptionLifecycle(
        unit_of_work_factory=_resolve_unit_of_work_factory(unit_of_work_factory, clock),
        config=config or get_lifecycle_config(),
        clock=clock,
        notifier=notifier or LoggingNotifier(),
    )
    summary = lifecycle.run(organization_id=organization_id)
    if not summary.success:
        log.error("Subscription lifecycle pass finished with failed stages")
    return summary


def contract_stats(
    *,
    gym_id: UUID | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: LifecycleConfig | None = None,
    clock: Clock | None = None,
) -> LifecycleStats:
    clock = clock or utcnow
    reporter = ContractStatsReporter(
        _resolve_unit_of_work_factory(unit_of_work_factory, clock),
        windows=LifecycleWindows.for_contracts(config or get_lifecycle_config()),
    )
    return reporter.snapshot(clock(), gym_id=gym_id)


def subscription_stats(
    *,
    organization_id: UUID | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: LifecycleConfig | None = None,
    clock: Clock | None = None,
) -> LifecycleStats:
    clock = clock or utcnow
    reporter = SubscriptionStatsReporter(
        _resolve_unit_of_work_factory(unit_of_work_factory, clock),
        windows=LifecycleWindows.for_subscriptions(config or get_lifecycle_config()),
    )
    return reporter.snapshot(clock(), organization_id=organization_id)
