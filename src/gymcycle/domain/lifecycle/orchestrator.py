"""Reconciliation passes for the contract and subscription lifecycles.

A pass runs its stages strictly in order: expiring soon, expired (with renewal
cascade for contracts), then freeze release or grace period end. Per-entity
failures are collected as data; a failing scan marks only its own stage as not
processed. Anything raised while taking the before/after statistics is treated
as fatal and propagates to the caller (normally the scheduler).
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from gymcycle.config.lifecycle import LifecycleConfig
from gymcycle.domain.lifecycle.processing import ContractProcessor, SubscriptionProcessor
from gymcycle.domain.lifecycle.results import (
    ExpiredStage,
    ExpiringSoonStage,
    ReconciliationSummary,
    ReleaseStage,
    StageTally,
    TransitionOutcome,
)
from gymcycle.domain.lifecycle.scanning import ContractScanner, SubscriptionScanner
from gymcycle.domain.lifecycle.stats import ContractStatsReporter, SubscriptionStatsReporter
from gymcycle.domain.model import LifecycleDomain
from gymcycle.domain.time_windows import LifecycleWindows, utcnow

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from uuid import UUID

    from gymcycle.domain.ports.notifications import LifecycleNotifier
    from gymcycle.domain.ports.unit_of_work import LifecycleUnitOfWork
    from gymcycle.domain.time_windows import Clock

log = getLogger(__name__)


def _run_stage[TCandidate](
    tally: StageTally,
    pages: Iterator[list[TCandidate]],
    process: Callable[[TCandidate], TransitionOutcome],
) -> None:
    for page in pages:
        tally.extend(process(candidate) for candidate in page)


def _stage_failure(stage: str, exc: Exception) -> str:
    message = str(exc) or type(exc).__name__
    log.exception("Stage %s failed", stage)
    return message


def _log_errors(stage: str, tally: StageTally) -> None:
    if tally.errors:
        log.warning(
            "Stage %s finished with %s entity errors: %s",
            stage,
            len(tally.errors),
            [item.to_dict() for item in tally.errors],
        )


@dataclass(slots=True)
class ContractLifecycle:
    """Reconciliation pass over membership contracts."""

    unit_of_work_factory: Callable[[], LifecycleUnitOfWork]
    config: LifecycleConfig = field(default_factory=LifecycleConfig)
    clock: Clock = utcnow
    notifier: LifecycleNotifier | None = None

    def run(self, *, gym_id: UUID | None = None) -> ReconciliationSummary:
        started = time.perf_counter()
        timestamp = self.clock()
        windows = LifecycleWindows.for_contracts(self.config)
        scanner = ContractScanner(
            self.unit_of_work_factory, windows=windows, batch_size=self.config.batch_size
        )
        processor = ContractProcessor(self.unit_of_work_factory, notifier=self.notifier)
        reporter = ContractStatsReporter(self.unit_of_work_factory, windows=windows)

        log.info("Starting contract lifecycle pass (gym=%s)", gym_id or "all")
        initial_stats = reporter.snapshot(timestamp, gym_id=gym_id)
        log.info("Initial contract statistics: %s", initial_stats.to_dict())

        expiring_soon = self._expiring_soon(scanner, processor, gym_id)
        expired = self._expired(scanner, processor, gym_id)
        frozen = self._freeze_release(scanner, processor, reporter, gym_id)

        final_stats = reporter.snapshot(self.clock(), gym_id=gym_id)
        summary = ReconciliationSummary(
            domain=LifecycleDomain.CONTRACTS,
            timestamp=timestamp,
            expiring_soon=expiring_soon,
            expired=expired,
            frozen_or_grace=frozen,
            initial_stats=initial_stats,
            final_stats=final_stats,
            duration_ms=(time.perf_counter() - started) * 1000,
        )
        log.info(
            "Contract lifecycle pass finished in %.0fms: expiring_soon=%s, expired=%s, "
            "renewals_activated=%s, freezes_released=%s, errors=%s",
            summary.duration_ms,
            expiring_soon.count,
            expired.expired_count,
            expired.cascade_activated_count,
            frozen.released_count,
            len(summary.errors),
        )
        return summary

    def _expiring_soon(
        self, scanner: ContractScanner, processor: ContractProcessor, gym_id: UUID | None
    ) -> ExpiringSoonStage:
        now = self.clock()
        tally = StageTally()
        try:
            _run_stage(
                tally,
                scanner.expiring_soon(now, gym_id=gym_id),
                lambda candidate: processor.mark_expiring_soon(candidate, now=now),
            )
        except Exception as exc:  # noqa: BLE001
            return ExpiringSoonStage(
                processed=False,
                count=tally.changed,
                errors=tuple(tally.errors),
                error=_stage_failure("contracts.expiring_soon", exc),
            )
        _log_errors("contracts.expiring_soon", tally)
        log.info("Marked %s contracts as expiring soon", tally.changed)
        return ExpiringSoonStage(processed=True, count=tally.changed, errors=tuple(tally.errors))

    def _expired(
        self, scanner: ContractScanner, processor: ContractProcessor, gym_id: UUID | None
    ) -> ExpiredStage:
        now = self.clock()
        tally = StageTally()
        try:
            _run_stage(
                tally,
                scanner.expired(now, gym_id=gym_id),
                lambda candidate: processor.expire(candidate, now=now),
            )
        except Exception as exc:  # noqa: BLE001
            return ExpiredStage(
                processed=False,
                expired_count=tally.changed,
                cascade_activated_count=tally.cascade_activated,
                errors=tuple(tally.errors),
                error=_stage_failure("contracts.expired", exc),
            )
        _log_errors("contracts.expired", tally)
        log.info(
            "Expired %s contracts, activated %s renewals", tally.changed, tally.cascade_activated
        )
        return ExpiredStage(
            processed=True,
            expired_count=tally.changed,
            cascade_activated_count=tally.cascade_activated,
            errors=tuple(tally.errors),
        )

    def _freeze_release(
        self,
        scanner: ContractScanner,
        processor: ContractProcessor,
        reporter: ContractStatsReporter,
        gym_id: UUID | None,
    ) -> ReleaseStage:
        now = self.clock()
        tally = StageTally()
        try:
            _run_stage(
                tally,
                scanner.freeze_release_due(now, gym_id=gym_id),
                lambda candidate: processor.release_freeze(candidate, now=now),
            )
            still_frozen = reporter.still_frozen(now, gym_id=gym_id)
        except Exception as exc:  # noqa: BLE001
            return ReleaseStage(
                processed=False,
                released_count=tally.changed,
                errors=tuple(tally.errors),
                error=_stage_failure("contracts.frozen", exc),
            )
        _log_errors("contracts.frozen", tally)
        log.info("Released %s frozen contracts, %s still frozen", tally.changed, still_frozen)
        return ReleaseStage(
            processed=True,
            released_count=tally.changed,
            still_pending_count=still_frozen,
            errors=tuple(tally.errors),
        )


@dataclass(slots=True)
class SubscriptionLifecycle:
    """Reconciliation pass over organization subscriptions."""

    unit_of_work_factory: Callable[[], LifecycleUnitOfWork]
    config: LifecycleConfig = field(default_factory=LifecycleConfig)
    clock: Clock = utcnow
    notifier: LifecycleNotifier | None = None

    def run(self, *, organization_id: UUID | None = None) -> ReconciliationSummary:
        started = time.perf_counter()
        timestamp = self.clock()
        windows = LifecycleWindows.for_subscriptions(self.config)
        scanner = SubscriptionScanner(
            self.unit_of_work_factory, windows=windows, batch_size=self.config.batch_size
        )
        processor = SubscriptionProcessor(
            self.unit_of_work_factory,
            grace_period=windows.grace_period,
            notifier=self.notifier,
        )
        reporter = SubscriptionStatsReporter(self.unit_of_work_factory, windows=windows)

        log.info(
            "Starting subscription lifecycle pass (organization=%s)", organization_id or "all"
        )
        initial_stats = reporter.snapshot(timestamp, organization_id=organization_id)
        log.info("Initial subscription statistics: %s", initial_stats.to_dict())

        expiring_soon = self._expiring_soon(scanner, processor, organization_id)
        expired = self._expired(scanner, processor, organization_id)
        grace = self._grace_period(scanner, processor, reporter, organization_id)

        final_stats = reporter.snapshot(self.clock(), organization_id=organization_id)
        summary = ReconciliationSummary(
            domain=LifecycleDomain.SUBSCRIPTIONS,
            timestamp=timestamp,
            expiring_soon=expiring_soon,
            expired=expired,
            frozen_or_grace=grace,
            initial_stats=initial_stats,
            final_stats=final_stats,
            duration_ms=(time.perf_counter() - started) * 1000,
        )
        log.info(
            "Subscription lifecycle pass finished in %.0fms: warned=%s, expired=%s, "
            "access_suspended=%s, errors=%s",
            summary.duration_ms,
            expiring_soon.count,
            expired.expired_count,
            grace.released_count,
            len(summary.errors),
        )
        return summary

    def _expiring_soon(
        self,
        scanner: SubscriptionScanner,
        processor: SubscriptionProcessor,
        organization_id: UUID | None,
    ) -> ExpiringSoonStage:
        now = self.clock()
        tally = StageTally()
        try:
            _run_stage(
                tally,
                scanner.expiring_soon(now, organization_id=organization_id),
                lambda candidate: processor.flag_expiring_soon(candidate, now=now),
            )
        except Exception as exc:  # noqa: BLE001
            return ExpiringSoonStage(
                processed=False,
                count=tally.changed,
                errors=tuple(tally.errors),
                error=_stage_failure("subscriptions.expiring_soon", exc),
            )
        _log_errors("subscriptions.expiring_soon", tally)
        log.info("Flagged %s subscriptions with expiration warnings", tally.changed)
        return ExpiringSoonStage(processed=True, count=tally.changed, errors=tuple(tally.errors))

    def _expired(
        self,
        scanner: SubscriptionScanner,
        processor: SubscriptionProcessor,
        organization_id: UUID | None,
    ) -> ExpiredStage:
        now = self.clock()
        tally = StageTally()
        try:
            _run_stage(
                tally,
                scanner.expired(now, organization_id=organization_id),
                lambda candidate: processor.expire(candidate, now=now),
            )
        except Exception as exc:  # noqa: BLE001
            return ExpiredStage(
                processed=False,
                expired_count=tally.changed,
                errors=tuple(tally.errors),
                error=_stage_failure("subscriptions.expired", exc),
            )
        _log_errors("subscriptions.expired", tally)
        log.info("Expired %s subscriptions into their grace period", tally.changed)
        return ExpiredStage(
            processed=True, expired_count=tally.changed, errors=tuple(tally.errors)
        )

    def _grace_period(
        self,
        scanner: SubscriptionScanner,
        processor: SubscriptionProcessor,
        reporter: SubscriptionStatsReporter,
        organization_id: UUID | None,
    ) -> ReleaseStage:
        now = self.clock()
        tally = StageTally()
        try:
            _run_stage(
                tally,
                scanner.grace_period_over(now, organization_id=organization_id),
                lambda candidate: processor.suspend_access(candidate, now=now),
            )
            still_in_grace = reporter.still_in_grace(now, organization_id=organization_id)
        except Exception as exc:  # noqa: BLE001
            return ReleaseStage(
                processed=False,
                released_count=tally.changed,
                errors=tuple(tally.errors),
                error=_stage_failure("subscriptions.grace_period", exc),
            )
        _log_errors("subscriptions.grace_period", tally)
        log.info(
            "Suspended access for %s subscriptions, %s still in grace period",
            tally.changed,
            still_in_grace,
        )
        return ReleaseStage(
            processed=True,
            released_count=tally.changed,
            still_pending_count=still_in_grace,
            errors=tuple(tally.errors),
        )

