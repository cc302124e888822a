"""Batch scans selecting candidates for each lifecycle transition.

Criteria are derived from the bounds in :mod:`gymcycle.domain.time_windows`, so the
query itself decides eligibility; candidates are not re-checked in memory.
Scans page through results by id, one short unit of work per page, never reading
more than ``batch_size`` rows at once.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from gymcycle.config.lifecycle import DEFAULT_BATCH_SIZE
from gymcycle.domain.model import EXPIRABLE_STATUSES, ContractStatus, SubscriptionStatus
from gymcycle.domain.ports.persistence import ContractCriteria, SubscriptionCriteria
from gymcycle.domain.time_windows import (
    CONTRACT_WINDOWS,
    SUBSCRIPTION_WINDOWS,
    LifecycleWindows,
    expiring_soon_bounds,
    expiry_cutoff,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Sequence
    from datetime import datetime
    from uuid import UUID

    from gymcycle.domain.ports.persistence import ContractCandidate, SubscriptionCandidate
    from gymcycle.domain.ports.unit_of_work import LifecycleRepositories, LifecycleUnitOfWork

log = getLogger(__name__)


# Criteria builders -----------------------------------------------------------


def contract_expiring_soon_criteria(
    now: datetime, windows: LifecycleWindows = CONTRACT_WINDOWS, *, gym_id: UUID | None = None
) -> ContractCriteria:
    after, until = expiring_soon_bounds(now, windows)
    return ContractCriteria(
        statuses=frozenset({ContractStatus.ACTIVE}),
        end_after=after,
        end_until=until,
        gym_id=gym_id,
    )


def contract_expired_criteria(
    now: datetime, windows: LifecycleWindows = CONTRACT_WINDOWS, *, gym_id: UUID | None = None
) -> ContractCriteria:
    return ContractCriteria(
        statuses=EXPIRABLE_STATUSES,
        end_until=expiry_cutoff(now, windows),
        gym_id=gym_id,
    )


def contract_freeze_release_criteria(
    now: datetime, *, gym_id: UUID | None = None
) -> ContractCriteria:
    return ContractCriteria(
        statuses=frozenset({ContractStatus.FROZEN}),
        freeze_end_until=now,
        gym_id=gym_id,
    )


def subscription_expiring_soon_criteria(
    now: datetime,
    windows: LifecycleWindows = SUBSCRIPTION_WINDOWS,
    *,
    organization_id: UUID | None = None,
) -> SubscriptionCriteria:
    after, until = expiring_soon_bounds(now, windows)
    return SubscriptionCriteria(
        statuses=frozenset({SubscriptionStatus.ACTIVE}),
        end_after=after,
        end_until=until,
        warning_flagged=False,
        organization_id=organization_id,
    )


def subscription_expired_criteria(
    now: datetime,
    windows: LifecycleWindows = SUBSCRIPTION_WINDOWS,
    *,
    organization_id: UUID | None = None,
) -> SubscriptionCriteria:
    return SubscriptionCriteria(
        statuses=frozenset({SubscriptionStatus.ACTIVE}),
        end_until=expiry_cutoff(now, windows),
        organization_id=organization_id,
    )


def subscription_grace_over_criteria(
    now: datetime, *, organization_id: UUID | None = None
) -> SubscriptionCriteria:
    return SubscriptionCriteria(
        statuses=frozenset({SubscriptionStatus.EXPIRED}),
        grace_period_end_until=now,
        organization_id=organization_id,
    )


# Paging ----------------------------------------------------------------------


class _Identified(Protocol):
    @property
    def id(self) -> UUID: ...


def paginate[TCriteria: (ContractCriteria, SubscriptionCriteria), TCandidate: _Identified](
    unit_of_work_factory: Callable[[], LifecycleUnitOfWork],
    criteria: TCriteria,
    fetch: Callable[[LifecycleRepositories, TCriteria], Sequence[TCandidate]],
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> Iterator[list[TCandidate]]:
    """Yield bounded pages of candidates ordered by id until the scan is exhausted."""

    if batch_size < 1:
        raise ValueError("Batch size must be at least 1")
    cursor = criteria.after_id
    while True:
        page_criteria = replace(criteria, after_id=cursor, limit=batch_size)
        with unit_of_work_factory() as uow:
            page = list(fetch(uow.repositories, page_criteria))
        if not page:
            return
        yield page
        if len(page) < batch_size:
            return
        cursor = page[-1].id


# Scanners --------------------------------------------------------------------


@dataclass(slots=True)
class ContractScanner:
    unit_of_work_factory: Callable[[], LifecycleUnitOfWork]
    windows: LifecycleWindows = CONTRACT_WINDOWS
    batch_size: int = DEFAULT_BATCH_SIZE

    def expiring_soon(
        self, now: datetime, *, gym_id: UUID | None = None
    ) -> Iterator[list[ContractCandidate]]:
        return self._scan(contract_expiring_soon_criteria(now, self.windows, gym_id=gym_id))

    def expired(
        self, now: datetime, *, gym_id: UUID | None = None
    ) -> Iterator[list[ContractCandidate]]:
        return self._scan(contract_expired_criteria(now, self.windows, gym_id=gym_id))

    def freeze_release_due(
        self, now: datetime, *, gym_id: UUID | None = None
    ) -> Iterator[list[ContractCandidate]]:
        return self._scan(contract_freeze_release_criteria(now, gym_id=gym_id))

    def _scan(self, criteria: ContractCriteria) -> Iterator[list[ContractCandidate]]:
        log.debug("Scanning contracts: %s", criteria)
        return paginate(
            self.unit_of_work_factory,
            criteria,
            lambda repositories, page: repositories.contracts.find_candidates(page),
            batch_size=self.batch_size,
        )


@dataclass(slots=True)
class SubscriptionScanner:
    unit_of_work_factory: Callable[[], LifecycleUnitOfWork]
    windows: LifecycleWindows = SUBSCRIPTION_WINDOWS
    batch_size: int = DEFAULT_BATCH_SIZE

    def expiring_soon(
        self, now: datetime, *, organization_id: UUID | None = None
    ) -> Iterator[list[SubscriptionCandidate]]:
        return self._scan(
            subscription_expiring_soon_criteria(
                now, self.windows, organization_id=organization_id
            )
        )

    def expired(
        self, now: datetime, *, organization_id: UUID | None = None
    ) -> Iterator[list[SubscriptionCandidate]]:
        return self._scan(
            subscription_expired_criteria(now, self.windows, organization_id=organization_id)
        )

    def grace_period_over(
        self, now: datetime, *, organization_id: UUID | None = None
    ) -> Iterator[list[SubscriptionCandidate]]:
        return self._scan(subscription_grace_over_criteria(now, organization_id=organization_id))

    def _scan(self, criteria: SubscriptionCriteria) -> Iterator[list[SubscriptionCandidate]]:
        log.debug("Scanning subscriptions: %s", criteria)
        return paginate(
            self.unit_of_work_factory,
            criteria,
            lambda repositories, page: repositories.subscriptions.find_candidates(page),
            batch_size=self.batch_size,
        )
