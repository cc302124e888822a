"""Point-in-time lifecycle counts for dashboards and before/after snapshots."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from gymcycle.domain.lifecycle.results import LifecycleStats, NeedsUpdate
from gymcycle.domain.lifecycle.scanning import (
    contract_expired_criteria,
    contract_expiring_soon_criteria,
    contract_freeze_release_criteria,
    subscription_expired_criteria,
    subscription_expiring_soon_criteria,
    subscription_grace_over_criteria,
)
from gymcycle.domain.model import ContractStatus, SubscriptionStatus
from gymcycle.domain.ports.persistence import ContractCriteria, SubscriptionCriteria
from gymcycle.domain.time_windows import CONTRACT_WINDOWS, SUBSCRIPTION_WINDOWS, LifecycleWindows

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime
    from uuid import UUID

    from gymcycle.domain.ports.unit_of_work import LifecycleUnitOfWork


@dataclass(slots=True)
class ContractStatsReporter:
    unit_of_work_factory: Callable[[], LifecycleUnitOfWork]
    windows: LifecycleWindows = CONTRACT_WINDOWS

    def snapshot(self, now: datetime, *, gym_id: UUID | None = None) -> LifecycleStats:
        with self.unit_of_work_factory() as uow:
            contracts = uow.repositories.contracts

            def by_status(status: ContractStatus) -> int:
                return contracts.count(
                    ContractCriteria(statuses=frozenset({status}), gym_id=gym_id)
                )

            needs_update = NeedsUpdate(
                expiring_soon=contracts.count(
                    contract_expiring_soon_criteria(now, self.windows, gym_id=gym_id)
                ),
                expired=contracts.count(
                    contract_expired_criteria(now, self.windows, gym_id=gym_id)
                ),
                released=contracts.count(contract_freeze_release_criteria(now, gym_id=gym_id)),
            )
            return LifecycleStats(
                active=by_status(ContractStatus.ACTIVE),
                expiring_soon=by_status(ContractStatus.EXPIRING_SOON),
                expired=by_status(ContractStatus.EXPIRED),
                frozen=by_status(ContractStatus.FROZEN),
                total=contracts.count(ContractCriteria(gym_id=gym_id)),
                needs_update=needs_update,
            )

    def still_frozen(self, now: datetime, *, gym_id: UUID | None = None) -> int:
        """Frozen contracts whose freeze has not ended yet."""

        with self.unit_of_work_factory() as uow:
            contracts = uow.repositories.contracts
            frozen = contracts.count(
                ContractCriteria(statuses=frozenset({ContractStatus.FROZEN}), gym_id=gym_id)
            )
            due = contracts.count(contract_freeze_release_criteria(now, gym_id=gym_id))
        return frozen - due


@dataclass(slots=True)
class SubscriptionStatsReporter:
    unit_of_work_factory: Callable[[], LifecycleUnitOfWork]
    windows: LifecycleWindows = SUBSCRIPTION_WINDOWS

    def snapshot(
        self, now: datetime, *, organization_id: UUID | None = None
    ) -> LifecycleStats:
        with self.unit_of_work_factory() as uow:
            subscriptions = uow.repositories.subscriptions

            def by_status(status: SubscriptionStatus, *, flagged: bool | None = None) -> int:
                return subscriptions.count(
                    SubscriptionCriteria(
                        statuses=frozenset({status}),
                        warning_flagged=flagged,
                        organization_id=organization_id,
                    )
                )

            needs_update = NeedsUpdate(
                expiring_soon=subscriptions.count(
                    subscription_expiring_soon_criteria(
                        now, self.windows, organization_id=organization_id
                    )
                ),
                expired=subscriptions.count(
                    subscription_expired_criteria(
                        now, self.windows, organization_id=organization_id
                    )
                ),
                released=subscriptions.count(
                    subscription_grace_over_criteria(now, organization_id=organization_id)
                ),
            )
            return LifecycleStats(
                active=by_status(SubscriptionStatus.ACTIVE),
                expiring_soon=by_status(SubscriptionStatus.ACTIVE, flagged=True),
                expired=by_status(SubscriptionStatus.EXPIRED),
                inactive=by_status(SubscriptionStatus.INACTIVE),
                total=subscriptions.count(SubscriptionCriteria(organization_id=organization_id)),
                needs_update=needs_update,
            )

    def still_in_grace(self, now: datetime, *, organization_id: UUID | None = None) -> int:
        """Expired subscriptions whose grace period is still running."""

        with self.unit_of_work_factory() as uow:
            subscriptions = uow.repositories.subscriptions
            expired = subscriptions.count(
                SubscriptionCriteria(
                    statuses=frozenset({SubscriptionStatus.EXPIRED}),
                    organization_id=organization_id,
                )
            )
            due = subscriptions.count(
                subscription_grace_over_criteria(now, organization_id=organization_id)
            )
        return expired - due
