"""Reusable fakes and builders for lifecycle tests."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Literal
from uuid import UUID, uuid4

from gymcycle.domain.model import (
    Contract,
    ContractStatus,
    SubscriptionOrganization,
    SubscriptionStatus,
    ensure_aware,
)
from gymcycle.domain.ports.persistence import (
    ContractCandidate,
    ContractCriteria,
    SubscriptionCandidate,
    SubscriptionCriteria,
)
from gymcycle.domain.ports.unit_of_work import LifecycleRepositories

if TYPE_CHECKING:
    from collections.abc import Sequence

    from gymcycle.domain.ports.notifications import LifecycleEvent

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
GYM_ID = UUID("00000000-0000-4000-8000-00000000a001")
OTHER_GYM_ID = UUID("00000000-0000-4000-8000-00000000a002")
ORGANIZATION_ID = UUID("00000000-0000-4000-8000-00000000b001")


class MutableClock:
    """Clock whose current time is set explicitly by the test."""

    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> datetime:
        self.now = self.now + delta
        return self.now


def ordered_ids(count: int) -> list[UUID]:
    """Return ``count`` ids in ascending order so scan order is predictable."""

    return sorted(uuid4() for _ in range(count))


def make_contract(
    *,
    status: ContractStatus = ContractStatus.ACTIVE,
    end_date: datetime | None = None,
    gym_id: UUID = GYM_ID,
    entity_id: UUID | None = None,
    start_date: datetime | None = None,
    freeze_end_date: datetime | None = None,
    parent: Contract | None = None,
    final_amount: Decimal | None = None,
    created_at: datetime = T0 - timedelta(days=60),
) -> Contract:
    contract = Contract(
        gym_id=gym_id,
        client_id=parent.client_id if parent is not None else uuid4(),
        plan_id=parent.plan_id if parent is not None else uuid4(),
        status=status,
        start_date=start_date or (created_at if status != ContractStatus.PENDING else None),
        end_date=end_date if end_date is not None else T0 + timedelta(days=30),
        freeze_start_date=(
            (freeze_end_date - timedelta(days=14)) if freeze_end_date is not None else None
        ),
        freeze_end_date=freeze_end_date,
        parent_contract_id=parent.id if parent is not None else None,
        final_amount=final_amount,
        created_at=created_at,
        updated_at=created_at,
    )
    if entity_id is not None:
        contract.id = entity_id
    return contract


def make_subscription(
    *,
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE,
    end_date: datetime | None = None,
    organization_id: UUID = ORGANIZATION_ID,
    entity_id: UUID | None = None,
    is_active: bool = True,
    metadata: dict[str, object] | None = None,
    created_at: datetime = T0 - timedelta(days=300),
) -> SubscriptionOrganization:
    subscription = SubscriptionOrganization(
        organization_id=organization_id,
        status=status,
        start_date=created_at,
        end_date=end_date if end_date is not None else T0 + timedelta(days=60),
        is_active=is_active,
        metadata=dict(metadata or {}),
        created_at=created_at,
        updated_at=created_at,
    )
    if entity_id is not None:
        subscription.id = entity_id
    return subscription


# Criteria evaluation ---------------------------------------------------------------


def _within(
    value: datetime | None, *, after: datetime | None, until: datetime | None
) -> bool:
    if after is None and until is None:
        return True
    if value is None:
        return False
    value = ensure_aware(value)
    if after is not None and not value > after:
        return False
    return until is None or value <= until


def contract_matches(contract: Contract, criteria: ContractCriteria) -> bool:
    if contract.is_deleted:
        return False
    if criteria.statuses is not None and contract.status not in criteria.statuses:
        return False
    if not _within(contract.end_date, after=criteria.end_after, until=criteria.end_until):
        return False
    if criteria.freeze_end_until is not None and not _within(
        contract.freeze_end_date, after=None, until=criteria.freeze_end_until
    ):
        return False
    if criteria.gym_id is not None and contract.gym_id != criteria.gym_id:
        return False
    return criteria.after_id is None or contract.id > criteria.after_id


def subscription_matches(
    subscription: SubscriptionOrganization, criteria: SubscriptionCriteria
) -> bool:
    if subscription.is_deleted or not subscription.is_active:
        return False
    if criteria.statuses is not None and subscription.status not in criteria.statuses:
        return False
    if not _within(subscription.end_date, after=criteria.end_after, until=criteria.end_until):
        return False
    if (
        criteria.warning_flagged is not None
        and subscription.expiration_warning != criteria.warning_flagged
    ):
        return False
    if criteria.grace_period_end_until is not None and not _within(
        subscription.grace_period_end, after=None, until=criteria.grace_period_end_until
    ):
        return False
    if (
        criteria.organization_id is not None
        and subscription.organization_id != criteria.organization_id
    ):
        return False
    return criteria.after_id is None or subscription.id > criteria.after_id


# Store and unit of work -------------------------------------------------------------


class SimulatedFailure(RuntimeError):
    pass


@dataclass
class FakeLifecycleStore:
    """Committed state shared by every fake unit of work.

    Units of work hand out copies of stored entities and write them back only on
    commit, so an exception inside a unit of work leaves the store untouched.
    """

    contracts: dict[UUID, Contract] = field(default_factory=dict[UUID, Contract])
    subscriptions: dict[UUID, SubscriptionOrganization] = field(
        default_factory=dict[UUID, SubscriptionOrganization]
    )
    failing_ids: set[UUID] = field(default_factory=set[UUID])
    scan_error: Exception | None = None
    count_error: Exception | None = None
    commits: int = 0
    rollbacks: int = 0
    units_opened: int = 0
    page_sizes: list[int] = field(default_factory=list[int])

    def add_contracts(self, *contracts: Contract) -> None:
        for contract in contracts:
            self.contracts[contract.id] = contract

    def add_subscriptions(self, *subscriptions: SubscriptionOrganization) -> None:
        for subscription in subscriptions:
            self.subscriptions[subscription.id] = subscription

    def contract(self, entity_id: UUID) -> Contract:
        return self.contracts[entity_id]

    def subscription(self, entity_id: UUID) -> SubscriptionOrganization:
        return self.subscriptions[entity_id]

    def unit_of_work(self) -> FakeLifecycleUnitOfWork:
        self.units_opened += 1
        return FakeLifecycleUnitOfWork(self)


class FakeContractRepository:
    def __init__(self, store: FakeLifecycleStore) -> None:
        self.store = store
        self.working: dict[UUID, Contract] = {}

    def add(self, entity: Contract) -> None:
        self.working[entity.id] = entity

    def get(self, entity_id: UUID) -> Contract | None:
        if entity_id in self.store.failing_ids:
            raise SimulatedFailure(f"Simulated failure loading contract {entity_id}")
        if entity_id not in self.working:
            stored = self.store.contracts.get(entity_id)
            if stored is None:
                return None
            self.working[entity_id] = copy.deepcopy(stored)
        return self.working[entity_id]

    def find_candidates(self, criteria: ContractCriteria) -> Sequence[ContractCandidate]:
        if self.store.scan_error is not None:
            raise self.store.scan_error
        matches = sorted(
            (c for c in self.store.contracts.values() if contract_matches(c, criteria)),
            key=lambda c: c.id,
        )
        if criteria.limit is not None:
            matches = matches[: criteria.limit]
            self.store.page_sizes.append(len(matches))
        return [
            ContractCandidate(
                id=c.id,
                gym_id=c.gym_id,
                status=c.status,
                end_date=c.end_date,
                freeze_end_date=c.freeze_end_date,
            )
            for c in matches
        ]

    def count(self, criteria: ContractCriteria) -> int:
        if self.store.count_error is not None:
            raise self.store.count_error
        return sum(1 for c in self.store.contracts.values() if contract_matches(c, criteria))

    def latest_renewal(self, contract_id: UUID) -> Contract | None:
        renewals = [
            c
            for c in self.store.contracts.values()
            if c.parent_contract_id == contract_id and not c.is_deleted
        ]
        if not renewals:
            return None
        latest = max(renewals, key=lambda c: (c.created_at or T0, c.id))
        return self.get(latest.id)


class FakeSubscriptionRepository:
    def __init__(self, store: FakeLifecycleStore) -> None:
        self.store = store
        self.working: dict[UUID, SubscriptionOrganization] = {}

    def add(self, entity: SubscriptionOrganization) -> None:
        self.working[entity.id] = entity

    def get(self, entity_id: UUID) -> SubscriptionOrganization | None:
        if entity_id in self.store.failing_ids:
            raise SimulatedFailure(f"Simulated failure loading subscription {entity_id}")
        if entity_id not in self.working:
            stored = self.store.subscriptions.get(entity_id)
            if stored is None:
                return None
            self.working[entity_id] = copy.deepcopy(stored)
        return self.working[entity_id]

    def find_candidates(
        self, criteria: SubscriptionCriteria
    ) -> Sequence[SubscriptionCandidate]:
        if self.store.scan_error is not None:
            raise self.store.scan_error
        matches = sorted(
            (
                s
                for s in self.store.subscriptions.values()
                if subscription_matches(s, criteria)
            ),
            key=lambda s: s.id,
        )
        if criteria.limit is not None:
            matches = matches[: criteria.limit]
            self.store.page_sizes.append(len(matches))
        return [
            SubscriptionCandidate(
                id=s.id,
                organization_id=s.organization_id,
                status=s.status,
                end_date=s.end_date,
            )
            for s in matches
        ]

    def count(self, criteria: SubscriptionCriteria) -> int:
        if self.store.count_error is not None:
            raise self.store.count_error
        return sum(
            1 for s in self.store.subscriptions.values() if subscription_matches(s, criteria)
        )


class FakeLifecycleUnitOfWork:
    """Unit of work capturing lifecycle persistence interactions."""

    def __init__(self, store: FakeLifecycleStore) -> None:
        self.store = store
        self._contracts = FakeContractRepository(store)
        self._subscriptions = FakeSubscriptionRepository(store)
        self.repositories = LifecycleRepositories(
            contracts=self._contracts,
            subscriptions=self._subscriptions,
        )
        self.committed = False
        self.rollback_called = False

    def __enter__(self) -> FakeLifecycleUnitOfWork:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: object | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        return False

    def commit(self) -> None:
        self.store.contracts.update(self._contracts.working)
        self.store.subscriptions.update(self._subscriptions.working)
        self.store.commits += 1
        self.committed = True

    def rollback(self) -> None:
        self._contracts.working.clear()
        self._subscriptions.working.clear()
        self.store.rollbacks += 1
        self.rollback_called = True


def failing_notifier(event: LifecycleEvent) -> None:
    raise SimulatedFailure(f"Notifier unavailable for {event.entity_id}")


if TYPE_CHECKING:
    from gymcycle.domain.ports.notifications import LifecycleNotifier
    from gymcycle.domain.ports.persistence import ContractRepository, SubscriptionRepository
    from gymcycle.domain.ports.unit_of_work import LifecycleUnitOfWork

    _store_check = FakeLifecycleStore()
    _contracts_check: ContractRepository = FakeContractRepository(_store_check)
    _subscriptions_check: SubscriptionRepository = FakeSubscriptionRepository(_store_check)
    _uow_check: LifecycleUnitOfWork = FakeLifecycleUnitOfWork(_store_check)
    _notifier_check: LifecycleNotifier = failing_notifier
