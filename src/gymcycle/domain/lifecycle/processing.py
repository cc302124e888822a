"""Per-entity transactional processing of lifecycle transitions.

Every candidate is handled in its own unit of work. A failure rolls back that
entity (and its cascade target) only and is reported as an error outcome; it is
never raised to the stage loop, so one bad row cannot block the batch.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from logging import getLogger
from typing import TYPE_CHECKING

from gymcycle.domain.errors import EntityNotFoundError
from gymcycle.domain.lifecycle.cascade import resolve_renewal_cascade
from gymcycle.domain.lifecycle.results import TransitionOutcome
from gymcycle.domain.model import LifecycleDomain, format_instant
from gymcycle.domain.ports.notifications import LifecycleEvent, LifecycleEventKind

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from datetime import datetime
    from uuid import UUID

    from gymcycle.domain.model import Contract, SubscriptionOrganization
    from gymcycle.domain.ports.notifications import LifecycleNotifier
    from gymcycle.domain.ports.persistence import ContractCandidate, SubscriptionCandidate
    from gymcycle.domain.ports.unit_of_work import LifecycleRepositories, LifecycleUnitOfWork

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AppliedTransition:
    changed: bool
    cascade_activated: bool = False
    events: tuple[LifecycleEvent, ...] = ()


type TransitionAction = Callable[[LifecycleRepositories], AppliedTransition]


def process_in_unit_of_work(
    unit_of_work_factory: Callable[[], LifecycleUnitOfWork],
    entity_id: UUID,
    action: TransitionAction,
    *,
    description: str,
    notifier: LifecycleNotifier | None = None,
) -> TransitionOutcome:
    """Apply ``action`` to one entity atomically and report the outcome."""

    try:
        with unit_of_work_factory() as uow:
            applied = action(uow.repositories)
            if applied.changed:
                uow.commit()
    except Exception as exc:  # noqa: BLE001
        message = str(exc) or type(exc).__name__
        log.warning("Failed to %s %s: %s", description, entity_id, message, exc_info=True)
        return TransitionOutcome.failed(entity_id, message)

    if applied.changed:
        log.info("Applied %s to %s", description, entity_id)
    _notify(notifier, applied.events)
    return TransitionOutcome.succeeded(
        entity_id,
        changed=applied.changed,
        cascade_activated=applied.cascade_activated,
    )


def _notify(notifier: LifecycleNotifier | None, events: Iterable[LifecycleEvent]) -> None:
    if notifier is None:
        return
    for event in events:
        try:
            notifier(event)
        except Exception:  # noqa: BLE001
            # The transition is already committed; a lost notification is only logged.
            log.warning(
                "Notifier failed for %s event on %s", event.kind, event.entity_id, exc_info=True
            )


def _contract_event(
    kind: LifecycleEventKind, contract: Contract, now: datetime, **details: str
) -> LifecycleEvent:
    return LifecycleEvent(
        kind=kind,
        domain=LifecycleDomain.CONTRACTS,
        entity_id=contract.id,
        tenant_id=contract.gym_id,
        occurred_at=now,
        details=details,
    )


def _subscription_event(
    kind: LifecycleEventKind, subscription: SubscriptionOrganization, now: datetime, **details: str
) -> LifecycleEvent:
    return LifecycleEvent(
        kind=kind,
        domain=LifecycleDomain.SUBSCRIPTIONS,
        entity_id=subscription.id,
        tenant_id=subscription.organization_id,
        occurred_at=now,
        details=details,
    )


@dataclass(slots=True)
class ContractProcessor:
    unit_of_work_factory: Callable[[], LifecycleUnitOfWork]
    notifier: LifecycleNotifier | None = None

    def mark_expiring_soon(
        self, candidate: ContractCandidate, *, now: datetime
    ) -> TransitionOutcome:
        def action(repositories: LifecycleRepositories) -> AppliedTransition:
            contract = _load_contract(repositories, candidate.id)
            if not contract.mark_expiring_soon(now):
                return AppliedTransition(changed=False)
            end_date = format_instant(contract.end_date) if contract.end_date else ""
            return AppliedTransition(
                changed=True,
                events=(
                    _contract_event(
                        LifecycleEventKind.EXPIRING_SOON, contract, now, endDate=end_date
                    ),
                ),
            )

        return self._process(candidate, action, "mark contract expiring soon")

    def expire(self, candidate: ContractCandidate, *, now: datetime) -> TransitionOutcome:
        def action(repositories: LifecycleRepositories) -> AppliedTransition:
            contract = _load_contract(repositories, candidate.id)
            if not contract.expire(now):
                return AppliedTransition(changed=False)
            events = [_contract_event(LifecycleEventKind.EXPIRED, contract, now)]
            cascade = resolve_renewal_cascade(repositories.contracts, contract, now=now)
            if cascade.activated and cascade.renewal is not None:
                events.append(
                    _contract_event(
                        LifecycleEventKind.RENEWAL_ACTIVATED,
                        cascade.renewal,
                        now,
                        parentContractId=str(contract.id),
                    )
                )
            return AppliedTransition(
                changed=True,
                cascade_activated=cascade.activated,
                events=tuple(events),
            )

        return self._process(candidate, action, "expire contract")

    def release_freeze(self, candidate: ContractCandidate, *, now: datetime) -> TransitionOutcome:
        def action(repositories: LifecycleRepositories) -> AppliedTransition:
            contract = _load_contract(repositories, candidate.id)
            if not contract.release_freeze(now):
                return AppliedTransition(changed=False)
            return AppliedTransition(
                changed=True,
                events=(_contract_event(LifecycleEventKind.FREEZE_RELEASED, contract, now),),
            )

        return self._process(candidate, action, "release contract freeze")

    def _process(
        self, candidate: ContractCandidate, action: TransitionAction, description: str
    ) -> TransitionOutcome:
        return process_in_unit_of_work(
            self.unit_of_work_factory,
            candidate.id,
            action,
            description=description,
            notifier=self.notifier,
        )


@dataclass(slots=True)
class SubscriptionProcessor:
    unit_of_work_factory: Callable[[], LifecycleUnitOfWork]
    grace_period: timedelta = timedelta(days=3)
    notifier: LifecycleNotifier | None = None

    def flag_expiring_soon(
        self, candidate: SubscriptionCandidate, *, now: datetime
    ) -> TransitionOutcome:
        def action(repositories: LifecycleRepositories) -> AppliedTransition:
            subscription = _load_subscription(repositories, candidate.id)
            if not subscription.flag_expiration_warning(now):
                return AppliedTransition(changed=False)
            return AppliedTransition(
                changed=True,
                events=(
                    _subscription_event(
                        LifecycleEventKind.EXPIRING_SOON,
                        subscription,
                        now,
                        endDate=format_instant(subscription.end_date),
                    ),
                ),
            )

        return self._process(candidate, action, "flag subscription expiring soon")

    def expire(self, candidate: SubscriptionCandidate, *, now: datetime) -> TransitionOutcome:
        def action(repositories: LifecycleRepositories) -> AppliedTransition:
            subscription = _load_subscription(repositories, candidate.id)
            if not subscription.expire(now, grace_period=self.grace_period):
                return AppliedTransition(changed=False)
            grace_period_end = subscription.grace_period_end
            return AppliedTransition(
                changed=True,
                events=(
                    _subscription_event(
                        LifecycleEventKind.EXPIRED,
                        subscription,
                        now,
                        gracePeriodEnd=format_instant(grace_period_end)
                        if grace_period_end
                        else "",
                    ),
                ),
            )

        return self._process(candidate, action, "expire subscription")

    def suspend_access(
        self, candidate: SubscriptionCandidate, *, now: datetime
    ) -> TransitionOutcome:
        def action(repositories: LifecycleRepositories) -> AppliedTransition:
            subscription = _load_subscription(repositories, candidate.id)
            if not subscription.suspend_access(now):
                return AppliedTransition(changed=False)
            return AppliedTransition(
                changed=True,
                events=(
                    _subscription_event(LifecycleEventKind.ACCESS_SUSPENDED, subscription, now),
                ),
            )

        return self._process(candidate, action, "suspend subscription access")

    def _process(
        self, candidate: SubscriptionCandidate, action: TransitionAction, description: str
    ) -> TransitionOutcome:
        return process_in_unit_of_work(
            self.unit_of_work_factory,
            candidate.id,
            action,
            description=description,
            notifier=self.notifier,
        )


def _load_contract(repositories: LifecycleRepositories, entity_id: UUID) -> Contract:
    contract = repositories.contracts.get(entity_id)
    if contract is None or contract.is_deleted:
        raise EntityNotFoundError("Contract", entity_id)
    return contract


def _load_subscription(
    repositories: LifecycleRepositories, entity_id: UUID
) -> SubscriptionOrganization:
    subscription = repositories.subscriptions.get(entity_id)
    if subscription is None or subscription.is_deleted:
        raise EntityNotFoundError("Subscription", entity_id)
    return subscription
