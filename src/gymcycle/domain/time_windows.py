"""Pure predicates deciding which lifecycle transition an entity is due for.

The scanner builds its query filters from the same bound helpers used here, so a
row returned by a scan always satisfies the matching predicate at that instant.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Protocol

from gymcycle.domain.model import (
    EXPIRABLE_STATUSES,
    ContractStatus,
    SubscriptionStatus,
    ensure_aware,
)

if TYPE_CHECKING:
    from gymcycle.config import LifecycleConfig
    from gymcycle.domain.model import Contract, SubscriptionOrganization


class Clock(Protocol):
    def __call__(self) -> datetime: ...


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class LifecycleWindows:
    """Tolerances for one lifecycle domain.

    ``expiring_soon`` is the warning window ahead of the end date,
    ``expiry_tolerance`` delays expiry past the end date and ``grace_period``
    is how long an expired subscription keeps access.
    """

    expiring_soon: timedelta
    expiry_tolerance: timedelta = timedelta(0)
    grace_period: timedelta = timedelta(0)

    def __post_init__(self) -> None:
        for name in ("expiring_soon", "expiry_tolerance", "grace_period"):
            if getattr(self, name) < timedelta(0):
                raise ValueError(f"{name} must be non-negative")

    @classmethod
    def for_contracts(cls, config: LifecycleConfig) -> LifecycleWindows:
        return cls(
            expiring_soon=config.contract_expiring_soon,
            expiry_tolerance=config.contract_grace_period,
        )

    @classmethod
    def for_subscriptions(cls, config: LifecycleConfig) -> LifecycleWindows:
        return cls(
            expiring_soon=config.subscription_expiring_soon,
            grace_period=config.subscription_grace_period,
        )


CONTRACT_WINDOWS = LifecycleWindows(expiring_soon=timedelta(days=5))
SUBSCRIPTION_WINDOWS = LifecycleWindows(
    expiring_soon=timedelta(days=7),
    grace_period=timedelta(days=3),
)


def expiring_soon_bounds(now: datetime, windows: LifecycleWindows) -> tuple[datetime, datetime]:
    """Return ``(after, until)``: end dates in ``(after, until]`` are expiring soon."""

    now = ensure_aware(now)
    return now, now + windows.expiring_soon


def expiry_cutoff(now: datetime, windows: LifecycleWindows) -> datetime:
    """End dates at or before the cutoff are expired."""

    return ensure_aware(now) - windows.expiry_tolerance


def _within_expiring_window(
    end_date: datetime | None, now: datetime, windows: LifecycleWindows
) -> bool:
    if end_date is None:
        return False
    after, until = expiring_soon_bounds(now, windows)
    return after < ensure_aware(end_date) <= until


def is_contract_expiring_soon(
    contract: Contract, now: datetime, windows: LifecycleWindows = CONTRACT_WINDOWS
) -> bool:
    if contract.status != ContractStatus.ACTIVE:
        return False
    return _within_expiring_window(contract.end_date, now, windows)


def is_contract_expired(
    contract: Contract, now: datetime, windows: LifecycleWindows = CONTRACT_WINDOWS
) -> bool:
    if contract.end_date is None or contract.status not in EXPIRABLE_STATUSES:
        return False
    return ensure_aware(contract.end_date) <= expiry_cutoff(now, windows)


def is_freeze_release_due(contract: Contract, now: datetime) -> bool:
    if contract.status != ContractStatus.FROZEN or contract.freeze_end_date is None:
        return False
    return ensure_aware(contract.freeze_end_date) <= ensure_aware(now)


def is_subscription_expiring_soon(
    subscription: SubscriptionOrganization,
    now: datetime,
    windows: LifecycleWindows = SUBSCRIPTION_WINDOWS,
) -> bool:
    if subscription.status != SubscriptionStatus.ACTIVE or not subscription.is_active:
        return False
    if subscription.expiration_warning:
        return False
    return _within_expiring_window(subscription.end_date, now, windows)


def is_subscription_expired(
    subscription: SubscriptionOrganization,
    now: datetime,
    windows: LifecycleWindows = SUBSCRIPTION_WINDOWS,
) -> bool:
    if subscription.status != SubscriptionStatus.ACTIVE or not subscription.is_active:
        return False
    return ensure_aware(subscription.end_date) <= expiry_cutoff(now, windows)


def is_grace_period_over(subscription: SubscriptionOrganization, now: datetime) -> bool:
    if subscription.status != SubscriptionStatus.EXPIRED or not subscription.is_active:
        return False
    grace_period_end = subscription.grace_period_end
    if grace_period_end is None:
        return False
    return grace_period_end <= ensure_aware(now)


__all__ = [
    "CONTRACT_WINDOWS",
    "SUBSCRIPTION_WINDOWS",
    "Clock",
    "LifecycleWindows",
    "expiring_soon_bounds",
    "expiry_cutoff",
    "is_contract_expired",
    "is_contract_expiring_soon",
    "is_freeze_release_due",
    "is_grace_period_over",
    "is_subscription_expired",
    "is_subscription_expiring_soon",
    "utcnow",
]
