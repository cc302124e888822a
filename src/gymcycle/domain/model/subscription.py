"""Organization billing subscriptions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from gymcycle.domain.errors import InvalidTransitionError
from gymcycle.domain.model.base import Entity, ensure_aware, format_instant, parse_instant
from gymcycle.domain.model.enums import SubscriptionStatus

if TYPE_CHECKING:
    from datetime import datetime, timedelta
    from uuid import UUID


EXPIRATION_WARNING: Final = "expirationWarning"
WARNING_DATE: Final = "warningDate"
GRACE_PERIOD_START: Final = "gracePeriodStart"
GRACE_PERIOD_END: Final = "gracePeriodEnd"
EXPIRED_AT: Final = "expiredAt"
GRACE_PERIOD_ENDED: Final = "gracePeriodEnded"
ACCESS_SUSPENDED: Final = "accessSuspended"

TRANSITION_KEYS: Final = (
    EXPIRATION_WARNING,
    WARNING_DATE,
    GRACE_PERIOD_START,
    GRACE_PERIOD_END,
    EXPIRED_AT,
    GRACE_PERIOD_ENDED,
    ACCESS_SUSPENDED,
)


@dataclass(eq=False, kw_only=True)
class SubscriptionOrganization(Entity):
    """An organization's subscription to the platform.

    There is no ``expiring_soon`` status for subscriptions. The warning lives in
    ``metadata`` instead, which is also where the grace period bookkeeping is kept.
    """

    organization_id: UUID
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    start_date: datetime | None = None
    end_date: datetime
    is_active: bool = True
    metadata: dict[str, object] = field(default_factory=dict[str, object])

    @property
    def expiration_warning(self) -> bool:
        return self.metadata.get(EXPIRATION_WARNING) is True

    @property
    def grace_period_start(self) -> datetime | None:
        return parse_instant(self.metadata.get(GRACE_PERIOD_START))

    @property
    def grace_period_end(self) -> datetime | None:
        return parse_instant(self.metadata.get(GRACE_PERIOD_END))

    @property
    def access_suspended(self) -> bool:
        return self.metadata.get(ACCESS_SUSPENDED) is True

    def flag_expiration_warning(self, now: datetime) -> bool:
        if self.status != SubscriptionStatus.ACTIVE:
            raise InvalidTransitionError(
                "Subscription", self.id, self.status, "expiration warning"
            )
        if self.expiration_warning:
            return False
        stamp = self._touch(now)
        self._update_metadata({EXPIRATION_WARNING: True, WARNING_DATE: format_instant(stamp)})
        return True

    def expire(self, now: datetime, *, grace_period: timedelta) -> bool:
        if self.status == SubscriptionStatus.EXPIRED:
            return False
        if self.status != SubscriptionStatus.ACTIVE:
            raise InvalidTransitionError(
                "Subscription", self.id, self.status, SubscriptionStatus.EXPIRED
            )
        if grace_period.total_seconds() < 0:
            raise ValueError("Grace period must be non-negative")
        stamp = self._touch(now)
        self.status = SubscriptionStatus.EXPIRED
        self._update_metadata(
            {
                GRACE_PERIOD_START: format_instant(stamp),
                GRACE_PERIOD_END: format_instant(stamp + grace_period),
                EXPIRED_AT: format_instant(stamp),
            }
        )
        return True

    def suspend_access(self, now: datetime) -> bool:
        if self.status == SubscriptionStatus.INACTIVE:
            return False
        if self.status != SubscriptionStatus.EXPIRED:
            raise InvalidTransitionError(
                "Subscription", self.id, self.status, SubscriptionStatus.INACTIVE
            )
        stamp = self._touch(now)
        self.status = SubscriptionStatus.INACTIVE
        self._update_metadata({GRACE_PERIOD_ENDED: format_instant(stamp), ACCESS_SUSPENDED: True})
        return True

    def renew(self, end_date: datetime, *, now: datetime) -> None:
        """Start a new term; clears the bookkeeping of the previous one."""

        if self.status == SubscriptionStatus.CANCELLED:
            raise InvalidTransitionError(
                "Subscription", self.id, self.status, SubscriptionStatus.ACTIVE
            )
        stamp = self._touch(now)
        end_date = ensure_aware(end_date)
        if end_date <= stamp:
            raise ValueError("Renewed end date must be in the future")
        self.status = SubscriptionStatus.ACTIVE
        self.is_active = True
        self.start_date = stamp
        self.end_date = end_date
        self.metadata = {
            key: value for key, value in self.metadata.items() if key not in TRANSITION_KEYS
        }

    def _update_metadata(self, values: dict[str, object]) -> None:
        # Reassign rather than mutate so the ORM sees the change.
        self.metadata = {**self.metadata, **values}
