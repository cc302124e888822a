"""Membership contracts and their renewals."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from gymcycle.domain.errors import InvalidTransitionError
from gymcycle.domain.model.base import Entity, ensure_aware
from gymcycle.domain.model.enums import ContractStatus

if TYPE_CHECKING:
    from datetime import datetime
    from decimal import Decimal
    from uuid import UUID


MAX_FREEZE_DAYS = 30

EXPIRABLE_STATUSES: frozenset[ContractStatus] = frozenset(
    {ContractStatus.ACTIVE, ContractStatus.EXPIRING_SOON}
)


@dataclass(eq=False, kw_only=True)
class Contract(Entity):
    """A client's membership term at a gym.

    A renewal is itself a contract row pointing at its predecessor through
    ``parent_contract_id``. ``final_amount`` stays empty until the renewal is paid.
    """

    gym_id: UUID
    client_id: UUID
    plan_id: UUID
    status: ContractStatus = ContractStatus.PENDING
    start_date: datetime | None = None
    end_date: datetime | None = None
    freeze_start_date: datetime | None = None
    freeze_end_date: datetime | None = None
    parent_contract_id: UUID | None = None
    final_amount: Decimal | None = None

    def __post_init__(self) -> None:
        if self.status != ContractStatus.PENDING and self.end_date is None:
            raise ValueError("Non-pending contracts require an end date")

    @property
    def is_frozen(self) -> bool:
        return (
            self.status == ContractStatus.FROZEN
            and self.freeze_start_date is not None
            and self.freeze_end_date is not None
        )

    @property
    def is_renewal(self) -> bool:
        return self.parent_contract_id is not None

    @property
    def has_confirmed_payment(self) -> bool:
        # No payment status is modelled; a positive final amount stands in for it.
        return self.final_amount is not None and self.final_amount > 0

    # Engine transitions ------------------------------------------------------

    def mark_expiring_soon(self, now: datetime) -> bool:
        return self._transition(
            ContractStatus.EXPIRING_SOON, sources={ContractStatus.ACTIVE}, now=now
        )

    def expire(self, now: datetime) -> bool:
        return self._transition(ContractStatus.EXPIRED, sources=EXPIRABLE_STATUSES, now=now)

    def release_freeze(self, now: datetime) -> bool:
        if self.status == ContractStatus.ACTIVE and self.freeze_end_date is None:
            return False
        changed = self._transition(
            ContractStatus.ACTIVE, sources={ContractStatus.FROZEN}, now=now
        )
        self.freeze_start_date = None
        self.freeze_end_date = None
        return changed

    def activate(self, now: datetime) -> bool:
        return self._transition(ContractStatus.ACTIVE, sources={ContractStatus.PENDING}, now=now)

    # Manual actions ----------------------------------------------------------

    def freeze(
        self,
        start: datetime,
        end: datetime,
        *,
        now: datetime,
        max_days: int = MAX_FREEZE_DAYS,
    ) -> None:
        """Suspend the contract and push its end date back by the frozen days.

        Partial days count as whole days. Freezes longer than ``max_days`` are
        rejected.
        """

        start = ensure_aware(start)
        end = ensure_aware(end)
        if end <= start:
            raise ValueError("Freeze end must be after freeze start")
        freeze_days = math.ceil((end - start) / timedelta(days=1))
        if freeze_days > max_days:
            raise ValueError(f"Freeze cannot exceed {max_days} days, got {freeze_days}")
        if self.status == ContractStatus.FROZEN:
            raise InvalidTransitionError("Contract", self.id, self.status, "frozen")
        self._transition(ContractStatus.FROZEN, sources=EXPIRABLE_STATUSES, now=now)
        if self.end_date is not None:
            self.end_date = self.end_date + timedelta(days=freeze_days)
        self.freeze_start_date = start
        self.freeze_end_date = end

    def cancel(self, now: datetime) -> bool:
        return self._transition(
            ContractStatus.CANCELLED,
            sources={
                ContractStatus.PENDING,
                ContractStatus.ACTIVE,
                ContractStatus.EXPIRING_SOON,
                ContractStatus.FROZEN,
            },
            now=now,
        )

    def renew(
        self,
        start: datetime,
        end: datetime,
        *,
        now: datetime,
        final_amount: Decimal | None = None,
        plan_id: UUID | None = None,
    ) -> Contract:
        """Create the pending successor term for this contract."""

        if self.status == ContractStatus.CANCELLED:
            raise InvalidTransitionError("Contract", self.id, self.status, "renewed")
        start = ensure_aware(start)
        end = ensure_aware(end)
        if end <= start:
            raise ValueError("Renewal end must be after renewal start")
        stamp = ensure_aware(now)
        return Contract(
            gym_id=self.gym_id,
            client_id=self.client_id,
            plan_id=plan_id or self.plan_id,
            status=ContractStatus.PENDING,
            start_date=start,
            end_date=end,
            parent_contract_id=self.id,
            final_amount=final_amount,
            created_at=stamp,
            updated_at=stamp,
        )

    def confirm_payment(self, amount: Decimal, *, now: datetime) -> None:
        if amount <= 0:
            raise ValueError("Confirmed payment must be positive")
        self.final_amount = amount
        self._touch(now)

    def _transition(
        self,
        target: ContractStatus,
        *,
        sources: set[ContractStatus] | frozenset[ContractStatus],
        now: datetime,
    ) -> bool:
        if self.status == target:
            return False
        if self.status not in sources:
            raise InvalidTransitionError("Contract", self.id, self.status, target)
        self.status = target
        self._touch(now)
        return True
