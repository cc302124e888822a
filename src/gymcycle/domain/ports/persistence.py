"""Ports for querying and persisting lifecycle aggregates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from gymcycle.domain.model import (
    Contract,
    ContractStatus,
    SubscriptionOrganization,
    SubscriptionStatus,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime
    from uuid import UUID


@dataclass(frozen=True, slots=True)
class ContractCriteria:
    """Filter for contract scans and counts.

    Soft-deleted rows are always excluded. ``end_after`` is exclusive, every
    ``*_until`` bound is inclusive. ``after_id``/``limit`` drive keyset paging
    ordered by id.
    """

    statuses: frozenset[ContractStatus] | None = None
    end_after: datetime | None = None
    end_until: datetime | None = None
    freeze_end_until: datetime | None = None
    gym_id: UUID | None = None
    after_id: UUID | None = None
    limit: int | None = None


@dataclass(frozen=True, slots=True)
class SubscriptionCriteria:
    """Filter for subscription scans and counts.

    Soft-deleted and deactivated (``is_active = false``) rows are always excluded.
    ``warning_flagged`` matches the ``expirationWarning`` metadata flag; ``False``
    also matches rows where the flag was never written.
    """

    statuses: frozenset[SubscriptionStatus] | None = None
    end_after: datetime | None = None
    end_until: datetime | None = None
    warning_flagged: bool | None = None
    grace_period_end_until: datetime | None = None
    organization_id: UUID | None = None
    after_id: UUID | None = None
    limit: int | None = None


@dataclass(frozen=True, slots=True)
class ContractCandidate:
    """Essential fields of a contract selected by a scan."""

    id: UUID
    gym_id: UUID
    status: ContractStatus
    end_date: datetime | None
    freeze_end_date: datetime | None = None


@dataclass(frozen=True, slots=True)
class SubscriptionCandidate:
    """Essential fields of a subscription selected by a scan."""

    id: UUID
    organization_id: UUID
    status: SubscriptionStatus
    end_date: datetime


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...

    def get(self, entity_id: UUID) -> TEntity | None: ...


@runtime_checkable
class ContractRepository(Repository[Contract], Protocol):
    """Persistence contract for contracts and their renewals."""

    def find_candidates(self, criteria: ContractCriteria) -> Sequence[ContractCandidate]: ...

    def count(self, criteria: ContractCriteria) -> int: ...

    def latest_renewal(self, contract_id: UUID) -> Contract | None: ...


@runtime_checkable
class SubscriptionRepository(Repository[SubscriptionOrganization], Protocol):
    """Persistence contract for organization subscriptions."""

    def find_candidates(
        self, criteria: SubscriptionCriteria
    ) -> Sequence[SubscriptionCandidate]: ...

    def count(self, criteria: SubscriptionCriteria) -> int: ...
