"""Port for requesting notifications about lifecycle transitions.

The engine only records that something should be communicated; delivery
(email, push, webhooks) belongs to whoever implements this port.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from gymcycle.domain.model import LifecycleDomain


class LifecycleEventKind(StrEnum):
    EXPIRING_SOON = "expiring_soon"
    EXPIRED = "expired"
    RENEWAL_ACTIVATED = "renewal_activated"
    FREEZE_RELEASED = "freeze_released"
    ACCESS_SUSPENDED = "access_suspended"


@dataclass(frozen=True, slots=True)
class LifecycleEvent:
    kind: LifecycleEventKind
    domain: LifecycleDomain
    entity_id: UUID
    tenant_id: UUID
    occurred_at: datetime
    details: dict[str, str] = field(default_factory=dict[str, str])


@runtime_checkable
class LifecycleNotifier(Protocol):
    def __call__(self, event: LifecycleEvent) -> None: ...
