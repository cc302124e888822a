"""Outcome and summary records produced by a reconciliation pass."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from gymcycle.domain.model import LifecycleDomain, Outcome

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime
    from uuid import UUID


@dataclass(frozen=True, slots=True)
class TransitionOutcome:
    """Result of processing one entity."""

    entity_id: UUID
    outcome: Outcome
    error: str | None = None
    changed: bool = False
    cascade_activated: bool = False

    @classmethod
    def succeeded(
        cls, entity_id: UUID, *, changed: bool, cascade_activated: bool = False
    ) -> TransitionOutcome:
        return cls(
            entity_id=entity_id,
            outcome=Outcome.SUCCESS,
            changed=changed,
            cascade_activated=cascade_activated,
        )

    @classmethod
    def failed(cls, entity_id: UUID, error: str) -> TransitionOutcome:
        return cls(entity_id=entity_id, outcome=Outcome.ERROR, error=error)

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCESS


@dataclass(frozen=True, slots=True)
class EntityError:
    entity_id: UUID
    error: str

    def to_dict(self) -> dict[str, str]:
        return {"entityId": str(self.entity_id), "error": self.error}


@dataclass(slots=True)
class StageTally:
    """Running counts for one stage of a pass."""

    succeeded: int = 0
    changed: int = 0
    cascade_activated: int = 0
    errors: list[EntityError] = field(default_factory=list[EntityError])

    def record(self, outcome: TransitionOutcome) -> None:
        if outcome.ok:
            self.succeeded += 1
            self.changed += int(outcome.changed)
            self.cascade_activated += int(outcome.cascade_activated)
            return
        self.errors.append(EntityError(outcome.entity_id, outcome.error or "Unknown error"))

    def extend(self, outcomes: Iterable[TransitionOutcome]) -> None:
        for outcome in outcomes:
            self.record(outcome)


@dataclass(frozen=True, slots=True)
class ExpiringSoonStage:
    processed: bool
    count: int = 0
    errors: tuple[EntityError, ...] = ()
    error: str | None = None

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "processed": self.processed,
            "count": self.count,
            "errors": [item.to_dict() for item in self.errors],
        }
        if self.error is not None:
            payload["error"] = self.error
        return payload


@dataclass(frozen=True, slots=True)
class ExpiredStage:
    processed: bool
    expired_count: int = 0
    cascade_activated_count: int = 0
    errors: tuple[EntityError, ...] = ()
    error: str | None = None

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "processed": self.processed,
            "expiredCount": self.expired_count,
            "cascadeActivatedCount": self.cascade_activated_count,
            "errors": [item.to_dict() for item in self.errors],
        }
        if self.error is not None:
            payload["error"] = self.error
        return payload


@dataclass(frozen=True, slots=True)
class ReleaseStage:
    """Freeze release (contracts) or grace period end (subscriptions)."""

    processed: bool
    released_count: int = 0
    still_pending_count: int = 0
    errors: tuple[EntityError, ...] = ()
    error: str | None = None

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "processed": self.processed,
            "releasedCount": self.released_count,
            "stillPendingCount": self.still_pending_count,
            "errors": [item.to_dict() for item in self.errors],
        }
        if self.error is not None:
            payload["error"] = self.error
        return payload


@dataclass(frozen=True, slots=True)
class NeedsUpdate:
    """Rows a scan at the same instant would touch, per transition kind."""

    expiring_soon: int
    expired: int
    released: int

    @property
    def total(self) -> int:
        return self.expiring_soon + self.expired + self.released

    def to_dict(self) -> dict[str, int]:
        return {
            "expiringSoon": self.expiring_soon,
            "expired": self.expired,
            "released": self.released,
            "total": self.total,
        }


@dataclass(frozen=True, slots=True)
class LifecycleStats:
    """Point-in-time counts for one lifecycle domain.

    ``frozen`` only applies to contracts and ``inactive`` only to subscriptions.
    """

    active: int
    expiring_soon: int
    expired: int
    total: int
    needs_update: NeedsUpdate
    frozen: int = 0
    inactive: int = 0

    def to_dict(self) -> dict[str, object]:
        return {
            "active": self.active,
            "expiringSoon": self.expiring_soon,
            "expired": self.expired,
            "frozen": self.frozen,
            "inactive": self.inactive,
            "total": self.total,
            "needsUpdate": self.needs_update.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class ReconciliationSummary:
    domain: LifecycleDomain
    timestamp: datetime
    expiring_soon: ExpiringSoonStage
    expired: ExpiredStage
    frozen_or_grace: ReleaseStage
    initial_stats: LifecycleStats
    final_stats: LifecycleStats
    duration_ms: float

    @property
    def success(self) -> bool:
        return self.expiring_soon.processed and self.expired.processed and (
            self.frozen_or_grace.processed
        )

    @property
    def errors(self) -> tuple[EntityError, ...]:
        return self.expiring_soon.errors + self.expired.errors + self.frozen_or_grace.errors

    @property
    def transitioned(self) -> int:
        return (
            self.expiring_soon.count
            + self.expired.expired_count
            + self.expired.cascade_activated_count
            + self.frozen_or_grace.released_count
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "domain": self.domain.value,
            "success": self.success,
            "timestamp": self.timestamp.isoformat(),
            "expiringSoon": self.expiring_soon.to_dict(),
            "expired": self.expired.to_dict(),
            "frozenOrGrace": self.frozen_or_grace.to_dict(),
            "initialStats": self.initial_stats.to_dict(),
            "finalStats": self.final_stats.to_dict(),
            "durationMs": round(self.duration_ms, 3),
        }
