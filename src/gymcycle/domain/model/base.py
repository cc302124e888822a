"""Base building blocks shared by lifecycle entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4


def new_id() -> UUID:
    return uuid4()


def ensure_aware(value: datetime) -> datetime:
    """Return ``value`` normalised to UTC, rejecting naive datetimes."""

    if value.tzinfo is None:
        raise ValueError("Lifecycle instants must include timezone information")
    return value.astimezone(UTC)


def format_instant(value: datetime) -> str:
    """Serialise an instant with fixed width so stored strings sort chronologically."""

    return ensure_aware(value).isoformat(timespec="microseconds")


def parse_instant(value: object) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


@dataclass(eq=False, kw_only=True)
class Entity:
    """Internal identity exists immediately in the domain."""

    id: UUID = field(default_factory=new_id)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def soft_delete(self, now: datetime) -> None:
        self.deleted_at = ensure_aware(now)
        self.updated_at = self.deleted_at

    def _touch(self, now: datetime) -> datetime:
        stamp = ensure_aware(now)
        self.updated_at = stamp
        return stamp
