"""Domain error hierarchy."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID


class LifecycleError(Exception):
    """Base class for lifecycle domain errors."""


class InvalidTransitionError(LifecycleError):
    """Raised when an entity cannot move from its current status to the requested one."""

    def __init__(self, entity: str, entity_id: UUID, current: str, target: str) -> None:
        super().__init__(f"{entity} {entity_id} cannot transition from {current} to {target}")
        self.entity_id = entity_id
        self.current = current
        self.target = target


class EntityNotFoundError(LifecycleError):
    """Raised when a scanned candidate is no longer present in the store."""

    def __init__(self, entity: str, entity_id: UUID) -> None:
        super().__init__(f"{entity} {entity_id} not found")
        self.entity_id = entity_id
