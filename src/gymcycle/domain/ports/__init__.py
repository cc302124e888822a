"""Domain port definitions for adapters."""

from __future__ import annotations

from .notifications import LifecycleEvent, LifecycleEventKind, LifecycleNotifier
from .persistence import (
    ContractCandidate,
    ContractCriteria,
    ContractRepository,
    Repository,
    SubscriptionCandidate,
    SubscriptionCriteria,
    SubscriptionRepository,
)
from .unit_of_work import (
    LifecycleRepositories,
    LifecycleUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "ContractCandidate",
    "ContractCriteria",
    "ContractRepository",
    "LifecycleEvent",
    "LifecycleEventKind",
    "LifecycleNotifier",
    "LifecycleRepositories",
    "LifecycleUnitOfWork",
    "Repository",
    "RepositoryCollection",
    "SubscriptionCandidate",
    "SubscriptionCriteria",
    "SubscriptionRepository",
    "UnitOfWork",
]
