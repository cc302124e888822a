"""SQLAlchemy adapter package for gymcycle."""

from __future__ import annotations

from .mappings import (
    contract_table,
    mapper_registry,
    start_mappers,
    subscription_organization_table,
)
from .repositories import SqlAlchemyContractRepository, SqlAlchemySubscriptionRepository
from .unit_of_work import (
    SqlAlchemyLifecycleUnitOfWork,
    StartupError,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyContractRepository",
    "SqlAlchemyLifecycleUnitOfWork",
    "SqlAlchemySubscriptionRepository",
    "StartupError",
    "contract_table",
    "is_started",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
    "subscription_organization_table",
]
