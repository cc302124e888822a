"""Public domain model surface."""

from __future__ import annotations

from gymcycle.domain.model.base import Entity, ensure_aware, format_instant, new_id, parse_instant
from gymcycle.domain.model.contract import EXPIRABLE_STATUSES, Contract
from gymcycle.domain.model.enums import (
    ContractStatus,
    LifecycleDomain,
    Outcome,
    SubscriptionStatus,
)
from gymcycle.domain.model.subscription import SubscriptionOrganization

__all__ = [
    "EXPIRABLE_STATUSES",
    "Contract",
    "ContractStatus",
    "Entity",
    "LifecycleDomain",
    "Outcome",
    "SubscriptionOrganization",
    "SubscriptionStatus",
    "ensure_aware",
    "format_instant",
    "new_id",
    "parse_instant",
]
