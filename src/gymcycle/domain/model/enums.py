"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class ContractStatus(StrEnum):
    PENDING = "pending"
    ACTIVE = "active"
    EXPIRING_SOON = "expiring_soon"
    EXPIRED = "expired"
    FROZEN = "frozen"
    CANCELLED = "cancelled"


class SubscriptionStatus(StrEnum):
    ACTIVE = "active"
    EXPIRED = "expired"
    INACTIVE = "inactive"
    CANCELLED = "cancelled"


class LifecycleDomain(StrEnum):
    CONTRACTS = "contracts"
    SUBSCRIPTIONS = "subscriptions"


class Outcome(StrEnum):
    SUCCESS = "success"
    ERROR = "error"
