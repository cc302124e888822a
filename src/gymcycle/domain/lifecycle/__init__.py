"""Lifecycle reconciliation services."""

from __future__ import annotations

from gymcycle.domain.lifecycle.cascade import (
    CascadeDecision,
    CascadeResult,
    resolve_renewal_cascade,
)
from gymcycle.domain.lifecycle.orchestrator import ContractLifecycle, SubscriptionLifecycle
from gymcycle.domain.lifecycle.processing import (
    AppliedTransition,
    ContractProcessor,
    SubscriptionProcessor,
    process_in_unit_of_work,
)
from gymcycle.domain.lifecycle.results import (
    EntityError,
    ExpiredStage,
    ExpiringSoonStage,
    LifecycleStats,
    NeedsUpdate,
    ReconciliationSummary,
    ReleaseStage,
    StageTally,
    TransitionOutcome,
)
from gymcycle.domain.lifecycle.scanning import ContractScanner, SubscriptionScanner, paginate
from gymcycle.domain.lifecycle.stats import ContractStatsReporter, SubscriptionStatsReporter

__all__ = [
    "AppliedTransition",
    "CascadeDecision",
    "CascadeResult",
    "ContractLifecycle",
    "ContractProcessor",
    "ContractScanner",
    "ContractStatsReporter",
    "EntityError",
    "ExpiredStage",
    "ExpiringSoonStage",
    "LifecycleStats",
    "NeedsUpdate",
    "ReconciliationSummary",
    "ReleaseStage",
    "StageTally",
    "SubscriptionLifecycle",
    "SubscriptionProcessor",
    "SubscriptionScanner",
    "SubscriptionStatsReporter",
    "TransitionOutcome",
    "paginate",
    "resolve_renewal_cascade",
]
