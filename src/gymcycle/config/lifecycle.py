"""Lifecycle reconciliation defaults.

Contracts and subscriptions keep separate warning windows: contracts warn five
days ahead, subscriptions seven. Both values are configuration, not a shared
constant.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from .env import env_int, env_str
from .errors import ConfigurationError

DEFAULT_BATCH_SIZE = 100
DEFAULT_CONTRACT_EXPIRING_SOON_DAYS = 5
DEFAULT_CONTRACT_GRACE_PERIOD_DAYS = 0
DEFAULT_SUBSCRIPTION_EXPIRING_SOON_DAYS = 7
DEFAULT_SUBSCRIPTION_GRACE_PERIOD_DAYS = 3
DEFAULT_CONTRACT_CRON = "0 8,20 * * *"
DEFAULT_SUBSCRIPTION_CRON = "0 9 * * *"


@dataclass(frozen=True, slots=True)
class LifecycleConfig:
    batch_size: int = DEFAULT_BATCH_SIZE
    contract_expiring_soon_days: int = DEFAULT_CONTRACT_EXPIRING_SOON_DAYS
    contract_grace_period_days: int = DEFAULT_CONTRACT_GRACE_PERIOD_DAYS
    subscription_expiring_soon_days: int = DEFAULT_SUBSCRIPTION_EXPIRING_SOON_DAYS
    subscription_grace_period_days: int = DEFAULT_SUBSCRIPTION_GRACE_PERIOD_DAYS
    contract_cron: str = DEFAULT_CONTRACT_CRON
    subscription_cron: str = DEFAULT_SUBSCRIPTION_CRON

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ConfigurationError("Batch size must be at least 1")
        for name in (
            "contract_expiring_soon_days",
            "contract_grace_period_days",
            "subscription_expiring_soon_days",
            "subscription_grace_period_days",
        ):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must be non-negative")
        for cron in (self.contract_cron, self.subscription_cron):
            if len(cron.split()) != 5:  # noqa: PLR2004
                raise ConfigurationError(f"Invalid cron expression: {cron!r}")

    @property
    def contract_expiring_soon(self) -> timedelta:
        return timedelta(days=self.contract_expiring_soon_days)

    @property
    def contract_grace_period(self) -> timedelta:
        return timedelta(days=self.contract_grace_period_days)

    @property
    def subscription_expiring_soon(self) -> timedelta:
        return timedelta(days=self.subscription_expiring_soon_days)

    @property
    def subscription_grace_period(self) -> timedelta:
        return timedelta(days=self.subscription_grace_period_days)


def get_lifecycle_config() -> LifecycleConfig:
    return LifecycleConfig(
        batch_size=env_int("GYMCYCLE_BATCH_SIZE", DEFAULT_BATCH_SIZE, minimum=1),
        contract_expiring_soon_days=env_int(
            "GYMCYCLE_CONTRACT_EXPIRING_SOON_DAYS", DEFAULT_CONTRACT_EXPIRING_SOON_DAYS
        ),
        contract_grace_period_days=env_int(
            "GYMCYCLE_CONTRACT_GRACE_PERIOD_DAYS", DEFAULT_CONTRACT_GRACE_PERIOD_DAYS
        ),
        subscription_expiring_soon_days=env_int(
            "GYMCYCLE_SUBSCRIPTION_EXPIRING_SOON_DAYS", DEFAULT_SUBSCRIPTION_EXPIRING_SOON_DAYS
        ),
        subscription_grace_period_days=env_int(
            "GYMCYCLE_SUBSCRIPTION_GRACE_PERIOD_DAYS", DEFAULT_SUBSCRIPTION_GRACE_PERIOD_DAYS
        ),
        contract_cron=env_str("GYMCYCLE_CONTRACT_CRON", DEFAULT_CONTRACT_CRON),
        subscription_cron=env_str("GYMCYCLE_SUBSCRIPTION_CRON", DEFAULT_SUBSCRIPTION_CRON),
    )
