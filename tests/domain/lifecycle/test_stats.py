from __future__ import annotations

from datetime import timedelta

import pytest

from gymcycle.domain.lifecycle.stats import ContractStatsReporter, SubscriptionStatsReporter
from gymcycle.domain.model import ContractStatus, SubscriptionStatus, format_instant
from gymcycle.domain.model.subscription import EXPIRATION_WARNING, GRACE_PERIOD_END
from tests.helpers.lifecycle import (
    OTHER_GYM_ID,
    T0,
    FakeLifecycleStore,
    SimulatedFailure,
    make_contract,
    make_subscription,
)


@pytest.fixture
def contract_store(store: FakeLifecycleStore) -> FakeLifecycleStore:
    deleted = make_contract(end_date=T0 - timedelta(days=1))
    deleted.soft_delete(T0 - timedelta(days=2))
    store.add_contracts(
        make_contract(end_date=T0 + timedelta(days=30)),
        make_contract(end_date=T0 + timedelta(days=2)),
        make_contract(end_date=T0 - timedelta(days=1)),
        make_contract(status=ContractStatus.EXPIRING_SOON, end_date=T0 + timedelta(days=1)),
        make_contract(status=ContractStatus.EXPIRED, end_date=T0 - timedelta(days=10)),
        make_contract(status=ContractStatus.FROZEN, freeze_end_date=T0 - timedelta(hours=1)),
        make_contract(status=ContractStatus.FROZEN, freeze_end_date=T0 + timedelta(days=5)),
        make_contract(status=ContractStatus.PENDING),
        make_contract(end_date=T0 + timedelta(days=30), gym_id=OTHER_GYM_ID),
        deleted,
    )
    return store


@pytest.fixture
def subscription_store(store: FakeLifecycleStore) -> FakeLifecycleStore:
    store.add_subscriptions(
        make_subscription(),
        make_subscription(end_date=T0 + timedelta(days=3)),
        make_subscription(end_date=T0 + timedelta(days=2), metadata={EXPIRATION_WARNING: True}),
        make_subscription(end_date=T0 - timedelta(hours=1)),
        make_subscription(
            status=SubscriptionStatus.EXPIRED,
            end_date=T0 - timedelta(days=4),
            metadata={GRACE_PERIOD_END: format_instant(T0 - timedelta(hours=1))},
        ),
        make_subscription(
            status=SubscriptionStatus.EXPIRED,
            end_date=T0 - timedelta(days=1),
            metadata={GRACE_PERIOD_END: format_instant(T0 + timedelta(days=2))},
        ),
        make_subscription(status=SubscriptionStatus.INACTIVE, end_date=T0 - timedelta(days=9)),
        make_subscription(end_date=T0 - timedelta(days=1), is_active=False),
    )
    return store


def test_contract_snapshot_counts_statuses_and_pending_work(
    contract_store: FakeLifecycleStore,
) -> None:
    reporter = ContractStatsReporter(contract_store.unit_of_work)

    stats = reporter.snapshot(T0)

    assert stats.active == 4
    assert stats.expiring_soon == 1
    assert stats.expired == 1
    assert stats.frozen == 2
    assert stats.total == 9
    assert stats.needs_update.expiring_soon == 1
    assert stats.needs_update.expired == 1
    assert stats.needs_update.released == 1
    assert stats.needs_update.total == 3


def test_contract_snapshot_is_scoped_to_gym(contract_store: FakeLifecycleStore) -> None:
    reporter = ContractStatsReporter(contract_store.unit_of_work)

    stats = reporter.snapshot(T0, gym_id=OTHER_GYM_ID)

    assert stats.active == 1
    assert stats.total == 1
    assert stats.needs_update.total == 0


def test_still_frozen_excludes_due_releases(contract_store: FakeLifecycleStore) -> None:
    reporter = ContractStatsReporter(contract_store.unit_of_work)

    assert reporter.still_frozen(T0) == 1
    assert reporter.still_frozen(T0 + timedelta(days=6)) == 0


def test_subscription_snapshot_counts_flags_and_grace(
    subscription_store: FakeLifecycleStore,
) -> None:
    reporter = SubscriptionStatsReporter(subscription_store.unit_of_work)

    stats = reporter.snapshot(T0)

    assert stats.active == 4
    assert stats.expiring_soon == 1
    assert stats.expired == 2
    assert stats.inactive == 1
    assert stats.total == 7
    assert stats.needs_update.to_dict() == {
        "expiringSoon": 1,
        "expired": 1,
        "released": 1,
        "total": 3,
    }
    assert reporter.still_in_grace(T0) == 1


def test_stats_serialise_with_camel_case_keys(contract_store: FakeLifecycleStore) -> None:
    stats = ContractStatsReporter(contract_store.unit_of_work).snapshot(T0)

    payload = stats.to_dict()

    assert set(payload) == {
        "active",
        "expiringSoon",
        "expired",
        "frozen",
        "inactive",
        "total",
        "needsUpdate",
    }
    assert payload["inactive"] == 0


def test_snapshot_propagates_storage_errors(store: FakeLifecycleStore) -> None:
    store.count_error = SimulatedFailure("database unavailable")

    with pytest.raises(SimulatedFailure, match="database unavailable"):
        ContractStatsReporter(store.unit_of_work).snapshot(T0)
