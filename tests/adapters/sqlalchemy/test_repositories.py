"""Tests for SQLAlchemy repositories."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from sqlalchemy.orm import Session  # noqa: TC002

from gymcycle.adapters.sqlalchemy.repositories import (
    SqlAlchemyContractRepository,
    SqlAlchemySubscriptionRepository,
)
from gymcycle.domain.lifecycle.scanning import (
    contract_expired_criteria,
    contract_expiring_soon_criteria,
    subscription_expiring_soon_criteria,
    subscription_grace_over_criteria,
)
from gymcycle.domain.model import (
    ContractStatus,
    SubscriptionOrganization,
    SubscriptionStatus,
    format_instant,
)
from gymcycle.domain.model.subscription import EXPIRATION_WARNING, GRACE_PERIOD_END
from gymcycle.domain.ports.persistence import ContractCriteria, SubscriptionCriteria
from tests.helpers.lifecycle import (
    OTHER_GYM_ID,
    T0,
    make_contract,
    make_subscription,
    ordered_ids,
)


def test_contract_repository_round_trip(sqlite_session: Session) -> None:
    repository = SqlAlchemyContractRepository(sqlite_session, clock=lambda: T0)
    contract = make_contract()
    contract.created_at = None
    contract.updated_at = None

    repository.add(contract)
    sqlite_session.commit()

    loaded = repository.get(contract.id)
    assert loaded is not None
    assert loaded.status is ContractStatus.ACTIVE
    assert loaded.created_at == T0
    assert loaded.updated_at == T0


def test_contract_candidates_respect_expiring_window(sqlite_session: Session) -> None:
    repository = SqlAlchemyContractRepository(sqlite_session)
    inside = make_contract(end_date=T0 + timedelta(days=5))
    outside = make_contract(end_date=T0 + timedelta(days=5, seconds=1))
    ends_now = make_contract(end_date=T0)
    already_flagged = make_contract(
        status=ContractStatus.EXPIRING_SOON, end_date=T0 + timedelta(days=1)
    )
    for contract in (inside, outside, ends_now, already_flagged):
        repository.add(contract)
    sqlite_session.commit()

    candidates = repository.find_candidates(contract_expiring_soon_criteria(T0))

    assert [candidate.id for candidate in candidates] == [inside.id]
    assert candidates[0].end_date == inside.end_date
    assert candidates[0].status is ContractStatus.ACTIVE


def test_contract_candidates_exclude_deleted_and_other_gyms(sqlite_session: Session) -> None:
    repository = SqlAlchemyContractRepository(sqlite_session)
    kept = make_contract(end_date=T0 - timedelta(days=1))
    deleted = make_contract(end_date=T0 - timedelta(days=1))
    deleted.soft_delete(T0)
    elsewhere = make_contract(end_date=T0 - timedelta(days=1), gym_id=OTHER_GYM_ID)
    for contract in (kept, deleted, elsewhere):
        repository.add(contract)
    sqlite_session.commit()

    criteria = contract_expired_criteria(T0, gym_id=kept.gym_id)

    assert [candidate.id for candidate in repository.find_candidates(criteria)] == [kept.id]
    assert repository.count(criteria) == 1
    assert repository.count(ContractCriteria()) == 2


def test_contract_candidates_page_by_id(sqlite_session: Session) -> None:
    repository = SqlAlchemyContractRepository(sqlite_session)
    ids = ordered_ids(5)
    for entity_id in ids:
        repository.add(make_contract(entity_id=entity_id, end_date=T0 - timedelta(days=1)))
    sqlite_session.commit()

    first = repository.find_candidates(ContractCriteria(limit=2))
    second = repository.find_candidates(ContractCriteria(after_id=first[-1].id, limit=2))
    rest = repository.find_candidates(ContractCriteria(after_id=second[-1].id, limit=2))

    assert [candidate.id for candidate in (*first, *second, *rest)] == ids


def test_latest_renewal_prefers_newest_live_row(sqlite_session: Session) -> None:
    repository = SqlAlchemyContractRepository(sqlite_session)
    parent = make_contract()
    older = make_contract(
        status=ContractStatus.PENDING, parent=parent, created_at=T0 - timedelta(days=3)
    )
    newer = make_contract(
        status=ContractStatus.PENDING,
        parent=parent,
        final_amount=Decimal("49.90"),
        created_at=T0 - timedelta(days=1),
    )
    withdrawn = make_contract(status=ContractStatus.PENDING, parent=parent, created_at=T0)
    withdrawn.soft_delete(T0)
    for contract in (parent, older, newer, withdrawn):
        repository.add(contract)
    sqlite_session.commit()

    latest = repository.latest_renewal(parent.id)

    assert latest is not None
    assert latest.id == newer.id
    assert latest.has_confirmed_payment
    assert repository.latest_renewal(newer.id) is None


def test_subscription_warning_filter_handles_missing_flag(sqlite_session: Session) -> None:
    repository = SqlAlchemySubscriptionRepository(sqlite_session)
    never_flagged = make_subscription(end_date=T0 + timedelta(days=2))
    cleared = make_subscription(
        end_date=T0 + timedelta(days=2), metadata={EXPIRATION_WARNING: False}
    )
    flagged = make_subscription(
        end_date=T0 + timedelta(days=2), metadata={EXPIRATION_WARNING: True}
    )
    for subscription in (never_flagged, cleared, flagged):
        repository.add(subscription)
    sqlite_session.commit()

    pending = repository.find_candidates(subscription_expiring_soon_criteria(T0))

    assert {candidate.id for candidate in pending} == {never_flagged.id, cleared.id}
    assert repository.count(SubscriptionCriteria(warning_flagged=True)) == 1


def test_subscription_grace_filter_compares_instants(sqlite_session: Session) -> None:
    repository = SqlAlchemySubscriptionRepository(sqlite_session)

    def expired(grace_period_end: str | None) -> None:
        metadata: dict[str, object] = {}
        if grace_period_end is not None:
            metadata[GRACE_PERIOD_END] = grace_period_end
        repository.add(
            make_subscription(
                status=SubscriptionStatus.EXPIRED,
                end_date=T0 - timedelta(days=3),
                metadata=metadata,
            )
        )

    expired(format_instant(T0))
    expired(format_instant(T0 + timedelta(seconds=1)))
    expired(format_instant(T0 - timedelta(days=1)))
    expired(None)
    sqlite_session.commit()

    assert repository.count(subscription_grace_over_criteria(T0)) == 2
    expired_statuses = frozenset({SubscriptionStatus.EXPIRED})
    assert repository.count(SubscriptionCriteria(statuses=expired_statuses)) == 4


def test_subscription_grace_filter_reads_offsets_and_zulu_suffix(
    sqlite_session: Session,
) -> None:
    repository = SqlAlchemySubscriptionRepository(sqlite_session)

    def expired(grace_period_end: str) -> SubscriptionOrganization:
        subscription = make_subscription(
            status=SubscriptionStatus.EXPIRED,
            end_date=T0 - timedelta(days=3),
            metadata={GRACE_PERIOD_END: grace_period_end},
        )
        repository.add(subscription)
        return subscription

    # T0 is 2026-03-01 12:00 UTC.
    due_with_offset = expired("2026-03-01T13:00:00+01:00")
    due_with_zulu = expired("2026-03-01T11:59:59.000Z")
    expired("2026-03-01T12:30:00+00:00")
    expired("2026-03-01T07:00:01-05:00")
    sqlite_session.commit()

    candidates = repository.find_candidates(subscription_grace_over_criteria(T0))

    assert {candidate.id for candidate in candidates} == {due_with_offset.id, due_with_zulu.id}


def test_subscription_queries_skip_deactivated_rows(sqlite_session: Session) -> None:
    repository = SqlAlchemySubscriptionRepository(sqlite_session)
    repository.add(make_subscription(end_date=T0 - timedelta(days=1), is_active=False))
    sqlite_session.commit()

    assert repository.count(SubscriptionCriteria()) == 0
    assert repository.find_candidates(SubscriptionCriteria()) == []
