"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import DateTime, false, func, literal, or_, select, true
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.functions import FunctionElement

from gymcycle.adapters.sqlalchemy.mappings import contract_table, subscription_organization_table
from gymcycle.domain.model import Contract, SubscriptionOrganization, format_instant
from gymcycle.domain.model.subscription import EXPIRATION_WARNING, GRACE_PERIOD_END
from gymcycle.domain.ports.persistence import ContractCandidate, SubscriptionCandidate
from gymcycle.domain.time_windows import utcnow

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from sqlalchemy import ColumnElement
    from sqlalchemy.orm import Session
    from sqlalchemy.sql.compiler import SQLCompiler

    from gymcycle.domain.ports.persistence import ContractCriteria, SubscriptionCriteria
    from gymcycle.domain.time_windows import Clock


class instant(FunctionElement[Any]):  # noqa: N801
    """Parse an ISO-8601 string into a comparable point in time.

    Offsets and a trailing ``Z`` are honoured, so differently written instants
    compare by the moment they denote.
    """

    type = DateTime(timezone=True)
    inherit_cache = True


@compiles(instant)
def _compile_instant(element: instant, compiler: SQLCompiler, **kw: Any) -> str:
    return f"CAST({compiler.process(element.clauses, **kw)} AS TIMESTAMP WITH TIME ZONE)"


@compiles(instant, "sqlite")
def _compile_instant_sqlite(element: instant, compiler: SQLCompiler, **kw: Any) -> str:
    return f"julianday({compiler.process(element.clauses, **kw)})"


def _stamp_created(entity: Contract | SubscriptionOrganization, clock: Clock) -> None:
    if entity.created_at is None:
        entity.created_at = clock()
    if entity.updated_at is None:
        entity.updated_at = entity.created_at


def _contract_filters(criteria: ContractCriteria) -> list[ColumnElement[bool]]:
    table = contract_table
    filters: list[ColumnElement[bool]] = [table.c.deleted_at.is_(None)]
    if criteria.statuses is not None:
        filters.append(table.c.status.in_(sorted(criteria.statuses)))
    if criteria.end_after is not None:
        filters.append(table.c.end_date > criteria.end_after)
    if criteria.end_until is not None:
        filters.append(table.c.end_date <= criteria.end_until)
    if criteria.freeze_end_until is not None:
        filters.append(table.c.freeze_end_date <= criteria.freeze_end_until)
    if criteria.gym_id is not None:
        filters.append(table.c.gym_id == criteria.gym_id)
    if criteria.after_id is not None:
        filters.append(table.c.id > criteria.after_id)
    return filters


def _subscription_filters(criteria: SubscriptionCriteria) -> list[ColumnElement[bool]]:
    table = subscription_organization_table
    metadata = table.c["metadata"]
    filters: list[ColumnElement[bool]] = [
        table.c.deleted_at.is_(None),
        table.c.is_active.is_(true()),
    ]
    if criteria.statuses is not None:
        filters.append(table.c.status.in_(sorted(criteria.statuses)))
    if criteria.end_after is not None:
        filters.append(table.c.end_date > criteria.end_after)
    if criteria.end_until is not None:
        filters.append(table.c.end_date <= criteria.end_until)
    if criteria.warning_flagged is True:
        filters.append(metadata[EXPIRATION_WARNING].as_boolean().is_(true()))
    elif criteria.warning_flagged is False:
        flag = metadata[EXPIRATION_WARNING].as_boolean()
        filters.append(or_(flag.is_(None), flag.is_(false())))
    if criteria.grace_period_end_until is not None:
        grace_period_end = metadata[GRACE_PERIOD_END].as_string()
        filters.append(grace_period_end.is_not(None))
        filters.append(
            instant(grace_period_end)
            <= instant(literal(format_instant(criteria.grace_period_end_until)))
        )
    if criteria.organization_id is not None:
        filters.append(table.c.organization_id == criteria.organization_id)
    if criteria.after_id is not None:
        filters.append(table.c.id > criteria.after_id)
    return filters


class SqlAlchemyContractRepository:
    def __init__(self, session: Session, *, clock: Clock = utcnow) -> None:
        self.session = session
        self.clock = clock

    def add(self, entity: Contract) -> None:
        _stamp_created(entity, self.clock)
        self.session.add(entity)

    def get(self, entity_id: UUID) -> Contract | None:
        return self.session.get(Contract, entity_id)

    def find_candidates(self, criteria: ContractCriteria) -> Sequence[ContractCandidate]:
        table = contract_table
        stmt = (
            select(
                table.c.id,
                table.c.gym_id,
                table.c.status,
                table.c.end_date,
                table.c.freeze_end_date,
            )
            .where(*_contract_filters(criteria))
            .order_by(table.c.id)
        )
        if criteria.limit is not None:
            stmt = stmt.limit(criteria.limit)
        return [
            ContractCandidate(
                id=row.id,
                gym_id=row.gym_id,
                status=row.status,
                end_date=row.end_date,
                freeze_end_date=row.freeze_end_date,
            )
            for row in self.session.execute(stmt)
        ]

    def count(self, criteria: ContractCriteria) -> int:
        stmt = (
            select(func.count())
            .select_from(contract_table)
            .where(*_contract_filters(criteria))
        )
        return int(self.session.execute(stmt).scalar_one())

    def latest_renewal(self, contract_id: UUID) -> Contract | None:
        table = contract_table
        stmt = (
            select(Contract)
            .where(table.c.parent_contract_id == contract_id)
            .where(table.c.deleted_at.is_(None))
            .order_by(table.c.created_at.desc(), table.c.id.desc())
            .limit(1)
        )
        return self.session.execute(stmt).scalars().first()


class SqlAlchemySubscriptionRepository:
    def __init__(self, session: Session, *, clock: Clock = utcnow) -> None:
        self.session = session
        self.clock = clock

    def add(self, entity: SubscriptionOrganization) -> None:
        _stamp_created(entity, self.clock)
        self.session.add(entity)

    def get(self, entity_id: UUID) -> SubscriptionOrganization | None:
        return self.session.get(SubscriptionOrganization, entity_id)

    def find_candidates(self, criteria: SubscriptionCriteria) -> Sequence[SubscriptionCandidate]:
        table = subscription_organization_table
        stmt = (
            select(table.c.id, table.c.organization_id, table.c.status, table.c.end_date)
            .where(*_subscription_filters(criteria))
            .order_by(table.c.id)
        )
        if criteria.limit is not None:
            stmt = stmt.limit(criteria.limit)
        return [
            SubscriptionCandidate(
                id=row.id,
                organization_id=row.organization_id,
                status=row.status,
                end_date=row.end_date,
            )
            for row in self.session.execute(stmt)
        ]

    def count(self, criteria: SubscriptionCriteria) -> int:
        stmt = (
            select(func.count())
            .select_from(subscription_organization_table)
            .where(*_subscription_filters(criteria))
        )
        return int(self.session.execute(stmt).scalar_one())

