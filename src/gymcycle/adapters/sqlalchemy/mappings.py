"""SQLAlchemy mapping metadata for the lifecycle domain model."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from enum import StrEnum
from functools import cache

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    Index,
    Numeric,
    Table,
    TypeDecorator,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers

from gymcycle.domain.model import (
    Contract,
    ContractStatus,
    SubscriptionOrganization,
    SubscriptionStatus,
)

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


def _status_enum(enum_cls: type[StrEnum]) -> Enum:
    """Store status values (not member names) as plain strings."""

    return Enum(
        enum_cls,
        native_enum=False,
        length=32,
        values_callable=lambda members: [member.value for member in members],
    )


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Lifecycle tables --------------------------------------------------------------

contract_table = Table(
    "contract",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("gym_id", UUIDColumnType, nullable=False),
    Column("client_id", UUIDColumnType, nullable=False),
    Column("plan_id", UUIDColumnType, nullable=False),
    Column("status", _status_enum(ContractStatus), nullable=False),
    Column("start_date", UTCDateTime(), nullable=True),
    Column("end_date", UTCDateTime(), nullable=True),
    Column("freeze_start_date", UTCDateTime(), nullable=True),
    Column("freeze_end_date", UTCDateTime(), nullable=True),
    # Renewals point at the contract they extend.
    Column("parent_contract_id", UUIDColumnType, nullable=True),
    Column("final_amount", Numeric(12, 2), nullable=True),
    Column("created_at", UTCDateTime(), nullable=True),
    Column("updated_at", UTCDateTime(), nullable=True),
    Column("deleted_at", UTCDateTime(), nullable=True),
    Index("ix_contract_status_end_date", "status", "end_date"),
    Index("ix_contract_gym_id", "gym_id"),
    Index("ix_contract_parent_contract_id", "parent_contract_id"),
)

subscription_organization_table = Table(
    "subscription_organization",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("organization_id", UUIDColumnType, nullable=False),
    Column("status", _status_enum(SubscriptionStatus), nullable=False),
    Column("start_date", UTCDateTime(), nullable=True),
    Column("end_date", UTCDateTime(), nullable=False),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("metadata", JSON, nullable=False, default=dict),
    Column("created_at", UTCDateTime(), nullable=True),
    Column("updated_at", UTCDateTime(), nullable=True),
    Column("deleted_at", UTCDateTime(), nullable=True),
    Index("ix_subscription_organization_status_end_date", "status", "end_date"),
    Index("ix_subscription_organization_organization_id", "organization_id"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(Contract, contract_table)
    mapper_registry.map_imperatively(SubscriptionOrganization, subscription_organization_table)

    configure_mappers()
    return mapper_registry

