"""Renewal activation cascading from an expiring contract."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from gymcycle.domain.model import ContractStatus

if TYPE_CHECKING:
    from datetime import datetime

    from gymcycle.domain.model import Contract
    from gymcycle.domain.ports.persistence import ContractRepository

log = getLogger(__name__)


class CascadeDecision(StrEnum):
    NO_RENEWAL = "no_renewal"
    ACTIVATED = "activated"
    AWAITING_PAYMENT = "awaiting_payment"
    NOT_PENDING = "not_pending"


@dataclass(frozen=True, slots=True)
class CascadeResult:
    decision: CascadeDecision
    renewal: Contract | None = None

    @property
    def activated(self) -> bool:
        return self.decision is CascadeDecision.ACTIVATED


def resolve_renewal_cascade(
    contracts: ContractRepository,
    contract: Contract,
    *,
    now: datetime,
) -> CascadeResult:
    """Activate the latest paid renewal of ``contract`` in the caller's unit of work.

    The caller commits the parent's expiration and the renewal's activation
    together, or neither.
    """

    renewal = contracts.latest_renewal(contract.id)
    if renewal is None:
        return CascadeResult(CascadeDecision.NO_RENEWAL)

    if renewal.status != ContractStatus.PENDING:
        log.info(
            "Renewal %s of contract %s is %s; leaving it untouched",
            renewal.id,
            contract.id,
            renewal.status,
        )
        return CascadeResult(CascadeDecision.NOT_PENDING, renewal)

    if not renewal.has_confirmed_payment:
        log.info(
            "Renewal %s of contract %s has no confirmed payment; not activating",
            renewal.id,
            contract.id,
        )
        return CascadeResult(CascadeDecision.AWAITING_PAYMENT, renewal)

    renewal.activate(now)
    log.info("Activated renewal %s for expired contract %s", renewal.id, contract.id)
    return CascadeResult(CascadeDecision.ACTIVATED, renewal)
