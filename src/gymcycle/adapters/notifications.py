"""Notification adapters for lifecycle events."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gymcycle.domain.ports.notifications import LifecycleEvent

log = logging.getLogger(__name__)


@dataclass(slots=True)
class LoggingNotifier:
    """Record lifecycle events in the application log.

    Used when no delivery channel is configured; every event becomes one log
    line so operators can still see who should have been contacted.
    """

    logger: logging.Logger = field(default=log)
    level: int = logging.INFO

    def __call__(self, event: LifecycleEvent) -> None:
        details = ", ".join(f"{key}={value}" for key, value in sorted(event.details.items()))
        self.logger.log(
            self.level,
            "Lifecycle event %s: %s %s (tenant %s) at %s%s",
            event.kind,
            event.domain,
            event.entity_id,
            event.tenant_id,
            event.occurred_at.isoformat(),
            f" [{details}]" if details else "",
        )


@dataclass(slots=True)
class RecordingNotifier:
    """Keep events in memory, e.g. for a caller that batches delivery after a run."""

    events: list[LifecycleEvent] = field(default_factory=list["LifecycleEvent"])

    def __call__(self, event: LifecycleEvent) -> None:
        self.events.append(event)


if TYPE_CHECKING:
    from gymcycle.domain.ports.notifications import LifecycleNotifier

    _logging_check: LifecycleNotifier = LoggingNotifier()
    _recording_check: LifecycleNotifier = RecordingNotifier()
