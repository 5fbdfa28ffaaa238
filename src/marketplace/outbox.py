"""Transactional outbox access.

Events are emitted by raising them on the aggregate they describe while a
unit of work is open. Protean writes one outbox row per event in the same
transaction as the aggregate rows when that unit commits, and writes nothing
when it rolls back. Rows are append-only here; shipping them to a broker is
the outbox processor's job.
"""

import structlog
from protean.exceptions import InvalidOperationError
from protean.utils.globals import current_domain, current_uow
from protean.utils.outbox import OutboxStatus

logger = structlog.get_logger(__name__)


def emit(aggregate, event) -> None:
    """Stage ``event`` for the outbox within the caller's unit of work."""
    if not (current_uow and current_uow.in_progress):
        raise InvalidOperationError("Outbox events must be emitted inside a unit of work")

    aggregate.raise_(event)
    logger.info(
        "outbox.event_staged",
        event_type=event.__class__.__name__,
        aggregate_type=aggregate.meta_.stream_category,
        aggregate_id=str(aggregate.id),
    )


def event_type_name(event_cls) -> str:
    """Fully qualified outbox type, e.g. ``Marketplace.OrderCreated.v1``."""
    return event_cls.__type__


def outbox_records(event_cls=None, provider: str = "default") -> list:
    outbox_repo = current_domain._get_outbox_repo(provider)
    if event_cls is None:
        return outbox_repo.find_unprocessed()
    return outbox_repo.find_by_message_type(event_type_name(event_cls))


def pending_records(event_cls=None, provider: str = "default") -> list:
    return [record for record in outbox_records(event_cls, provider) if record.status == OutboxStatus.PENDING.value]
