"""Status machines for RFQs, orders and logistics jobs."""
from datetime import datetime, timezone

from marketplace.errors import InvalidTransition
from marketplace.models.rfq import RFQStatus
from marketplace.models.order import OrderStatus
from marketplace.models.logistics_job import JobStatus

# from_status -> allowed to_statuses
RFQ_TRANSITIONS: dict[str, set[str]] = {
    RFQStatus.NEW: {RFQStatus.SOURCING, RFQStatus.CANCELLED},
    RFQStatus.SOURCING: {RFQStatus.QUOTED, RFQStatus.CANCELLED},
    RFQStatus.QUOTED: {RFQStatus.ACCEPTED, RFQStatus.CANCELLED},
    RFQStatus.ACCEPTED: set(),
    RFQStatus.CANCELLED: set(),
}

ORDER_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.ACCEPTED: {OrderStatus.PAYMENT_VERIFIED},
    OrderStatus.PAYMENT_VERIFIED: {OrderStatus.IN_TRANSIT},
    OrderStatus.IN_TRANSIT: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: {OrderStatus.COMPLETED},
    OrderStatus.COMPLETED: set(),
}

JOB_TRANSITIONS: dict[str, set[str]] = {
    JobStatus.PENDING: {JobStatus.ASSIGNED},
    JobStatus.ASSIGNED: {JobStatus.PICKED_UP, JobStatus.IN_TRANSIT},
    JobStatus.PICKED_UP: {JobStatus.IN_TRANSIT},
    JobStatus.IN_TRANSIT: {JobStatus.DELIVERED},
    JobStatus.DELIVERED: {JobStatus.POD_UPLOADED},
    JobStatus.POD_UPLOADED: {JobStatus.COMPLETED},
    JobStatus.COMPLETED: set(),
}

# Job statuses a transporter may set through the status endpoint.
# pod_uploaded is only reachable through the POD upload itself.
TRANSPORTER_SETTABLE = {
    JobStatus.PICKED_UP,
    JobStatus.IN_TRANSIT,
    JobStatus.DELIVERED,
    JobStatus.COMPLETED,
}

# Logistics -> order projection. Never the reverse.
JOB_TO_ORDER_STATUS = {
    JobStatus.IN_TRANSIT: OrderStatus.IN_TRANSIT,
    JobStatus.DELIVERED: OrderStatus.DELIVERED,
}

_TABLES = {
    "rfq": RFQ_TRANSITIONS,
    "order": ORDER_TRANSITIONS,
    "logistics_job": JOB_TRANSITIONS,
}


def can_transition(kind: str, current: str, target: str) -> bool:
    return target in _TABLES[kind].get(current, set())


def ensure_transition(kind: str, current: str, target: str) -> None:
    if not can_transition(kind, current, target):
        raise InvalidTransition(f"{kind} cannot move from '{current}' to '{target}'")


def is_terminal(kind: str, status: str) -> bool:
    return not _TABLES[kind].get(status)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; everything is stored in UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def make_reference(prefix: str, record_id: int, when: datetime | None = None) -> str:
    when = when or utcnow()
    return f"{prefix}-{when:%Y%m%d}-{record_id:05d}"
