"""Order status lifecycle.

Intended flow::

    pending -> confirmed -> shipped -> delivered
       |           |
       +-----------+--> cancelled

``delivered`` and ``cancelled`` are terminal. The status endpoint only
enforces these edges when the service runs in strict mode.
"""
from typing import Dict, FrozenSet

from farmdirect.exceptions import InvalidStateError, ValidationError

PENDING = "pending"
CONFIRMED = "confirmed"
SHIPPED = "shipped"
DELIVERED = "delivered"
CANCELLED = "cancelled"

ORDER_STATUSES = (PENDING, CONFIRMED, SHIPPED, DELIVERED, CANCELLED)

# Statuses from which a buyer may still cancel
CANCELLABLE_STATUSES: FrozenSet[str] = frozenset({PENDING, CONFIRMED})

ALLOWED_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    PENDING: frozenset({CONFIRMED, CANCELLED}),
    CONFIRMED: frozenset({SHIPPED, CANCELLED}),
    SHIPPED: frozenset({DELIVERED}),
    DELIVERED: frozenset(),
    CANCELLED: frozenset(),
}


def allowed_transitions(current: str) -> FrozenSet[str]:
    return ALLOWED_TRANSITIONS.get(current, frozenset())


def is_valid_transition(current: str, new: str) -> bool:
    return new in allowed_transitions(current)


def validate_status(status: str) -> str:
    if status not in ORDER_STATUSES:
        raise ValidationError(
            f"Invalid status '{status}'. Expected one of: {', '.join(ORDER_STATUSES)}"
        )
    return status


def validate_transition(current: str, new: str) -> None:
    """Raise InvalidStateError unless ``current -> new`` is a lifecycle edge."""
    validate_status(new)
    if not is_valid_transition(current, new):
        raise InvalidStateError(f"Cannot change order status from {current} to {new}")
