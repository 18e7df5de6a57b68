"""
LOGISTICS App - Admin Status Transition Table

Static mapping from a delivery's current status to the statuses an
admin may apply next. Lookups are pure: no database access.
"""

from typing import Dict, List, Tuple

from .models import DeliveryStatus


class InvalidTransition(ValueError):
    """Raised when a status change is not in the admin transition table."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(
            f"Transition non autorisée: {status_label(current)} → {status_label(target)}"
        )


S = DeliveryStatus

# Option order is the order shown to the admin
ADMIN_STATUS_TRANSITIONS: Dict[str, Tuple[Tuple[str, str], ...]] = {
    S.PENDING: ((S.CANCELLED, 'Annuler'),),
    S.SEARCHING: ((S.CANCELLED, 'Annuler'),),
    S.ASSIGNED: ((S.CANCELLED, 'Annuler'),),
    S.ACCEPTED: ((S.CANCELLED, 'Annuler'),),
    S.PICKING_UP: ((S.CANCELLED, 'Annuler'), (S.FAILED, 'Échouée')),
    S.PICKED_UP: ((S.CANCELLED, 'Annuler'), (S.FAILED, 'Échouée')),
    S.IN_TRANSIT: ((S.DELIVERED, 'Livrée'), (S.FAILED, 'Échouée'), (S.CANCELLED, 'Annuler')),
    S.ARRIVING: ((S.DELIVERED, 'Livrée'), (S.FAILED, 'Échouée')),
    S.DELIVERED: ((S.COMPLETED, 'Terminée'),),
}

STATUS_BADGES: Dict[str, str] = {
    S.PENDING: 'warning',
    S.SEARCHING: 'warning',
    S.ASSIGNED: 'info',
    S.ACCEPTED: 'info',
    S.PICKING_UP: 'info',
    S.PICKED_UP: 'info',
    S.IN_TRANSIT: 'info',
    S.ARRIVING: 'info',
    S.DELIVERED: 'success',
    S.COMPLETED: 'success',
    S.CANCELLED: 'danger',
    S.FAILED: 'danger',
    S.RETURNED: 'danger',
}

COMPLETED_STATUSES = frozenset({S.DELIVERED, S.COMPLETED})
IN_PROGRESS_STATUSES = frozenset({
    S.ASSIGNED, S.ACCEPTED, S.PICKING_UP, S.PICKED_UP, S.IN_TRANSIT, S.ARRIVING,
})
CANCELLED_STATUSES = frozenset({S.CANCELLED, S.FAILED, S.RETURNED})

# Statuses that move the live-deliveries board
LIVE_BOARD_STATUSES = (
    S.IN_TRANSIT, S.ARRIVING, S.DELIVERED, S.COMPLETED, S.CANCELLED, S.FAILED,
)


def status_label(status: str) -> str:
    try:
        return DeliveryStatus(status).label
    except ValueError:
        return status


def get_admin_transitions(status: str) -> List[Dict[str, str]]:
    """
    Ordered options the admin may apply from `status`.

    Unknown and terminal statuses return an empty list.
    """
    return [
        {'value': str(target), 'label': label}
        for target, label in ADMIN_STATUS_TRANSITIONS.get(status, ())
    ]


def is_terminal(status: str) -> bool:
    return not ADMIN_STATUS_TRANSITIONS.get(status)


def is_transition_allowed(current: str, target: str) -> bool:
    return any(t == target for t, _ in ADMIN_STATUS_TRANSITIONS.get(current, ()))


def classify_status(status: str) -> str:
    """Timeline colour bucket: completed, in_progress, cancelled or pending."""
    if status in COMPLETED_STATUSES:
        return 'completed'
    if status in IN_PROGRESS_STATUSES:
        return 'in_progress'
    if status in CANCELLED_STATUSES:
        return 'cancelled'
    return 'pending'
