"""
Admin status transition table
"""

from django.test import SimpleTestCase

from logistics.models import DeliveryStatus
from logistics.transitions import (
    ADMIN_STATUS_TRANSITIONS,
    InvalidTransition,
    classify_status,
    get_admin_transitions,
    is_terminal,
    is_transition_allowed,
    status_label,
)

S = DeliveryStatus


def values(status):
    return [option['value'] for option in get_admin_transitions(status)]


class TestAdminTransitions(SimpleTestCase):

    def test_before_pickup_only_cancel(self):
        for status in (S.PENDING, S.SEARCHING, S.ASSIGNED, S.ACCEPTED):
            self.assertEqual(values(status), ['cancelled'])

    def test_pickup_phase(self):
        self.assertEqual(values(S.PICKING_UP), ['cancelled', 'failed'])
        self.assertEqual(values(S.PICKED_UP), ['cancelled', 'failed'])

    def test_in_transit_order(self):
        self.assertEqual(values(S.IN_TRANSIT), ['delivered', 'failed', 'cancelled'])

    def test_arriving_cannot_be_cancelled(self):
        self.assertEqual(values(S.ARRIVING), ['delivered', 'failed'])

    def test_delivered_then_completed(self):
        self.assertEqual(values(S.DELIVERED), ['completed'])

    def test_terminal_statuses(self):
        for status in (S.COMPLETED, S.CANCELLED, S.FAILED, S.RETURNED):
            self.assertEqual(get_admin_transitions(status), [])
            self.assertTrue(is_terminal(status))

    def test_unknown_status_has_no_options(self):
        self.assertEqual(get_admin_transitions('teleported'), [])
        self.assertTrue(is_terminal('teleported'))

    def test_labels(self):
        options = get_admin_transitions(S.IN_TRANSIT)
        self.assertEqual(options[0], {'value': 'delivered', 'label': 'Livrée'})
        self.assertEqual(options[2]['label'], 'Annuler')

    def test_no_self_loops(self):
        for current, options in ADMIN_STATUS_TRANSITIONS.items():
            self.assertNotIn(current, [target for target, _ in options])

    def test_is_transition_allowed(self):
        self.assertTrue(is_transition_allowed(S.ARRIVING, S.FAILED))
        self.assertFalse(is_transition_allowed(S.ARRIVING, S.CANCELLED))
        self.assertFalse(is_transition_allowed(S.COMPLETED, S.DELIVERED))

    def test_invalid_transition_message(self):
        error = InvalidTransition(S.ARRIVING, S.CANCELLED)
        self.assertIsInstance(error, ValueError)
        self.assertIn('Arrivée', str(error))
        self.assertIn('Annulée', str(error))


class TestStatusBuckets(SimpleTestCase):

    def test_buckets(self):
        self.assertEqual(classify_status(S.DELIVERED), 'completed')
        self.assertEqual(classify_status(S.COMPLETED), 'completed')
        self.assertEqual(classify_status(S.IN_TRANSIT), 'in_progress')
        self.assertEqual(classify_status(S.FAILED), 'cancelled')
        self.assertEqual(classify_status(S.PENDING), 'pending')
        self.assertEqual(classify_status(S.SEARCHING), 'pending')

    def test_unknown_label_falls_back_to_value(self):
        self.assertEqual(status_label('teleported'), 'teleported')
        self.assertEqual(status_label(S.PICKED_UP), 'Récupérée')
