"""
LOGISTICS App - Delivery Status Service

Every status change goes through here. The admin table in
logistics.transitions is enforced server-side, so a direct API call
cannot push a delivery along an edge the backoffice would not offer.
"""

import logging
from typing import Optional

from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from logistics.models import Delivery, DeliveryStatus
from logistics.transitions import InvalidTransition, is_transition_allowed

logger = logging.getLogger(__name__)


class DeliveryStatusService:
    """
    Service for delivery status changes and delivery listings.
    """

    @staticmethod
    @transaction.atomic
    def update_status(delivery: Delivery, new_status: str, actor=None, note: str = '') -> Delivery:
        """
        Apply an admin status change.

        Raises InvalidTransition when `new_status` is not offered for the
        delivery's current status. The history row and the realtime
        broadcast are produced by the post_save signal.
        """
        delivery = Delivery.objects.select_for_update().get(pk=delivery.pk)

        if not is_transition_allowed(delivery.status, new_status):
            logger.warning(
                f"[STATUS] Refused {delivery.tracking_code}: "
                f"{delivery.status} -> {new_status}"
            )
            raise InvalidTransition(delivery.status, new_status)

        return DeliveryStatusService._apply(delivery, new_status, actor, note)

    @staticmethod
    def _apply(delivery: Delivery, new_status: str, actor, note: str) -> Delivery:
        old_status = delivery.status
        now = timezone.now()

        delivery.status = new_status
        update_fields = ['status', 'updated_at']

        if new_status == DeliveryStatus.PICKED_UP:
            delivery.picked_up_at = now
            update_fields.append('picked_up_at')
        if new_status == DeliveryStatus.DELIVERED:
            delivery.delivered_at = now
            update_fields.append('delivered_at')

        # Read by the post_save signal when writing the history row
        delivery._status_actor = actor
        delivery._status_note = note or ''
        delivery.save(update_fields=update_fields)

        logger.info(
            f"[STATUS] {delivery.tracking_code}: {old_status} -> {new_status}"
            f"{f' by {actor.phone_number}' if actor else ''}"
        )
        return delivery

    @staticmethod
    def list_deliveries(
        client_id=None,
        company_id=None,
        driver_id=None,
        status: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> QuerySet:
        """Deliveries newest first, with the admin table filters applied."""
        qs = Delivery.objects.select_related(
            'business_client', 'company', 'driver'
        ).order_by('-created_at')

        if client_id:
            qs = qs.filter(business_client_id=client_id)
        if company_id:
            qs = qs.filter(company_id=company_id)
        if driver_id:
            qs = qs.filter(driver_id=driver_id)
        if status:
            qs = qs.filter(status=status)

        if limit:
            return qs[offset:offset + limit]
        if offset:
            return qs[offset:]
        return qs
