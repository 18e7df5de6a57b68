"""
FLEET App - Services for driver review

Approve, suspend and reject drivers. Every change is logged on the
`logitrack.admin` logger with the acting admin.
"""

import logging
from django.db import transaction

from .models import Driver, DriverStatus

logger = logging.getLogger('logitrack.admin')


class DriverService:
    """Driver status changes made from the backoffice."""

    @staticmethod
    def _set_status(driver: Driver, new_status: str, actor=None, reason: str = '') -> Driver:
        old_status = driver.status
        driver.status = new_status
        fields = ['status', 'updated_at']
        if new_status != DriverStatus.APPROVED and (driver.is_online or driver.is_available):
            driver.is_online = False
            driver.is_available = False
            fields += ['is_online', 'is_available']
        driver.save(update_fields=fields)

        who = getattr(actor, 'phone_number', None) or 'system'
        suffix = f" ({reason})" if reason else ''
        logger.info(f"[DRIVERS] {driver.full_name}: {old_status} -> {new_status} by {who}{suffix}")
        return driver

    @staticmethod
    @transaction.atomic
    def approve(driver: Driver, actor=None) -> Driver:
        """Approve a pending, suspended or previously rejected driver."""
        return DriverService._set_status(driver, DriverStatus.APPROVED, actor)

    @staticmethod
    @transaction.atomic
    def suspend(driver: Driver, actor=None, reason: str = '') -> Driver:
        return DriverService._set_status(driver, DriverStatus.SUSPENDED, actor, reason)

    @staticmethod
    @transaction.atomic
    def reject(driver: Driver, actor=None, reason: str = '') -> Driver:
        """
        Reject an application.

        Raises:
            ValueError: if the driver is already approved (suspend instead).
        """
        if driver.status == DriverStatus.APPROVED:
            raise ValueError("Un livreur approuvé ne peut pas être rejeté. Suspendez-le.")
        return DriverService._set_status(driver, DriverStatus.REJECTED, actor, reason)
