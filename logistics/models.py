"""
LOGISTICS App - Deliveries, Status History & Zones for LogiTrack

Handles: Deliveries, their append-only status history, pricing zones
"""

import uuid
import random
import string
from decimal import Decimal
from django.db import models
from django.conf import settings
from django.core.exceptions import ValidationError
from django.utils import timezone


class DeliveryStatus(models.TextChoices):
    """Delivery status enumeration, in lifecycle order."""
    PENDING = 'pending', 'En attente'
    SEARCHING = 'searching', 'Recherche livreur'
    ASSIGNED = 'assigned', 'Assignée'
    ACCEPTED = 'accepted', 'Acceptée'
    PICKING_UP = 'picking_up', 'En route pickup'
    PICKED_UP = 'picked_up', 'Récupérée'
    IN_TRANSIT = 'in_transit', 'En transit'
    ARRIVING = 'arriving', 'Arrivée'
    DELIVERED = 'delivered', 'Livrée'
    COMPLETED = 'completed', 'Terminée'
    CANCELLED = 'cancelled', 'Annulée'
    FAILED = 'failed', 'Échouée'
    RETURNED = 'returned', 'Retournée'


class PaymentMethod(models.TextChoices):
    CASH = 'cash', 'Espèces'
    MOBILE_MONEY = 'mobile_money', 'Mobile Money'
    WALLET = 'wallet', 'Wallet'
    CARD = 'card', 'Carte'


class PaymentStatus(models.TextChoices):
    PENDING = 'pending', 'En attente'
    PAID = 'paid', 'Payé'
    FAILED = 'failed', 'Échoué'
    REFUNDED = 'refunded', 'Remboursé'


class PackageSize(models.TextChoices):
    SMALL = 'small', 'Petit'
    MEDIUM = 'medium', 'Moyen'
    LARGE = 'large', 'Grand'
    EXTRA_LARGE = 'extra_large', 'Très grand'


def generate_tracking_code() -> str:
    """LT + yymmdd + 6 random alphanumerics, e.g. LT240315K8D2QX."""
    suffix = ''.join(random.choices(string.ascii_uppercase + string.digits, k=6))
    return f"LT{timezone.now():%y%m%d}{suffix}"


class Zone(models.Model):
    """
    Pricing zone.

    The price of a trip is base_price + price_per_km * distance,
    clamped to [min_price, max_price]; max_price is optional.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100, verbose_name="Nom de la zone")
    city = models.CharField(max_length=100, verbose_name="Ville")
    country = models.CharField(max_length=2, default='CI', verbose_name="Pays")

    base_price = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal('500.00'),
        verbose_name="Prix de base"
    )
    price_per_km = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal('100.00'),
        verbose_name="Prix par km"
    )
    min_price = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal('500.00'),
        verbose_name="Prix minimum"
    )
    max_price = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True,
        verbose_name="Prix maximum"
    )

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Zone"
        verbose_name_plural = "Zones"
        unique_together = ['city', 'name']
        ordering = ['city', 'name']

    def __str__(self):
        return f"{self.name} ({self.city})"

    def clean(self):
        if self.max_price and self.min_price > self.max_price:
            raise ValidationError({'max_price': "Le prix maximum doit être supérieur au prix minimum."})

    def estimate_price(self, distance_km) -> Decimal:
        price = self.base_price + self.price_per_km * Decimal(str(distance_km))
        price = max(price, self.min_price)
        if self.max_price:
            price = min(price, self.max_price)
        return price.quantize(Decimal('1'))


class Delivery(models.Model):
    """
    Delivery (course) as seen by the backoffice.

    Prices are frozen at creation. Status changes go through
    DeliveryStatusService, which records the history.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tracking_code = models.CharField(
        max_length=20,
        unique=True,
        editable=False,
        verbose_name="Code de suivi"
    )

    # Actors
    business_client = models.ForeignKey(
        'partners.BusinessClient',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='deliveries',
        verbose_name="Client B2B"
    )
    company = models.ForeignKey(
        'partners.DeliveryCompany',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='deliveries',
        verbose_name="Entreprise de livraison"
    )
    driver = models.ForeignKey(
        'fleet.Driver',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='deliveries',
        verbose_name="Livreur"
    )

    # Status
    status = models.CharField(
        max_length=20,
        choices=DeliveryStatus.choices,
        default=DeliveryStatus.PENDING,
        verbose_name="Statut"
    )

    # Pickup
    pickup_address = models.CharField(max_length=255, verbose_name="Adresse de retrait")
    pickup_latitude = models.FloatField(null=True, blank=True)
    pickup_longitude = models.FloatField(null=True, blank=True)
    pickup_contact_name = models.CharField(max_length=150, blank=True)
    pickup_contact_phone = models.CharField(max_length=20, blank=True)

    # Dropoff
    delivery_address = models.CharField(max_length=255, verbose_name="Adresse de livraison")
    delivery_latitude = models.FloatField(null=True, blank=True)
    delivery_longitude = models.FloatField(null=True, blank=True)
    recipient_name = models.CharField(max_length=150, blank=True, verbose_name="Destinataire")
    recipient_phone = models.CharField(max_length=20, blank=True)

    # Package
    package_description = models.TextField(blank=True, verbose_name="Description du colis")
    package_size = models.CharField(
        max_length=20,
        choices=PackageSize.choices,
        default=PackageSize.SMALL
    )

    # Pricing (frozen at creation)
    total_price = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal('0.00'),
        verbose_name="Prix total"
    )
    driver_earnings = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    company_earnings = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    platform_fee = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal('0.00'),
        verbose_name="Commission plateforme"
    )
    payment_method = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        default=PaymentMethod.CASH
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING
    )

    notes = models.TextField(blank=True)

    # Timestamps
    scheduled_pickup_time = models.DateTimeField(null=True, blank=True)
    scheduled_delivery_time = models.DateTimeField(null=True, blank=True)
    picked_up_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Livraison"
        verbose_name_plural = "Livraisons"
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'created_at']),
            models.Index(fields=['driver', 'status']),
        ]

    def __str__(self):
        return f"Livraison {self.tracking_code} - {self.status}"

    def save(self, *args, **kwargs):
        if not self.tracking_code:
            self.tracking_code = generate_tracking_code()
        super().save(*args, **kwargs)

    @property
    def status_label(self) -> str:
        return self.get_status_display()

    @property
    def bucket(self) -> str:
        from .transitions import classify_status
        return classify_status(self.status)

    @property
    def is_terminal(self) -> bool:
        from .transitions import is_terminal
        return is_terminal(self.status)


class DeliveryStatusHistory(models.Model):
    """
    Immutable record of one status transition.

    Rows are written by the post_save signal on Delivery and are never
    updated or deleted afterwards.
    """

    delivery = models.ForeignKey(
        Delivery,
        on_delete=models.CASCADE,
        related_name='status_history',
        verbose_name="Livraison"
    )
    old_status = models.CharField(
        max_length=20,
        choices=DeliveryStatus.choices,
        blank=True,
        verbose_name="Ancien statut"
    )
    new_status = models.CharField(
        max_length=20,
        choices=DeliveryStatus.choices,
        verbose_name="Nouveau statut"
    )
    changed_at = models.DateTimeField(default=timezone.now, db_index=True)
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='status_changes',
        verbose_name="Modifié par"
    )
    note = models.TextField(blank=True)

    class Meta:
        verbose_name = "Historique de statut"
        verbose_name_plural = "Historique des statuts"
        ordering = ['changed_at', 'id']

    def __str__(self):
        return f"{self.old_status or '-'} → {self.new_status} ({self.changed_at:%d/%m %H:%M})"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("L'historique des statuts ne peut pas être modifié.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("L'historique des statuts ne peut pas être supprimé.")
