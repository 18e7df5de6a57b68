"""
FLEET App - Drivers

Independent drivers and drivers employed by a delivery company.
"""

import uuid
from decimal import Decimal
from typing import Optional
from django.db import models


class DriverStatus(models.TextChoices):
    PENDING = 'pending', 'En attente'
    APPROVED = 'approved', 'Approuvé'
    SUSPENDED = 'suspended', 'Suspendu'
    REJECTED = 'rejected', 'Rejeté'


class DriverType(models.TextChoices):
    INDEPENDENT = 'independent', 'Indépendant'
    COMPANY = 'company', 'Entreprise'


class VehicleType(models.TextChoices):
    BICYCLE = 'bicycle', 'Vélo'
    MOTORCYCLE = 'motorcycle', 'Moto'
    CAR = 'car', 'Voiture'
    VAN = 'van', 'Camionnette'
    TRUCK = 'truck', 'Camion'


class Driver(models.Model):
    """
    Delivery driver.

    rating_sum / rating_count gives the average rating; both stay at 0
    until the first review.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey(
        'partners.DeliveryCompany',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='drivers',
        verbose_name="Entreprise"
    )
    driver_type = models.CharField(
        max_length=20,
        choices=DriverType.choices,
        default=DriverType.INDEPENDENT,
        verbose_name="Type"
    )

    full_name = models.CharField(max_length=150, verbose_name="Nom complet")
    phone = models.CharField(max_length=20, verbose_name="Téléphone")
    email = models.EmailField(blank=True)

    vehicle_type = models.CharField(
        max_length=20,
        choices=VehicleType.choices,
        default=VehicleType.MOTORCYCLE,
        verbose_name="Véhicule"
    )
    vehicle_plate = models.CharField(max_length=20, blank=True, verbose_name="Immatriculation")

    status = models.CharField(
        max_length=20,
        choices=DriverStatus.choices,
        default=DriverStatus.PENDING,
        verbose_name="Statut"
    )
    is_online = models.BooleanField(default=False, verbose_name="En ligne")
    is_available = models.BooleanField(default=False, verbose_name="Disponible")

    # Performance
    rating_sum = models.PositiveIntegerField(default=0)
    rating_count = models.PositiveIntegerField(default=0)
    total_deliveries = models.PositiveIntegerField(default=0, verbose_name="Livraisons")
    total_earnings = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal('0.00'),
        verbose_name="Gains"
    )
    wallet_balance = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Livreur"
        verbose_name_plural = "Livreurs"
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'is_online']),
        ]

    def __str__(self):
        return f"{self.full_name} ({self.get_status_display()})"

    @property
    def rating(self) -> Optional[float]:
        if not self.rating_count:
            return None
        return round(self.rating_sum / self.rating_count, 1)

    @property
    def is_company_driver(self) -> bool:
        return self.company_id is not None
