"""
PARTNERS App - Business clients, their API keys, and delivery companies.

Key security model: ClientAPIKey links each API key to one
BusinessClient, so an API call can only act on behalf of the client
that owns the key.
"""
import uuid
from decimal import Decimal
from django.conf import settings
from django.db import models
from rest_framework_api_key.models import AbstractAPIKey


# ===========================================
# BUSINESS CLIENTS
# ===========================================

class ClientPlan(models.TextChoices):
    STARTER = 'starter', 'Starter'
    BUSINESS = 'business', 'Business'
    ENTERPRISE = 'enterprise', 'Enterprise'


class ClientStatus(models.TextChoices):
    ACTIVE = 'active', 'Actif'
    SUSPENDED = 'suspended', 'Suspendu'
    PENDING = 'pending', 'En attente'


class BusinessClient(models.Model):
    """E-commerce / B2B client sending deliveries through the API."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company_name = models.CharField(max_length=200, verbose_name="Raison sociale")
    contact_email = models.EmailField(verbose_name="Email de contact")
    contact_phone = models.CharField(max_length=20, blank=True)
    webhook_url = models.URLField(blank=True)
    plan = models.CharField(
        max_length=20,
        choices=ClientPlan.choices,
        default=ClientPlan.STARTER,
        verbose_name="Offre"
    )
    status = models.CharField(
        max_length=20,
        choices=ClientStatus.choices,
        default=ClientStatus.ACTIVE,
        verbose_name="Statut"
    )
    settings = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Client B2B"
        verbose_name_plural = "Clients B2B"
        ordering = ['-created_at']

    def __str__(self):
        return self.company_name


class KeyEnvironment(models.TextChoices):
    TEST = 'test', 'Test'
    LIVE = 'live', 'Production'


def default_key_permissions():
    return ['deliveries:read', 'deliveries:write', 'quotes:read']


class ClientAPIKey(AbstractAPIKey):
    """
    API key owned by a business client.

    Only the hashed key is stored; the full key is shown once, at
    creation. `revoked` (from AbstractAPIKey) is the active flag.

    Usage in views:
        key = ClientAPIKey.objects.get_from_key(raw_key)
        client = key.client
    """

    client = models.ForeignKey(
        BusinessClient,
        on_delete=models.CASCADE,
        related_name='api_keys',
        verbose_name="Client"
    )
    environment = models.CharField(
        max_length=10,
        choices=KeyEnvironment.choices,
        default=KeyEnvironment.TEST
    )
    permissions = models.JSONField(default=default_key_permissions)
    total_requests = models.PositiveIntegerField(default=0)
    last_used_at = models.DateTimeField(null=True, blank=True)

    class Meta(AbstractAPIKey.Meta):
        verbose_name = "Clé API client"
        verbose_name_plural = "Clés API clients"

    def __str__(self):
        return f"API Key: {self.client.company_name} - {self.name}"

    @property
    def is_active(self) -> bool:
        return not self.revoked and not self.has_expired


class APIRequest(models.Model):
    """
    One call made with a client API key.

    Rows are written by the public delivery API; the backoffice only
    reads them for the per-day usage figures.
    """

    client = models.ForeignKey(
        BusinessClient,
        on_delete=models.CASCADE,
        related_name='api_requests',
    )
    api_key = models.ForeignKey(
        ClientAPIKey,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='requests',
    )
    method = models.CharField(max_length=10, blank=True)
    path = models.CharField(max_length=255, blank=True)
    status_code = models.PositiveSmallIntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        verbose_name = "Appel API"
        verbose_name_plural = "Appels API"
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.method} {self.path} ({self.client_id})"


# ===========================================
# DELIVERY COMPANIES
# ===========================================

class CompanyStatus(models.TextChoices):
    PENDING = 'pending', 'En attente'
    ACTIVE = 'active', 'Active'
    SUSPENDED = 'suspended', 'Suspendue'


def default_commission_rate():
    return Decimal(settings.DEFAULT_COMPANY_COMMISSION)


class DeliveryCompany(models.Model):
    """Delivery company operating its own fleet of drivers."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company_name = models.CharField(max_length=200, verbose_name="Nom commercial")
    legal_name = models.CharField(max_length=200, blank=True)
    registration_number = models.CharField(max_length=50, blank=True, verbose_name="RCCM")
    email = models.EmailField()
    phone = models.CharField(max_length=20)
    address = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    country = models.CharField(max_length=2, default='CI')
    owner_name = models.CharField(max_length=150, verbose_name="Gérant")

    status = models.CharField(
        max_length=20,
        choices=CompanyStatus.choices,
        default=CompanyStatus.PENDING,
        verbose_name="Statut"
    )
    commission_rate = models.DecimalField(
        max_digits=5, decimal_places=2, default=default_commission_rate,
        verbose_name="Commission plateforme (%)"
    )
    min_commission = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    verified_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = "Entreprise de livraison"
        verbose_name_plural = "Entreprises de livraison"
        ordering = ['-created_at']

    def __str__(self):
        return self.company_name
