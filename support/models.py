import uuid
from django.db import models
from django.conf import settings


# ===========================================
# INCIDENTS
# ===========================================

class IncidentReporter(models.TextChoices):
    DRIVER = 'driver', 'Livreur'
    CLIENT = 'client', 'Client'
    CUSTOMER = 'customer', 'Destinataire'
    SYSTEM = 'system', 'Système'


class IncidentType(models.TextChoices):
    PACKAGE_DAMAGED = 'package_damaged', 'Colis endommagé'
    PACKAGE_LOST = 'package_lost', 'Colis perdu'
    DELIVERY_DELAYED = 'delivery_delayed', 'Livraison en retard'
    WRONG_ADDRESS = 'wrong_address', 'Mauvaise adresse'
    CUSTOMER_UNAVAILABLE = 'customer_unavailable', 'Destinataire absent'
    DRIVER_MISCONDUCT = 'driver_misconduct', 'Comportement du livreur'
    PAYMENT_ISSUE = 'payment_issue', 'Problème de paiement'
    OTHER = 'other', 'Autre'


class IncidentSeverity(models.TextChoices):
    LOW = 'low', 'Faible'
    MEDIUM = 'medium', 'Moyenne'
    HIGH = 'high', 'Haute'
    CRITICAL = 'critical', 'Critique'


class IncidentStatus(models.TextChoices):
    OPEN = 'open', 'Ouvert'
    INVESTIGATING = 'investigating', 'En cours d\'investigation'
    RESOLVED = 'resolved', 'Résolu'
    CLOSED = 'closed', 'Clôturé'
    ESCALATED = 'escalated', 'Escaladé'


class Incident(models.Model):
    """
    Incident reported on a delivery.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    delivery = models.ForeignKey(
        'logistics.Delivery',
        on_delete=models.CASCADE,
        related_name='incidents',
        verbose_name="Livraison"
    )
    reported_by_type = models.CharField(
        max_length=20,
        choices=IncidentReporter.choices,
        default=IncidentReporter.SYSTEM,
        verbose_name="Signalé par"
    )
    reported_by_id = models.UUIDField(null=True, blank=True)

    incident_type = models.CharField(
        max_length=30,
        choices=IncidentType.choices,
        default=IncidentType.OTHER,
        verbose_name="Type"
    )
    severity = models.CharField(
        max_length=20,
        choices=IncidentSeverity.choices,
        default=IncidentSeverity.MEDIUM,
        verbose_name="Gravité"
    )
    status = models.CharField(
        max_length=20,
        choices=IncidentStatus.choices,
        default=IncidentStatus.OPEN,
        verbose_name="Statut"
    )
    title = models.CharField(max_length=200, verbose_name="Titre")
    description = models.TextField(blank=True, verbose_name="Description détaillée")

    # Resolution
    resolution = models.TextField(blank=True, verbose_name="Résolution")
    resolved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='resolved_incidents',
        verbose_name="Résolu par"
    )
    resolved_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Incident"
        verbose_name_plural = "Incidents"
        ordering = ['-created_at']

    def __str__(self):
        return f"Incident {str(self.id)[:8]} - {self.get_incident_type_display()}"


# ===========================================
# SUPPORT CHAT
# ===========================================

class ConversationStatus(models.TextChoices):
    ACTIVE = 'active', 'Active'
    WAITING = 'waiting', 'En attente'
    RESOLVED = 'resolved', 'Résolue'


class SenderType(models.TextChoices):
    DRIVER = 'driver', 'Livreur'
    SUPPORT = 'support', 'Support'
    SYSTEM = 'system', 'Système'


class MessageType(models.TextChoices):
    TEXT = 'text', 'Texte'
    IMAGE = 'image', 'Image'
    LOCATION = 'location', 'Position'
    DELIVERY_INFO = 'delivery_info', 'Infos livraison'


class ChatConversation(models.Model):
    """Support thread between a driver and the backoffice."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    driver = models.ForeignKey(
        'fleet.Driver',
        on_delete=models.CASCADE,
        related_name='conversations',
        verbose_name="Livreur"
    )
    status = models.CharField(
        max_length=20,
        choices=ConversationStatus.choices,
        default=ConversationStatus.WAITING,
        verbose_name="Statut"
    )
    subject = models.CharField(max_length=200, blank=True, verbose_name="Sujet")
    delivery = models.ForeignKey(
        'logistics.Delivery',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='conversations',
        verbose_name="Livraison"
    )
    last_message = models.CharField(max_length=100, blank=True)
    last_message_at = models.DateTimeField(null=True, blank=True)
    unread_count = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Conversation support"
        verbose_name_plural = "Conversations support"
        ordering = [models.F('last_message_at').desc(nulls_last=True)]

    def __str__(self):
        return f"Conversation {str(self.id)[:8]} - {self.driver.full_name}"


class ChatMessage(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    conversation = models.ForeignKey(
        ChatConversation,
        on_delete=models.CASCADE,
        related_name='messages',
        verbose_name="Conversation"
    )
    sender_type = models.CharField(max_length=20, choices=SenderType.choices)
    sender_id = models.CharField(max_length=64, blank=True)
    sender_name = models.CharField(max_length=150, blank=True)
    message = models.TextField()
    message_type = models.CharField(
        max_length=20,
        choices=MessageType.choices,
        default=MessageType.TEXT
    )
    metadata = models.JSONField(default=dict, blank=True)
    read_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Message support"
        verbose_name_plural = "Messages support"
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['conversation', 'created_at']),
        ]

    def __str__(self):
        return f"{self.sender_name or self.sender_type}: {self.message[:40]}"
