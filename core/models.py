"""
CORE App - Admin User Model for LogiTrack

Handles: Backoffice users (super admins, admins, support agents, viewers)
"""

import re
import uuid
from django.conf import settings
from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.db import models
from django.utils import timezone


PHONE_PATTERN = re.compile(r'^\+[0-9]{8,15}$')


def normalize_phone(raw: str, country_code: str = None) -> str:
    """
    Derive the canonical login identifier from a phone number.

    Accepts local (`07 07 00 00 01`), national-with-code (`2250707000001`),
    `00`-prefixed and `+`-prefixed input. Returns `+<code><number>`.
    """
    if not raw:
        raise ValueError('Le numéro de téléphone est obligatoire')

    country_code = country_code or settings.PHONE_COUNTRY_CODE
    cleaned = re.sub(r'[\s\-\.\(\)]', '', str(raw))

    if cleaned.startswith('+'):
        phone = cleaned
    elif cleaned.startswith('00'):
        phone = '+' + cleaned[2:]
    elif cleaned.startswith(country_code) and len(cleaned) > len(country_code) + 7:
        phone = '+' + cleaned
    else:
        phone = f'+{country_code}{cleaned}'

    if not PHONE_PATTERN.match(phone):
        raise ValueError(f'Numéro de téléphone invalide: {raw}')
    return phone


class AdminRole(models.TextChoices):
    """Backoffice role enumeration."""
    SUPER_ADMIN = 'super_admin', 'Super administrateur'
    ADMIN = 'admin', 'Administrateur'
    SUPPORT = 'support', 'Support'
    VIEWER = 'viewer', 'Lecture seule'


class UserManager(BaseUserManager):
    """Custom user manager for phone-based authentication."""

    def create_user(self, phone_number, password=None, **extra_fields):
        phone_number = normalize_phone(phone_number)
        if extra_fields.get('email'):
            extra_fields['email'] = self.normalize_email(extra_fields['email'])

        user = self.model(phone_number=phone_number, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_superuser(self, phone_number, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', AdminRole.SUPER_ADMIN)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')

        return self.create_user(phone_number, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    """
    Backoffice user, identified by phone number.

    Every account of this model is an admin-side account; the role
    decides whether it may write (viewers are read-only).
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    phone_number = models.CharField(
        max_length=16,
        unique=True,
        verbose_name="Téléphone"
    )
    email = models.EmailField(blank=True, verbose_name="Email")
    full_name = models.CharField(max_length=150, blank=True, verbose_name="Nom complet")
    role = models.CharField(
        max_length=20,
        choices=AdminRole.choices,
        default=AdminRole.ADMIN,
        verbose_name="Rôle"
    )
    permissions = models.JSONField(
        default=list,
        blank=True,
        verbose_name="Permissions additionnelles"
    )

    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)
    date_joined = models.DateTimeField(default=timezone.now)

    objects = UserManager()

    USERNAME_FIELD = 'phone_number'
    REQUIRED_FIELDS = ['full_name']

    class Meta:
        verbose_name = "Administrateur"
        verbose_name_plural = "Administrateurs"
        ordering = ['-date_joined']

    def __str__(self):
        return f"{self.full_name or self.phone_number} ({self.get_role_display()})"

    @property
    def display_name(self) -> str:
        return self.full_name or self.phone_number

    @property
    def is_backoffice(self) -> bool:
        return self.is_active and self.role in AdminRole.values

    @property
    def can_write(self) -> bool:
        return self.is_backoffice and self.role != AdminRole.VIEWER
