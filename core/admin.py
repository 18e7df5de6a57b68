"""
Django Admin configuration for CORE app.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Custom admin for User model with phone-based auth."""

    list_display = (
        'phone_number',
        'full_name',
        'email',
        'role',
        'is_active',
        'last_login',
        'date_joined'
    )
    list_filter = ('role', 'is_active', 'is_staff')
    search_fields = ('phone_number', 'full_name', 'email')
    ordering = ('-date_joined',)

    fieldsets = (
        (None, {
            'fields': ('phone_number', 'password')
        }),
        ('Profil', {
            'fields': ('full_name', 'email', 'role', 'permissions')
        }),
        ('Permissions', {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
            'classes': ('collapse',)
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('phone_number', 'full_name', 'role', 'password1', 'password2'),
        }),
    )

    readonly_fields = ('date_joined', 'last_login')

    actions = ['deactivate_users', 'reactivate_users']

    @admin.action(description="Désactiver les comptes sélectionnés")
    def deactivate_users(self, request, queryset):
        updated = queryset.exclude(pk=request.user.pk).update(is_active=False)
        self.message_user(request, f"{updated} compte(s) désactivé(s).")

    @admin.action(description="Réactiver les comptes sélectionnés")
    def reactivate_users(self, request, queryset):
        updated = queryset.update(is_active=True)
        self.message_user(request, f"{updated} compte(s) réactivé(s).")
