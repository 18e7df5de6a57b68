"""
Django Admin configuration for PARTNERS app.
"""

from django.contrib import admin
from django.utils.html import format_html
from .models import APIRequest, BusinessClient, ClientAPIKey, DeliveryCompany
from .services import CompanyService


@admin.register(BusinessClient)
class BusinessClientAdmin(admin.ModelAdmin):
    list_display = ('company_name', 'contact_email', 'plan', 'status', 'created_at')
    list_filter = ('plan', 'status')
    search_fields = ('company_name', 'contact_email', 'contact_phone')
    ordering = ('-created_at',)


@admin.register(ClientAPIKey)
class ClientAPIKeyAdmin(admin.ModelAdmin):
    """Admin for client API keys."""

    list_display = (
        'name',
        'client',
        'environment',
        'revoked_badge',
        'total_requests',
        'last_used_at',
        'created',
    )
    list_filter = ('revoked', 'environment')
    search_fields = ('name', 'prefix', 'client__company_name')
    ordering = ('-created',)

    readonly_fields = ('prefix', 'hashed_key', 'created', 'total_requests', 'last_used_at')

    fieldsets = (
        ('Clé API', {
            'fields': ('name', 'client', 'environment', 'permissions', 'prefix', 'revoked')
        }),
        ('Validité', {
            'fields': ('expiry_date',),
            'description': 'Laissez vide pour une clé sans expiration.'
        }),
        ('Usage', {
            'fields': ('total_requests', 'last_used_at'),
        }),
        ('Technique', {
            'fields': ('hashed_key', 'created'),
            'classes': ('collapse',)
        }),
    )

    actions = ['revoke_keys']

    def revoked_badge(self, obj):
        if obj.revoked:
            return format_html(
                '<span style="padding:2px 6px;border-radius:8px;color:white;background:#ef4444;font-size:11px;">Révoquée</span>'
            )
        return format_html(
            '<span style="padding:2px 6px;border-radius:8px;color:white;background:#10b981;font-size:11px;">Active</span>'
        )
    revoked_badge.short_description = "Statut"

    @admin.action(description="Révoquer les clés sélectionnées")
    def revoke_keys(self, request, queryset):
        updated = queryset.update(revoked=True)
        self.message_user(request, f"{updated} clé(s) révoquée(s).")


@admin.register(APIRequest)
class APIRequestAdmin(admin.ModelAdmin):
    list_display = ('created_at', 'client', 'method', 'path', 'status_code')
    list_filter = ('method', 'status_code')
    search_fields = ('path', 'client__company_name')
    date_hierarchy = 'created_at'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

@admin.register(DeliveryCompany)
class DeliveryCompanyAdmin(admin.ModelAdmin):
    list_display = ('company_name', 'owner_name', 'city', 'status', 'commission_rate', 'verified_at')
    list_filter = ('status', 'city')
    search_fields = ('company_name', 'email', 'phone', 'owner_name')
    readonly_fields = ('verified_at', 'created_at', 'updated_at')

    actions = ['activate_companies']

    @admin.action(description="Activer les entreprises sélectionnées")
    def activate_companies(self, request, queryset):
        for company in queryset:
            CompanyService.activate(company, actor=request.user)
        self.message_user(request, f"{queryset.count()} entreprise(s) activée(s).")
