"""
Django Admin configuration for SUPPORT app.
"""

from django.contrib import admin
from .models import ChatConversation, ChatMessage, Incident


@admin.register(Incident)
class IncidentAdmin(admin.ModelAdmin):
    list_display = ('title', 'incident_type', 'severity', 'status', 'delivery', 'created_at')
    list_filter = ('status', 'severity', 'incident_type')
    search_fields = ('title', 'description', 'delivery__tracking_code')
    raw_id_fields = ('delivery', 'resolved_by')
    readonly_fields = ('resolved_at', 'created_at', 'updated_at')


class ChatMessageInline(admin.TabularInline):
    model = ChatMessage
    extra = 0
    fields = ('created_at', 'sender_type', 'sender_name', 'message', 'read_at')
    readonly_fields = fields


@admin.register(ChatConversation)
class ChatConversationAdmin(admin.ModelAdmin):
    list_display = ('driver', 'status', 'subject', 'last_message_at', 'unread_count')
    list_filter = ('status',)
    search_fields = ('driver__full_name', 'driver__phone', 'subject')
    raw_id_fields = ('driver', 'delivery')
    inlines = [ChatMessageInline]
