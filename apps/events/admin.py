# ==========================================
# apps/events/admin.py
# ==========================================

from django.contrib import admin
from apps.events.models import Event


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    """Admin interface for events."""

    list_display = ['name', 'organizer', 'event_type', 'is_closed', 'created_at']
    list_filter = ['event_type', 'is_closed', 'created_at']
    search_fields = ['name', 'description', 'organizer__email']
    readonly_fields = ['created_at', 'updated_at']
    date_hierarchy = 'created_at'
    ordering = ['-created_at']
