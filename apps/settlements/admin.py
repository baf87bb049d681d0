# ==========================================
# apps/settlements/admin.py
# ==========================================

from django.contrib import admin
from apps.settlements.models import Participant, Expense, ExpenseShare, Payment


class ExpenseShareInline(admin.TabularInline):
    """Shares are written only by the ledger service."""
    model = ExpenseShare
    extra = 0
    fields = ['position', 'participant', 'share_amount']
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Participant)
class ParticipantAdmin(admin.ModelAdmin):
    list_display = ['name', 'event', 'user', 'is_active', 'created_at']
    list_filter = ['is_active', 'created_at']
    search_fields = ['name', 'event__name', 'user__email']
    readonly_fields = ['created_at', 'updated_at']

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    list_display = ['description', 'event', 'payer', 'total_amount', 'created_at']
    list_filter = ['created_at']
    search_fields = ['description', 'event__name', 'payer__name']
    readonly_fields = ['event', 'payer', 'total_amount', 'idempotency_key', 'created_at', 'updated_at']
    inlines = [ExpenseShareInline]
    date_hierarchy = 'created_at'


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['participant', 'event', 'amount', 'status', 'paid_at', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['participant__name', 'event__name']
    readonly_fields = ['created_at', 'updated_at']
