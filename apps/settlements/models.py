# ==========================================
# apps/settlements/models.py
# ==========================================

from django.core.validators import MinValueValidator
from django.db import models
from decimal import Decimal
import uuid


class PaymentStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    PAID = 'paid', 'Paid'
    FAILED = 'failed', 'Failed'
    CANCELLED = 'cancelled', 'Cancelled'


class Participant(models.Model):
    """
    Someone sharing expenses within one post-paid event.

    Participants are never deleted: removing someone from the settlement
    only clears ``is_active``, so shares recorded against them keep
    resolving to the same row.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey('events.Event', on_delete=models.CASCADE, related_name='participants')
    name = models.CharField(max_length=200)
    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='participations'
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'settlement_participants'
        constraints = [
            models.UniqueConstraint(
                fields=['event', 'user'],
                condition=models.Q(user__isnull=False),
                name='unique_participant_per_event_user',
            ),
        ]
        indexes = [
            models.Index(fields=['event', 'is_active', 'created_at'], name='participant_event_active_idx'),
        ]
        ordering = ['created_at', 'id']

    def __str__(self):
        state = '' if self.is_active else ' (inactive)'
        return f"{self.name}{state}"


class Expense(models.Model):
    """An amount paid by one participant and split among several."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey('events.Event', on_delete=models.CASCADE, related_name='expenses')
    payer = models.ForeignKey(Participant, on_delete=models.RESTRICT, related_name='expenses_paid')
    description = models.CharField(max_length=255)
    total_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )

    # Optional client-supplied key; a resubmission with the same key
    # returns the original expense.
    idempotency_key = models.CharField(max_length=100, null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'settlement_expenses'
        constraints = [
            models.UniqueConstraint(
                fields=['event', 'idempotency_key'],
                condition=models.Q(idempotency_key__isnull=False),
                name='unique_expense_idempotency_key',
            ),
        ]
        indexes = [
            models.Index(fields=['event', 'created_at'], name='expense_event_created_idx'),
        ]
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"{self.description} - {self.total_amount}"


class ExpenseShare(models.Model):
    """Portion of one expense attributed to one participant."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    expense = models.ForeignKey(Expense, on_delete=models.CASCADE, related_name='shares')
    participant = models.ForeignKey(Participant, on_delete=models.RESTRICT, related_name='shares')
    share_amount = models.DecimalField(max_digits=12, decimal_places=2)

    # Position in the caller-supplied split order; remainder cents go to
    # the lowest positions.
    position = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'settlement_expense_shares'
        unique_together = [['expense', 'participant']]
        ordering = ['position']

    def __str__(self):
        return f"{self.participant.name}: {self.share_amount}"


class Payment(models.Model):
    """A debtor's self-reported transfer toward settling their debt."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey('events.Event', on_delete=models.CASCADE, related_name='settlement_payments')
    participant = models.ForeignKey(Participant, on_delete=models.RESTRICT, related_name='payments')
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING
    )
    paid_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'settlement_payments'
        indexes = [
            models.Index(fields=['event', 'participant', 'status'], name='payment_event_part_status_idx'),
        ]
        ordering = ['created_at']

    def __str__(self):
        return f"{self.participant.name} paid {self.amount} ({self.status})"
