"""
Settlement payments.

Debtors report transfers after the event is closed; the organizer
confirms them. Only PAID payments count toward a settlement plan. No
money moves through this module.
"""

import logging
from decimal import Decimal
from typing import List
from uuid import UUID

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from apps.accounts.models import User
from apps.settlements.models import Payment, PaymentStatus

from .access import (
    ensure_authenticated,
    ensure_can_view,
    ensure_organizer,
    ensure_post_paid,
    get_event,
    get_participant,
)
from .closing import ensure_closed
from .exceptions import AuthorizationError, NotFoundError, ValidationError
from .money import MAX_AMOUNT_CENTS, from_cents, to_cents

logger = logging.getLogger(__name__)


@transaction.atomic
def record_payment(*, event_id: UUID, participant_id: UUID, actor: User, amount: Decimal) -> Payment:
    """
    Register a pending payment from a participant.

    Raises:
        NotFoundError: If the event doesn't exist or the participant is
            not active in it
        ValidationError: If the event is not closed or amount is not positive
        AuthorizationError: If actor is neither organizer nor the participant
    """
    ensure_authenticated(actor)
    event = get_event(event_id)
    ensure_post_paid(event)
    ensure_closed(event)

    participant = get_participant(event, participant_id)
    if not participant.is_active:
        raise NotFoundError("Participant was removed from this settlement")

    if not event.is_organized_by(actor) and participant.user_id != actor.id:
        raise AuthorizationError("You cannot register payments for this participant")

    try:
        cents = to_cents(amount)
    except ValueError:
        raise ValidationError("Payment amount must be a valid amount")
    if cents <= 0:
        raise ValidationError("Payment amount must be greater than zero")
    if cents > MAX_AMOUNT_CENTS:
        raise ValidationError(f"Payment amount must not exceed {from_cents(MAX_AMOUNT_CENTS)}")

    payment = Payment.objects.create(
        event=event,
        participant=participant,
        amount=from_cents(cents),
        status=PaymentStatus.PENDING,
    )
    logger.info("Payment %s of %s registered for participant %s", payment.id, payment.amount, participant.id)
    return payment


@transaction.atomic
def confirm_payment(*, event_id: UUID, payment_id: UUID, actor: User) -> Payment:
    """
    Mark a pending payment as paid.

    Uses SELECT FOR UPDATE so concurrent confirmations cannot both succeed.

    Raises:
        NotFoundError: If the event or payment doesn't exist
        AuthorizationError: If actor is not the organizer
        ValidationError: If the payment is not pending
    """
    ensure_authenticated(actor)
    event = get_event(event_id)
    ensure_post_paid(event)
    ensure_organizer(event, actor, "Only the organizer can confirm payments")

    try:
        payment = Payment.objects.select_for_update().get(id=payment_id, event=event)
    except (Payment.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError("Payment not found in this event")

    if payment.status != PaymentStatus.PENDING:
        raise ValidationError(f"Payment is {payment.status}; only pending payments can be confirmed")

    payment.status = PaymentStatus.PAID
    payment.paid_at = timezone.now()
    payment.save(update_fields=['status', 'paid_at', 'updated_at'])
    logger.info("Payment %s confirmed", payment.id)
    return payment


def get_payment_totals(*, event_id: UUID, actor: User) -> List[dict]:
    """
    Sum of PAID payments per participant.

    Returns:
        List of ``{'participant_id', 'total_amount'}`` dicts
    """
    ensure_authenticated(actor)
    event = get_event(event_id)
    ensure_post_paid(event)
    ensure_can_view(event, actor)

    rows = (
        Payment.objects
        .filter(event=event, status=PaymentStatus.PAID)
        .values('participant_id')
        .annotate(total=Sum('amount'))
        .order_by('participant_id')
    )
    return [
        {'participant_id': row['participant_id'], 'total_amount': from_cents(to_cents(row['total']))}
        for row in rows
    ]
