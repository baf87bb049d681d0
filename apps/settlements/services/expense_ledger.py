"""
Expense ledger.

Records expenses and their cent-exact shares. An expense and its shares
are always written in one transaction, so the shares of every stored
expense sum exactly to its total.
"""

import logging
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple
from uuid import UUID

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import QuerySet

from apps.accounts.models import User
from apps.events.models import Event
from apps.settlements.models import Expense, ExpenseShare, Participant

from .access import (
    ensure_authenticated,
    ensure_can_view,
    ensure_organizer,
    ensure_post_paid,
    get_event,
)
from .closing import ensure_open
from .exceptions import NotFoundError, ValidationError
from .money import MAX_AMOUNT_CENTS, from_cents, split_amount, to_cents

logger = logging.getLogger(__name__)


def _normalize_ids(participant_ids: Iterable) -> List[UUID]:
    """Parse ids and drop duplicates, keeping the first occurrence's position."""
    ordered = []
    for raw in participant_ids or []:
        try:
            ordered.append(raw if isinstance(raw, UUID) else UUID(str(raw).strip()))
        except ValueError:
            raise ValidationError(f"Invalid participant id: {raw}")
    return list(dict.fromkeys(ordered))


def _validate_expense(
    event: Event,
    description: str,
    total_amount,
    payer_id,
    participant_ids: Iterable,
) -> Tuple[str, int, Participant, List[Participant]]:
    """
    Validate expense fields against the event's active participants.

    Returns:
        Tuple of (description, total in cents, payer, ordered recipients)
    """
    description = (description or '').strip()
    if not description:
        raise ValidationError("Expense description is required")

    try:
        total_cents = to_cents(total_amount)
    except ValueError:
        raise ValidationError("Expense total must be a valid amount")
    if total_cents <= 0:
        raise ValidationError("Expense total must be greater than zero")
    if total_cents > MAX_AMOUNT_CENTS:
        raise ValidationError(f"Expense total must not exceed {from_cents(MAX_AMOUNT_CENTS)}")

    if not payer_id:
        raise ValidationError("Payer is required")
    ids = _normalize_ids(participant_ids)
    if not ids:
        raise ValidationError("Select at least one participant to split the expense")
    payer_ids = _normalize_ids([payer_id])

    active = {
        p.id: p
        for p in Participant.objects.filter(
            event=event,
            is_active=True,
            id__in=set(ids) | set(payer_ids),
        )
    }

    payer = active.get(payer_ids[0])
    if payer is None:
        raise ValidationError("Payer is not an active participant of this event")

    missing = [str(pid) for pid in ids if pid not in active]
    if missing:
        raise ValidationError(
            f"Not active participants of this event: {', '.join(missing)}"
        )

    return description, total_cents, payer, [active[pid] for pid in ids]


def _create_shares(expense: Expense, recipients: List[Participant], total_cents: int) -> List[ExpenseShare]:
    shares = []
    for position, (participant, cents) in enumerate(split_amount(total_cents, recipients)):
        share = ExpenseShare.objects.create(
            expense=expense,
            participant=participant,
            share_amount=from_cents(cents),
            position=position,
        )
        shares.append(share)
    return shares


@transaction.atomic
def record_expense(
    *,
    event_id: UUID,
    actor: User,
    description: str,
    total_amount: Decimal,
    payer_id: UUID,
    participant_ids: Iterable[UUID],
    idempotency_key: Optional[str] = None
) -> Tuple[Expense, bool]:
    """
    Record an expense and split it among participants.

    The split is cent-exact: with ``C`` cents and ``N`` distinct
    recipients, each gets ``C // N`` cents and the first ``C % N``
    recipients, in the order given, get one more.

    Args:
        event_id: UUID of the event
        actor: User recording the expense (must be the organizer)
        description: Non-empty description
        total_amount: Positive amount
        payer_id: Active participant who paid
        participant_ids: Active participants sharing the expense; order
            decides who absorbs remainder cents, duplicates are ignored
        idempotency_key: Optional key; resubmitting with the same key
            returns the original expense

    Returns:
        Tuple of (expense, created)

    Raises:
        NotFoundError: If the event doesn't exist
        AuthorizationError: If actor is not the organizer
        ValidationError: On invalid fields or inactive/unknown participants
        ClosedLedgerError: If the event is closed
    """
    ensure_authenticated(actor)
    event = get_event(event_id, for_update=True)
    ensure_post_paid(event)
    ensure_organizer(event, actor, "Only the organizer can record expenses")

    idempotency_key = (idempotency_key or '').strip() or None
    if idempotency_key:
        replay = Expense.objects.filter(event=event, idempotency_key=idempotency_key).first()
        if replay is not None:
            return replay, False

    ensure_open(event)

    description, total_cents, payer, recipients = _validate_expense(
        event, description, total_amount, payer_id, participant_ids
    )

    expense = Expense.objects.create(
        event=event,
        payer=payer,
        description=description,
        total_amount=from_cents(total_cents),
        idempotency_key=idempotency_key,
    )
    _create_shares(expense, recipients, total_cents)

    logger.info(
        "Expense %s recorded in event %s: %s split among %d",
        expense.id, event.id, expense.total_amount, len(recipients),
    )
    return expense, True


@transaction.atomic
def edit_expense(
    *,
    event_id: UUID,
    expense_id: UUID,
    actor: User,
    description: str,
    total_amount: Decimal,
    payer_id: UUID,
    participant_ids: Iterable[UUID]
) -> Expense:
    """
    Replace an expense's fields and its whole share set.

    Old shares are deleted and new ones created inside one transaction,
    so readers see either the old or the new split, never a mix.

    Raises:
        NotFoundError: If the event or expense doesn't exist in this event
        AuthorizationError: If actor is not the organizer
        ValidationError: On invalid fields
        ClosedLedgerError: If the event is closed
    """
    ensure_authenticated(actor)
    event = get_event(event_id, for_update=True)
    ensure_post_paid(event)
    ensure_organizer(event, actor, "Only the organizer can edit expenses")

    try:
        expense = Expense.objects.select_for_update().get(id=expense_id, event=event)
    except (Expense.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError("Expense not found in this event")

    ensure_open(event)

    description, total_cents, payer, recipients = _validate_expense(
        event, description, total_amount, payer_id, participant_ids
    )

    expense.description = description
    expense.total_amount = from_cents(total_cents)
    expense.payer = payer
    expense.save(update_fields=['description', 'total_amount', 'payer', 'updated_at'])

    expense.shares.all().delete()
    _create_shares(expense, recipients, total_cents)

    logger.info("Expense %s edited in event %s", expense.id, event.id)
    return expense


def get_expense(expense_id: UUID) -> Expense:
    """Load an expense with payer and shares for serialization."""
    return (
        Expense.objects
        .select_related('payer')
        .prefetch_related('shares__participant')
        .get(id=expense_id)
    )


def list_expenses(*, event_id: UUID, actor: User) -> QuerySet[Expense]:
    """
    All expenses of an event in creation order, with payer and shares.

    Raises:
        NotFoundError: If the event doesn't exist
        AuthorizationError: If actor is neither organizer nor participant
    """
    ensure_authenticated(actor)
    event = get_event(event_id)
    ensure_post_paid(event)
    ensure_can_view(event, actor)

    return (
        Expense.objects
        .filter(event=event)
        .select_related('payer')
        .prefetch_related('shares__participant')
        .order_by('created_at', 'id')
    )
