"""
Settlement matcher.

Turns balances and confirmed payments into the transfers one debtor
should make once the event is closed. Allocation is greedy per debtor:
largest creditor first. It always covers the debt when enough credit
exists, but it does not search for the fewest transfers across all
debtors at once.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from django.conf import settings
from django.db.models import Sum

from apps.accounts.models import User
from apps.settlements.models import Payment, PaymentStatus

from .access import (
    ensure_authenticated,
    ensure_post_paid,
    get_event,
    get_linked_participant,
)
from .balance_calculator import ParticipantBalance, compute_balances
from .closing import ensure_closed
from .exceptions import AuthorizationError, NotFoundError
from .money import from_cents, to_cents

logger = logging.getLogger(__name__)


@dataclass
class TransferLine:
    to_participant_id: UUID
    to_name: str
    to_user_id: Optional[UUID]
    payment_key: Optional[str]
    amount: Decimal
    description: str

    @property
    def payment_key_missing(self) -> bool:
        return not self.payment_key


@dataclass
class SettlementPlan:
    event_id: UUID
    participant_id: UUID
    participant_name: str
    total_due: Decimal
    already_paid: Decimal
    remaining_to_pay: Decimal
    transfers: List[TransferLine] = field(default_factory=list)
    currency: str = ''

    @property
    def unallocated(self) -> Decimal:
        """Part of the remaining debt no creditor could absorb."""
        allocated = sum(to_cents(t.amount) for t in self.transfers)
        return from_cents(to_cents(self.remaining_to_pay) - allocated)

    @property
    def missing_payment_key(self) -> List[dict]:
        return [
            {'to_participant_id': t.to_participant_id, 'to_name': t.to_name}
            for t in self.transfers
            if t.payment_key_missing
        ]


def rank_creditors(balances: Sequence[ParticipantBalance]) -> List[ParticipantBalance]:
    """Creditors by balance, largest first; ties keep the input (creation) order."""
    return sorted(
        (b for b in balances if b.balance_cents > 0),
        key=lambda b: -b.balance_cents,
    )


def allocate_transfers(
    remaining_cents: int,
    creditors: Sequence[ParticipantBalance],
) -> List[Tuple[ParticipantBalance, int]]:
    """
    Greedily cover ``remaining_cents`` from the given creditors, in order.

    Returns:
        List of (creditor, cents) pairs; stops once the debt is covered or
        the creditors run out.
    """
    allocations = []
    for creditor in creditors:
        if remaining_cents <= 0:
            break
        available = creditor.balance_cents
        if available <= 0:
            continue
        cents = min(remaining_cents, available)
        allocations.append((creditor, cents))
        remaining_cents -= cents
    return allocations


def _paid_cents(event_id: UUID, participant_id: UUID) -> int:
    total = (
        Payment.objects
        .filter(event_id=event_id, participant_id=participant_id, status=PaymentStatus.PAID)
        .aggregate(total=Sum('amount'))['total']
    )
    return to_cents(total) if total is not None else 0


def _payment_keys(creditors: Sequence[ParticipantBalance]) -> Dict[UUID, str]:
    user_ids = {c.user_id for c in creditors if c.user_id}
    if not user_ids:
        return {}
    return {
        user_id: key
        for user_id, key in User.objects.filter(id__in=user_ids).values_list('id', 'payment_key')
        if key
    }


def build_settlement_plan(*, event_id: UUID, participant_id: UUID, actor: User) -> SettlementPlan:
    """
    Compute who a participant should pay, and how much, after closing.

    ``total_due`` is the participant's debt (``max(0, -balance)``),
    ``already_paid`` the sum of their PAID payments, and
    ``remaining_to_pay`` what is left; the transfers cover it.

    Args:
        event_id: UUID of the event
        participant_id: Debtor whose plan is requested
        actor: Organizer, or the user linked to ``participant_id``

    Raises:
        NotFoundError: If the event doesn't exist or the participant is
            not active in it
        ValidationError: If the event is not post-paid or not closed yet
        AuthorizationError: If actor may not see this participant's plan
    """
    ensure_authenticated(actor)
    event = get_event(event_id)
    ensure_post_paid(event)
    ensure_closed(event)

    if not event.is_organized_by(actor):
        own = get_linked_participant(event, actor)
        if own is None:
            raise AuthorizationError("You do not have access to this event")
        if str(own.id) != str(participant_id):
            raise AuthorizationError("You can only see your own settlement plan")

    balances = compute_balances(event_id=event.id)
    debtor = next((b for b in balances if str(b.participant_id) == str(participant_id)), None)
    if debtor is None:
        raise NotFoundError("Participant not found in this settlement")

    debt_cents = max(0, -debtor.balance_cents)
    paid_cents = _paid_cents(event.id, debtor.participant_id)
    remaining_cents = max(0, debt_cents - paid_cents)

    creditors = rank_creditors(balances)
    keys = _payment_keys(creditors)
    description = settings.SETTLEMENT_TRANSFER_DESCRIPTION.format(event=event.name)

    transfers = [
        TransferLine(
            to_participant_id=creditor.participant_id,
            to_name=creditor.name,
            to_user_id=creditor.user_id,
            payment_key=keys.get(creditor.user_id),
            amount=from_cents(cents),
            description=description,
        )
        for creditor, cents in allocate_transfers(remaining_cents, creditors)
    ]

    logger.debug(
        "Settlement plan for %s in event %s: %d transfer(s)",
        debtor.participant_id, event.id, len(transfers),
    )
    return SettlementPlan(
        event_id=event.id,
        participant_id=debtor.participant_id,
        participant_name=debtor.name,
        total_due=from_cents(debt_cents),
        already_paid=from_cents(paid_cents),
        remaining_to_pay=from_cents(remaining_cents),
        transfers=transfers,
        currency=settings.SETTLEMENT_CURRENCY,
    )
