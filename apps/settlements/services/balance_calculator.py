"""
Balance calculator.

Derives paid/owed/balance for every active participant, always from the
committed ledger (no caching).

Rules:
    - Inactive participants are left out of the result.
    - An expense whose payer is inactive is ignored entirely: neither the
      payer's outlay nor anyone's share of it counts.
    - Otherwise the payer is credited only with the shares of active
      recipients, and each active recipient is charged their share.

With every payer active the balances sum to zero. Expenses skipped
because their payer left skew that sum by design.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from django.conf import settings

from apps.accounts.models import User
from apps.settlements.models import ExpenseShare, Participant

from .access import ensure_authenticated, ensure_can_view, ensure_post_paid, get_event
from .money import from_cents, to_cents


@dataclass
class ParticipantBalance:
    participant_id: UUID
    name: str
    user_id: Optional[UUID]
    total_paid_cents: int = 0
    total_share_cents: int = 0

    @property
    def balance_cents(self) -> int:
        return self.total_paid_cents - self.total_share_cents

    @property
    def total_paid(self) -> Decimal:
        return from_cents(self.total_paid_cents)

    @property
    def total_share(self) -> Decimal:
        return from_cents(self.total_share_cents)

    @property
    def balance(self) -> Decimal:
        return from_cents(self.balance_cents)


def compute_balances(*, event_id: UUID) -> List[ParticipantBalance]:
    """
    Compute balances for the active participants of an event.

    Args:
        event_id: UUID of the event

    Returns:
        One ParticipantBalance per active participant, in creation order.
        Positive balance means the participant is owed money.
    """
    participants = (
        Participant.objects
        .filter(event_id=event_id, is_active=True)
        .order_by('created_at', 'id')
    )
    by_id: Dict[UUID, ParticipantBalance] = {
        p.id: ParticipantBalance(participant_id=p.id, name=p.name, user_id=p.user_id)
        for p in participants
    }
    if not by_id:
        return []

    shares = (
        ExpenseShare.objects
        .filter(expense__event_id=event_id, participant_id__in=list(by_id))
        .values_list('expense__payer_id', 'participant_id', 'share_amount')
    )
    for payer_id, participant_id, share_amount in shares:
        payer = by_id.get(payer_id)
        if payer is None:
            # Payer left the settlement: the whole expense drops out.
            continue
        cents = to_cents(share_amount)
        payer.total_paid_cents += cents
        by_id[participant_id].total_share_cents += cents

    return list(by_id.values())


def get_event_balances(*, event_id: UUID, actor: User) -> dict:
    """
    Balances of an event for display, with access control.

    Returns:
        dict containing:
            - event_id (UUID)
            - participants (list[dict]): ``id`` and ``name`` of active participants
            - balances (list[ParticipantBalance])
            - current_participant_id (UUID | None): caller's participant
            - currency (str): display currency of the amounts

    Raises:
        NotFoundError: If the event doesn't exist
        AuthorizationError: If actor is neither organizer nor participant
    """
    ensure_authenticated(actor)
    event = get_event(event_id)
    ensure_post_paid(event)
    own = ensure_can_view(event, actor)

    balances = compute_balances(event_id=event.id)
    current = own.id if own is not None and own.is_active else None

    return {
        'event_id': event.id,
        'participants': [{'id': b.participant_id, 'name': b.name} for b in balances],
        'balances': balances,
        'current_participant_id': current,
        'currency': settings.SETTLEMENT_CURRENCY,
    }
