"""
Participant registry.

Owns participant identity and activation state. Participants are never
deleted; deactivation keeps the row so historical shares stay valid.
"""

import logging
from typing import Optional, Tuple
from uuid import UUID

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import QuerySet

from apps.accounts.models import User
from apps.settlements.models import Participant

from .access import (
    ensure_authenticated,
    ensure_can_view,
    ensure_organizer,
    ensure_post_paid,
    get_event,
    get_participant,
)
from .closing import ensure_open
from .exceptions import AuthorizationError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def _resolve_user(linked_user_id, linked_user_email: str) -> Optional[User]:
    if linked_user_id:
        try:
            return User.objects.get(id=linked_user_id)
        except (User.DoesNotExist, DjangoValidationError, ValueError):
            raise ValidationError("Linked user not found")
    if linked_user_email:
        try:
            return User.objects.get(email__iexact=linked_user_email.strip())
        except User.DoesNotExist:
            raise ValidationError("Linked user not found")
    return None


@transaction.atomic
def add_participant(
    *,
    event_id: UUID,
    actor: User,
    name: str = '',
    linked_user_id: Optional[UUID] = None,
    linked_user_email: str = ''
) -> Tuple[Participant, bool]:
    """
    Add a participant to a post-paid event.

    At most one participant exists per (event, linked user). Adding a
    user who already has a participant returns that participant,
    reactivating it if it had been deactivated.

    Args:
        event_id: UUID of the event
        actor: User performing the operation
        name: Display name; defaults to the linked user's display name
        linked_user_id: Optional user to link, by id
        linked_user_email: Optional user to link, by email (used when no id)

    Returns:
        Tuple of (participant, created)

    Raises:
        ValidationError: If neither a name nor a user is given, the user
            doesn't exist, or the event is not post-paid
        NotFoundError: If the event doesn't exist
        ClosedLedgerError: If the event is closed
        AuthorizationError: If actor is neither the organizer nor the linked user
    """
    ensure_authenticated(actor)
    name = (name or '').strip()
    linked_user_email = (linked_user_email or '').strip()

    if not name and not linked_user_id and not linked_user_email:
        raise ValidationError("Provide a name or an existing user for the participant")

    event = get_event(event_id, for_update=True)
    ensure_post_paid(event)
    ensure_open(event)

    user = _resolve_user(linked_user_id, linked_user_email)

    if not event.is_organized_by(actor) and (user is None or user.id != actor.id):
        raise AuthorizationError("Only the organizer can add other participants")

    if user is not None:
        existing = (
            Participant.objects
            .select_for_update()
            .filter(event=event, user=user)
            .first()
        )
        if existing is not None:
            if not existing.is_active:
                existing.is_active = True
                existing.save(update_fields=['is_active', 'updated_at'])
                logger.info("Participant %s reactivated in event %s", existing.id, event.id)
            return existing, False

    participant = Participant.objects.create(
        event=event,
        user=user,
        name=name or user.get_display_name(),
        is_active=True,
    )
    logger.info("Participant %s added to event %s", participant.id, event.id)
    return participant, True


@transaction.atomic
def deactivate_participant(*, event_id: UUID, participant_id: UUID, actor: User) -> Participant:
    """
    Remove a participant from the settlement by clearing ``is_active``.

    Their shares stay recorded but are excluded from balances, as is
    every expense they paid.

    Raises:
        NotFoundError: If the event or participant doesn't exist
        AuthorizationError: If actor is not the organizer
        ClosedLedgerError: If the event is closed
    """
    ensure_authenticated(actor)
    event = get_event(event_id, for_update=True)
    ensure_post_paid(event)
    ensure_organizer(event, actor, "Only the organizer can remove participants")
    ensure_open(event)

    participant = get_participant(event, participant_id)
    if participant.is_active:
        participant.is_active = False
        participant.save(update_fields=['is_active', 'updated_at'])
        logger.info("Participant %s deactivated in event %s", participant.id, event.id)
    return participant


def list_participants(*, event_id: UUID, actor: User) -> QuerySet[Participant]:
    """
    Active participants of an event, in creation order.

    Raises:
        NotFoundError: If the event doesn't exist
        AuthorizationError: If actor is neither organizer nor participant
    """
    ensure_authenticated(actor)
    event = get_event(event_id)
    ensure_post_paid(event)
    ensure_can_view(event, actor)

    return (
        Participant.objects
        .filter(event=event, is_active=True)
        .order_by('created_at', 'id')
    )


@transaction.atomic
def claim_participant(*, participant_id: UUID, actor: User) -> Tuple[Participant, bool]:
    """
    Link an unlinked participant to the caller's account (invite acceptance).

    Returns:
        Tuple of (participant, already_linked)

    Raises:
        NotFoundError: If the participant doesn't exist
        ValidationError: If it is linked to another user, or the caller
            already has a participant in the event
        ClosedLedgerError: If the event is closed
    """
    ensure_authenticated(actor)
    try:
        event_id = Participant.objects.values_list('event_id', flat=True).get(id=participant_id)
    except (Participant.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError("Participant not found for this invite")

    # Event first, then participant: same lock order as the other mutations.
    event = get_event(event_id, for_update=True)
    participant = Participant.objects.select_for_update().get(id=participant_id)

    if participant.user_id == actor.id:
        return participant, True

    if participant.user_id is not None:
        raise ValidationError("This invite is already linked to another account")

    ensure_open(event)

    if Participant.objects.filter(event=event, user=actor).exists():
        raise ValidationError("You already take part in this event")

    participant.user = actor
    participant.save(update_fields=['user', 'updated_at'])
    logger.info("Participant %s linked to user %s", participant.id, actor.id)
    return participant, False
