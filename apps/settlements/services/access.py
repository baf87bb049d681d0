"""
Lookups and authorization checks shared by the settlement services.

The caller and the event are always passed in explicitly; nothing here
reads request or thread-local state.
"""

from typing import Optional
from uuid import UUID

from django.core.exceptions import ValidationError as DjangoValidationError

from apps.accounts.models import User
from apps.events.models import Event
from apps.settlements.models import Participant

from .exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    ValidationError,
)


def ensure_authenticated(actor: Optional[User]) -> User:
    """Return ``actor`` or raise if no authenticated caller was given."""
    if actor is None or not getattr(actor, 'is_authenticated', False):
        raise AuthenticationError("Authentication required")
    return actor


def get_event(event_id: UUID, *, for_update: bool = False) -> Event:
    """
    Load an event, optionally locking its row for the transaction.

    Mutations lock the event so they serialize with closing.

    Raises:
        NotFoundError: If the event doesn't exist
    """
    queryset = Event.objects.all()
    if for_update:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(id=event_id)
    except (Event.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError(f"Event with ID {event_id} not found")


def ensure_post_paid(event: Event) -> None:
    if not event.is_post_paid:
        raise ValidationError("Settlement is only available for post-paid events")


def ensure_organizer(event: Event, actor: User, message: str) -> None:
    if not event.is_organized_by(actor):
        raise AuthorizationError(message)


def get_linked_participant(event: Event, actor: User) -> Optional[Participant]:
    """Return the participant row linked to ``actor`` in ``event``, active or not."""
    return Participant.objects.filter(event=event, user=actor).first()


def ensure_can_view(event: Event, actor: User) -> Optional[Participant]:
    """
    Check read access: the organizer or any participant linked to the caller.

    Returns:
        The caller's participant, or None when the caller is the organizer
        without a participant of their own.

    Raises:
        AuthorizationError: If the caller is neither
    """
    participant = get_linked_participant(event, actor)
    if not event.is_organized_by(actor) and participant is None:
        raise AuthorizationError("You do not have access to this event")
    return participant


def get_participant(event: Event, participant_id: UUID) -> Participant:
    """
    Load a participant that belongs to ``event``.

    Raises:
        NotFoundError: If the participant doesn't exist in this event
    """
    try:
        return Participant.objects.get(id=participant_id, event=event)
    except (Participant.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError("Participant not found in this event")
