"""
Closing state machine for post-paid events.

States are ``OPEN`` (``is_closed=False``) and ``CLOSED``. The only
transition is OPEN -> CLOSED; there is no reopen. Every ledger mutation
checks :func:`ensure_open`, and settlement plans require
:func:`ensure_closed`.
"""

import logging
from uuid import UUID

from django.db import transaction

from apps.accounts.models import User
from apps.events.models import Event

from .access import ensure_authenticated, ensure_organizer, ensure_post_paid, get_event
from .exceptions import ClosedLedgerError, ValidationError

logger = logging.getLogger(__name__)


def ensure_open(event: Event) -> None:
    """Raise ClosedLedgerError if the event no longer accepts mutations."""
    if event.is_closed:
        raise ClosedLedgerError(
            "This event is closed; participants and expenses can no longer be changed"
        )


def ensure_closed(event: Event) -> None:
    """Raise ValidationError if settlement is requested before closing."""
    if not event.is_closed:
        raise ValidationError("Settlement unavailable before closing the event")


@transaction.atomic
def close_event(*, event_id: UUID, actor: User) -> Event:
    """
    Close a post-paid event, freezing its ledger.

    Closing an already closed event is a no-op that returns the current
    state.

    Args:
        event_id: UUID of the event
        actor: User closing the event (must be the organizer)

    Returns:
        The event, with ``is_closed=True``

    Raises:
        AuthenticationError: If no caller is given
        NotFoundError: If the event doesn't exist
        ValidationError: If the event is not post-paid
        AuthorizationError: If actor is not the organizer
    """
    ensure_authenticated(actor)
    event = get_event(event_id, for_update=True)
    ensure_post_paid(event)
    ensure_organizer(event, actor, "Only the organizer can close this event")

    if event.is_closed:
        return event

    event.is_closed = True
    event.save(update_fields=['is_closed', 'updated_at'])
    logger.info("Event %s closed by %s", event.id, actor.id)
    return event
