import pytest
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.events.models import Event, EventType
from apps.settlements.models import Participant
from apps.settlements.services import add_participant, record_expense


def client_for(user):
    """Return an API client authenticated as ``user``."""
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def organizer(db):
    """Create and return the event organizer."""
    return User.objects.create_user(
        email='organizer@example.com',
        password='TestPass123!',
        display_name='Organizer',
        payment_key='organizer-pix',
    )


@pytest.fixture
def ana_user(db):
    return User.objects.create_user(
        email='ana@example.com',
        password='TestPass123!',
        display_name='Ana',
        payment_key='ana@pix.example',
    )


@pytest.fixture
def bruno_user(db):
    return User.objects.create_user(
        email='bruno@example.com',
        password='TestPass123!',
        display_name='Bruno',
    )


@pytest.fixture
def carla_user(db):
    return User.objects.create_user(
        email='carla@example.com',
        password='TestPass123!',
        display_name='Carla',
    )


@pytest.fixture
def outsider(db):
    """Create and return a user with no relation to the event."""
    return User.objects.create_user(
        email='outsider@example.com',
        password='TestPass123!',
        display_name='Outsider',
    )


@pytest.fixture
def organizer_client(organizer):
    return client_for(organizer)


@pytest.fixture
def ana_client(ana_user):
    return client_for(ana_user)


@pytest.fixture
def carla_client(carla_user):
    return client_for(carla_user)


@pytest.fixture
def outsider_client(outsider):
    return client_for(outsider)


@pytest.fixture
def event(organizer):
    """Create and return an open post-paid event."""
    return Event.objects.create(
        name='Churrasco',
        organizer=organizer,
        event_type=EventType.POST_PAID,
    )


@pytest.fixture
def pre_paid_event(organizer):
    return Event.objects.create(
        name='Show',
        organizer=organizer,
        event_type=EventType.PRE_PAID,
    )


@pytest.fixture
def ana(event, organizer, ana_user):
    """Ana, linked to her account."""
    participant, _ = add_participant(
        event_id=event.id, actor=organizer, linked_user_id=ana_user.id
    )
    return participant


@pytest.fixture
def bruno(event, organizer, bruno_user):
    participant, _ = add_participant(
        event_id=event.id, actor=organizer, linked_user_id=bruno_user.id
    )
    return participant


@pytest.fixture
def carla(event, organizer, carla_user):
    participant, _ = add_participant(
        event_id=event.id, actor=organizer, linked_user_id=carla_user.id
    )
    return participant


@pytest.fixture
def guest(event, organizer):
    """Participant without an account."""
    participant, _ = add_participant(event_id=event.id, actor=organizer, name='Guest')
    return participant


@pytest.fixture
def pizza(event, organizer, ana, bruno, carla):
    """100.00 paid by Ana, split among Ana, Bruno and Carla in that order."""
    expense, _ = record_expense(
        event_id=event.id,
        actor=organizer,
        description='Pizza',
        total_amount=Decimal('100.00'),
        payer_id=ana.id,
        participant_ids=[ana.id, bruno.id, carla.id],
    )
    return expense


def close(event):
    Event.objects.filter(id=event.id).update(is_closed=True)
    event.refresh_from_db()
    return event


def balances_by_id(balances):
    return {b.participant_id: b for b in balances}


def reload(participant):
    return Participant.objects.get(id=participant.id)
