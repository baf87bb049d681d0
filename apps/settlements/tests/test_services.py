import uuid
import pytest
from decimal import Decimal
from django.contrib.auth.models import AnonymousUser
from apps.events.models import Event
from apps.settlements.models import Expense, ExpenseShare, Participant, Payment, PaymentStatus
from apps.settlements.services import (
    add_participant,
    deactivate_participant,
    list_participants,
    claim_participant,
    record_expense,
    edit_expense,
    list_expenses,
    compute_balances,
    get_event_balances,
    build_settlement_plan,
    close_event,
    record_payment,
    confirm_payment,
    get_payment_totals,
    AuthenticationError,
    AuthorizationError,
    ClosedLedgerError,
    NotFoundError,
    ValidationError,
)
from .conftest import balances_by_id, close, reload


# =============================================================================
# Participant Registry
# =============================================================================

@pytest.mark.django_db
class TestAddParticipant:

    def test_add_named_participant(self, event, organizer):
        participant, created = add_participant(event_id=event.id, actor=organizer, name='  Dani  ')

        assert created is True
        assert participant.name == 'Dani'
        assert participant.user is None
        assert participant.is_active is True

    def test_linked_participant_defaults_to_display_name(self, event, organizer, ana_user):
        participant, created = add_participant(
            event_id=event.id, actor=organizer, linked_user_id=ana_user.id
        )

        assert created is True
        assert participant.name == 'Ana'
        assert participant.user == ana_user

    def test_link_by_email(self, event, organizer, bruno_user):
        participant, _ = add_participant(
            event_id=event.id, actor=organizer, linked_user_email='BRUNO@example.com'
        )

        assert participant.user == bruno_user

    def test_same_user_added_twice_returns_existing(self, event, organizer, ana):
        participant, created = add_participant(
            event_id=event.id, actor=organizer, linked_user_id=ana.user_id
        )

        assert created is False
        assert participant.id == ana.id
        assert Participant.objects.filter(event=event, user_id=ana.user_id).count() == 1

    def test_readding_inactive_user_reactivates(self, event, organizer, ana):
        deactivate_participant(event_id=event.id, participant_id=ana.id, actor=organizer)

        participant, created = add_participant(
            event_id=event.id, actor=organizer, linked_user_id=ana.user_id
        )

        assert created is False
        assert participant.id == ana.id
        assert reload(ana).is_active is True

    def test_user_can_join_themselves(self, event, outsider):
        participant, created = add_participant(
            event_id=event.id, actor=outsider, linked_user_id=outsider.id
        )

        assert created is True
        assert participant.user == outsider

    def test_non_organizer_cannot_add_others(self, event, outsider):
        with pytest.raises(AuthorizationError):
            add_participant(event_id=event.id, actor=outsider, name='Someone')

    def test_empty_input_rejected(self, event, organizer):
        with pytest.raises(ValidationError):
            add_participant(event_id=event.id, actor=organizer, name='   ')

    def test_unknown_user_rejected(self, event, organizer):
        with pytest.raises(ValidationError):
            add_participant(event_id=event.id, actor=organizer, linked_user_id=uuid.uuid4())

    def test_unknown_event(self, organizer):
        with pytest.raises(NotFoundError):
            add_participant(event_id=uuid.uuid4(), actor=organizer, name='Dani')

    def test_pre_paid_event_rejected(self, pre_paid_event, organizer):
        with pytest.raises(ValidationError):
            add_participant(event_id=pre_paid_event.id, actor=organizer, name='Dani')

    def test_closed_event_rejected(self, event, organizer):
        close(event)

        with pytest.raises(ClosedLedgerError):
            add_participant(event_id=event.id, actor=organizer, name='Dani')

    def test_anonymous_caller_rejected(self, event):
        with pytest.raises(AuthenticationError):
            add_participant(event_id=event.id, actor=AnonymousUser(), name='Dani')

        with pytest.raises(AuthenticationError):
            add_participant(event_id=event.id, actor=None, name='Dani')


@pytest.mark.django_db
class TestDeactivateParticipant:

    def test_deactivate_keeps_row_and_shares(self, event, organizer, bruno, pizza):
        deactivate_participant(event_id=event.id, participant_id=bruno.id, actor=organizer)

        assert reload(bruno).is_active is False
        assert ExpenseShare.objects.filter(participant=bruno).count() == 1

    def test_deactivate_twice_is_noop(self, event, organizer, bruno):
        deactivate_participant(event_id=event.id, participant_id=bruno.id, actor=organizer)
        participant = deactivate_participant(event_id=event.id, participant_id=bruno.id, actor=organizer)

        assert participant.is_active is False

    def test_only_organizer_can_deactivate(self, event, ana_user, bruno, ana):
        with pytest.raises(AuthorizationError):
            deactivate_participant(event_id=event.id, participant_id=bruno.id, actor=ana_user)

    def test_participant_from_other_event(self, event, organizer, ana):
        other = Event.objects.create(name='Other', organizer=organizer)

        with pytest.raises(NotFoundError):
            deactivate_participant(event_id=other.id, participant_id=ana.id, actor=organizer)

    def test_closed_event_rejected(self, event, organizer, bruno):
        close(event)

        with pytest.raises(ClosedLedgerError):
            deactivate_participant(event_id=event.id, participant_id=bruno.id, actor=organizer)


@pytest.mark.django_db
class TestListParticipants:

    def test_lists_active_only(self, event, organizer, ana, bruno, carla):
        deactivate_participant(event_id=event.id, participant_id=bruno.id, actor=organizer)

        ids = {p.id for p in list_participants(event_id=event.id, actor=organizer)}

        assert ids == {ana.id, carla.id}

    def test_participant_can_list(self, event, ana_user, ana, bruno):
        assert len(list_participants(event_id=event.id, actor=ana_user)) == 2

    def test_outsider_cannot_list(self, event, outsider, ana):
        with pytest.raises(AuthorizationError):
            list_participants(event_id=event.id, actor=outsider)


@pytest.mark.django_db
class TestClaimParticipant:

    def test_claim_links_user(self, guest, outsider):
        participant, already_linked = claim_participant(participant_id=guest.id, actor=outsider)

        assert already_linked is False
        assert participant.user == outsider

    def test_claim_own_participant_is_noop(self, ana, ana_user):
        participant, already_linked = claim_participant(participant_id=ana.id, actor=ana_user)

        assert already_linked is True
        assert participant.id == ana.id

    def test_claim_linked_to_someone_else(self, ana, outsider):
        with pytest.raises(ValidationError):
            claim_participant(participant_id=ana.id, actor=outsider)

    def test_claim_when_already_in_event(self, guest, ana, ana_user):
        with pytest.raises(ValidationError):
            claim_participant(participant_id=guest.id, actor=ana_user)

    def test_claim_on_closed_event(self, event, guest, outsider):
        close(event)

        with pytest.raises(ClosedLedgerError):
            claim_participant(participant_id=guest.id, actor=outsider)

    def test_claim_unknown_participant(self, outsider):
        with pytest.raises(NotFoundError):
            claim_participant(participant_id=uuid.uuid4(), actor=outsider)


# =============================================================================
# Expense Ledger
# =============================================================================

@pytest.mark.django_db
class TestRecordExpense:

    def test_pizza_shares(self, pizza, ana, bruno, carla):
        shares = {s.participant_id: s.share_amount for s in pizza.shares.all()}

        assert pizza.total_amount == Decimal('100.00')
        assert shares == {
            ana.id: Decimal('33.34'),
            bruno.id: Decimal('33.33'),
            carla.id: Decimal('33.33'),
        }

    def test_remainder_follows_given_order(self, event, organizer, ana, bruno, carla):
        expense, _ = record_expense(
            event_id=event.id,
            actor=organizer,
            description='Ice',
            total_amount=Decimal('0.05'),
            payer_id=ana.id,
            participant_ids=[carla.id, bruno.id, ana.id],
        )

        shares = [(s.participant_id, s.share_amount) for s in expense.shares.order_by('position')]
        assert shares == [
            (carla.id, Decimal('0.02')),
            (bruno.id, Decimal('0.02')),
            (ana.id, Decimal('0.01')),
        ]

    def test_duplicate_ids_keep_first_position(self, event, organizer, ana, bruno):
        expense, _ = record_expense(
            event_id=event.id,
            actor=organizer,
            description='Bread',
            total_amount=Decimal('10.01'),
            payer_id=bruno.id,
            participant_ids=[bruno.id, ana.id, bruno.id],
        )

        shares = [(s.participant_id, s.share_amount) for s in expense.shares.order_by('position')]
        assert shares == [(bruno.id, Decimal('5.01')), (ana.id, Decimal('5.00'))]

    def test_amount_is_rounded_to_cents(self, event, organizer, ana):
        expense, _ = record_expense(
            event_id=event.id,
            actor=organizer,
            description='Gum',
            total_amount='1.005',
            payer_id=ana.id,
            participant_ids=[ana.id],
        )

        assert expense.total_amount == Decimal('1.01')

    @pytest.mark.parametrize('field, value', [
        ('description', '   '),
        ('total_amount', Decimal('0')),
        ('total_amount', Decimal('-5.00')),
        ('total_amount', 'abc'),
        ('participant_ids', []),
    ])
    def test_invalid_fields(self, event, organizer, ana, field, value):
        data = {
            'description': 'Snacks',
            'total_amount': Decimal('10.00'),
            'payer_id': ana.id,
            'participant_ids': [ana.id],
        }
        data[field] = value

        with pytest.raises(ValidationError):
            record_expense(event_id=event.id, actor=organizer, **data)

        assert not Expense.objects.exists()

    @pytest.mark.parametrize('total', ['10000000000.00', '1e30'])
    def test_total_beyond_column_limit_rejected(self, event, organizer, ana, total):
        with pytest.raises(ValidationError):
            record_expense(
                event_id=event.id,
                actor=organizer,
                description='Yacht',
                total_amount=total,
                payer_id=ana.id,
                participant_ids=[ana.id],
            )

        assert not Expense.objects.exists()

    def test_largest_storable_total_accepted(self, event, organizer, ana):
        expense, created = record_expense(
            event_id=event.id,
            actor=organizer,
            description='Stadium',
            total_amount=Decimal('9999999999.99'),
            payer_id=ana.id,
            participant_ids=[ana.id],
        )

        assert created is True
        assert expense.total_amount == Decimal('9999999999.99')

    def test_inactive_recipient_rejected(self, event, organizer, ana, bruno):
        deactivate_participant(event_id=event.id, participant_id=bruno.id, actor=organizer)

        with pytest.raises(ValidationError):
            record_expense(
                event_id=event.id,
                actor=organizer,
                description='Snacks',
                total_amount=Decimal('10.00'),
                payer_id=ana.id,
                participant_ids=[ana.id, bruno.id],
            )

    def test_payer_from_other_event_rejected(self, event, organizer, ana):
        other = Event.objects.create(name='Other', organizer=organizer)
        stranger, _ = add_participant(event_id=other.id, actor=organizer, name='Stranger')

        with pytest.raises(ValidationError):
            record_expense(
                event_id=event.id,
                actor=organizer,
                description='Snacks',
                total_amount=Decimal('10.00'),
                payer_id=stranger.id,
                participant_ids=[ana.id],
            )

    def test_only_organizer_can_record(self, event, ana_user, ana):
        with pytest.raises(AuthorizationError):
            record_expense(
                event_id=event.id,
                actor=ana_user,
                description='Snacks',
                total_amount=Decimal('10.00'),
                payer_id=ana.id,
                participant_ids=[ana.id],
            )

    def test_closed_event_rejected(self, event, organizer, ana):
        close(event)

        with pytest.raises(ClosedLedgerError):
            record_expense(
                event_id=event.id,
                actor=organizer,
                description='Snacks',
                total_amount=Decimal('10.00'),
                payer_id=ana.id,
                participant_ids=[ana.id],
            )

    def test_idempotency_key_replays_original(self, event, organizer, ana, bruno):
        data = {
            'description': 'Beer',
            'total_amount': Decimal('30.00'),
            'payer_id': ana.id,
            'participant_ids': [ana.id, bruno.id],
        }
        first, created = record_expense(
            event_id=event.id, actor=organizer, idempotency_key='retry-1', **data
        )
        second, replayed = record_expense(
            event_id=event.id, actor=organizer, idempotency_key='retry-1', **data
        )

        assert created is True
        assert replayed is False
        assert second.id == first.id
        assert Expense.objects.filter(event=event).count() == 1

    def test_without_key_duplicates_are_recorded(self, event, organizer, ana):
        data = {
            'description': 'Beer',
            'total_amount': Decimal('30.00'),
            'payer_id': ana.id,
            'participant_ids': [ana.id],
        }
        record_expense(event_id=event.id, actor=organizer, **data)
        record_expense(event_id=event.id, actor=organizer, **data)

        assert Expense.objects.filter(event=event).count() == 2


@pytest.mark.django_db
class TestEditExpense:

    def test_edit_replaces_shares(self, event, organizer, pizza, ana, bruno, carla):
        expense = edit_expense(
            event_id=event.id,
            expense_id=pizza.id,
            actor=organizer,
            description='Pizza (large)',
            total_amount=Decimal('50.00'),
            payer_id=carla.id,
            participant_ids=[bruno.id, carla.id],
        )

        expense.refresh_from_db()
        shares = {s.participant_id: s.share_amount for s in expense.shares.all()}
        assert expense.description == 'Pizza (large)'
        assert expense.payer_id == carla.id
        assert shares == {bruno.id: Decimal('25.00'), carla.id: Decimal('25.00')}
        assert not ExpenseShare.objects.filter(participant=ana).exists()

    def test_invalid_edit_keeps_old_shares(self, event, organizer, pizza, ana):
        with pytest.raises(ValidationError):
            edit_expense(
                event_id=event.id,
                expense_id=pizza.id,
                actor=organizer,
                description='Pizza',
                total_amount=Decimal('100.00'),
                payer_id=ana.id,
                participant_ids=[],
            )

        assert pizza.shares.count() == 3

    def test_unknown_expense(self, event, organizer, ana):
        with pytest.raises(NotFoundError):
            edit_expense(
                event_id=event.id,
                expense_id=uuid.uuid4(),
                actor=organizer,
                description='Pizza',
                total_amount=Decimal('10.00'),
                payer_id=ana.id,
                participant_ids=[ana.id],
            )

    def test_closed_event_rejected(self, event, organizer, pizza, ana):
        close(event)

        with pytest.raises(ClosedLedgerError):
            edit_expense(
                event_id=event.id,
                expense_id=pizza.id,
                actor=organizer,
                description='Pizza',
                total_amount=Decimal('10.00'),
                payer_id=ana.id,
                participant_ids=[ana.id],
            )


@pytest.mark.django_db
class TestListExpenses:

    def test_participant_sees_expenses(self, event, carla_user, pizza):
        expenses = list(list_expenses(event_id=event.id, actor=carla_user))

        assert [e.id for e in expenses] == [pizza.id]

    def test_outsider_rejected(self, event, outsider, pizza):
        with pytest.raises(AuthorizationError):
            list_expenses(event_id=event.id, actor=outsider)


# =============================================================================
# Balances
# =============================================================================

@pytest.mark.django_db
class TestComputeBalances:

    def test_pizza_balances(self, event, pizza, ana, bruno, carla):
        balances = balances_by_id(compute_balances(event_id=event.id))

        assert balances[ana.id].total_paid == Decimal('100.00')
        assert balances[ana.id].total_share == Decimal('33.34')
        assert balances[ana.id].balance == Decimal('66.66')
        assert balances[bruno.id].balance == Decimal('-33.33')
        assert balances[carla.id].balance == Decimal('-33.33')
        assert sum(b.balance_cents for b in balances.values()) == 0

    def test_deactivated_recipient_is_excluded(self, event, organizer, pizza, ana, bruno, carla):
        deactivate_participant(event_id=event.id, participant_id=bruno.id, actor=organizer)

        balances = balances_by_id(compute_balances(event_id=event.id))

        assert bruno.id not in balances
        assert balances[ana.id].total_paid == Decimal('66.67')
        assert balances[ana.id].total_share == Decimal('33.34')
        assert balances[ana.id].balance == Decimal('33.33')
        assert balances[carla.id].balance == Decimal('-33.33')
        assert sum(b.balance_cents for b in balances.values()) == 0

    def test_expense_of_inactive_payer_is_ignored(self, event, organizer, pizza, ana, bruno, carla):
        record_expense(
            event_id=event.id,
            actor=organizer,
            description='Drinks',
            total_amount=Decimal('20.00'),
            payer_id=bruno.id,
            participant_ids=[ana.id, carla.id],
        )
        deactivate_participant(event_id=event.id, participant_id=bruno.id, actor=organizer)

        balances = balances_by_id(compute_balances(event_id=event.id))

        assert balances[ana.id].total_share == Decimal('33.34')
        assert balances[carla.id].total_share == Decimal('33.33')

    def test_no_participants(self, event):
        assert compute_balances(event_id=event.id) == []

    def test_idempotent(self, event, pizza):
        first = compute_balances(event_id=event.id)
        second = compute_balances(event_id=event.id)

        assert first == second

    def test_sum_is_zero_across_many_expenses(self, event, organizer, ana, bruno, carla, guest):
        people = [ana, bruno, carla, guest]
        for i, total in enumerate(['0.01', '13.37', '250.00', '7.77', '99.99', '1000.03']):
            record_expense(
                event_id=event.id,
                actor=organizer,
                description=f'Expense {i}',
                total_amount=Decimal(total),
                payer_id=people[i % 4].id,
                participant_ids=[p.id for p in people[i % 3:]],
            )

        balances = compute_balances(event_id=event.id)

        assert sum(b.balance_cents for b in balances) == 0


@pytest.mark.django_db
class TestGetEventBalances:

    def test_marks_current_participant(self, event, carla_user, pizza, carla, settings):
        settings.SETTLEMENT_CURRENCY = 'BRL'
        summary = get_event_balances(event_id=event.id, actor=carla_user)

        assert summary['current_participant_id'] == carla.id
        assert summary['currency'] == 'BRL'
        assert len(summary['participants']) == 3

    def test_organizer_without_participant(self, event, organizer, pizza):
        summary = get_event_balances(event_id=event.id, actor=organizer)

        assert summary['current_participant_id'] is None

    def test_outsider_rejected(self, event, outsider, pizza):
        with pytest.raises(AuthorizationError):
            get_event_balances(event_id=event.id, actor=outsider)


# =============================================================================
# Closing
# =============================================================================

@pytest.mark.django_db
class TestCloseEvent:

    def test_close_then_add_fails_and_close_is_idempotent(self, event, organizer, pizza):
        closed = close_event(event_id=event.id, actor=organizer)
        assert closed.is_closed is True

        with pytest.raises(ClosedLedgerError):
            add_participant(event_id=event.id, actor=organizer, name='Late')

        again = close_event(event_id=event.id, actor=organizer)
        assert again.is_closed is True

    def test_close_is_logged(self, event, organizer, caplog):
        with caplog.at_level('INFO', logger='apps.settlements'):
            close_event(event_id=event.id, actor=organizer)

        assert f"Event {event.id} closed" in caplog.text

    def test_only_organizer_can_close(self, event, ana_user, ana):
        with pytest.raises(AuthorizationError):
            close_event(event_id=event.id, actor=ana_user)

        event.refresh_from_db()
        assert event.is_closed is False

    def test_pre_paid_event_cannot_close(self, pre_paid_event, organizer):
        with pytest.raises(ValidationError):
            close_event(event_id=pre_paid_event.id, actor=organizer)


# =============================================================================
# Settlement Plan
# =============================================================================

@pytest.fixture
def two_creditors(event, organizer):
    """Debtor owes 50.00; creditors are owed 30.00 and 20.00."""
    debtor, _ = add_participant(event_id=event.id, actor=organizer, name='Debtor')
    first, _ = add_participant(event_id=event.id, actor=organizer, name='Creditor A')
    second, _ = add_participant(event_id=event.id, actor=organizer, name='Creditor B')
    for payer, total in ((first, '30.00'), (second, '20.00')):
        record_expense(
            event_id=event.id,
            actor=organizer,
            description=f'Paid by {payer.name}',
            total_amount=Decimal(total),
            payer_id=payer.id,
            participant_ids=[debtor.id],
        )
    close_event(event_id=event.id, actor=organizer)
    return debtor, first, second


@pytest.mark.django_db
class TestBuildSettlementPlan:

    def test_two_creditors_largest_first(self, event, organizer, two_creditors):
        debtor, first, second = two_creditors

        plan = build_settlement_plan(event_id=event.id, participant_id=debtor.id, actor=organizer)

        assert plan.total_due == Decimal('50.00')
        assert plan.already_paid == Decimal('0.00')
        assert plan.remaining_to_pay == Decimal('50.00')
        assert [(t.to_participant_id, t.amount) for t in plan.transfers] == [
            (first.id, Decimal('30.00')),
            (second.id, Decimal('20.00')),
        ]
        assert plan.unallocated == Decimal('0.00')
        assert plan.transfers[0].description == 'Settlement • Churrasco'

    def test_equal_creditors_follow_creation_order(self, event, organizer):
        debtor, _ = add_participant(event_id=event.id, actor=organizer, name='Debtor')
        first, _ = add_participant(event_id=event.id, actor=organizer, name='Creditor A')
        second, _ = add_participant(event_id=event.id, actor=organizer, name='Creditor B')
        # The later participant records first.
        for payer in (second, first):
            record_expense(
                event_id=event.id,
                actor=organizer,
                description=f'Paid by {payer.name}',
                total_amount=Decimal('10.00'),
                payer_id=payer.id,
                participant_ids=[debtor.id],
            )
        close_event(event_id=event.id, actor=organizer)

        plan = build_settlement_plan(event_id=event.id, participant_id=debtor.id, actor=organizer)

        assert [(t.to_name, t.amount) for t in plan.transfers] == [
            ('Creditor A', Decimal('10.00')),
            ('Creditor B', Decimal('10.00')),
        ]

    def test_plan_carries_currency(self, event, organizer, two_creditors, settings):
        settings.SETTLEMENT_CURRENCY = 'EUR'
        debtor, _, _ = two_creditors

        plan = build_settlement_plan(event_id=event.id, participant_id=debtor.id, actor=organizer)

        assert plan.currency == 'EUR'

    def test_open_event_has_no_plan(self, event, organizer, pizza, bruno):
        with pytest.raises(ValidationError):
            build_settlement_plan(event_id=event.id, participant_id=bruno.id, actor=organizer)

    def test_creditor_has_nothing_to_pay(self, event, organizer, pizza, ana):
        close(event)

        plan = build_settlement_plan(event_id=event.id, participant_id=ana.id, actor=organizer)

        assert plan.total_due == Decimal('0.00')
        assert plan.transfers == []

    def test_payment_key_of_linked_creditor(self, event, organizer, pizza, bruno, ana):
        close(event)

        plan = build_settlement_plan(event_id=event.id, participant_id=bruno.id, actor=organizer)

        assert len(plan.transfers) == 1
        transfer = plan.transfers[0]
        assert transfer.to_participant_id == ana.id
        assert transfer.payment_key == 'ana@pix.example'
        assert transfer.payment_key_missing is False
        assert transfer.amount == Decimal('33.33')

    def test_missing_payment_key_is_flagged(self, event, two_creditors, organizer):
        debtor, first, second = two_creditors

        plan = build_settlement_plan(event_id=event.id, participant_id=debtor.id, actor=organizer)

        assert all(t.payment_key_missing for t in plan.transfers)
        assert [m['to_participant_id'] for m in plan.missing_payment_key] == [first.id, second.id]

    def test_paid_payments_reduce_remaining(self, event, organizer, two_creditors):
        debtor, first, _ = two_creditors
        payment = record_payment(
            event_id=event.id, participant_id=debtor.id, actor=organizer, amount=Decimal('35.00')
        )
        confirm_payment(event_id=event.id, payment_id=payment.id, actor=organizer)
        record_payment(
            event_id=event.id, participant_id=debtor.id, actor=organizer, amount=Decimal('15.00')
        )

        plan = build_settlement_plan(event_id=event.id, participant_id=debtor.id, actor=organizer)

        assert plan.already_paid == Decimal('35.00')
        assert plan.remaining_to_pay == Decimal('15.00')
        assert [(t.to_participant_id, t.amount) for t in plan.transfers] == [(first.id, Decimal('15.00'))]

    def test_debtor_sees_own_plan(self, event, organizer, pizza, carla, carla_user):
        close(event)

        plan = build_settlement_plan(event_id=event.id, participant_id=carla.id, actor=carla_user)

        assert plan.remaining_to_pay == Decimal('33.33')

    def test_participant_cannot_see_others_plan(self, event, pizza, bruno, carla_user):
        close(event)

        with pytest.raises(AuthorizationError):
            build_settlement_plan(event_id=event.id, participant_id=bruno.id, actor=carla_user)

    def test_inactive_debtor_not_found(self, event, organizer, pizza, bruno):
        deactivate_participant(event_id=event.id, participant_id=bruno.id, actor=organizer)
        close(event)

        with pytest.raises(NotFoundError):
            build_settlement_plan(event_id=event.id, participant_id=bruno.id, actor=organizer)


# =============================================================================
# Payments
# =============================================================================

@pytest.mark.django_db
class TestPayments:

    def test_record_requires_closed_event(self, event, organizer, pizza, bruno):
        with pytest.raises(ValidationError):
            record_payment(event_id=event.id, participant_id=bruno.id, actor=organizer, amount=Decimal('1.00'))

    def test_debtor_records_own_payment(self, event, pizza, carla, carla_user):
        close(event)

        payment = record_payment(
            event_id=event.id, participant_id=carla.id, actor=carla_user, amount=Decimal('33.33')
        )

        assert payment.status == PaymentStatus.PENDING
        assert payment.amount == Decimal('33.33')

    def test_cannot_record_for_others(self, event, pizza, bruno, carla_user):
        close(event)

        with pytest.raises(AuthorizationError):
            record_payment(event_id=event.id, participant_id=bruno.id, actor=carla_user, amount=Decimal('1.00'))

    def test_amount_beyond_column_limit_rejected(self, event, organizer, pizza, bruno):
        close(event)

        with pytest.raises(ValidationError):
            record_payment(
                event_id=event.id, participant_id=bruno.id, actor=organizer, amount='1e30'
            )

        with pytest.raises(ValidationError):
            record_payment(
                event_id=event.id, participant_id=bruno.id, actor=organizer, amount=Decimal('10000000000.00')
            )

    def test_non_positive_amount_rejected(self, event, organizer, pizza, bruno):
        close(event)

        with pytest.raises(ValidationError):
            record_payment(event_id=event.id, participant_id=bruno.id, actor=organizer, amount=Decimal('0'))

    def test_confirm_marks_paid(self, event, organizer, pizza, bruno):
        close(event)
        payment = record_payment(
            event_id=event.id, participant_id=bruno.id, actor=organizer, amount=Decimal('10.00')
        )

        confirmed = confirm_payment(event_id=event.id, payment_id=payment.id, actor=organizer)

        assert confirmed.status == PaymentStatus.PAID
        assert confirmed.paid_at is not None

    def test_confirm_twice_rejected(self, event, organizer, pizza, bruno):
        close(event)
        payment = record_payment(
            event_id=event.id, participant_id=bruno.id, actor=organizer, amount=Decimal('10.00')
        )
        confirm_payment(event_id=event.id, payment_id=payment.id, actor=organizer)

        with pytest.raises(ValidationError):
            confirm_payment(event_id=event.id, payment_id=payment.id, actor=organizer)

    def test_only_organizer_confirms(self, event, organizer, pizza, bruno, bruno_user):
        close(event)
        payment = record_payment(
            event_id=event.id, participant_id=bruno.id, actor=bruno_user, amount=Decimal('10.00')
        )

        with pytest.raises(AuthorizationError):
            confirm_payment(event_id=event.id, payment_id=payment.id, actor=bruno_user)

    def test_totals_count_paid_only(self, event, organizer, pizza, bruno, carla):
        close(event)
        for participant, amount in ((bruno, '10.00'), (bruno, '5.50'), (carla, '1.00')):
            payment = record_payment(
                event_id=event.id, participant_id=participant.id, actor=organizer, amount=Decimal(amount)
            )
            if participant == bruno:
                confirm_payment(event_id=event.id, payment_id=payment.id, actor=organizer)

        totals = get_payment_totals(event_id=event.id, actor=organizer)

        assert totals == [{'participant_id': bruno.id, 'total_amount': Decimal('15.50')}]
        assert Payment.objects.filter(event=event, status=PaymentStatus.PENDING).count() == 1
