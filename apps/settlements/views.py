from rest_framework import viewsets, status
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from .serializers import (
    AddParticipantSerializer,
    ExpenseInputSerializer,
    SettlementPlanQuerySerializer,
    RecordPaymentSerializer,
    ParticipantSerializer,
    ExpenseSerializer,
    EventBalancesSerializer,
    SettlementPlanSerializer,
    EventStateSerializer,
    PaymentSerializer,
    PaymentTotalSerializer,
    ClaimResultSerializer,
)
from apps.settlements.services import (
    add_participant,
    deactivate_participant,
    list_participants,
    claim_participant,
    record_expense,
    edit_expense,
    get_expense,
    list_expenses,
    get_event_balances,
    build_settlement_plan,
    close_event,
    record_payment,
    confirm_payment,
    get_payment_totals,
)


class EventSettlementViewSet(viewsets.ViewSet):
    """
    Settlement operations on a post-paid event.

    Views are thin HTTP handlers: serializers validate input and services
    hold the business rules. Views do not catch service exceptions;
    error rendering lives in exception_handler.py (registered as
    REST_FRAMEWORK["EXCEPTION_HANDLER"]), which turns every failure into
    an ``{"error": ...}`` response with the status the exception carries.
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = '[0-9a-fA-F-]{36}'

    @action(detail=True, methods=['get', 'post'])
    def participants(self, request, pk=None):
        """List active participants, or add one."""
        if request.method == 'GET':
            participants = list_participants(event_id=pk, actor=request.user)
            return Response(ParticipantSerializer(participants, many=True).data)

        serializer = AddParticipantSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        participant, created = add_participant(
            event_id=pk,
            actor=request.user,
            name=serializer.validated_data['name'],
            linked_user_id=serializer.validated_data['linked_user_id'],
            linked_user_email=serializer.validated_data['linked_user_email'],
        )
        return Response(
            ParticipantSerializer(participant).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )

    @action(
        detail=True,
        methods=['delete'],
        url_path=r'participants/(?P<participant_id>[0-9a-fA-F-]{36})',
        url_name='participant-detail',
    )
    def remove_participant(self, request, pk=None, participant_id=None):
        """Deactivate a participant (organizer only)."""
        deactivate_participant(event_id=pk, participant_id=participant_id, actor=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['get', 'post'])
    def expenses(self, request, pk=None):
        """List expenses, or record one (organizer only)."""
        if request.method == 'GET':
            expenses = list_expenses(event_id=pk, actor=request.user)
            return Response(ExpenseSerializer(expenses, many=True).data)

        serializer = ExpenseInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        expense, created = record_expense(
            event_id=pk,
            actor=request.user,
            idempotency_key=request.headers.get('Idempotency-Key'),
            **serializer.validated_data
        )
        return Response(
            ExpenseSerializer(get_expense(expense.id)).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )

    @action(
        detail=True,
        methods=['put'],
        url_path=r'expenses/(?P<expense_id>[0-9a-fA-F-]{36})',
        url_name='expense-detail',
    )
    def edit_expense(self, request, pk=None, expense_id=None):
        """Replace an expense and its shares (organizer only)."""
        serializer = ExpenseInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        expense = edit_expense(
            event_id=pk,
            expense_id=expense_id,
            actor=request.user,
            **serializer.validated_data
        )
        return Response(ExpenseSerializer(get_expense(expense.id)).data)

    @action(detail=True, methods=['get'])
    def balances(self, request, pk=None):
        """Balances of every active participant."""
        summary = get_event_balances(event_id=pk, actor=request.user)
        return Response(EventBalancesSerializer(summary).data)

    @action(detail=True, methods=['get'])
    def settlement(self, request, pk=None):
        """
        Transfer plan for one participant after closing.

        GET /api/events/{id}/settlement/?participant_id=<uuid>
        """
        query = SettlementPlanQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        plan = build_settlement_plan(
            event_id=pk,
            participant_id=query.validated_data['participant_id'],
            actor=request.user,
        )
        return Response(SettlementPlanSerializer(plan).data)

    @action(detail=True, methods=['post'])
    def close(self, request, pk=None):
        """Close the event's ledger (organizer only, idempotent)."""
        event = close_event(event_id=pk, actor=request.user)
        return Response(EventStateSerializer(event).data)

    @action(detail=True, methods=['get', 'post'])
    def payments(self, request, pk=None):
        """Paid totals per participant, or register a pending payment."""
        if request.method == 'GET':
            totals = get_payment_totals(event_id=pk, actor=request.user)
            return Response({'payments': PaymentTotalSerializer(totals, many=True).data})

        serializer = RecordPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        payment = record_payment(
            event_id=pk,
            participant_id=serializer.validated_data['participant_id'],
            actor=request.user,
            amount=serializer.validated_data['amount'],
        )
        return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)

    @action(
        detail=True,
        methods=['post'],
        url_path=r'payments/(?P<payment_id>[0-9a-fA-F-]{36})/confirm',
        url_name='payment-confirm',
    )
    def confirm_payment(self, request, pk=None, payment_id=None):
        """Mark a pending payment as paid (organizer only)."""
        payment = confirm_payment(event_id=pk, payment_id=payment_id, actor=request.user)
        return Response(PaymentSerializer(payment).data)


@extend_schema(
    request=None,
    responses={200: ClaimResultSerializer},
    description="Link an invited participant to the current user.",
    tags=['settlements'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def claim_invite(request, participant_id):
    """Accept a participant invite for the current user."""
    participant, already_linked = claim_participant(
        participant_id=participant_id,
        actor=request.user,
    )
    return Response(ClaimResultSerializer({
        'participant_id': participant.id,
        'event_id': participant.event_id,
        'already_linked': already_linked,
    }).data)
