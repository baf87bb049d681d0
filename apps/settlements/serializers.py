from rest_framework import serializers
from .models import Participant, Expense, ExpenseShare, Payment


# =============================================================================
# Input Serializers
# =============================================================================

class AddParticipantSerializer(serializers.Serializer):
    """Body for adding a participant: a name, an existing user, or both."""

    name = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    linked_user_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    linked_user_email = serializers.EmailField(required=False, allow_blank=True, default='')


class ExpenseInputSerializer(serializers.Serializer):
    """
    Body for recording or editing an expense.

    Business rules (non-empty description, positive total, active
    participants) are enforced by the ledger service.
    """

    description = serializers.CharField(max_length=255, allow_blank=True)
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    payer_id = serializers.UUIDField()
    participant_ids = serializers.ListField(
        child=serializers.UUIDField(),
        allow_empty=True
    )


class SettlementPlanQuerySerializer(serializers.Serializer):
    participant_id = serializers.UUIDField()


class RecordPaymentSerializer(serializers.Serializer):
    participant_id = serializers.UUIDField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)


# =============================================================================
# Output Serializers
# =============================================================================

class ParticipantSerializer(serializers.ModelSerializer):
    """Participant record."""

    user_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = Participant
        fields = ['id', 'event', 'name', 'user_id', 'is_active', 'created_at']
        read_only_fields = fields


class ExpenseShareSerializer(serializers.ModelSerializer):
    participant_id = serializers.UUIDField(read_only=True)
    participant_name = serializers.CharField(source='participant.name', read_only=True)

    class Meta:
        model = ExpenseShare
        fields = ['id', 'participant_id', 'participant_name', 'share_amount']
        read_only_fields = fields


class ExpenseSerializer(serializers.ModelSerializer):
    """Expense with payer and shares in split order."""

    payer_id = serializers.UUIDField(read_only=True)
    payer_name = serializers.CharField(source='payer.name', read_only=True)
    shares = ExpenseShareSerializer(many=True, read_only=True)

    class Meta:
        model = Expense
        fields = [
            'id',
            'event',
            'description',
            'total_amount',
            'payer_id',
            'payer_name',
            'shares',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class BalanceSerializer(serializers.Serializer):
    """One row of the balance table (a ParticipantBalance)."""

    participant_id = serializers.UUIDField()
    name = serializers.CharField()
    total_paid = serializers.DecimalField(max_digits=None, decimal_places=2)
    total_share = serializers.DecimalField(max_digits=None, decimal_places=2)
    balance = serializers.DecimalField(max_digits=None, decimal_places=2)
    is_current_user = serializers.SerializerMethodField()

    def get_is_current_user(self, obj):
        current = self.context.get('current_participant_id')
        return current is not None and obj.participant_id == current


class ParticipantRefSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    name = serializers.CharField()


class EventBalancesSerializer(serializers.Serializer):
    event_id = serializers.UUIDField()
    currency = serializers.CharField()
    participants = ParticipantRefSerializer(many=True)
    balances = serializers.SerializerMethodField()

    def get_balances(self, obj):
        return BalanceSerializer(
            obj['balances'],
            many=True,
            context={'current_participant_id': obj.get('current_participant_id')}
        ).data


class TransferLineSerializer(serializers.Serializer):
    to_participant_id = serializers.UUIDField()
    to_name = serializers.CharField()
    to_user_id = serializers.UUIDField(allow_null=True)
    payment_key = serializers.CharField(allow_null=True)
    payment_key_missing = serializers.BooleanField()
    amount = serializers.DecimalField(max_digits=None, decimal_places=2)
    description = serializers.CharField()


class MissingPaymentKeySerializer(serializers.Serializer):
    to_participant_id = serializers.UUIDField()
    to_name = serializers.CharField()


class SettlementPlanSerializer(serializers.Serializer):
    """Transfers a debtor should make, plus what is already settled."""

    event_id = serializers.UUIDField()
    participant_id = serializers.UUIDField()
    participant_name = serializers.CharField()
    total_due = serializers.DecimalField(max_digits=None, decimal_places=2)
    already_paid = serializers.DecimalField(max_digits=None, decimal_places=2)
    remaining_to_pay = serializers.DecimalField(max_digits=None, decimal_places=2)
    unallocated = serializers.DecimalField(max_digits=None, decimal_places=2)
    transfers = TransferLineSerializer(many=True)
    missing_payment_key = MissingPaymentKeySerializer(many=True)
    currency = serializers.CharField()


class EventStateSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    is_closed = serializers.BooleanField()


class PaymentSerializer(serializers.ModelSerializer):
    participant_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Payment
        fields = ['id', 'event', 'participant_id', 'amount', 'status', 'paid_at', 'created_at']
        read_only_fields = fields


class PaymentTotalSerializer(serializers.Serializer):
    participant_id = serializers.UUIDField()
    total_amount = serializers.DecimalField(max_digits=None, decimal_places=2)


class ClaimResultSerializer(serializers.Serializer):
    participant_id = serializers.UUIDField()
    event_id = serializers.UUIDField()
    already_linked = serializers.BooleanField()
