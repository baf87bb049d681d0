"""
Settlements services layer.

One module per component of the post-paid settlement engine. Services
take the caller and event explicitly, raise the domain exceptions below,
and wrap every mutation in a transaction that locks the event row.
"""

from .exceptions import (
    SettlementServiceError,
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    ValidationError,
    ClosedLedgerError,
)

from .participant_registry import (
    add_participant,
    deactivate_participant,
    list_participants,
    claim_participant,
)

from .expense_ledger import (
    record_expense,
    edit_expense,
    get_expense,
    list_expenses,
)

from .balance_calculator import (
    ParticipantBalance,
    compute_balances,
    get_event_balances,
)

from .settlement_matcher import (
    SettlementPlan,
    TransferLine,
    build_settlement_plan,
)

from .closing import (
    close_event,
    ensure_open,
    ensure_closed,
)

from .payment_management import (
    record_payment,
    confirm_payment,
    get_payment_totals,
)


__all__ = [
    # Exceptions
    'SettlementServiceError',
    'AuthenticationError',
    'AuthorizationError',
    'NotFoundError',
    'ValidationError',
    'ClosedLedgerError',

    # Participant registry
    'add_participant',
    'deactivate_participant',
    'list_participants',
    'claim_participant',

    # Expense ledger
    'record_expense',
    'edit_expense',
    'get_expense',
    'list_expenses',

    # Balances
    'ParticipantBalance',
    'compute_balances',
    'get_event_balances',

    # Settlement
    'SettlementPlan',
    'TransferLine',
    'build_settlement_plan',

    # Closing
    'close_event',
    'ensure_open',
    'ensure_closed',

    # Payments
    'record_payment',
    'confirm_payment',
    'get_payment_totals',
]
