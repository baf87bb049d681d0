"""
Settlements App - Post-paid group expense settlement

Lets the participants of a post-paid event share ad-hoc expenses and,
once the organizer closes the ledger, get the transfers that settle
each debt.

Architecture:
- Models: Participant, Expense, ExpenseShare, Payment
- Services: participant registry, expense ledger, balance calculator,
  settlement matcher, closing state machine, payments
- Views: thin DRF ViewSet; domain errors become ``{"error": ...}``
  responses in exception_handler.py
"""
