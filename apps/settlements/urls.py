from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'settlements'

router = DefaultRouter()
router.register(r'events', views.EventSettlementViewSet, basename='event')

urlpatterns = [
    # Event settlement routes
    # GET    /api/events/{id}/participants/                   - List active participants
    # POST   /api/events/{id}/participants/                   - Add participant
    # DELETE /api/events/{id}/participants/{participant_id}/  - Deactivate participant
    # GET    /api/events/{id}/expenses/                       - List expenses
    # POST   /api/events/{id}/expenses/                       - Record expense
    # PUT    /api/events/{id}/expenses/{expense_id}/          - Edit expense
    # GET    /api/events/{id}/balances/                       - Balances
    # GET    /api/events/{id}/settlement/?participant_id=     - Settlement plan
    # POST   /api/events/{id}/close/                          - Close event
    # GET    /api/events/{id}/payments/                       - Paid totals
    # POST   /api/events/{id}/payments/                       - Register payment
    # POST   /api/events/{id}/payments/{payment_id}/confirm/  - Confirm payment

    # Invite acceptance
    path('invites/<uuid:participant_id>/claim/', views.claim_invite, name='claim-invite'),

    path('', include(router.urls)),
]
