# investments/urls.py
from django.urls import path
from .views import (
    investment_create_view, my_investments_view, investment_status_view,
    payout_create_view, payout_status_view, my_payouts_view,
)

urlpatterns = [
    path('investments/', investment_create_view, name='investment-create'),
    path('investments/<int:investment_id>/status/', investment_status_view, name='investment-status'),
    path('my-investments/', my_investments_view, name='my-investments'),
    path('payouts/', payout_create_view, name='payout-create'),
    path('payouts/<int:payout_id>/status/', payout_status_view, name='payout-status'),
    path('my-payouts/', my_payouts_view, name='my-payouts'),
]
