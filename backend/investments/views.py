# investments/views.py
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework import status

from users.permissions import IsAdminRole, IsInvestor, IsOwnerOrAdmin
from .models import Investment
from .serializers import (
    InvestmentCreateSerializer, InvestmentSerializer, InvestmentStatusSerializer,
    InvestmentWithProjectSerializer, PayoutCreateSerializer, PayoutSerializer, PayoutStatusSerializer,
)
from .services import (
    create_investment, get_investment, get_investments_by_user, get_payouts_by_user,
    record_payout, update_investment_status, update_payout_status,
)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsInvestor])
def investment_create_view(request):
    """
    POST /api/investments/
    body: { project_id, amount, lock_in_period, status: 'active'|'pending' (optional) }
    - The investor is always the authenticated user.
    - Any expected_return sent by the client is ignored; the project's rate is used.
    """
    serializer = InvestmentCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    investment = create_investment(
        request.user,
        data['project_id'],
        data['amount'],
        data['lock_in_period'],
        status=data['status'],
    )
    return Response(InvestmentSerializer(investment).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_investments_view(request):
    """
    GET /api/my-investments/
    Investments of the authenticated user with their project, newest first.
    """
    investments = get_investments_by_user(request.user.pk)
    return Response(InvestmentWithProjectSerializer(investments, many=True).data)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def investment_status_view(request, investment_id):
    """
    PATCH /api/investments/<id>/status/
    body: { status }
    Rules enforced:
      - Admins may apply any legal transition.
      - An investor may only cancel their own investment.
      - Illegal transitions are rejected with 409.
    """
    serializer = InvestmentStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    new_status = serializer.validated_data['status']

    investment = get_investment(investment_id)
    permission = IsOwnerOrAdmin()
    permission.owner_field = 'investor_id'
    if not permission.has_object_permission(request, None, investment):
        raise PermissionDenied("Cannot modify another user's investment")
    if not request.user.is_admin_role and new_status != Investment.STATUS_CANCELLED:
        raise PermissionDenied("Investors may only cancel their investments")

    investment = update_investment_status(investment.pk, new_status)
    return Response(InvestmentSerializer(investment).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def payout_create_view(request):
    """
    POST /api/payouts/
    body: { investment_id, amount, payout_date?, status?: 'pending'|'completed'|'failed', transaction_id? }
    A completed payout is credited to the investment's total earnings immediately.
    """
    serializer = PayoutCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    payout = record_payout(
        data['investment_id'],
        data['amount'],
        payout_date=data.get('payout_date'),
        status=data['status'],
        transaction_id=data.get('transaction_id', ''),
    )
    return Response(PayoutSerializer(payout).data, status=status.HTTP_201_CREATED)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminRole])
def payout_status_view(request, payout_id):
    """
    PATCH /api/payouts/<id>/status/
    body: { status }
    """
    serializer = PayoutStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    payout = update_payout_status(payout_id, serializer.validated_data['status'])
    return Response(PayoutSerializer(payout).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_payouts_view(request):
    """
    GET /api/my-payouts/
    """
    payouts = get_payouts_by_user(request.user.pk)
    return Response(PayoutSerializer(payouts, many=True).data)
