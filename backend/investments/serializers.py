# investments/serializers.py
from rest_framework import serializers
from decimal import Decimal

from projects.serializers import ProjectSerializer
from .models import Investment, Payout


class InvestmentSerializer(serializers.ModelSerializer):
    projected_return = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    monthly_average = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = Investment
        fields = [
            'id', 'project', 'investor', 'amount', 'lock_in_period', 'expected_return', 'status',
            'start_date', 'end_date', 'total_earnings', 'projected_return', 'monthly_average',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class InvestmentWithProjectSerializer(InvestmentSerializer):
    project = ProjectSerializer(read_only=True)


class InvestmentCreateSerializer(serializers.Serializer):
    project_id = serializers.IntegerField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    lock_in_period = serializers.IntegerField(min_value=1)
    status = serializers.ChoiceField(
        choices=[(Investment.STATUS_PENDING, 'Pending'), (Investment.STATUS_ACTIVE, 'Active')],
        default=Investment.STATUS_ACTIVE,
    )

    def validate_amount(self, value):
        if value <= Decimal('0.00'):
            raise serializers.ValidationError("Amount must be greater than 0")
        return value


class InvestmentStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Investment.STATUS_CHOICES)


class PayoutSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payout
        fields = ['id', 'investment', 'amount', 'payout_date', 'status', 'transaction_id', 'created_at']
        read_only_fields = fields


class PayoutCreateSerializer(serializers.Serializer):
    investment_id = serializers.IntegerField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    payout_date = serializers.DateTimeField(required=False)
    status = serializers.ChoiceField(choices=Payout.STATUS_CHOICES, default=Payout.STATUS_PENDING)
    transaction_id = serializers.CharField(max_length=255, required=False, allow_blank=True)

    def validate_amount(self, value):
        if value <= Decimal('0.00'):
            raise serializers.ValidationError("Amount must be greater than 0")
        return value


class PayoutStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Payout.STATUS_CHOICES)
