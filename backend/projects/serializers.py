# projects/serializers.py
from decimal import Decimal
from rest_framework import serializers

from users.serializers import UserSerializer
from .models import Project


class ProjectSerializer(serializers.ModelSerializer):
    remaining_funding = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    funding_progress = serializers.DecimalField(max_digits=6, decimal_places=2, read_only=True)

    class Meta:
        model = Project
        fields = [
            'id', 'site_owner', 'title', 'description', 'location', 'system_size',
            'total_funding', 'current_funding', 'remaining_funding', 'funding_progress',
            'expected_return', 'min_investment', 'status', 'monthly_electricity_bill',
            'roof_details', 'energy_needs', 'installation_date', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class ProjectCreateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=200)
    description = serializers.CharField()
    location = serializers.CharField(max_length=200)
    system_size = serializers.IntegerField(min_value=1)
    total_funding = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))
    expected_return = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=Decimal('0.00'), max_value=Decimal('100.00'))
    min_investment = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))
    monthly_electricity_bill = serializers.DecimalField(max_digits=8, decimal_places=2, required=False, allow_null=True)
    roof_details = serializers.CharField(required=False, allow_blank=True)
    energy_needs = serializers.CharField(required=False, allow_blank=True)
    installation_date = serializers.DateTimeField(required=False, allow_null=True)

    def validate(self, attrs):
        if attrs['min_investment'] > attrs['total_funding']:
            raise serializers.ValidationError({'min_investment': 'Minimum investment cannot exceed the funding target.'})
        return attrs


class ProjectFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Project.STATUS_CHOICES, required=False, allow_blank=True)
    location = serializers.CharField(required=False, allow_blank=True)
    min_investment = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    max_investment = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)


class ProjectStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Project.STATUS_CHOICES)


class ProjectInvestmentSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    investor = serializers.CharField(source='investor_id', read_only=True)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    lock_in_period = serializers.IntegerField(read_only=True)
    status = serializers.CharField(read_only=True)
    created_at = serializers.DateTimeField(read_only=True)


class ProjectDetailSerializer(ProjectSerializer):
    site_owner = UserSerializer(read_only=True)
    investments = ProjectInvestmentSerializer(many=True, read_only=True)

    class Meta(ProjectSerializer.Meta):
        fields = ProjectSerializer.Meta.fields + ['investments']
        read_only_fields = fields
