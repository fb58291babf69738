from rest_framework import serializers


class InvestorStatsSerializer(serializers.Serializer):
    total_invested = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_earnings = serializers.DecimalField(max_digits=14, decimal_places=2)
    active_investments = serializers.IntegerField()
    monthly_income = serializers.DecimalField(max_digits=14, decimal_places=2)


class SiteOwnerStatsSerializer(serializers.Serializer):
    total_projects = serializers.IntegerField()
    active_projects = serializers.IntegerField()
    total_funding = serializers.DecimalField(max_digits=14, decimal_places=2)


class AdminStatsSerializer(serializers.Serializer):
    projects_by_status = serializers.DictField(child=serializers.IntegerField())
    total_projects = serializers.IntegerField()
    active_projects = serializers.IntegerField()
    pending_projects = serializers.IntegerField()
    users_by_role = serializers.DictField(child=serializers.IntegerField())
    total_users = serializers.IntegerField()
    investors = serializers.IntegerField()
    site_owners = serializers.IntegerField()
    total_investment = serializers.DecimalField(max_digits=16, decimal_places=2)
    investment_count = serializers.IntegerField()
    active_investments = serializers.IntegerField()
