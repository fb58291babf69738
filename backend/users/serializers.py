from rest_framework import serializers
from .models import User, ROLE_CHOICES
class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id','username','first_name','last_name','email','role','profile_image_url','stripe_subscription_id','date_joined','updated_at']
        read_only_fields = fields
class UserUpsertSerializer(serializers.Serializer):
    id = serializers.CharField(max_length=64)
    username = serializers.CharField(max_length=150, required=False)
    email = serializers.EmailField(required=False, allow_blank=True)
    first_name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    last_name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    profile_image_url = serializers.URLField(max_length=500, required=False, allow_blank=True)
    role = serializers.ChoiceField(choices=ROLE_CHOICES, required=False)
    stripe_customer_id = serializers.CharField(required=False, allow_blank=True, write_only=True)
    stripe_subscription_id = serializers.CharField(max_length=255, required=False, allow_blank=True)
