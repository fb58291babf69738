# users/views.py
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework import status

from .permissions import IsAdminRole
from .serializers import UserSerializer, UserUpsertSerializer
from .services import upsert_user


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me_view(request):
    """
    GET /api/auth/me/
    Returns the authenticated user.
    """
    return Response(UserSerializer(request.user).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def upsert_user_view(request):
    """
    POST /api/auth/users/
    body: { id, username?, email?, first_name?, last_name?, profile_image_url?, role?, stripe_customer_id?, stripe_subscription_id? }
    Creates the user or updates its mutable fields. Role is only honoured on creation.
    """
    serializer = UserUpsertSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = dict(serializer.validated_data)
    user_id = data.pop('id')
    user, created = upsert_user(user_id, **data)
    return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)
