from rest_framework import status, permissions
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from django.contrib.auth import get_user_model

from backend.exceptions import NotFound, ValidationFailed
from courses.permissions import IsAdminRole
from . import services
from .serializers import (
    UserSerializer, PreferencesSerializer, LearningProfileSerializer, RoleUpdateSerializer
)
import logging

logger = logging.getLogger(__name__)
User = get_user_model()


def _query_int(request, name, default):
    value = request.query_params.get(name)
    if value is None:
        return default
    try:
        return max(1, int(value))
    except ValueError:
        raise ValidationFailed(f"{name} must be an integer")


@api_view(['GET'])
@permission_classes([permissions.AllowAny])
def current_user(request):
    """
    GET: The caller's own record, or null for anonymous callers
    """
    user = services.get_current_user(request.user)
    return Response(UserSerializer(user).data if user else None)


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def user_by_firebase_uid(request, firebase_uid):
    user = services.get_user_by_firebase_uid(firebase_uid)
    if user is None:
        raise NotFound('User not found')
    return Response(UserSerializer(user).data)


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def users_by_role(request, role):
    """
    GET: Active users with the given role (limit query param, default 50)
    """
    if role not in User.Role.values:
        raise ValidationFailed(f"Unknown role: {role}")
    users = services.get_users_by_role(role, limit=_query_int(request, 'limit', 50))
    return Response(UserSerializer(users, many=True).data)


@api_view(['GET'])
@permission_classes([permissions.AllowAny])
def has_role(request, role):
    return Response({'has_role': services.has_role(request.user, role)})


@api_view(['GET'])
@permission_classes([IsAdminRole])
def user_stats(request):
    return Response(services.get_user_stats(request.user))


@api_view(['PATCH'])
@permission_classes([permissions.IsAuthenticated])
def update_preferences(request):
    """
    PATCH: Merge the given preference keys into the caller's preferences
    """
    serializer = PreferencesSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    user = services.update_user_preferences(request.user, serializer.validated_data)
    return Response(UserSerializer(user).data)


@api_view(['PUT'])
@permission_classes([permissions.IsAuthenticated])
def update_learning_profile(request):
    serializer = LearningProfileSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    user = services.update_learning_profile(request.user, serializer.validated_data)
    return Response(UserSerializer(user).data)


@api_view(['POST'])
@permission_classes([IsAdminRole])
def update_user_role(request, firebase_uid):
    """
    POST: Change another user's role (admin only)
    """
    serializer = RoleUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    user = services.update_user_role(request.user, firebase_uid, serializer.validated_data['role'])
    return Response(UserSerializer(user).data)


@api_view(['POST'])
@permission_classes([IsAdminRole])
def toggle_user_status(request, firebase_uid):
    user = services.toggle_user_status(request.user, firebase_uid)
    return Response(UserSerializer(user).data)


@api_view(['DELETE'])
@permission_classes([IsAdminRole])
def delete_user_data(request, firebase_uid):
    """
    DELETE: Remove a user with their enrollments, progress, submissions and courses
    """
    user_id = services.delete_user_data(request.user, firebase_uid)
    return Response({'deleted': user_id}, status=status.HTTP_200_OK)
