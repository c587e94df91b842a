from rest_framework import serializers
from django.contrib.auth import get_user_model

from users.serializers import PreferencesSerializer

User = get_user_model()


class AuthTokenSerializer(serializers.Serializer):
    """
    Serializer for Firebase ID token authentication
    """
    token = serializers.CharField(
        help_text="Firebase ID token obtained from frontend authentication"
    )


class SignupSerializer(AuthTokenSerializer):
    """
    First login payload. Users may sign up as learner or instructor;
    the admin role can only be granted by another admin.
    """
    role = serializers.ChoiceField(
        choices=[User.Role.LEARNER, User.Role.INSTRUCTOR],
        default=User.Role.LEARNER
    )
    preferences = PreferencesSerializer(required=False)
