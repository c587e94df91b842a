from rest_framework import serializers
from django.contrib.auth import get_user_model

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    """
    Serializer for User model
    """
    full_name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id', 'firebase_uid', 'email', 'first_name', 'last_name',
            'full_name', 'role', 'is_active', 'preferences', 'learning_profile',
            'created_at', 'last_login_at'
        ]
        read_only_fields = fields

    def get_full_name(self, obj):
        return obj.get_full_name()


class UserSummarySerializer(serializers.ModelSerializer):
    """Public identity embedded in course and enrollment payloads"""
    full_name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'firebase_uid', 'full_name', 'role']
        read_only_fields = fields

    def get_full_name(self, obj):
        return obj.get_full_name() or obj.email


class PreferencesSerializer(serializers.Serializer):
    """
    Partial preference update; only the keys sent are merged into the user's bag
    """
    language = serializers.CharField(max_length=10, required=False)
    timezone = serializers.CharField(max_length=64, required=False)
    email_notifications = serializers.BooleanField(required=False)
    ai_tutor_enabled = serializers.BooleanField(required=False)
    study_reminders = serializers.BooleanField(required=False)
    difficulty_preference = serializers.ChoiceField(
        choices=User.DifficultyPreference.choices,
        required=False
    )

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("At least one preference must be provided")
        return attrs


class LearningProfileSerializer(serializers.Serializer):
    learning_style = serializers.ChoiceField(choices=User.LearningStyle.choices)
    preferred_pace = serializers.ChoiceField(choices=User.Pace.choices)
    strengths = serializers.ListField(child=serializers.CharField(max_length=200), default=list)
    improvement_areas = serializers.ListField(child=serializers.CharField(max_length=200), default=list)


class RoleUpdateSerializer(serializers.Serializer):
    """
    Serializer for updating user role
    """
    role = serializers.ChoiceField(choices=User.Role.choices)
