from rest_framework import serializers
from django.contrib.auth import get_user_model

from courses.models import Course, Module
from users.serializers import UserSummarySerializer
from .models import Enrollment, ModuleProgress

User = get_user_model()


# ===== BASIC SERIALIZERS =====

class BasicCourseSerializer(serializers.ModelSerializer):
    """Basic course information for nested serialization"""
    instructor_name = serializers.SerializerMethodField()

    class Meta:
        model = Course
        fields = ['id', 'title', 'description', 'thumbnail', 'category', 'level', 'status', 'instructor_name']

    def get_instructor_name(self, obj):
        return obj.instructor.get_full_name() or obj.instructor.email


class BasicModuleSerializer(serializers.ModelSerializer):
    class Meta:
        model = Module
        fields = ['id', 'title', 'order', 'type', 'is_required']


# ===== ENROLLMENT SERIALIZERS =====

class EnrollmentSerializer(serializers.ModelSerializer):
    """Enrollment with its course, student and aggregate progress"""
    course = BasicCourseSerializer(read_only=True)
    student = UserSummarySerializer(read_only=True)
    current_module = BasicModuleSerializer(read_only=True)
    completed_modules = serializers.PrimaryKeyRelatedField(many=True, read_only=True)

    # Computed properties
    is_active = serializers.ReadOnlyField()
    is_completed = serializers.ReadOnlyField()

    class Meta:
        model = Enrollment
        fields = [
            'id', 'course', 'student', 'status', 'enrolled_at', 'completed_at',
            'last_accessed_at', 'drop_reason', 'progress_percentage',
            'completed_modules', 'current_module', 'total_time_spent', 'average_score',
            'is_active', 'is_completed', 'updated_at'
        ]
        read_only_fields = fields


class ModuleProgressSerializer(serializers.ModelSerializer):
    module_id = serializers.UUIDField(read_only=True)
    enrollment_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = ModuleProgress
        fields = [
            'id', 'enrollment_id', 'module_id', 'status', 'progress_percentage',
            'time_spent', 'started_at', 'completed_at', 'last_accessed_at',
            'score', 'max_score'
        ]
        read_only_fields = fields


class ModuleProgressEntrySerializer(serializers.Serializer):
    """One module of an enrollment progress report; progress is null until a row exists"""
    module = BasicModuleSerializer()
    progress = ModuleProgressSerializer(allow_null=True)


class EnrollmentProgressSerializer(serializers.Serializer):
    enrollment = EnrollmentSerializer()
    module_progress = ModuleProgressEntrySerializer(many=True)
    overall_stats = serializers.DictField()


# ===== REQUEST PAYLOADS =====

class ProgressUpdateSerializer(serializers.Serializer):
    """
    Progress report for a module. time_spent is in seconds and is added to
    the time already recorded.
    """
    progress_percentage = serializers.IntegerField(min_value=0)
    time_spent = serializers.IntegerField(min_value=0, default=0)
    completed = serializers.BooleanField(default=False)


class DropCourseSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=1000)


class EnrollmentStatusFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Enrollment.ENROLLMENT_STATUS, required=False)
