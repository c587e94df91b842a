from rest_framework import serializers

from users.serializers import UserSummarySerializer
from .models import Course, Module, Exercise, Submission


# ===== COURSES =====

class CourseSerializer(serializers.ModelSerializer):
    """
    Serializer for course payloads. `stats` and `modules` are only present
    when the service attached them (instructor dashboard, course detail).
    """
    instructor = UserSummarySerializer(read_only=True)
    stats = serializers.SerializerMethodField()
    modules = serializers.SerializerMethodField()

    class Meta:
        model = Course
        fields = [
            'id', 'title', 'description', 'thumbnail', 'instructor',
            'category', 'level', 'estimated_duration', 'status',
            'tags', 'learning_objectives', 'prerequisites',
            'enrollment_count', 'average_rating',
            'created_at', 'updated_at', 'published_at',
            'stats', 'modules'
        ]
        read_only_fields = fields

    def get_stats(self, obj):
        return getattr(obj, 'stats', None)

    def get_modules(self, obj):
        modules = getattr(obj, 'module_list', None)
        if modules is None:
            return None
        return ModuleSerializer(modules, many=True).data


class CourseCreateUpdateSerializer(serializers.ModelSerializer):
    """
    Serializer for creating and updating courses
    """
    class Meta:
        model = Course
        fields = [
            'title', 'description', 'thumbnail', 'category', 'level',
            'estimated_duration', 'tags', 'learning_objectives', 'prerequisites'
        ]

    def validate_title(self, value):
        if not value.strip():
            raise serializers.ValidationError("Title cannot be empty")
        return value.strip()

    def validate_tags(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError("Tags must be a list")
        return [str(tag) for tag in value]


class CourseStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Course.Status.choices)


class CourseDuplicateSerializer(serializers.Serializer):
    new_title = serializers.CharField(max_length=200, required=False, allow_blank=True)


# ===== MODULES =====

class ModuleProgressSummarySerializer(serializers.Serializer):
    """Progress embedded in a module payload (a ModuleProgress row or a not-started placeholder)"""
    status = serializers.CharField()
    progress_percentage = serializers.IntegerField()
    time_spent = serializers.IntegerField()
    started_at = serializers.DateTimeField(required=False, allow_null=True)
    completed_at = serializers.DateTimeField(required=False, allow_null=True)


class ModuleSerializer(serializers.ModelSerializer):
    course_id = serializers.UUIDField(read_only=True)
    progress = serializers.SerializerMethodField()
    stats = serializers.SerializerMethodField()
    exercises = serializers.SerializerMethodField()
    latest_submissions = serializers.SerializerMethodField()

    class Meta:
        model = Module
        fields = [
            'id', 'course_id', 'title', 'description', 'order', 'type',
            'content', 'video_url', 'attachments', 'estimated_duration',
            'is_required', 'created_at', 'updated_at',
            'progress', 'stats', 'exercises', 'latest_submissions'
        ]
        read_only_fields = fields

    def get_progress(self, obj):
        progress = getattr(obj, 'progress', None)
        if progress is None:
            return None
        if isinstance(progress, dict):
            return dict(progress)
        return ModuleProgressSummarySerializer(progress).data

    def get_stats(self, obj):
        return getattr(obj, 'stats', None)

    def get_exercises(self, obj):
        exercises = getattr(obj, 'exercise_list', None)
        if exercises is None:
            return None
        return ExerciseSerializer(exercises, many=True, context=self.context).data

    def get_latest_submissions(self, obj):
        latest = getattr(obj, 'latest_submissions', None)
        if latest is None:
            return None
        return {
            exercise_id: SubmissionSerializer(submission).data if submission else None
            for exercise_id, submission in latest.items()
        }


class ModuleCreateUpdateSerializer(serializers.ModelSerializer):
    """
    Serializer for creating and updating modules. The order is always
    assigned by the server; use the reorder endpoint to move modules.
    """
    class Meta:
        model = Module
        fields = [
            'title', 'description', 'type', 'content', 'video_url',
            'attachments', 'estimated_duration', 'is_required'
        ]

    def validate_title(self, value):
        if not value.strip():
            raise serializers.ValidationError("Title cannot be empty")
        return value.strip()


class ModuleReorderSerializer(serializers.Serializer):
    """
    Serializer for reordering modules
    """
    module_ids = serializers.ListField(
        child=serializers.UUIDField(),
        help_text="Every module id of the course, in the new order"
    )

    def validate_module_ids(self, value):
        if not value:
            raise serializers.ValidationError("Module list cannot be empty")
        return value


class ModuleDuplicateSerializer(serializers.Serializer):
    target_course_id = serializers.UUIDField(required=False, allow_null=True)
    new_title = serializers.CharField(max_length=200, required=False, allow_blank=True)


# ===== EXERCISES =====

class ExerciseOptionSerializer(serializers.Serializer):
    id = serializers.CharField(max_length=50)
    text = serializers.CharField()
    is_correct = serializers.BooleanField(default=False)


class ExerciseSerializer(serializers.ModelSerializer):
    """
    Serializer for exercise payloads, including the caller's submission
    history when the service attached it.
    """
    module_id = serializers.UUIDField(read_only=True)
    user_submissions = serializers.SerializerMethodField()
    best_submission = serializers.SerializerMethodField()
    has_submitted = serializers.SerializerMethodField()
    attempts_used = serializers.SerializerMethodField()
    attempts_remaining = serializers.SerializerMethodField()
    user_stats = serializers.SerializerMethodField()

    class Meta:
        model = Exercise
        fields = [
            'id', 'module_id', 'title', 'description', 'type',
            'max_attempts', 'time_limit', 'max_score', 'passing_score',
            'question', 'options', 'correct_answer',
            'difficulty', 'tags', 'ai_generated', 'created_at', 'updated_at',
            'user_submissions', 'best_submission', 'has_submitted',
            'attempts_used', 'attempts_remaining', 'user_stats'
        ]
        read_only_fields = fields

    def get_user_submissions(self, obj):
        submissions = getattr(obj, 'user_submissions', None)
        if submissions is None:
            return None
        return SubmissionSerializer(submissions, many=True).data

    def get_best_submission(self, obj):
        submission = getattr(obj, 'best_submission', None)
        return SubmissionSerializer(submission).data if submission else None

    def get_has_submitted(self, obj):
        return getattr(obj, 'has_submitted', None)

    def get_attempts_used(self, obj):
        return getattr(obj, 'attempts_used', None)

    def get_attempts_remaining(self, obj):
        return getattr(obj, 'attempts_remaining', None)

    def get_user_stats(self, obj):
        return getattr(obj, 'user_stats', None)


class ExerciseCreateUpdateSerializer(serializers.ModelSerializer):
    """
    Serializer for creating and updating exercises.
    Multiple choice option rules (at least one option, at least one correct) are checked by the service.
    """
    options = ExerciseOptionSerializer(many=True, required=False, allow_null=True)

    class Meta:
        model = Exercise
        fields = [
            'title', 'description', 'type', 'question', 'options', 'correct_answer',
            'max_attempts', 'time_limit', 'max_score', 'passing_score',
            'difficulty', 'tags', 'ai_generated'
        ]

    def validate_max_score(self, value):
        if value < 1:
            raise serializers.ValidationError("Max score must be at least 1")
        return value

    def validate(self, data):
        max_score = data.get('max_score')
        passing_score = data.get('passing_score')
        if max_score is not None and passing_score is not None and passing_score > max_score:
            raise serializers.ValidationError({'passing_score': "Passing score cannot exceed max score"})
        return data


class ExerciseGenerateSerializer(serializers.Serializer):
    topic = serializers.CharField(max_length=150)
    difficulty = serializers.ChoiceField(choices=Exercise.Difficulty.choices)
    type = serializers.ChoiceField(choices=[
        Exercise.ExerciseType.MULTIPLE_CHOICE,
        Exercise.ExerciseType.OPEN_ENDED,
        Exercise.ExerciseType.CODING,
    ])
    count = serializers.IntegerField(min_value=1, max_value=10, default=1)


class ExerciseDuplicateSerializer(serializers.Serializer):
    target_module_id = serializers.UUIDField(required=False, allow_null=True)
    new_title = serializers.CharField(max_length=200, required=False, allow_blank=True)


# ===== SUBMISSIONS =====

class SubmissionSerializer(serializers.ModelSerializer):
    exercise_id = serializers.UUIDField(read_only=True)
    student_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Submission
        fields = [
            'id', 'exercise_id', 'student_id', 'answer', 'attachments',
            'score', 'max_score', 'status', 'ai_grading_result', 'instructor_feedback',
            'attempt_number', 'time_spent', 'submitted_at', 'graded_at'
        ]
        read_only_fields = fields


class SubmitSerializer(serializers.Serializer):
    """
    Answer payload. Multiple choice answers are a comma-separated list of option ids.
    """
    answer = serializers.CharField(allow_blank=True)
    attachments = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    time_spent = serializers.IntegerField(min_value=0, required=False, default=0)


class GradeSerializer(serializers.Serializer):
    score = serializers.DecimalField(max_digits=7, decimal_places=2, min_value=0)
    feedback = serializers.CharField(required=False, allow_null=True, allow_blank=True)
