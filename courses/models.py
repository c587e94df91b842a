from django.db import models
from django.contrib.auth import get_user_model
from django.core.validators import MinValueValidator, MaxValueValidator
import uuid
import logging

User = get_user_model()
logger = logging.getLogger(__name__)


class Course(models.Model):
    """
    Course model representing a complete learning course
    """

    class Level(models.TextChoices):
        BEGINNER = 'beginner', 'Beginner'
        INTERMEDIATE = 'intermediate', 'Intermediate'
        ADVANCED = 'advanced', 'Advanced'

    class Status(models.TextChoices):
        DRAFT = 'draft', 'Draft'
        PUBLISHED = 'published', 'Published'
        ARCHIVED = 'archived', 'Archived'

    # Basic Information
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=200, help_text="Course title")
    description = models.TextField(help_text="Short course description")
    thumbnail = models.URLField(max_length=500, blank=True, help_text="Cover image URL")

    # Instructor & Management
    instructor = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        related_name='courses',
    )

    # Structure
    category = models.CharField(max_length=100, help_text="Course category")
    level = models.CharField(max_length=20, choices=Level.choices, default=Level.BEGINNER)
    estimated_duration = models.PositiveIntegerField(default=0, help_text="Estimated duration in hours")

    # Status & Dates
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.DRAFT)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    published_at = models.DateTimeField(null=True, blank=True)

    # Metadata used for search and recommendations
    tags = models.JSONField(default=list, blank=True)
    learning_objectives = models.JSONField(default=list, blank=True)
    prerequisites = models.JSONField(default=list, blank=True, help_text="List of prerequisites as JSON array")

    # Statistics (denormalized)
    enrollment_count = models.PositiveIntegerField(default=0)
    average_rating = models.DecimalField(
        max_digits=3,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0), MaxValueValidator(5)],
    )

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['instructor']),
            models.Index(fields=['status']),
            models.Index(fields=['category']),
            models.Index(fields=['status', 'published_at']),
        ]

    def __str__(self):
        return f"{self.title} ({self.status})"

    @property
    def total_modules(self):
        return self.modules.count()


class Module(models.Model):
    """
    Ordered unit of content within a course.

    `order` is unique per course and kept contiguous (1..N) by the module service.
    """

    class ModuleType(models.TextChoices):
        LESSON = 'lesson', 'Lesson'
        EXERCISE = 'exercise', 'Exercise'
        QUIZ = 'quiz', 'Quiz'
        ASSIGNMENT = 'assignment', 'Assignment'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='modules')
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    order = models.IntegerField(help_text="Module sequence within the course")

    # Content
    type = models.CharField(max_length=20, choices=ModuleType.choices)
    content = models.TextField(blank=True, help_text="Markdown/HTML content")
    video_url = models.URLField(max_length=500, blank=True)
    attachments = models.JSONField(default=list, blank=True)

    # Metadata
    estimated_duration = models.PositiveIntegerField(null=True, blank=True, help_text="Estimated duration in minutes")
    is_required = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['course', 'order']
        unique_together = ['course', 'order']
        indexes = [
            models.Index(fields=['course', 'order']),
        ]

    def __str__(self):
        return f"{self.course.title} - Module {self.order}: {self.title}"


class Exercise(models.Model):
    """
    Gradable exercise attached to a module.

    Multiple choice exercises carry `options` ({id, text, is_correct}); the other
    types may carry a model `correct_answer` used for manual or external grading.
    """

    class ExerciseType(models.TextChoices):
        MULTIPLE_CHOICE = 'multiple_choice', 'Multiple Choice'
        OPEN_ENDED = 'open_ended', 'Open Ended'
        CODING = 'coding', 'Coding'
        FILE_UPLOAD = 'file_upload', 'File Upload'

    class Difficulty(models.TextChoices):
        EASY = 'easy', 'Easy'
        MEDIUM = 'medium', 'Medium'
        HARD = 'hard', 'Hard'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    module = models.ForeignKey(Module, on_delete=models.CASCADE, related_name='exercises')
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    type = models.CharField(max_length=20, choices=ExerciseType.choices)

    # Configuration
    max_attempts = models.PositiveIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1)],
        help_text="Maximum number of attempts allowed (null = unlimited)"
    )
    time_limit = models.PositiveIntegerField(null=True, blank=True, help_text="Time limit in minutes")
    max_score = models.PositiveIntegerField(default=20)
    passing_score = models.PositiveIntegerField(null=True, blank=True)

    # Content
    question = models.TextField()
    options = models.JSONField(null=True, blank=True)
    correct_answer = models.TextField(blank=True)

    # Metadata
    difficulty = models.CharField(max_length=10, choices=Difficulty.choices, default=Difficulty.MEDIUM)
    tags = models.JSONField(default=list, blank=True)
    ai_generated = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['module', 'created_at']
        indexes = [
            models.Index(fields=['module']),
            models.Index(fields=['ai_generated']),
            models.Index(fields=['difficulty']),
        ]

    def __str__(self):
        return f"Exercise: {self.title} ({self.type})"

    @property
    def course(self):
        return self.module.course


class Submission(models.Model):
    """
    Student attempt at an exercise
    """

    class Status(models.TextChoices):
        SUBMITTED = 'submitted', 'Submitted'
        GRADED = 'graded', 'Graded'
        NEEDS_REVIEW = 'needs_review', 'Needs Review'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    exercise = models.ForeignKey(Exercise, on_delete=models.CASCADE, related_name='submissions')
    student = models.ForeignKey(User, on_delete=models.CASCADE, related_name='submissions')

    # Submission content
    answer = models.TextField(blank=True)
    attachments = models.JSONField(default=list, blank=True)

    # Grading
    score = models.DecimalField(max_digits=7, decimal_places=2, null=True, blank=True)
    max_score = models.PositiveIntegerField()
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.SUBMITTED)
    ai_grading_result = models.JSONField(
        null=True,
        blank=True,
        help_text="Automatic grading result: score, feedback, suggestions, confidence"
    )
    instructor_feedback = models.TextField(blank=True)

    # Attempt details
    attempt_number = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    time_spent = models.PositiveIntegerField(default=0, help_text="Time spent in seconds")
    submitted_at = models.DateTimeField()
    graded_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        unique_together = ['student', 'exercise', 'attempt_number']
        ordering = ['-submitted_at']
        indexes = [
            models.Index(fields=['exercise']),
            models.Index(fields=['student', 'exercise']),
            models.Index(fields=['status']),
        ]

    def __str__(self):
        return f"{self.student.email} - {self.exercise.title} (Attempt {self.attempt_number})"
