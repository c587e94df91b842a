from django.db import models
from django.contrib.auth import get_user_model
from django.core.validators import MinValueValidator, MaxValueValidator
from django.utils import timezone
import uuid

User = get_user_model()


class Enrollment(models.Model):
    """
    A student's registration in a course.
    Tracks aggregate progress derived from the ModuleProgress rows.
    """
    ACTIVE = 'active'
    COMPLETED = 'completed'
    DROPPED = 'dropped'
    SUSPENDED = 'suspended'

    ENROLLMENT_STATUS = [
        (ACTIVE, 'Active'),
        (COMPLETED, 'Completed'),
        (DROPPED, 'Dropped'),
        (SUSPENDED, 'Suspended'),
    ]

    # Basic Relationship
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    course = models.ForeignKey(
        'courses.Course',
        on_delete=models.CASCADE,
        related_name='enrollments'
    )
    student = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='enrollments'
    )

    # Enrollment Details
    status = models.CharField(max_length=20, choices=ENROLLMENT_STATUS, default=ACTIVE)
    enrolled_at = models.DateTimeField(default=timezone.now)
    completed_at = models.DateTimeField(null=True, blank=True)
    last_accessed_at = models.DateTimeField(null=True, blank=True)
    drop_reason = models.TextField(blank=True)

    # Academic Progress
    progress_percentage = models.PositiveIntegerField(
        default=0,
        validators=[MaxValueValidator(100)],
        help_text="Overall course completion percentage"
    )
    completed_modules = models.ManyToManyField(
        'courses.Module',
        blank=True,
        related_name='completed_in_enrollments'
    )
    current_module = models.ForeignKey(
        'courses.Module',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='current_enrollments',
        help_text="First module, in course order, not yet completed"
    )

    # Performance Metrics
    total_time_spent = models.PositiveIntegerField(default=0, help_text="Total time spent in minutes")
    average_score = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'enrollments'
        unique_together = ['student', 'course']
        ordering = ['-enrolled_at']
        indexes = [
            models.Index(fields=['student', 'status']),
            models.Index(fields=['course', 'status']),
            models.Index(fields=['enrolled_at']),
        ]

    def __str__(self):
        return f"{self.student.email} enrolled in {self.course.title}"

    @property
    def is_active(self):
        """Check if enrollment is currently active"""
        return self.status == self.ACTIVE

    @property
    def is_completed(self):
        return self.status == self.COMPLETED


class ModuleProgress(models.Model):
    """
    Per-student, per-module progress record. One row per (enrollment, module),
    created when the student enrolls or when a module is added to the course.
    """
    NOT_STARTED = 'not_started'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'

    PROGRESS_STATUS = [
        (NOT_STARTED, 'Not Started'),
        (IN_PROGRESS, 'In Progress'),
        (COMPLETED, 'Completed'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    enrollment = models.ForeignKey(
        Enrollment,
        on_delete=models.CASCADE,
        related_name='module_progress'
    )
    module = models.ForeignKey(
        'courses.Module',
        on_delete=models.CASCADE,
        related_name='progress_records'
    )
    student = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='module_progress'
    )

    status = models.CharField(max_length=20, choices=PROGRESS_STATUS, default=NOT_STARTED)
    progress_percentage = models.PositiveIntegerField(
        default=0,
        validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    time_spent = models.PositiveIntegerField(default=0, help_text="Time spent in seconds")

    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    last_accessed_at = models.DateTimeField(null=True, blank=True)

    score = models.DecimalField(max_digits=7, decimal_places=2, null=True, blank=True)
    max_score = models.PositiveIntegerField(null=True, blank=True)

    class Meta:
        db_table = 'module_progress'
        unique_together = ['enrollment', 'module']
        indexes = [
            models.Index(fields=['student', 'module']),
            models.Index(fields=['enrollment']),
        ]

    def __str__(self):
        return f"{self.student.email} - {self.module.title} ({self.status})"

    def reset(self):
        """Back to the not-started state (used when a dropped enrollment is reactivated)"""
        self.status = self.NOT_STARTED
        self.progress_percentage = 0
        self.time_spent = 0
        self.started_at = None
        self.completed_at = None
        self.last_accessed_at = None
        self.score = None
        self.max_score = None
