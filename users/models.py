from django.contrib.auth.models import AbstractUser
from django.conf import settings
from django.db import models


def default_preferences():
    """Preference bag given to every new user."""
    return {
        'language': settings.LMS_DEFAULT_LANGUAGE,
        'timezone': settings.LMS_DEFAULT_TIMEZONE,
        'email_notifications': True,
        'ai_tutor_enabled': True,
        'study_reminders': True,
        'difficulty_preference': 'adaptive',
    }


class User(AbstractUser):
    """
    Custom User model that integrates with Firebase Authentication
    """

    class Role(models.TextChoices):
        ADMIN = 'admin', 'Admin'
        INSTRUCTOR = 'instructor', 'Instructor'
        LEARNER = 'learner', 'Learner'

    class DifficultyPreference(models.TextChoices):
        ADAPTIVE = 'adaptive', 'Adaptive'
        EASY = 'easy', 'Easy'
        MEDIUM = 'medium', 'Medium'
        HARD = 'hard', 'Hard'

    class LearningStyle(models.TextChoices):
        VISUAL = 'visual', 'Visual'
        AUDITORY = 'auditory', 'Auditory'
        KINESTHETIC = 'kinesthetic', 'Kinesthetic'
        MIXED = 'mixed', 'Mixed'

    class Pace(models.TextChoices):
        SLOW = 'slow', 'Slow'
        NORMAL = 'normal', 'Normal'
        FAST = 'fast', 'Fast'

    # Firebase UID is the stable subject identifier
    firebase_uid = models.CharField(max_length=255, unique=True)

    role = models.CharField(max_length=20, choices=Role.choices, default=Role.LEARNER)

    # LMS specific preferences (language, timezone, notifications, ...)
    preferences = models.JSONField(default=default_preferences)

    # Pedagogical profile: learning_style, preferred_pace, strengths, improvement_areas
    learning_profile = models.JSONField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    last_login_at = models.DateTimeField(null=True, blank=True)

    # Override username to use email as primary identifier
    username = models.CharField(max_length=150, unique=False, blank=True)
    email = models.EmailField(unique=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['firebase_uid']

    class Meta:
        db_table = 'users'
        indexes = [
            models.Index(fields=['role']),
            models.Index(fields=['is_active']),
        ]

    def __str__(self):
        return f"{self.email} ({self.role})"

    @property
    def is_admin_role(self):
        return self.role == self.Role.ADMIN

    @property
    def is_instructor(self):
        return self.role == self.Role.INSTRUCTOR

    @property
    def is_learner(self):
        return self.role == self.Role.LEARNER
