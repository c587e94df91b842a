"""
Fetch-or-raise helpers shared by the course, module and exercise services
"""
from django.core.exceptions import ValidationError as DjangoValidationError

from backend.exceptions import NotFound
from .models import Course, Module, Exercise, Submission


def get_course(course_id, message='Course not found'):
    try:
        return Course.objects.select_related('instructor').get(id=course_id)
    except (Course.DoesNotExist, ValueError, DjangoValidationError):
        raise NotFound(message)


def get_module(module_id, message='Module not found'):
    try:
        return Module.objects.select_related('course').get(id=module_id)
    except (Module.DoesNotExist, ValueError, DjangoValidationError):
        raise NotFound(message)


def get_exercise(exercise_id, message='Exercise not found'):
    try:
        return Exercise.objects.select_related('module__course').get(id=exercise_id)
    except (Exercise.DoesNotExist, ValueError, DjangoValidationError):
        raise NotFound(message)


def get_submission(submission_id):
    try:
        return Submission.objects.select_related('exercise__module__course', 'student').get(id=submission_id)
    except (Submission.DoesNotExist, ValueError, DjangoValidationError):
        raise NotFound('Submission not found')
