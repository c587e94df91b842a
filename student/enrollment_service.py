"""
Enrollment lifecycle and per-module progress tracking for learners
"""
import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import F
from django.contrib.auth import get_user_model
from django.utils import timezone

from backend.exceptions import NotFound, PermissionDenied, ValidationFailed
from courses import lookups
from courses.models import Course
from courses.permissions import (
    can_access_enrollment,
    is_admin,
    is_course_owner,
    require_authenticated,
    require_edit_course,
    require_learner,
)
from .models import Enrollment, ModuleProgress
from .progress import build_enrollment_stats, recalculate_enrollment_progress

logger = logging.getLogger(__name__)
User = get_user_model()


def _get_enrollment(enrollment_id):
    try:
        return Enrollment.objects.select_related('course', 'student').get(id=enrollment_id)
    except (Enrollment.DoesNotExist, ValueError, DjangoValidationError):
        raise NotFound('Enrollment not found')


# ===== QUERIES =====

def get_my_enrollments(user, status=None):
    """The caller's enrollments, newest first. Anonymous callers get an empty list."""
    if user is None or not user.is_authenticated:
        return []

    enrollments = (
        Enrollment.objects.filter(student=user)
        .select_related('course__instructor', 'current_module')
        .order_by('-enrolled_at')
    )
    if status:
        enrollments = enrollments.filter(status=status)
    return list(enrollments)


def get_enrollment(user, course_id, student_uid=None):
    """
    Enrollment of a student (the caller by default) in a course, or None.
    Visible to the student, the course instructor and admins.
    """
    require_authenticated(user)

    if student_uid and student_uid != user.firebase_uid:
        student = User.objects.filter(firebase_uid=student_uid).first()
        if student is None:
            return None
    else:
        student = user

    course = lookups.get_course(course_id)
    if not (is_admin(user) or student.id == user.id or is_course_owner(user, course)):
        raise PermissionDenied('Permission denied')

    return Enrollment.objects.filter(student=student, course=course).first()


def get_enrollment_progress(user, enrollment_id):
    """
    Detailed progress of an enrollment: one entry per module of the course
    (with a not-started placeholder where no row exists) and overall counters.
    """
    require_authenticated(user)
    enrollment = _get_enrollment(enrollment_id)
    if not can_access_enrollment(user, enrollment):
        raise PermissionDenied('Permission denied')

    rows = list(ModuleProgress.objects.filter(enrollment=enrollment))
    rows_by_module = {row.module_id: row for row in rows}
    modules = list(enrollment.course.modules.order_by('order'))

    return {
        'enrollment': enrollment,
        'module_progress': [
            {'module': module, 'progress': rows_by_module.get(module.id)}
            for module in modules
        ],
        'overall_stats': {
            'total_modules': len(modules),
            'completed_modules': sum(1 for row in rows if row.status == ModuleProgress.COMPLETED),
            'in_progress_modules': sum(1 for row in rows if row.status == ModuleProgress.IN_PROGRESS),
            'total_time_spent': sum(row.time_spent for row in rows),
        },
    }


def get_course_enrollments(user, course_id, status=None):
    course = lookups.get_course(course_id)
    require_edit_course(user, course)

    enrollments = Enrollment.objects.filter(course=course).select_related('student').order_by('-enrolled_at')
    if status:
        enrollments = enrollments.filter(status=status)
    return list(enrollments)


def get_enrollment_stats(user, course_id=None):
    """
    Enrollment statistics for one course, or across every course the caller
    teaches (every course for admins).
    """
    require_authenticated(user)

    if course_id:
        course = lookups.get_course(course_id)
        require_edit_course(user, course)
        enrollments = Enrollment.objects.filter(course=course)
    elif is_admin(user):
        enrollments = Enrollment.objects.all()
    elif user.role == User.Role.INSTRUCTOR:
        enrollments = Enrollment.objects.filter(course__instructor=user)
    else:
        raise PermissionDenied('Permission denied')

    return build_enrollment_stats(enrollments)


# ===== MUTATIONS =====

def enroll_in_course(user, course_id):
    """
    Enroll the calling learner in a published course.

    A dropped enrollment is reactivated from scratch instead of creating a new
    one; any other existing enrollment is rejected.
    """
    require_learner(user, 'Only learners can enroll in courses')
    course = lookups.get_course(course_id)
    if course.status != Course.Status.PUBLISHED:
        raise ValidationFailed('Course is not available for enrollment')

    now = timezone.now()
    with transaction.atomic():
        modules = list(course.modules.order_by('order'))
        existing = Enrollment.objects.select_for_update().filter(student=user, course=course).first()

        if existing is not None:
            if existing.status != Enrollment.DROPPED:
                raise ValidationFailed('Already enrolled in this course')
            return _reactivate(existing, modules, now)

        try:
            with transaction.atomic():
                enrollment = Enrollment.objects.create(
                    course=course,
                    student=user,
                    status=Enrollment.ACTIVE,
                    enrolled_at=now,
                )
        except IntegrityError:
            raise ValidationFailed('Already enrolled in this course')

        ModuleProgress.objects.bulk_create([
            ModuleProgress(enrollment=enrollment, module=module, student=user)
            for module in modules
        ])
        Course.objects.filter(pk=course.pk).update(enrollment_count=F('enrollment_count') + 1)

    logger.info(f"User {user.email} enrolled in course {course.id}")
    return enrollment


def _reactivate(enrollment, modules, now):
    enrollment.status = Enrollment.ACTIVE
    enrollment.enrolled_at = now
    enrollment.completed_at = None
    enrollment.progress_percentage = 0
    enrollment.total_time_spent = 0
    enrollment.current_module = None
    enrollment.drop_reason = ''
    enrollment.save()
    enrollment.completed_modules.clear()

    rows = {row.module_id: row for row in ModuleProgress.objects.filter(enrollment=enrollment)}
    missing = []
    for module in modules:
        row = rows.get(module.id)
        if row is None:
            missing.append(ModuleProgress(enrollment=enrollment, module=module, student_id=enrollment.student_id))
        else:
            row.reset()
            row.save()
    ModuleProgress.objects.bulk_create(missing)

    logger.info(f"Reactivated dropped enrollment {enrollment.id} for course {enrollment.course_id}")
    return enrollment


def update_module_progress(user, module_id, progress_percentage, time_spent, completed=False):
    """
    Record progress on a module for the caller's active enrollment.

    - completed, or progress >= 100, marks the module completed at 100%
    - any other positive progress marks it in progress
    - a completed module stays completed
    - time_spent (seconds) is added to the time already recorded

    The enrollment aggregates are recalculated afterwards.
    """
    require_authenticated(user)
    module = lookups.get_module(module_id)

    now = timezone.now()
    with transaction.atomic():
        enrollment = (
            Enrollment.objects.select_for_update()
            .select_related('course')
            .filter(student=user, course_id=module.course_id)
            .first()
        )
        if enrollment is None or enrollment.status != Enrollment.ACTIVE:
            raise ValidationFailed('Not enrolled in this course or enrollment not active')

        progress, _ = ModuleProgress.objects.get_or_create(
            enrollment=enrollment,
            module=module,
            defaults={'student': user},
        )

        if completed or progress_percentage >= 100:
            progress.status = ModuleProgress.COMPLETED
            progress.progress_percentage = 100
            progress.started_at = progress.started_at or now
            progress.completed_at = progress.completed_at or now
            enrollment.completed_modules.add(module)
        elif progress.status != ModuleProgress.COMPLETED:
            progress.progress_percentage = max(0, min(int(progress_percentage), 100))
            if progress_percentage > 0:
                progress.status = ModuleProgress.IN_PROGRESS
                progress.started_at = progress.started_at or now

        progress.time_spent += max(0, int(time_spent or 0))
        progress.last_accessed_at = now
        progress.save()

        enrollment.last_accessed_at = now
        enrollment.save(update_fields=['last_accessed_at', 'updated_at'])
        recalculate_enrollment_progress(enrollment, now=now)

    return progress


def drop_course(user, course_id, reason=None):
    require_authenticated(user)

    enrollment = Enrollment.objects.filter(student=user, course_id=course_id).first()
    if enrollment is None:
        raise NotFound('Not enrolled in this course')
    if enrollment.status != Enrollment.ACTIVE:
        raise ValidationFailed('Enrollment is not active')

    enrollment.status = Enrollment.DROPPED
    enrollment.drop_reason = reason or ''
    enrollment.save(update_fields=['status', 'drop_reason', 'updated_at'])

    logger.info(f"User {user.email} dropped course {course_id}")
    return enrollment
