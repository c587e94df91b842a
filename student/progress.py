"""
Enrollment aggregates derived from ModuleProgress rows
"""
from datetime import timedelta
import logging

from django.utils import timezone

from courses.grading import round_half_up
from .models import Enrollment, ModuleProgress

logger = logging.getLogger(__name__)


def recalculate_enrollment_progress(enrollment, now=None):
    """
    Refresh progress_percentage, total_time_spent, current_module and completion
    of an enrollment from its ModuleProgress rows.

    - progress is the mean of module progress over every module of the course
      (modules without a row count as 0)
    - ModuleProgress.time_spent is in seconds, Enrollment.total_time_spent in minutes
    - an active enrollment becomes completed once every module is completed;
      dropped and suspended enrollments are never completed here

    Does nothing when the course has no modules.
    """
    modules = list(enrollment.course.modules.order_by('order'))
    if not modules:
        return enrollment

    progress_rows = {
        row.module_id: row
        for row in ModuleProgress.objects.filter(enrollment=enrollment)
    }

    total_progress = sum(row.progress_percentage for row in progress_rows.values())
    total_seconds = sum(row.time_spent for row in progress_rows.values())

    current_module = None
    completed_count = 0
    for module in modules:
        row = progress_rows.get(module.id)
        if row is not None and row.status == ModuleProgress.COMPLETED:
            completed_count += 1
        elif current_module is None:
            current_module = module

    enrollment.progress_percentage = round_half_up(total_progress / len(modules))
    enrollment.total_time_spent = round_half_up(total_seconds / 60)
    enrollment.current_module = current_module
    update_fields = ['progress_percentage', 'total_time_spent', 'current_module', 'updated_at']

    if completed_count == len(modules) and enrollment.status == Enrollment.ACTIVE:
        enrollment.status = Enrollment.COMPLETED
        enrollment.completed_at = now or timezone.now()
        update_fields.extend(['status', 'completed_at'])
        logger.info(f"Enrollment {enrollment.id} completed course {enrollment.course_id}")

    enrollment.save(update_fields=update_fields)
    return enrollment


def recalculate_course_enrollments(course):
    """Recalculate every active enrollment of a course (after its module set changed)"""
    enrollments = Enrollment.objects.filter(course=course, status=Enrollment.ACTIVE).select_related('course')
    for enrollment in enrollments:
        recalculate_enrollment_progress(enrollment)


def average_progress(enrollments):
    active = [e for e in enrollments if e.status == Enrollment.ACTIVE]
    if not active:
        return 0
    return sum(e.progress_percentage for e in active) / len(active)


def build_enrollment_stats(enrollments, now=None):
    """
    Totals by status, recent activity (7 / 30 days) and the average progress
    of active enrollments.
    """
    enrollments = list(enrollments)
    now = now or timezone.now()
    one_week_ago = now - timedelta(days=7)
    one_month_ago = now - timedelta(days=30)

    by_status = {status: 0 for status, _ in Enrollment.ENROLLMENT_STATUS}
    for enrollment in enrollments:
        by_status[enrollment.status] += 1

    return {
        'total': len(enrollments),
        'by_status': by_status,
        'recent_activity': {
            'new_enrollments_last_week': sum(1 for e in enrollments if e.enrolled_at > one_week_ago),
            'new_enrollments_last_month': sum(1 for e in enrollments if e.enrolled_at > one_month_ago),
            'completions_last_week': sum(
                1 for e in enrollments
                if e.status == Enrollment.COMPLETED and e.completed_at and e.completed_at > one_week_ago
            ),
        },
        'average_progress': average_progress(enrollments),
    }
