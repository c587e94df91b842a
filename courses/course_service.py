"""
Course catalogue and course lifecycle (create, publish, archive, delete, duplicate)
"""
import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Count
from django.utils import timezone

from backend.exceptions import NotFound, PermissionDenied, ValidationFailed
from student.models import Enrollment
from student.progress import average_progress
from . import lookups
from .models import Course
from .module_service import copy_module, tear_down_module
from .permissions import (
    is_admin,
    require_authenticated,
    require_edit_course,
    require_instructor_or_admin,
    require_view_course,
)

logger = logging.getLogger(__name__)
User = get_user_model()

COURSE_EDITABLE_FIELDS = (
    'title', 'description', 'thumbnail', 'category', 'level', 'estimated_duration',
    'tags', 'learning_objectives', 'prerequisites',
)


# ===== QUERIES =====

def get_published_courses(limit=20, category=None):
    courses = (
        Course.objects.filter(status=Course.Status.PUBLISHED)
        .select_related('instructor')
        .order_by('-published_at', '-created_at')
    )
    if category:
        courses = courses.filter(category=category)
    return list(courses[:limit])


def get_course_with_modules(user, course_id):
    course = lookups.get_course(course_id)
    require_view_course(user, course)
    course.module_list = list(course.modules.order_by('order'))
    return course


def get_instructor_courses(user, instructor_uid=None, include_stats=False):
    """
    Courses authored by an instructor (the caller by default).
    Only the instructor themselves and admins may list them.
    """
    require_authenticated(user)

    if instructor_uid and instructor_uid != user.firebase_uid:
        instructor = User.objects.filter(firebase_uid=instructor_uid).first()
        if instructor is None:
            raise NotFound('Instructor not found')
    else:
        instructor = user

    if not (is_admin(user) or instructor.id == user.id):
        raise PermissionDenied('Access denied')

    courses = list(Course.objects.filter(instructor=instructor).order_by('-created_at'))
    if not include_stats:
        return courses

    enrollments_by_course = {}
    for enrollment in Enrollment.objects.filter(course__in=courses).only('course_id', 'status', 'progress_percentage'):
        enrollments_by_course.setdefault(enrollment.course_id, []).append(enrollment)

    for course in courses:
        enrollments = enrollments_by_course.get(course.id, [])
        course.stats = {
            'total_enrollments': len(enrollments),
            'active_enrollments': sum(1 for e in enrollments if e.status == Enrollment.ACTIVE),
            'completed_enrollments': sum(1 for e in enrollments if e.status == Enrollment.COMPLETED),
            'average_progress': average_progress(enrollments),
        }
    return courses


def search_courses(search_term='', category=None, level=None, limit=20):
    """Case-insensitive match on title, description or any tag of published courses"""
    courses = Course.objects.filter(status=Course.Status.PUBLISHED).select_related('instructor')
    if category:
        courses = courses.filter(category=category)
    if level:
        courses = courses.filter(level=level)

    term = (search_term or '').strip().lower()
    results = []
    for course in courses.order_by('-published_at', '-created_at'):
        if term and not (
            term in course.title.lower()
            or term in course.description.lower()
            or any(term in str(tag).lower() for tag in course.tags or [])
        ):
            continue
        results.append(course)
        if len(results) >= limit:
            break
    return results


def get_course_categories():
    """Categories of published courses with their course count, most populated first"""
    rows = (
        Course.objects.filter(status=Course.Status.PUBLISHED)
        .values('category')
        .annotate(count=Count('id'))
        .order_by('-count', 'category')
    )
    return [{'name': row['category'], 'count': row['count']} for row in rows]


# ===== MUTATIONS =====

def create_course(user, **data):
    require_instructor_or_admin(user, 'Only instructors and admins can create courses')

    fields = {key: value for key, value in data.items() if key in COURSE_EDITABLE_FIELDS}
    course = Course.objects.create(instructor=user, status=Course.Status.DRAFT, **fields)
    logger.info(f"Course {course.id} '{course.title}' created by {user.email}")
    return course


def update_course(user, course_id, **updates):
    course = lookups.get_course(course_id)
    require_edit_course(user, course)

    update_fields = ['updated_at']
    for field in COURSE_EDITABLE_FIELDS:
        if field in updates:
            setattr(course, field, updates[field])
            update_fields.append(field)
    course.save(update_fields=update_fields)
    return course


def set_course_status(user, course_id, new_status):
    """
    Move a course to draft, published or archived.
    published_at is stamped when the course is first published.
    """
    course = lookups.get_course(course_id)
    require_edit_course(user, course)

    update_fields = ['status', 'updated_at']
    if new_status == Course.Status.PUBLISHED and course.status != Course.Status.PUBLISHED and not course.published_at:
        course.published_at = timezone.now()
        update_fields.append('published_at')

    previous_status = course.status
    course.status = new_status
    course.save(update_fields=update_fields)
    logger.info(f"Course {course.id} status changed from {previous_status} to {new_status} by {user.email}")
    return course


def delete_course(user, course_id):
    """
    Delete a course and its whole subtree. Refused while any enrollment is
    still active; non-active enrollments go with the course.
    """
    course = lookups.get_course(course_id)
    require_edit_course(user, course)

    course_pk = course.id
    with transaction.atomic():
        remove_course(course)

    logger.info(f"Course {course_pk} deleted by {user.email}")
    return course_pk


def remove_course(course):
    """
    Tear down a course and its subtree, refusing while any enrollment is
    active. Callers own the transaction and the permission check.
    """
    if Enrollment.objects.filter(course=course, status=Enrollment.ACTIVE).exists():
        logger.warning(f"Refused to delete course {course.id}: active enrollments exist")
        raise ValidationFailed('Cannot delete course with active enrollments. Archive it instead.')

    for module in course.modules.all():
        tear_down_module(module)
    course.delete()


def duplicate_course(user, course_id, new_title=None):
    """
    Copy a course with its modules and exercises into a new draft owned by
    the caller. Enrollments, submissions and statistics are not copied.
    """
    require_instructor_or_admin(user, 'Only instructors and admins can duplicate courses')
    original = lookups.get_course(course_id)
    require_view_course(user, original)

    with transaction.atomic():
        course = Course.objects.create(
            instructor=user,
            title=new_title or f"{original.title} (Copy)",
            description=original.description,
            thumbnail=original.thumbnail,
            category=original.category,
            level=original.level,
            estimated_duration=original.estimated_duration,
            status=Course.Status.DRAFT,
            tags=list(original.tags or []),
            learning_objectives=list(original.learning_objectives or []),
            prerequisites=list(original.prerequisites or []),
        )
        for module in original.modules.order_by('order'):
            copy_module(module, course, order=module.order)

    logger.info(f"Course {original.id} duplicated as {course.id} by {user.email}")
    return course
