"""
Access rules for courses and everything nested under them.

Ownership is always traced up to the owning Course, so a Module or an
Exercise is editable exactly when its course is.
"""
from rest_framework import permissions

from backend.exceptions import PermissionDenied, Unauthenticated

ADMIN = 'admin'
INSTRUCTOR = 'instructor'
LEARNER = 'learner'
PUBLISHED = 'published'


def _is_authenticated(user):
    return user is not None and getattr(user, 'is_authenticated', False)


def is_admin(user):
    return _is_authenticated(user) and user.role == ADMIN


def is_instructor_or_admin(user):
    return _is_authenticated(user) and user.role in (INSTRUCTOR, ADMIN)


def is_course_owner(user, course):
    return _is_authenticated(user) and course.instructor_id == user.id


def can_view_course(user, course):
    """Published content is public; drafts and archives only for owner and admins."""
    return course.status == PUBLISHED or is_admin(user) or is_course_owner(user, course)


def can_edit_course(user, course):
    return is_admin(user) or is_course_owner(user, course)


def can_access_enrollment(user, enrollment):
    """Admin, the enrolled student, or the instructor of the course."""
    if not _is_authenticated(user):
        return False
    return (
        user.role == ADMIN
        or enrollment.student_id == user.id
        or enrollment.course.instructor_id == user.id
    )


def can_access_submission(user, submission):
    if not _is_authenticated(user):
        return False
    return (
        user.role == ADMIN
        or submission.student_id == user.id
        or submission.exercise.module.course.instructor_id == user.id
    )


def require_authenticated(user):
    if not _is_authenticated(user):
        raise Unauthenticated('Unauthorized')


def require_view_course(user, course):
    if not can_view_course(user, course):
        raise PermissionDenied('Access denied')


def require_edit_course(user, course):
    require_authenticated(user)
    if not can_edit_course(user, course):
        raise PermissionDenied('Permission denied')


def require_instructor_or_admin(user, message='Permission denied'):
    require_authenticated(user)
    if not is_instructor_or_admin(user):
        raise PermissionDenied(message)


def require_learner(user, message):
    require_authenticated(user)
    if user.role != LEARNER:
        raise PermissionDenied(message)


class IsAdminRole(permissions.BasePermission):
    """Only users with the admin role"""
    message = 'Admin access required'

    def has_permission(self, request, view):
        return is_admin(request.user)


class IsInstructorOrAdmin(permissions.BasePermission):
    """Only instructors and admins"""
    message = 'Permission denied'

    def has_permission(self, request, view):
        return is_instructor_or_admin(request.user)
