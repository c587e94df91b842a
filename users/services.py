"""
User account operations: first-login upsert, preferences, learning profile
and the admin-only role / status / data management actions.
"""
from datetime import timedelta
import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from backend.exceptions import NotFound, PermissionDenied, Unauthenticated, ValidationFailed
from courses.course_service import remove_course
from courses.models import Course
from courses.permissions import is_admin, require_authenticated
from .models import default_preferences

logger = logging.getLogger(__name__)
User = get_user_model()


def _require_admin(user):
    require_authenticated(user)
    if not is_admin(user):
        raise PermissionDenied('Admin access required')


def _get_target(firebase_uid):
    try:
        return User.objects.get(firebase_uid=firebase_uid)
    except User.DoesNotExist:
        raise NotFound('Target user not found')


def get_current_user(user):
    """The caller's own record, or None for anonymous callers."""
    if user is None or not user.is_authenticated:
        return None
    return user


def get_user_by_firebase_uid(firebase_uid):
    return User.objects.filter(firebase_uid=firebase_uid).first()


def get_users_by_role(role, limit=50):
    return list(User.objects.filter(role=role, is_active=True).order_by('created_at')[:limit])


def has_role(user, role):
    if user is None or not user.is_authenticated:
        return False
    return user.role == role


def get_user_stats(user, now=None):
    """Headcount by status and role, plus signups in the last 7 days (admin only)."""
    _require_admin(user)
    now = now or timezone.now()
    users = list(User.objects.all().only('role', 'is_active', 'created_at'))

    return {
        'total': len(users),
        'active': sum(1 for u in users if u.is_active),
        'by_role': {
            role: sum(1 for u in users if u.role == role)
            for role in User.Role.values
        },
        'recent_signups': sum(1 for u in users if now - u.created_at < timedelta(days=7)),
    }


def upsert_user(firebase_uid, email, name='', role=None, preferences=None):
    """
    Create the LMS user on first login, or refresh last_login_at and the
    identity fields carried by the token on later logins.

    Returns (user, created).
    """
    if not firebase_uid:
        raise Unauthenticated('Unauthorized')

    if email and User.objects.filter(email=email).exclude(firebase_uid=firebase_uid).exists():
        logger.warning(f"Email {email} of {firebase_uid} already belongs to another account")
        raise ValidationFailed('Email already in use by another account')

    now = timezone.now()
    user = User.objects.filter(firebase_uid=firebase_uid).first()

    if user is not None:
        update_fields = ['last_login_at']
        user.last_login_at = now
        if email and user.email != email:
            user.email = email
            update_fields.append('email')
        if name:
            first_name, _, last_name = name.partition(' ')
            if user.first_name != first_name or user.last_name != last_name:
                user.first_name = first_name
                user.last_name = last_name
                update_fields.extend(['first_name', 'last_name'])
        user.save(update_fields=update_fields)
        return user, False

    merged_preferences = default_preferences()
    merged_preferences.update(preferences or {})
    first_name, _, last_name = (name or '').partition(' ')

    user = User.objects.create_user(
        firebase_uid=firebase_uid,
        email=email,
        username=email,
        first_name=first_name,
        last_name=last_name,
        role=role or User.Role.LEARNER,
        preferences=merged_preferences,
        last_login_at=now,
    )
    logger.info(f"Created new user with {user.role} role: {email}")
    return user, True


def update_user_preferences(user, preferences):
    """Merge the given keys into the caller's preference bag."""
    require_authenticated(user)
    merged = dict(user.preferences or {})
    merged.update(preferences)
    user.preferences = merged
    user.save(update_fields=['preferences', 'updated_at'])
    return user


def update_learning_profile(user, learning_profile):
    require_authenticated(user)
    user.learning_profile = learning_profile
    user.save(update_fields=['learning_profile', 'updated_at'])
    return user


def update_user_role(user, target_firebase_uid, new_role):
    _require_admin(user)
    target = _get_target(target_firebase_uid)
    target.role = new_role
    target.save(update_fields=['role', 'updated_at'])
    logger.info(f"User {target.email} role changed to {new_role} by {user.email}")
    return target


def toggle_user_status(user, target_firebase_uid):
    _require_admin(user)
    target = _get_target(target_firebase_uid)
    target.is_active = not target.is_active
    target.save(update_fields=['is_active', 'updated_at'])
    logger.info(f"User {target.email} is_active set to {target.is_active} by {user.email}")
    return target


def delete_user_data(user, target_firebase_uid):
    """
    Remove a user and everything attached to them. Enrollments, progress and
    submissions cascade with the row; authored courses go through the same
    teardown as a course deletion, so a course with active enrollments
    blocks the whole operation.
    """
    _require_admin(user)
    target = _get_target(target_firebase_uid)
    target_id = target.id
    with transaction.atomic():
        for course in Course.objects.filter(instructor=target):
            remove_course(course)
        target.delete()
    logger.info(f"Deleted user data for {target_firebase_uid} by {user.email}")
    return target_id
