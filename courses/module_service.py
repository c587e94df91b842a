"""
Module management: ordering, progress bookkeeping for enrolled students and
the cascading teardown shared with course deletion.
"""
import logging

from django.db import transaction
from django.db.models import Max

from backend.exceptions import NotFound, ValidationFailed
from student.models import Enrollment, ModuleProgress
from student.progress import recalculate_course_enrollments
from . import lookups
from .exercise_service import copy_exercise, tear_down_exercise
from .grading import round_half_up
from .models import Module, Submission
from .permissions import (
    is_admin,
    require_edit_course,
    require_instructor_or_admin,
    require_view_course,
)

logger = logging.getLogger(__name__)

MODULE_EDITABLE_FIELDS = (
    'title', 'description', 'type', 'content', 'video_url', 'attachments',
    'estimated_duration', 'is_required',
)

NOT_STARTED_PROGRESS = {'status': ModuleProgress.NOT_STARTED, 'progress_percentage': 0, 'time_spent': 0}


def _is_authenticated(user):
    return user is not None and user.is_authenticated


def next_module_order(course):
    current = Module.objects.filter(course=course).aggregate(max_order=Max('order'))['max_order']
    return (current or 0) + 1


def apply_module_order(modules):
    """
    Rewrite `order` as 1..N following the given sequence.

    All modules are first moved to temporary negative orders so the
    (course, order) unique constraint holds at every step.
    """
    for index, module in enumerate(modules):
        module.order = -(index + 1)
        module.save(update_fields=['order'])

    for index, module in enumerate(modules):
        module.order = index + 1
        module.save(update_fields=['order', 'updated_at'])
    return modules


def attach_module_to_enrollments(module):
    """Give every active enrollee of the course a not-started row for a new module"""
    enrollments = Enrollment.objects.filter(course_id=module.course_id, status=Enrollment.ACTIVE)
    ModuleProgress.objects.bulk_create([
        ModuleProgress(enrollment=enrollment, module=module, student_id=enrollment.student_id)
        for enrollment in enrollments
    ])


def copy_module(module, course, order, title=None):
    """Structural copy of a module and its exercises"""
    new_module = Module.objects.create(
        course=course,
        title=title or module.title,
        description=module.description,
        order=order,
        type=module.type,
        content=module.content,
        video_url=module.video_url,
        attachments=list(module.attachments or []),
        estimated_duration=module.estimated_duration,
        is_required=module.is_required,
    )
    for exercise in module.exercises.all():
        copy_exercise(exercise, new_module)
    return new_module


def tear_down_module(module):
    """
    Remove a module with everything hanging off it: exercises and their
    submissions, progress rows, and references from enrollments.
    Does not renumber the remaining modules.
    """
    for exercise in module.exercises.all():
        tear_down_exercise(exercise)

    ModuleProgress.objects.filter(module=module).delete()
    Enrollment.completed_modules.through.objects.filter(module=module).delete()
    Enrollment.objects.filter(current_module=module).update(current_module=None)
    module.delete()


# ===== QUERIES =====

def get_course_modules(user, course_id, include_progress=False):
    """
    Ordered modules of a course. With include_progress, each module carries
    the caller's ModuleProgress (or a not-started placeholder when enrolled,
    None when not enrolled).
    """
    course = lookups.get_course(course_id)
    require_view_course(user, course)

    modules = list(course.modules.order_by('order'))
    if not include_progress or not _is_authenticated(user):
        return modules

    enrollment = Enrollment.objects.filter(student=user, course=course).first()
    if enrollment is None:
        for module in modules:
            module.progress = None
        return modules

    progress_rows = {
        row.module_id: row
        for row in ModuleProgress.objects.filter(enrollment=enrollment)
    }
    for module in modules:
        module.progress = progress_rows.get(module.id) or NOT_STARTED_PROGRESS
    return modules


def get_module_with_exercises(user, module_id, include_progress=False):
    module = lookups.get_module(module_id)
    require_view_course(user, module.course)

    module.exercise_list = list(module.exercises.all())
    module.progress = None
    module.latest_submissions = None

    if include_progress and _is_authenticated(user):
        module.progress = ModuleProgress.objects.filter(student=user, module=module).first()
        module.latest_submissions = {
            str(exercise.id): (
                Submission.objects.filter(student=user, exercise=exercise)
                .order_by('-submitted_at', '-attempt_number')
                .first()
            )
            for exercise in module.exercise_list
        }
    return module


def get_instructor_modules(user, include_stats=False):
    """Modules across the caller's courses (all courses for admins)"""
    require_instructor_or_admin(user, 'Access denied')

    modules = Module.objects.select_related('course').order_by('course__created_at', 'order')
    if not is_admin(user):
        modules = modules.filter(course__instructor=user)
    modules = list(modules)

    if not include_stats:
        return modules

    rows_by_module = {}
    for row in ModuleProgress.objects.filter(module__in=modules):
        rows_by_module.setdefault(row.module_id, []).append(row)

    for module in modules:
        rows = rows_by_module.get(module.id, [])
        total = len(rows)
        module.stats = {
            'total_students': total,
            'completed_count': sum(1 for r in rows if r.status == ModuleProgress.COMPLETED),
            'in_progress_count': sum(1 for r in rows if r.status == ModuleProgress.IN_PROGRESS),
            'average_progress': round_half_up(sum(r.progress_percentage for r in rows) / total) if total else 0,
            'average_time_spent': round_half_up(sum(r.time_spent for r in rows) / total) if total else 0,
        }
    return modules


# ===== MUTATIONS =====

def create_module(user, course_id, **data):
    """
    Append a module at the end of the course. Active enrollees get a progress
    row for it and their enrollment progress is recalculated.
    """
    course = lookups.get_course(course_id)
    require_edit_course(user, course)

    fields = {key: value for key, value in data.items() if key in MODULE_EDITABLE_FIELDS}
    with transaction.atomic():
        module = Module.objects.create(course=course, order=next_module_order(course), **fields)
        attach_module_to_enrollments(module)
        recalculate_course_enrollments(course)

    logger.info(f"Module {module.id} created at position {module.order} in course {course.id}")
    return module


def update_module(user, module_id, **updates):
    module = lookups.get_module(module_id)
    require_edit_course(user, module.course)

    update_fields = ['updated_at']
    for field in MODULE_EDITABLE_FIELDS:
        if field in updates:
            setattr(module, field, updates[field])
            update_fields.append(field)
    module.save(update_fields=update_fields)
    return module


def reorder_modules(user, module_ids):
    """
    Set the order of a course's modules to the order of `module_ids`.

    The list must contain every module of exactly one course, once.
    """
    if not module_ids:
        raise ValidationFailed('At least one module is required')

    ids = [str(module_id) for module_id in module_ids]
    if len(set(ids)) != len(ids):
        raise ValidationFailed('Duplicate modules in reorder request')

    found = {str(module.id): module for module in Module.objects.select_related('course').filter(id__in=ids)}
    if len(found) != len(ids):
        raise NotFound('Some modules not found')

    modules = [found[module_id] for module_id in ids]
    course = modules[0].course
    if any(module.course_id != course.id for module in modules):
        raise ValidationFailed('All modules must belong to the same course')

    require_edit_course(user, course)

    course_module_ids = {str(pk) for pk in Module.objects.filter(course=course).values_list('id', flat=True)}
    if course_module_ids != set(ids):
        raise ValidationFailed('Every module of the course must be included')

    with transaction.atomic():
        apply_module_order(modules)

    logger.info(f"Reordered {len(modules)} modules in course {course.id}")
    return modules


def duplicate_module(user, module_id, target_course_id=None, new_title=None):
    require_instructor_or_admin(user)
    module = lookups.get_module(module_id)
    require_view_course(user, module.course)

    if target_course_id:
        target_course = lookups.get_course(target_course_id, 'Target course not found')
    else:
        target_course = module.course
    require_edit_course(user, target_course)

    with transaction.atomic():
        new_module = copy_module(
            module,
            target_course,
            order=next_module_order(target_course),
            title=new_title or f"{module.title} (Copy)",
        )
        attach_module_to_enrollments(new_module)
        recalculate_course_enrollments(target_course)

    logger.info(f"Module {module.id} duplicated as {new_module.id} in course {target_course.id}")
    return new_module


def delete_module(user, module_id):
    """Delete a module, close the gap in the course order and refresh enrollments"""
    module = lookups.get_module(module_id)
    course = module.course
    require_edit_course(user, course)

    module_pk = module.id
    with transaction.atomic():
        tear_down_module(module)
        apply_module_order(list(Module.objects.filter(course=course).order_by('order')))
        recalculate_course_enrollments(course)

    logger.info(f"Module {module_pk} deleted from course {course.id} by {user.email}")
    return module_pk
