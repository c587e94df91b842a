"""
Exercise authoring, submissions and grading.

Multiple choice submissions are scored on the spot; every other exercise type
stays "submitted" until an instructor grades it.
"""
from decimal import Decimal
import logging

from django.db import IntegrityError, transaction
from django.utils import timezone

from backend.exceptions import PermissionDenied, ValidationFailed
from student.models import Enrollment
from . import lookups
from .grading import (
    TWO_PLACES,
    build_exercise_stats,
    build_grading_feedback,
    round_half_up,
    score_multiple_choice,
    validate_exercise_content,
)
from .models import Exercise, Submission
from .permissions import (
    can_edit_course,
    can_access_submission,
    require_edit_course,
    require_instructor_or_admin,
    require_authenticated,
    require_learner,
    require_view_course,
)

logger = logging.getLogger(__name__)

EXERCISE_EDITABLE_FIELDS = (
    'title', 'description', 'type', 'question', 'options', 'correct_answer',
    'max_attempts', 'time_limit', 'max_score', 'passing_score', 'difficulty', 'tags',
)

AI_GENERATED_OPTIONS = [
    {'id': 'a', 'text': 'Option A (generated)', 'is_correct': True},
    {'id': 'b', 'text': 'Option B (generated)', 'is_correct': False},
    {'id': 'c', 'text': 'Option C (generated)', 'is_correct': False},
    {'id': 'd', 'text': 'Option D (generated)', 'is_correct': False},
]


def _is_authenticated(user):
    return user is not None and user.is_authenticated


def copy_exercise(exercise, module, title=None, ai_generated=None):
    """Structural copy of an exercise into `module`; submissions are never copied"""
    return Exercise.objects.create(
        module=module,
        title=title or exercise.title,
        description=exercise.description,
        type=exercise.type,
        max_attempts=exercise.max_attempts,
        time_limit=exercise.time_limit,
        max_score=exercise.max_score,
        passing_score=exercise.passing_score,
        question=exercise.question,
        options=exercise.options,
        correct_answer=exercise.correct_answer,
        difficulty=exercise.difficulty,
        tags=list(exercise.tags or []),
        ai_generated=exercise.ai_generated if ai_generated is None else ai_generated,
    )


def tear_down_exercise(exercise):
    """Delete an exercise and its submissions"""
    Submission.objects.filter(exercise=exercise).delete()
    exercise.delete()


def _user_submissions(user, exercise):
    return list(
        Submission.objects.filter(student=user, exercise=exercise).order_by('-submitted_at', '-attempt_number')
    )


def _best_submission(submissions):
    if not submissions:
        return None
    return max(submissions, key=lambda s: s.score or 0)


# ===== QUERIES =====

def get_module_exercises(user, module_id, include_submissions=False):
    """
    Exercises of a module. With include_submissions, each exercise also carries
    the caller's submissions, best submission and attempts used / remaining.
    """
    module = lookups.get_module(module_id)
    require_view_course(user, module.course)

    exercises = list(module.exercises.all())
    if not include_submissions or not _is_authenticated(user):
        return exercises

    for exercise in exercises:
        submissions = _user_submissions(user, exercise)
        exercise.user_submissions = submissions
        exercise.best_submission = _best_submission(submissions)
        exercise.has_submitted = bool(submissions)
        exercise.attempts_used = len(submissions)
        exercise.attempts_remaining = (
            max(0, exercise.max_attempts - len(submissions)) if exercise.max_attempts else None
        )
    return exercises


def get_exercise(user, exercise_id, include_submissions=False):
    exercise = lookups.get_exercise(exercise_id)
    require_view_course(user, exercise.module.course)

    exercise.user_submissions = None
    exercise.user_stats = None
    if include_submissions and _is_authenticated(user):
        submissions = _user_submissions(user, exercise)
        exercise.user_submissions = submissions
        if submissions:
            scores = [Decimal(s.score or 0) for s in submissions]
            best_score = max(scores)
            exercise.user_stats = {
                'best_score': float(best_score),
                'total_attempts': len(submissions),
                'total_time_spent': sum(s.time_spent for s in submissions),
                'average_score': float(round_half_up(sum(scores) / len(scores), 2)),
                'has_passing_score': best_score >= exercise.passing_score if exercise.passing_score else None,
            }
    return exercise


def get_ai_generated_exercises(user, course_id=None, difficulty=None, limit=20):
    require_instructor_or_admin(user, 'Access denied')

    exercises = Exercise.objects.filter(ai_generated=True).select_related('module')
    if difficulty:
        exercises = exercises.filter(difficulty=difficulty)
    if course_id:
        exercises = exercises.filter(module__course_id=course_id)
    return list(exercises[:limit])


def get_exercise_stats(user, exercise_id=None, module_id=None, course_id=None):
    """
    Submission statistics for one exercise, every exercise of a module or every
    exercise of a course. The caller must be able to edit the owning course.
    """
    require_instructor_or_admin(user, 'Access denied')

    passing_score = None
    if exercise_id:
        exercise = lookups.get_exercise(exercise_id)
        course = exercise.module.course
        submissions = Submission.objects.filter(exercise=exercise)
        passing_score = exercise.passing_score
    elif module_id:
        module = lookups.get_module(module_id)
        course = module.course
        submissions = Submission.objects.filter(exercise__module=module)
    elif course_id:
        course = lookups.get_course(course_id)
        submissions = Submission.objects.filter(exercise__module__course=course)
    else:
        raise ValidationFailed('Must specify exerciseId, moduleId, or courseId')

    if not can_edit_course(user, course):
        raise PermissionDenied('Permission denied')

    return build_exercise_stats(submissions, passing_score)


def get_submission(user, submission_id):
    require_authenticated(user)
    submission = lookups.get_submission(submission_id)
    if not can_access_submission(user, submission):
        raise PermissionDenied('Access denied')
    return submission


# ===== MUTATIONS =====

def create_exercise(user, module_id, **data):
    module = lookups.get_module(module_id)
    require_edit_course(user, module.course)

    validate_exercise_content(data.get('type'), data.get('options'))

    fields = {key: value for key, value in data.items() if key in EXERCISE_EDITABLE_FIELDS}
    fields['ai_generated'] = data.get('ai_generated', False)
    exercise = Exercise.objects.create(module=module, **fields)
    logger.info(f"Exercise {exercise.id} created in module {module.id} by {user.email}")
    return exercise


def update_exercise(user, exercise_id, **updates):
    exercise = lookups.get_exercise(exercise_id)
    require_edit_course(user, exercise.module.course)

    new_type = updates.get('type') or exercise.type
    new_options = updates['options'] if 'options' in updates else exercise.options
    validate_exercise_content(new_type, new_options)

    update_fields = ['updated_at']
    for field in EXERCISE_EDITABLE_FIELDS:
        if field in updates:
            setattr(exercise, field, updates[field])
            update_fields.append(field)
    exercise.save(update_fields=update_fields)
    return exercise


def submit_exercise(user, exercise_id, answer, attachments=None, time_spent=0):
    """
    Record a learner's attempt.

    The enrollment row is locked while the attempt is counted so two
    concurrent submissions from the same learner cannot share an attempt
    number; the unique (student, exercise, attempt_number) constraint backs
    this up.
    """
    require_learner(user, 'Only learners can submit exercises')
    exercise = lookups.get_exercise(exercise_id)

    with transaction.atomic():
        enrollment = (
            Enrollment.objects.select_for_update()
            .filter(student=user, course_id=exercise.module.course_id)
            .first()
        )
        if enrollment is None or enrollment.status != Enrollment.ACTIVE:
            raise ValidationFailed('Not enrolled in this course or enrollment not active')

        previous_attempts = Submission.objects.filter(student=user, exercise=exercise).count()
        if exercise.max_attempts and previous_attempts >= exercise.max_attempts:
            logger.warning(f"User {user.email} exceeded max attempts for exercise {exercise.id}")
            raise ValidationFailed('Maximum number of attempts reached')

        now = timezone.now()
        score = None
        grading_result = None
        status = Submission.Status.SUBMITTED
        if exercise.type == Exercise.ExerciseType.MULTIPLE_CHOICE:
            result = score_multiple_choice(answer, exercise.options, exercise.max_score)
            score = result.score
            grading_result = build_grading_feedback(result)
            status = Submission.Status.GRADED

        try:
            with transaction.atomic():
                submission = Submission.objects.create(
                    exercise=exercise,
                    student=user,
                    answer=answer,
                    attachments=attachments or [],
                    score=score,
                    max_score=exercise.max_score,
                    status=status,
                    ai_grading_result=grading_result,
                    attempt_number=previous_attempts + 1,
                    time_spent=time_spent or 0,
                    submitted_at=now,
                    graded_at=now if score is not None else None,
                )
        except IntegrityError:
            raise ValidationFailed('Submission already recorded for this attempt')

    logger.info(
        f"Submission {submission.id} (attempt {submission.attempt_number}) for exercise {exercise.id} by {user.email}"
    )
    return submission


def grade_submission(user, submission_id, score, feedback=None):
    require_instructor_or_admin(user, 'Only instructors and admins can grade submissions')
    submission = lookups.get_submission(submission_id)
    require_edit_course(user, submission.exercise.module.course)

    score = Decimal(str(score))
    if score < 0 or score > submission.max_score:
        raise ValidationFailed(f"Score must be between 0 and {submission.max_score}")

    submission.score = score.quantize(TWO_PLACES)
    submission.status = Submission.Status.GRADED
    submission.graded_at = timezone.now()
    update_fields = ['score', 'status', 'graded_at']
    if feedback is not None:
        submission.instructor_feedback = feedback
        update_fields.append('instructor_feedback')
    submission.save(update_fields=update_fields)

    logger.info(f"Submission {submission.id} graded {submission.score}/{submission.max_score} by {user.email}")
    return submission


def generate_exercise_with_ai(user, module_id, topic, difficulty, exercise_type, count=1):
    """
    Placeholder generator: creates `count` template exercises on the topic.
    No external service is called.
    """
    module = lookups.get_module(module_id)
    require_edit_course(user, module.course)

    exercises = []
    with transaction.atomic():
        for index in range(1, count + 1):
            fields = {
                'module': module,
                'title': f"{topic} - AI generated exercise {index}",
                'description': f"Automatically generated exercise on: {topic}",
                'type': exercise_type,
                'question': f"AI generated question on {topic} ({difficulty} level)",
                'difficulty': difficulty,
                'tags': [topic, 'ai-generated'],
                'ai_generated': True,
            }
            if exercise_type == Exercise.ExerciseType.MULTIPLE_CHOICE:
                fields['options'] = [dict(option) for option in AI_GENERATED_OPTIONS]
            if exercise_type in (Exercise.ExerciseType.OPEN_ENDED, Exercise.ExerciseType.CODING):
                fields['correct_answer'] = 'AI generated model answer'
            exercises.append(Exercise.objects.create(**fields))

    logger.info(f"Generated {len(exercises)} placeholder exercises on '{topic}' in module {module.id}")
    return exercises


def duplicate_exercise(user, exercise_id, target_module_id=None, new_title=None):
    require_instructor_or_admin(user)
    exercise = lookups.get_exercise(exercise_id)
    require_view_course(user, exercise.module.course)

    if target_module_id:
        target_module = lookups.get_module(target_module_id, 'Target module not found')
    else:
        target_module = exercise.module
    require_edit_course(user, target_module.course)

    return copy_exercise(
        exercise,
        target_module,
        title=new_title or f"{exercise.title} (Copy)",
        ai_generated=False,
    )


def delete_exercise(user, exercise_id):
    exercise = lookups.get_exercise(exercise_id)
    require_edit_course(user, exercise.module.course)

    exercise_pk = exercise.id
    with transaction.atomic():
        tear_down_exercise(exercise)
    logger.info(f"Exercise {exercise_pk} deleted by {user.email}")
    return exercise_pk
