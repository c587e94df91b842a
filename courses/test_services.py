from decimal import Decimal

from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.test import TestCase

from backend.exceptions import NotFound, PermissionDenied, Unauthenticated, ValidationFailed
from courses import course_service, module_service, exercise_service
from courses.models import Course, Module, Exercise, Submission
from student.models import Enrollment, ModuleProgress
from student import enrollment_service

User = get_user_model()

MC_OPTIONS = [
    {'id': 'a', 'text': 'A list', 'is_correct': True},
    {'id': 'b', 'text': 'A tuple', 'is_correct': True},
    {'id': 'c', 'text': 'An int', 'is_correct': False},
]


def make_user(uid, role):
    return User.objects.create_user(
        firebase_uid=uid,
        email=f'{uid}@test.com',
        username=f'{uid}@test.com',
        first_name=uid.title(),
        role=role,
    )


class CourseFixtureMixin:
    """Instructor with a published course of three modules, plus a learner and an admin."""

    def setUp(self):
        self.instructor = make_user('instructor', 'instructor')
        self.other_instructor = make_user('other', 'instructor')
        self.learner = make_user('learner', 'learner')
        self.admin = make_user('admin', 'admin')

        self.course = course_service.create_course(
            self.instructor,
            title='Python Basics',
            description='Learn Python',
            category='Programming',
            tags=['python', 'beginner'],
        )
        self.modules = [
            module_service.create_module(self.instructor, self.course.id, title=f'Module {i}', type='lesson')
            for i in range(1, 4)
        ]
        course_service.set_course_status(self.instructor, self.course.id, Course.Status.PUBLISHED)
        self.course.refresh_from_db()

    def orders(self, course=None):
        return list(
            Module.objects.filter(course=course or self.course).order_by('order').values_list('title', 'order')
        )


class CourseServiceTest(CourseFixtureMixin, TestCase):

    def test_learner_cannot_create_course(self):
        with self.assertRaises(PermissionDenied):
            course_service.create_course(self.learner, title='Nope', description='', category='x')

    def test_anonymous_cannot_create_course(self):
        with self.assertRaises(Unauthenticated):
            course_service.create_course(AnonymousUser(), title='Nope', description='', category='x')

    def test_new_course_is_draft_owned_by_caller(self):
        course = course_service.create_course(self.other_instructor, title='Draft', description='d', category='x')
        self.assertEqual(course.status, Course.Status.DRAFT)
        self.assertEqual(course.instructor, self.other_instructor)
        self.assertIsNone(course.published_at)

    def test_draft_hidden_from_anonymous_and_other_instructors(self):
        course = course_service.create_course(self.instructor, title='Draft', description='d', category='x')
        with self.assertRaises(PermissionDenied):
            course_service.get_course_with_modules(AnonymousUser(), course.id)
        with self.assertRaises(PermissionDenied):
            course_service.get_course_with_modules(self.other_instructor, course.id)
        self.assertEqual(course_service.get_course_with_modules(self.admin, course.id).id, course.id)

    def test_published_course_visible_to_anonymous(self):
        course = course_service.get_course_with_modules(AnonymousUser(), self.course.id)
        self.assertEqual([m.order for m in course.module_list], [1, 2, 3])

    def test_unknown_course(self):
        with self.assertRaises(NotFound):
            course_service.get_course_with_modules(self.admin, '00000000-0000-0000-0000-000000000000')

    def test_published_at_set_only_on_first_publish(self):
        first_published_at = self.course.published_at
        self.assertIsNotNone(first_published_at)

        course_service.set_course_status(self.instructor, self.course.id, Course.Status.ARCHIVED)
        course = course_service.set_course_status(self.instructor, self.course.id, Course.Status.PUBLISHED)
        self.assertEqual(course.published_at, first_published_at)

    def test_only_owner_or_admin_can_update(self):
        with self.assertRaises(PermissionDenied):
            course_service.update_course(self.other_instructor, self.course.id, title='Hijacked')
        course = course_service.update_course(self.admin, self.course.id, title='Renamed', status='archived')
        self.assertEqual(course.title, 'Renamed')
        self.assertEqual(course.status, Course.Status.PUBLISHED)

    def test_search_matches_title_description_and_tags(self):
        self.assertEqual(len(course_service.search_courses('PYTHON')), 1)
        self.assertEqual(len(course_service.search_courses('beginner')), 1)
        self.assertEqual(len(course_service.search_courses('rust')), 0)
        self.assertEqual(len(course_service.search_courses('python', level='advanced')), 0)

    def test_categories_count_published_courses(self):
        course_service.create_course(self.instructor, title='Draft', description='d', category='Programming')
        self.assertEqual(course_service.get_course_categories(), [{'name': 'Programming', 'count': 1}])

    def test_instructor_courses_with_stats(self):
        enrollment_service.enroll_in_course(self.learner, self.course.id)
        courses = course_service.get_instructor_courses(self.instructor, include_stats=True)
        self.assertEqual(len(courses), 1)
        self.assertEqual(courses[0].stats['total_enrollments'], 1)
        self.assertEqual(courses[0].stats['active_enrollments'], 1)

    def test_instructor_courses_of_someone_else_requires_admin(self):
        with self.assertRaises(PermissionDenied):
            course_service.get_instructor_courses(self.other_instructor, instructor_uid='instructor')
        courses = course_service.get_instructor_courses(self.admin, instructor_uid='instructor')
        self.assertEqual([c.id for c in courses], [self.course.id])


class DeleteCourseTest(CourseFixtureMixin, TestCase):

    def test_active_enrollment_blocks_delete(self):
        enrollment_service.enroll_in_course(self.learner, self.course.id)
        with self.assertRaises(ValidationFailed):
            course_service.delete_course(self.instructor, self.course.id)
        self.assertTrue(Course.objects.filter(id=self.course.id).exists())

    def test_delete_removes_whole_subtree(self):
        exercise = exercise_service.create_exercise(
            self.instructor, self.modules[0].id,
            title='Q1', type='multiple_choice', question='Pick', options=MC_OPTIONS,
        )
        enrollment_service.enroll_in_course(self.learner, self.course.id)
        exercise_service.submit_exercise(self.learner, exercise.id, 'a')
        enrollment_service.drop_course(self.learner, self.course.id)

        course_service.delete_course(self.instructor, self.course.id)

        self.assertFalse(Course.objects.filter(id=self.course.id).exists())
        self.assertFalse(Module.objects.filter(course_id=self.course.id).exists())
        self.assertFalse(Exercise.objects.filter(id=exercise.id).exists())
        self.assertFalse(Submission.objects.exists())
        self.assertFalse(Enrollment.objects.exists())
        self.assertFalse(ModuleProgress.objects.exists())

    def test_other_instructor_cannot_delete(self):
        with self.assertRaises(PermissionDenied):
            course_service.delete_course(self.other_instructor, self.course.id)


class DuplicateCourseTest(CourseFixtureMixin, TestCase):

    def test_duplicate_copies_structure_only(self):
        exercise_service.create_exercise(
            self.instructor, self.modules[1].id,
            title='Q1', type='multiple_choice', question='Pick', options=MC_OPTIONS,
        )
        enrollment_service.enroll_in_course(self.learner, self.course.id)

        copy = course_service.duplicate_course(self.other_instructor, self.course.id)

        self.assertEqual(copy.title, 'Python Basics (Copy)')
        self.assertEqual(copy.instructor, self.other_instructor)
        self.assertEqual(copy.status, Course.Status.DRAFT)
        self.assertEqual(copy.enrollment_count, 0)
        self.assertEqual(self.orders(copy), self.orders())
        self.assertEqual(Exercise.objects.filter(module__course=copy).count(), 1)
        self.assertFalse(Enrollment.objects.filter(course=copy).exists())

    def test_custom_title(self):
        copy = course_service.duplicate_course(self.instructor, self.course.id, new_title='Python 2')
        self.assertEqual(copy.title, 'Python 2')

    def test_learner_cannot_duplicate(self):
        with self.assertRaises(PermissionDenied):
            course_service.duplicate_course(self.learner, self.course.id)


class ModuleOrderingTest(CourseFixtureMixin, TestCase):

    def test_new_modules_are_appended(self):
        self.assertEqual(self.orders(), [('Module 1', 1), ('Module 2', 2), ('Module 3', 3)])

    def test_reorder(self):
        m1, m2, m3 = self.modules
        module_service.reorder_modules(self.instructor, [m3.id, m1.id, m2.id])
        self.assertEqual(self.orders(), [('Module 3', 1), ('Module 1', 2), ('Module 2', 3)])

    def test_reorder_requires_every_module(self):
        m1, m2, _ = self.modules
        with self.assertRaises(ValidationFailed):
            module_service.reorder_modules(self.instructor, [m2.id, m1.id])

    def test_reorder_rejects_duplicates_and_empty(self):
        m1, m2, m3 = self.modules
        with self.assertRaises(ValidationFailed):
            module_service.reorder_modules(self.instructor, [m1.id, m1.id, m2.id, m3.id])
        with self.assertRaises(ValidationFailed):
            module_service.reorder_modules(self.instructor, [])

    def test_reorder_rejects_mixed_courses(self):
        other = course_service.create_course(self.instructor, title='Other', description='', category='x')
        foreign = module_service.create_module(self.instructor, other.id, title='Foreign', type='lesson')
        with self.assertRaises(ValidationFailed):
            module_service.reorder_modules(self.instructor, [m.id for m in self.modules] + [foreign.id])

    def test_reorder_unknown_module(self):
        with self.assertRaises(NotFound):
            module_service.reorder_modules(self.instructor, ['00000000-0000-0000-0000-000000000000'])

    def test_reorder_requires_edit_rights(self):
        with self.assertRaises(PermissionDenied):
            module_service.reorder_modules(self.other_instructor, [m.id for m in reversed(self.modules)])

    def test_delete_closes_the_gap(self):
        module_service.delete_module(self.instructor, self.modules[0].id)
        self.assertEqual(self.orders(), [('Module 2', 1), ('Module 3', 2)])

    def test_duplicate_module_goes_last(self):
        exercise_service.create_exercise(
            self.instructor, self.modules[0].id,
            title='Q1', type='open_ended', question='Explain',
        )
        copy = module_service.duplicate_module(self.instructor, self.modules[0].id)
        self.assertEqual(copy.order, 4)
        self.assertEqual(copy.title, 'Module 1 (Copy)')
        self.assertEqual(copy.exercises.count(), 1)


class ModuleEnrollmentSyncTest(CourseFixtureMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.enrollment = enrollment_service.enroll_in_course(self.learner, self.course.id)

    def test_new_module_gets_progress_rows_and_recalculates(self):
        enrollment_service.update_module_progress(self.learner, self.modules[0].id, 100, 0)
        self.enrollment.refresh_from_db()
        self.assertEqual(self.enrollment.progress_percentage, 33)

        module = module_service.create_module(self.instructor, self.course.id, title='Module 4', type='quiz')

        self.assertTrue(ModuleProgress.objects.filter(enrollment=self.enrollment, module=module).exists())
        self.enrollment.refresh_from_db()
        self.assertEqual(self.enrollment.progress_percentage, 25)

    def test_deleting_last_open_module_completes_enrollment(self):
        for module in self.modules[:2]:
            enrollment_service.update_module_progress(self.learner, module.id, 100, 0)

        module_service.delete_module(self.instructor, self.modules[2].id)

        self.enrollment.refresh_from_db()
        self.assertEqual(self.enrollment.status, Enrollment.COMPLETED)
        self.assertEqual(self.enrollment.progress_percentage, 100)

    def test_deleting_current_module_clears_reference(self):
        enrollment_service.update_module_progress(self.learner, self.modules[0].id, 100, 0)
        self.enrollment.refresh_from_db()
        self.assertEqual(self.enrollment.current_module, self.modules[1])

        module_service.delete_module(self.instructor, self.modules[1].id)

        self.enrollment.refresh_from_db()
        self.assertEqual(self.enrollment.current_module, self.modules[2])

    def test_course_modules_with_progress(self):
        enrollment_service.update_module_progress(self.learner, self.modules[0].id, 40, 30)
        modules = module_service.get_course_modules(self.learner, self.course.id, include_progress=True)
        self.assertEqual(modules[0].progress.status, ModuleProgress.IN_PROGRESS)
        self.assertEqual(modules[1].progress.status, ModuleProgress.NOT_STARTED)

    def test_instructor_module_stats(self):
        enrollment_service.update_module_progress(self.learner, self.modules[0].id, 100, 120)
        modules = module_service.get_instructor_modules(self.instructor, include_stats=True)
        stats = {m.title: m.stats for m in modules}
        self.assertEqual(stats['Module 1']['completed_count'], 1)
        self.assertEqual(stats['Module 1']['average_time_spent'], 120)
        self.assertEqual(stats['Module 2']['total_students'], 1)


class ExerciseServiceTest(CourseFixtureMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.module = self.modules[0]
        self.exercise = exercise_service.create_exercise(
            self.instructor, self.module.id,
            title='Sequences', type='multiple_choice', question='Which are sequences?',
            options=MC_OPTIONS, max_attempts=2, passing_score=12,
        )
        enrollment_service.enroll_in_course(self.learner, self.course.id)

    def test_multiple_choice_requires_correct_option(self):
        with self.assertRaises(ValidationFailed):
            exercise_service.create_exercise(
                self.instructor, self.module.id,
                title='Bad', type='multiple_choice', question='?',
                options=[{'id': 'a', 'text': 'x', 'is_correct': False}],
            )

    def test_update_cannot_clear_multiple_choice_options(self):
        for options in (None, []):
            with self.assertRaises(ValidationFailed):
                exercise_service.update_exercise(self.instructor, self.exercise.id, options=options)

        self.exercise.refresh_from_db()
        self.assertEqual(self.exercise.options, MC_OPTIONS)
        submission = exercise_service.submit_exercise(self.learner, self.exercise.id, 'a')
        self.assertEqual(submission.status, Submission.Status.GRADED)

    def test_update_without_options_keeps_stored_ones(self):
        exercise = exercise_service.update_exercise(self.instructor, self.exercise.id, title='Sequences 2')
        self.assertEqual(exercise.options, MC_OPTIONS)

    def test_submit_multiple_choice_is_graded_immediately(self):
        submission = exercise_service.submit_exercise(self.learner, self.exercise.id, 'a,b', time_spent=45)
        self.assertEqual(submission.status, Submission.Status.GRADED)
        self.assertEqual(submission.score, Decimal('20.00'))
        self.assertEqual(submission.attempt_number, 1)
        self.assertEqual(submission.ai_grading_result['feedback'], '2 correct answers out of 2')
        self.assertIsNotNone(submission.graded_at)

    def test_attempt_limit(self):
        exercise_service.submit_exercise(self.learner, self.exercise.id, 'a')
        second = exercise_service.submit_exercise(self.learner, self.exercise.id, 'a,b')
        self.assertEqual(second.attempt_number, 2)
        with self.assertRaises(ValidationFailed):
            exercise_service.submit_exercise(self.learner, self.exercise.id, 'a,b')
        self.assertEqual(Submission.objects.filter(exercise=self.exercise).count(), 2)

    def test_submit_requires_active_enrollment(self):
        enrollment_service.drop_course(self.learner, self.course.id)
        with self.assertRaises(ValidationFailed):
            exercise_service.submit_exercise(self.learner, self.exercise.id, 'a')

    def test_only_learners_submit(self):
        with self.assertRaises(PermissionDenied):
            exercise_service.submit_exercise(self.instructor, self.exercise.id, 'a')

    def test_open_ended_waits_for_grading(self):
        exercise = exercise_service.create_exercise(
            self.instructor, self.module.id, title='Essay', type='open_ended', question='Explain lists',
        )
        submission = exercise_service.submit_exercise(self.learner, exercise.id, 'Lists are mutable')
        self.assertEqual(submission.status, Submission.Status.SUBMITTED)
        self.assertIsNone(submission.score)

        graded = exercise_service.grade_submission(self.instructor, submission.id, 15.5, feedback='Good')
        self.assertEqual(graded.status, Submission.Status.GRADED)
        self.assertEqual(graded.score, Decimal('15.50'))
        self.assertEqual(graded.instructor_feedback, 'Good')

    def test_grade_out_of_range(self):
        submission = exercise_service.submit_exercise(self.learner, self.exercise.id, 'a')
        with self.assertRaises(ValidationFailed):
            exercise_service.grade_submission(self.instructor, submission.id, 21)
        with self.assertRaises(ValidationFailed):
            exercise_service.grade_submission(self.instructor, submission.id, -1)

    def test_grade_requires_course_owner(self):
        submission = exercise_service.submit_exercise(self.learner, self.exercise.id, 'a')
        with self.assertRaises(PermissionDenied):
            exercise_service.grade_submission(self.other_instructor, submission.id, 10)

    def test_grade_keeps_feedback_when_none(self):
        submission = exercise_service.submit_exercise(self.learner, self.exercise.id, 'a')
        exercise_service.grade_submission(self.instructor, submission.id, 10, feedback='First pass')
        graded = exercise_service.grade_submission(self.instructor, submission.id, 12)
        self.assertEqual(graded.instructor_feedback, 'First pass')

    def test_submission_access(self):
        submission = exercise_service.submit_exercise(self.learner, self.exercise.id, 'a')
        other_learner = make_user('other-learner', 'learner')
        with self.assertRaises(PermissionDenied):
            exercise_service.get_submission(other_learner, submission.id)
        self.assertEqual(exercise_service.get_submission(self.instructor, submission.id).id, submission.id)
        self.assertEqual(exercise_service.get_submission(self.learner, submission.id).id, submission.id)

    def test_exercises_with_submission_history(self):
        exercise_service.submit_exercise(self.learner, self.exercise.id, 'a')
        exercise_service.submit_exercise(self.learner, self.exercise.id, 'a,b')
        exercise = exercise_service.get_module_exercises(self.learner, self.module.id, include_submissions=True)[0]
        self.assertTrue(exercise.has_submitted)
        self.assertEqual(exercise.attempts_used, 2)
        self.assertEqual(exercise.attempts_remaining, 0)
        self.assertEqual(exercise.best_submission.score, Decimal('20.00'))

    def test_exercise_user_stats(self):
        exercise_service.submit_exercise(self.learner, self.exercise.id, 'a')
        exercise_service.submit_exercise(self.learner, self.exercise.id, 'a,b')
        exercise = exercise_service.get_exercise(self.learner, self.exercise.id, include_submissions=True)
        self.assertEqual(exercise.user_stats['best_score'], 20.0)
        self.assertEqual(exercise.user_stats['average_score'], 15.0)
        self.assertTrue(exercise.user_stats['has_passing_score'])

    def test_exercise_stats_scopes(self):
        exercise_service.submit_exercise(self.learner, self.exercise.id, 'a')
        stats = exercise_service.get_exercise_stats(self.instructor, exercise_id=self.exercise.id)
        self.assertEqual(stats['total_submissions'], 1)
        self.assertEqual(stats['pass_rate'], 0)
        stats = exercise_service.get_exercise_stats(self.instructor, course_id=self.course.id)
        self.assertEqual(stats['unique_students'], 1)
        with self.assertRaises(ValidationFailed):
            exercise_service.get_exercise_stats(self.instructor)
        with self.assertRaises(PermissionDenied):
            exercise_service.get_exercise_stats(self.other_instructor, module_id=self.module.id)

    def test_generate_placeholder_exercises(self):
        exercises = exercise_service.generate_exercise_with_ai(
            self.instructor, self.module.id, topic='Loops', difficulty='easy',
            exercise_type='multiple_choice', count=3,
        )
        self.assertEqual(len(exercises), 3)
        self.assertTrue(all(e.ai_generated for e in exercises))
        self.assertEqual(exercises[0].title, 'Loops - AI generated exercise 1')
        self.assertEqual(len(exercises[0].options), 4)

        listed = exercise_service.get_ai_generated_exercises(self.instructor, course_id=self.course.id, limit=2)
        self.assertEqual(len(listed), 2)

    def test_duplicate_exercise_resets_ai_flag(self):
        generated = exercise_service.generate_exercise_with_ai(
            self.instructor, self.module.id, topic='Loops', difficulty='easy', exercise_type='coding',
        )[0]
        copy = exercise_service.duplicate_exercise(self.instructor, generated.id, target_module_id=self.modules[1].id)
        self.assertFalse(copy.ai_generated)
        self.assertEqual(copy.title, 'Loops - AI generated exercise 1 (Copy)')
        self.assertEqual(copy.module, self.modules[1])

    def test_delete_exercise_removes_submissions(self):
        exercise_service.submit_exercise(self.learner, self.exercise.id, 'a')
        exercise_service.delete_exercise(self.instructor, self.exercise.id)
        self.assertFalse(Submission.objects.exists())
