from rest_framework.test import APITestCase
from rest_framework import status
from django.contrib.auth import get_user_model

from courses.models import Course, Exercise, Module, Submission
from student.models import Enrollment

User = get_user_model()


class CourseAPITestCase(APITestCase):
    """
    End to end flow over HTTP: author a course, enroll, submit and grade.
    """

    def setUp(self):
        """Set up test data"""
        self.instructor = User.objects.create_user(
            firebase_uid='test_instructor_firebase_uid',
            email='instructor@test.com',
            username='instructor@test.com',
            first_name='Test',
            last_name='Instructor',
            role='instructor'
        )
        self.learner = User.objects.create_user(
            firebase_uid='test_learner_firebase_uid',
            email='learner@test.com',
            username='learner@test.com',
            first_name='Test',
            last_name='Learner',
            role='learner'
        )

    def create_published_course(self):
        self.client.force_authenticate(user=self.instructor)
        response = self.client.post('/api/courses/', {
            'title': 'Intro to SQL',
            'description': 'Queries and joins',
            'category': 'Data',
            'tags': ['sql'],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        course_id = response.data['id']

        for title in ('SELECT', 'JOIN'):
            response = self.client.post(
                f'/api/courses/{course_id}/modules/', {'title': title, 'type': 'lesson'}, format='json'
            )
            self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.post(f'/api/courses/{course_id}/status/', {'status': 'published'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.client.force_authenticate(user=None)
        return course_id

    def test_create_course(self):
        course_id = self.create_published_course()
        course = Course.objects.get(id=course_id)
        self.assertEqual(course.instructor, self.instructor)
        self.assertEqual(course.status, Course.Status.PUBLISHED)

    def test_learner_cannot_create_course(self):
        self.client.force_authenticate(user=self.learner)
        response = self.client.post('/api/courses/', {
            'title': 'Nope', 'description': 'x', 'category': 'x'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data, {'error': 'Only instructors and admins can create courses'})

    def test_invalid_payload(self):
        self.client.force_authenticate(user=self.instructor)
        response = self.client.post('/api/courses/', {'description': 'no title'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid request data')
        self.assertIn('title', response.data['details'])

    def test_anonymous_catalogue_and_detail(self):
        course_id = self.create_published_course()

        response = self.client.get('/api/courses/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

        response = self.client.get(f'/api/courses/{course_id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([m['order'] for m in response.data['modules']], [1, 2])
        self.assertEqual(response.data['instructor']['full_name'], 'Test Instructor')

    def test_unknown_course_returns_404(self):
        response = self.client.get('/api/courses/00000000-0000-0000-0000-000000000000/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {'error': 'Course not found'})

    def test_anonymous_enroll_is_unauthorized(self):
        course_id = self.create_published_course()
        response = self.client.post(f'/api/enrollments/courses/{course_id}/enroll/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data, {'error': 'Unauthorized'})

    def test_reorder_modules(self):
        course_id = self.create_published_course()
        ids = list(Module.objects.filter(course_id=course_id).order_by('order').values_list('id', flat=True))

        self.client.force_authenticate(user=self.instructor)
        response = self.client.put(
            '/api/modules/reorder/', {'module_ids': [str(i) for i in reversed(ids)]}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([m['title'] for m in response.data], ['JOIN', 'SELECT'])
        self.assertEqual([m['order'] for m in response.data], [1, 2])

    def test_enroll_submit_and_progress(self):
        course_id = self.create_published_course()
        module = Module.objects.filter(course_id=course_id).order_by('order').first()

        self.client.force_authenticate(user=self.instructor)
        response = self.client.post(f'/api/modules/{module.id}/exercises/', {
            'title': 'Joins',
            'type': 'multiple_choice',
            'question': 'Which joins keep unmatched rows?',
            'options': [
                {'id': 'a', 'text': 'LEFT JOIN', 'is_correct': True},
                {'id': 'b', 'text': 'INNER JOIN', 'is_correct': False},
            ],
            'max_attempts': 1,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        exercise_id = response.data['id']

        self.client.force_authenticate(user=self.learner)
        response = self.client.post(f'/api/enrollments/courses/{course_id}/enroll/')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        enrollment_id = response.data['id']

        response = self.client.post(f'/api/exercises/{exercise_id}/submit/', {'answer': 'a'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], Submission.Status.GRADED)
        self.assertEqual(response.data['score'], '20.00')

        response = self.client.post(f'/api/exercises/{exercise_id}/submit/', {'answer': 'a'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'error': 'Maximum number of attempts reached'})

        response = self.client.post(
            f'/api/enrollments/modules/{module.id}/progress/', {'progress_percentage': 100}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'completed')

        response = self.client.get(f'/api/enrollments/{enrollment_id}/progress/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['enrollment']['progress_percentage'], 50)
        self.assertEqual(response.data['overall_stats']['completed_modules'], 1)

    def test_patch_null_options_rejected(self):
        course_id = self.create_published_course()
        module = Module.objects.filter(course_id=course_id).order_by('order').first()

        self.client.force_authenticate(user=self.instructor)
        response = self.client.post(f'/api/modules/{module.id}/exercises/', {
            'title': 'Keys',
            'type': 'multiple_choice',
            'question': 'Which keys are unique?',
            'options': [{'id': 'a', 'text': 'PRIMARY KEY', 'is_correct': True}],
        }, format='json')
        exercise_id = response.data['id']

        response = self.client.patch(f'/api/exercises/{exercise_id}/', {'options': None}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'error': 'Multiple choice exercises must have options'})
        self.assertEqual(Exercise.objects.get(id=exercise_id).options[0]['id'], 'a')

    def test_delete_course_with_active_enrollment(self):
        course_id = self.create_published_course()
        self.client.force_authenticate(user=self.learner)
        self.client.post(f'/api/enrollments/courses/{course_id}/enroll/')

        self.client.force_authenticate(user=self.instructor)
        response = self.client.delete(f'/api/courses/{course_id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Enrollment.objects.filter(course_id=course_id).exists())
