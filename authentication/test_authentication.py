from unittest import mock

from django.contrib.auth import get_user_model
from django.test import TestCase
from firebase_admin import auth
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.test import APIRequestFactory, APITestCase

from authentication.authentication import FirebaseAuthentication, verify_id_token

User = get_user_model()

DECODED_TOKEN = {
    'uid': 'firebase-uid-1',
    'email': 'ada@test.com',
    'name': 'Ada Lovelace',
    'email_verified': True,
}


@mock.patch('authentication.authentication.ensure_firebase_initialized', return_value=True)
class FirebaseAuthenticationTest(TestCase):
    """Bearer token verification and first-login account creation."""

    def setUp(self):
        self.factory = APIRequestFactory()
        self.backend = FirebaseAuthentication()

    def request(self, header=None):
        if header is None:
            return self.factory.get('/api/users/me/')
        return self.factory.get('/api/users/me/', HTTP_AUTHORIZATION=header)

    def test_no_header_stays_anonymous(self, _):
        self.assertIsNone(self.backend.authenticate(self.request()))

    def test_non_bearer_header_is_ignored(self, _):
        self.assertIsNone(self.backend.authenticate(self.request('Basic abc')))

    @mock.patch('authentication.authentication.auth.verify_id_token', return_value=DECODED_TOKEN)
    def test_first_login_creates_learner(self, verify, _):
        user, token = self.backend.authenticate(self.request('Bearer good-token'))

        self.assertEqual(token, 'good-token')
        self.assertEqual(user.firebase_uid, 'firebase-uid-1')
        self.assertEqual(user.role, User.Role.LEARNER)
        self.assertEqual(User.objects.count(), 1)
        verify.assert_called_once_with('good-token', check_revoked=False)

    @mock.patch('authentication.authentication.auth.verify_id_token', return_value=DECODED_TOKEN)
    def test_existing_user_is_reused(self, verify, _):
        first, _ = self.backend.authenticate(self.request('Bearer t1'))
        second, _ = self.backend.authenticate(self.request('Bearer t2'))
        self.assertEqual(first.id, second.id)
        self.assertEqual(User.objects.count(), 1)

    @mock.patch(
        'authentication.authentication.auth.verify_id_token',
        side_effect=auth.InvalidIdTokenError('Token expired'),
    )
    def test_invalid_token(self, verify, _):
        with self.assertRaises(AuthenticationFailed):
            self.backend.authenticate(self.request('Bearer bad-token'))

    @mock.patch('authentication.authentication.auth.verify_id_token', return_value={'uid': 'no-email'})
    def test_token_without_email(self, verify, _):
        with self.assertRaises(AuthenticationFailed):
            self.backend.authenticate(self.request('Bearer token'))

    @mock.patch('authentication.authentication.auth.verify_id_token', return_value=DECODED_TOKEN)
    def test_disabled_account(self, verify, _):
        User.objects.create_user(
            firebase_uid='firebase-uid-1', email='ada@test.com', username='ada@test.com', is_active=False
        )
        with self.assertRaises(AuthenticationFailed):
            self.backend.authenticate(self.request('Bearer token'))

    @mock.patch('authentication.authentication.auth.verify_id_token', return_value=DECODED_TOKEN)
    def test_email_owned_by_another_account(self, verify, _):
        User.objects.create_user(firebase_uid='other-uid', email='ada@test.com', username='ada@test.com')

        with self.assertRaises(AuthenticationFailed):
            self.backend.authenticate(self.request('Bearer token'))
        self.assertFalse(User.objects.filter(firebase_uid='firebase-uid-1').exists())

    def test_firebase_unavailable(self, initialized):
        initialized.return_value = False
        self.assertIsNone(self.backend.authenticate(self.request('Bearer token')))


class VerifyIdTokenTest(TestCase):

    @mock.patch('authentication.authentication.time.sleep')
    @mock.patch('authentication.authentication.auth.verify_id_token')
    def test_clock_skew_is_retried(self, verify, sleep):
        verify.side_effect = [auth.InvalidIdTokenError('Token used too early'), DECODED_TOKEN]
        self.assertEqual(verify_id_token('token'), DECODED_TOKEN)
        self.assertEqual(verify.call_count, 2)
        sleep.assert_called_once_with(1)

    @mock.patch('authentication.authentication.time.sleep')
    @mock.patch('authentication.authentication.auth.verify_id_token')
    def test_other_errors_are_not_retried(self, verify, sleep):
        verify.side_effect = auth.InvalidIdTokenError('Signature mismatch')
        with self.assertRaises(auth.InvalidIdTokenError):
            verify_id_token('token')
        self.assertEqual(verify.call_count, 1)
        sleep.assert_not_called()


@mock.patch('authentication.views.ensure_firebase_initialized', return_value=True)
class SignupAPITestCase(APITestCase):

    @mock.patch('authentication.views.verify_id_token', return_value=DECODED_TOKEN)
    def test_signup_as_instructor(self, verify, _):
        response = self.client.post('/api/auth/signup/', {
            'token': 'good-token',
            'role': 'instructor',
            'preferences': {'language': 'en'},
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['created'])
        self.assertEqual(response.data['user']['role'], 'instructor')
        self.assertEqual(response.data['user']['preferences']['language'], 'en')

        response = self.client.post('/api/auth/signup/', {'token': 'good-token'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['created'])

    @mock.patch('authentication.views.verify_id_token', return_value=DECODED_TOKEN)
    def test_signup_cannot_claim_admin(self, verify, _):
        response = self.client.post('/api/auth/signup/', {'token': 'good-token', 'role': 'admin'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(User.objects.exists())

    @mock.patch(
        'authentication.views.verify_id_token',
        side_effect=auth.InvalidIdTokenError('Token expired'),
    )
    def test_verify_invalid_token(self, verify, _):
        response = self.client.post('/api/auth/verify-token/', {'token': 'bad'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.data['valid'])

    def test_service_unavailable(self, initialized):
        initialized.return_value = False
        response = self.client.post('/api/auth/verify-token/', {'token': 'any'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
