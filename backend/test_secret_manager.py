import json
from unittest import mock

from django.test import SimpleTestCase
from google.api_core import exceptions as gcp_exceptions

from backend.secret_manager import SecretManagerClient, load_firebase_credentials


def secret_response(value):
    response = mock.Mock()
    response.payload.data = value.encode('UTF-8')
    return response


class SecretManagerClientTest(SimpleTestCase):

    def setUp(self):
        self.api = mock.Mock()
        self.client = SecretManagerClient('lms-project', client=self.api)

    def test_reads_latest_version(self):
        self.api.access_secret_version.return_value = secret_response('s3cret')

        self.assertEqual(self.client.get_secret('db-password'), 's3cret')
        self.api.access_secret_version.assert_called_once_with(
            request={'name': 'projects/lms-project/secrets/db-password/versions/latest'}
        )

    def test_missing_secret(self):
        self.api.access_secret_version.side_effect = gcp_exceptions.NotFound('gone')
        self.assertIsNone(self.client.get_secret('db-password'))

    def test_access_errors_propagate(self):
        self.api.access_secret_version.side_effect = gcp_exceptions.PermissionDenied('nope')
        with self.assertRaises(gcp_exceptions.PermissionDenied):
            self.client.get_secret('db-password')

    def test_invalid_json(self):
        self.api.access_secret_version.return_value = secret_response('not json')
        self.assertIsNone(self.client.get_json_secret('firebase'))


class LoadFirebaseCredentialsTest(SimpleTestCase):

    def test_service_account(self):
        api = mock.Mock()
        payload = {'type': 'service_account', 'project_id': 'lms-project'}
        api.access_secret_version.return_value = secret_response(json.dumps(payload))

        self.assertEqual(load_firebase_credentials('lms-project', 'firebase', client=api), payload)

    def test_other_credential_types_are_rejected(self):
        api = mock.Mock()
        api.access_secret_version.return_value = secret_response(json.dumps({'type': 'authorized_user'}))

        self.assertIsNone(load_firebase_credentials('lms-project', 'firebase', client=api))
