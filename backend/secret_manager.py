"""
Google Secret Manager access for deployments that keep the Firebase service
account out of the filesystem.
"""
import json
import logging
from typing import Optional, Dict, Any
from google.cloud import secretmanager
from google.api_core import exceptions as gcp_exceptions

logger = logging.getLogger(__name__)


class SecretManagerClient:
    """Thin wrapper around the Secret Manager API for one GCP project."""

    def __init__(self, project_id: str, client=None):
        self.project_id = project_id
        self.client = client or secretmanager.SecretManagerServiceClient()

    def secret_path(self, secret_name: str, version: str = "latest") -> str:
        return f"projects/{self.project_id}/secrets/{secret_name}/versions/{version}"

    def get_secret(self, secret_name: str, version: str = "latest") -> Optional[str]:
        """
        Retrieve a secret value.

        Returns None when the secret does not exist; access errors propagate.
        """
        try:
            response = self.client.access_secret_version(request={"name": self.secret_path(secret_name, version)})
        except gcp_exceptions.NotFound:
            logger.warning(f"Secret not found: {secret_name}")
            return None
        return response.payload.data.decode("UTF-8")

    def get_json_secret(self, secret_name: str) -> Optional[Dict[str, Any]]:
        value = self.get_secret(secret_name)
        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            logger.error(f"Secret {secret_name} is not valid JSON")
            return None


def load_firebase_credentials(project_id: str, secret_name: str, client=None) -> Optional[Dict[str, Any]]:
    """
    Firebase service account stored as one JSON secret, or None when missing.
    """
    credentials = SecretManagerClient(project_id, client=client).get_json_secret(secret_name)
    if credentials is None:
        return None
    if credentials.get('type') != 'service_account':
        logger.error(f"Secret {secret_name} does not hold a service account")
        return None
    logger.info(f"Loaded Firebase service account from secret {secret_name}")
    return credentials
