from django.contrib.auth import get_user_model
from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed
from firebase_admin import auth
import firebase_admin
import logging
import time

from backend.exceptions import ValidationFailed

logger = logging.getLogger(__name__)
User = get_user_model()


# Initialize Firebase if not already initialized
def ensure_firebase_initialized():
    """Ensure Firebase is initialized before use"""
    if not firebase_admin._apps:
        try:
            from backend.settings import initialize_firebase
            return initialize_firebase()
        except Exception as e:
            logger.error(f"Failed to initialize Firebase: {e}")
            return False
    return True


def verify_id_token(token, max_retries=2, retry_delay=1):
    """
    Verify a Firebase ID token, retrying on clock skew errors.

    Args:
        token: Firebase ID token string
        max_retries: Maximum number of retry attempts (default: 2)
        retry_delay: Delay between retries in seconds (default: 1)

    Returns:
        Decoded token dictionary

    Raises:
        auth.InvalidIdTokenError: If token is invalid after all retries
    """
    for attempt in range(max_retries + 1):
        try:
            return auth.verify_id_token(token, check_revoked=False)
        except auth.InvalidIdTokenError as e:
            error_str = str(e).lower()
            if ('too early' in error_str or 'clock' in error_str) and attempt < max_retries:
                logger.warning(f"Clock skew detected, retrying token verification (retry {attempt + 1} of {max_retries})")
                time.sleep(retry_delay)
                continue
            raise


class FirebaseAuthentication(BaseAuthentication):
    """
    Firebase Authentication for Django REST Framework

    Verifies the Firebase ID token sent as "Authorization: Bearer <token>" and
    resolves its uid to an LMS user, creating a learner on first access.
    Requests without a bearer token stay anonymous.
    """

    def authenticate(self, request):
        """
        Authenticate the request using Firebase ID token.

        Returns:
            tuple: (user, token) if authentication successful, None otherwise
        """
        auth_header = request.META.get('HTTP_AUTHORIZATION')
        if not auth_header:
            return None

        token = self.extract_token(auth_header)
        if not token:
            return None

        if not ensure_firebase_initialized():
            return None

        try:
            decoded_token = verify_id_token(token)
        except auth.InvalidIdTokenError as e:
            logger.warning(f"Invalid Firebase token: {e}")
            raise AuthenticationFailed('Invalid authentication token')
        except Exception as e:
            logger.error(f"Authentication error: {e}")
            raise AuthenticationFailed('Authentication failed')

        if not decoded_token.get('uid') or not decoded_token.get('email'):
            raise AuthenticationFailed('Invalid token: missing required fields')

        user = self.get_or_create_user(decoded_token)
        if not user.is_active:
            raise AuthenticationFailed('User account is disabled')

        return (user, token)

    def extract_token(self, auth_header):
        """
        Extract token from Authorization header.

        Args:
            auth_header (str): Authorization header value

        Returns:
            str: Token if found, None otherwise
        """
        parts = auth_header.split()

        if len(parts) != 2 or parts[0].lower() != 'bearer':
            return None

        return parts[1]

    def get_or_create_user(self, decoded_token):
        """Resolve the token subject to a user, creating a learner on first login"""
        from users.services import upsert_user

        try:
            user, _ = upsert_user(
                firebase_uid=decoded_token.get('uid'),
                email=decoded_token.get('email'),
                name=decoded_token.get('name', ''),
            )
        except ValidationFailed as e:
            raise AuthenticationFailed(str(e.detail))
        return user

    def authenticate_header(self, request):
        """
        Return the authentication header for 401 responses.
        """
        return 'Bearer'
