from rest_framework import status, permissions
from rest_framework.decorators import api_view, permission_classes, authentication_classes
from rest_framework.response import Response
from django.contrib.auth import get_user_model
from firebase_admin import auth

from users.serializers import UserSerializer
from users.services import upsert_user
from .authentication import ensure_firebase_initialized, verify_id_token
from .serializers import AuthTokenSerializer, SignupSerializer
import logging

logger = logging.getLogger(__name__)
User = get_user_model()


def _decode(token):
    """
    Verify a token outside the authentication class.

    Returns (decoded_token, error_response); exactly one of them is None.
    """
    if not ensure_firebase_initialized():
        return None, Response(
            {'error': 'Authentication service unavailable'},
            status=status.HTTP_503_SERVICE_UNAVAILABLE
        )

    try:
        decoded_token = verify_id_token(token)
    except auth.InvalidIdTokenError as e:
        logger.warning(f"Invalid token verification: {e}")
        return None, Response(
            {'valid': False, 'error': 'Invalid token'},
            status=status.HTTP_401_UNAUTHORIZED
        )
    except Exception as e:
        logger.error(f"Token verification error: {e}")
        return None, Response(
            {'valid': False, 'error': 'Token verification failed'},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )
    return decoded_token, None


@api_view(['POST'])
@authentication_classes([])
@permission_classes([permissions.AllowAny])
def verify_token(request):
    """
    Verify Firebase ID token and return user information.

    This endpoint can be used by the frontend to verify tokens
    and get user information without full authentication.
    """
    serializer = AuthTokenSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    decoded_token, error = _decode(serializer.validated_data['token'])
    if error is not None:
        return error

    return Response({
        'valid': True,
        'user_info': {
            'uid': decoded_token.get('uid'),
            'email': decoded_token.get('email'),
            'name': decoded_token.get('name'),
            'email_verified': decoded_token.get('email_verified', False),
        }
    })


@api_view(['POST'])
@authentication_classes([])
@permission_classes([permissions.AllowAny])
def signup(request):
    """
    Create the LMS account for a Firebase user, or refresh it if it exists.

    Expected payload:
    {
        "token": "firebase-id-token",
        "role": "learner" | "instructor",
        "preferences": {"language": "en", "study_reminders": false}
    }

    The role and preferences are only applied when the account is created.
    """
    serializer = SignupSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    decoded_token, error = _decode(serializer.validated_data['token'])
    if error is not None:
        return error

    firebase_uid = decoded_token.get('uid')
    email = decoded_token.get('email')
    if not firebase_uid or not email:
        return Response(
            {'error': 'Invalid token: missing required fields'},
            status=status.HTTP_401_UNAUTHORIZED
        )

    user, created = upsert_user(
        firebase_uid=firebase_uid,
        email=email,
        name=decoded_token.get('name', ''),
        role=serializer.validated_data['role'],
        preferences=serializer.validated_data.get('preferences'),
    )

    return Response(
        {'created': created, 'user': UserSerializer(user).data},
        status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
    )
