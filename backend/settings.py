"""
Django settings for backend project.

All environment-specific values are read through python-decouple, so they can
come from the process environment or from a local .env file.
"""

from pathlib import Path
import logging

from decouple import config, Csv

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = config('SECRET_KEY', default='django-insecure-local-development-key')

DEBUG = config('DEBUG', default=False, cast=bool)

ALLOWED_HOSTS = config('ALLOWED_HOSTS', default='localhost,127.0.0.1,testserver', cast=Csv())


INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "users",
    "courses",
    "student",
    "authentication",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "backend.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "backend.wsgi.application"


# Database
# SQLite by default; set DB_ENGINE=django.db.backends.postgresql for production
DATABASES = {
    "default": {
        "ENGINE": config('DB_ENGINE', default='django.db.backends.sqlite3'),
        "NAME": config('DB_NAME', default=str(BASE_DIR / 'db.sqlite3')),
        "USER": config('DB_USER', default=''),
        "PASSWORD": config('DB_PASSWORD', default=''),
        "HOST": config('DB_HOST', default=''),
        "PORT": config('DB_PORT', default=''),
        "ATOMIC_REQUESTS": False,
    }
}

AUTH_USER_MODEL = 'users.User'

AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]


# Internationalization
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / 'staticfiles'

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"


# Django REST Framework
REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'authentication.authentication.FirebaseAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.AllowAny',
    ],
    'DEFAULT_RENDERER_CLASSES': [
        'rest_framework.renderers.JSONRenderer',
    ],
    'EXCEPTION_HANDLER': 'backend.exceptions.lms_exception_handler',
    'UNAUTHENTICATED_USER': 'django.contrib.auth.models.AnonymousUser',
}


# LMS defaults applied to users created on first login
LMS_DEFAULT_LANGUAGE = config('LMS_DEFAULT_LANGUAGE', default='fr')
LMS_DEFAULT_TIMEZONE = config('LMS_DEFAULT_TIMEZONE', default='Europe/Paris')
LMS_DEFAULT_EXERCISE_MAX_SCORE = config('LMS_DEFAULT_EXERCISE_MAX_SCORE', default=20, cast=int)
LMS_DEFAULT_PAGE_SIZE = config('LMS_DEFAULT_PAGE_SIZE', default=20, cast=int)


# Firebase
FIREBASE_CREDENTIALS_PATH = config('FIREBASE_CREDENTIALS_PATH', default=None)
FIREBASE_PROJECT_ID = config('FIREBASE_PROJECT_ID', default=None)
FIREBASE_CREDENTIALS_SECRET = config('FIREBASE_CREDENTIALS_SECRET', default=None)
GCP_PROJECT_ID = config('GCP_PROJECT_ID', default=FIREBASE_PROJECT_ID)


def initialize_firebase():
    """
    Initialize the default Firebase app from a service account file, a
    Secret Manager secret or application default credentials, in that order.

    Returns True when an app is available, False when no credentials are configured.
    """
    import firebase_admin
    from firebase_admin import credentials

    if firebase_admin._apps:
        return True

    if FIREBASE_CREDENTIALS_PATH:
        cred = credentials.Certificate(FIREBASE_CREDENTIALS_PATH)
        firebase_admin.initialize_app(cred, {'projectId': FIREBASE_PROJECT_ID} if FIREBASE_PROJECT_ID else None)
        logger.info("Firebase initialized from service account file")
        return True

    if FIREBASE_CREDENTIALS_SECRET and GCP_PROJECT_ID:
        from backend.secret_manager import load_firebase_credentials

        service_account = load_firebase_credentials(GCP_PROJECT_ID, FIREBASE_CREDENTIALS_SECRET)
        if service_account:
            firebase_admin.initialize_app(credentials.Certificate(service_account))
            logger.info("Firebase initialized from Secret Manager")
            return True

    if FIREBASE_PROJECT_ID:
        # Application default credentials (Cloud Run, GKE, ...)
        firebase_admin.initialize_app(options={'projectId': FIREBASE_PROJECT_ID})
        logger.info(f"Firebase initialized with default credentials for project {FIREBASE_PROJECT_ID}")
        return True

    logger.warning("Firebase credentials not configured; token authentication disabled")
    return False


# Logging
LOG_LEVEL = config('LOG_LEVEL', default='INFO')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {name} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': LOG_LEVEL,
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': config('DJANGO_LOG_LEVEL', default='WARNING'),
            'propagate': False,
        },
    },
}
