"""
URL configuration for backend project.

Every API route lives under /api/ and answers JSON; errors are rendered
as {"error": message} by backend.exceptions.lms_exception_handler.
"""
from django.contrib import admin
from django.urls import path, include
from django.http import JsonResponse

from health_checks import health_check, enrollment_health_check

urlpatterns = [
    path("admin/", admin.site.urls),

    # API endpoints
    path("api/auth/", include('authentication.urls')),
    path("api/users/", include('users.urls')),
    path("api/", include('courses.urls')),
    path("api/enrollments/", include('student.urls')),

    # Health check endpoints
    path("health/", health_check, name="health_check"),
    path("health/enrollments/", enrollment_health_check, name="enrollment_health_check"),

    # Root endpoint for testing
    path("", lambda request: JsonResponse({
        "message": "LMS API",
        "status": "running",
    })),
]
