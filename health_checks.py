"""
Health check endpoints for monitoring system health
"""
from django.http import JsonResponse
from django.views.decorators.http import require_http_methods
from django.utils import timezone
from django.db import connection
from django.db.models import Count
from student.models import Enrollment
from courses.models import Submission
import logging

logger = logging.getLogger(__name__)


@require_http_methods(["GET"])
def health_check(request):
    """Basic health check endpoint"""
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")

        return JsonResponse({
            'status': 'healthy',
            'timestamp': timezone.now().isoformat(),
            'database': 'connected'
        })
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return JsonResponse({
            'status': 'unhealthy',
            'error': str(e),
            'timestamp': timezone.now().isoformat()
        }, status=500)


@require_http_methods(["GET"])
def enrollment_health_check(request):
    """Enrollment and submission counters by status"""
    try:
        enrollments = {
            row['status']: row['count']
            for row in Enrollment.objects.values('status').annotate(count=Count('id'))
        }
        submissions = {
            row['status']: row['count']
            for row in Submission.objects.values('status').annotate(count=Count('id'))
        }

        return JsonResponse({
            'status': 'healthy',
            'timestamp': timezone.now().isoformat(),
            'enrollments': {
                'by_status': enrollments,
                'total': sum(enrollments.values())
            },
            'submissions': {
                'by_status': submissions,
                'total': sum(submissions.values())
            }
        })
    except Exception as e:
        logger.error(f"Enrollment health check failed: {e}")
        return JsonResponse({
            'status': 'unhealthy',
            'error': str(e),
            'timestamp': timezone.now().isoformat()
        }, status=500)
