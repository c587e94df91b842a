from rest_framework import status, permissions
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
import logging

from . import enrollment_service
from .serializers import (
    EnrollmentSerializer, ModuleProgressSerializer, EnrollmentProgressSerializer,
    ProgressUpdateSerializer, DropCourseSerializer, EnrollmentStatusFilterSerializer,
)

logger = logging.getLogger(__name__)


def _status_filter(request):
    serializer = EnrollmentStatusFilterSerializer(data=request.query_params)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data.get('status')


@api_view(['GET'])
@permission_classes([permissions.AllowAny])
def my_enrollments(request):
    """
    GET: The caller's enrollments, newest first (optional status filter)
    """
    enrollments = enrollment_service.get_my_enrollments(request.user, status=_status_filter(request))
    return Response(EnrollmentSerializer(enrollments, many=True).data)


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def course_enrollment(request, course_id):
    """
    GET: Enrollment of a student in a course (the caller unless student_uid is given),
    or null when there is none
    """
    enrollment = enrollment_service.get_enrollment(
        request.user, course_id, student_uid=request.query_params.get('student_uid')
    )
    return Response(EnrollmentSerializer(enrollment).data if enrollment else None)


@api_view(['POST'])
@permission_classes([permissions.AllowAny])
def enroll(request, course_id):
    enrollment = enrollment_service.enroll_in_course(request.user, course_id)
    return Response(EnrollmentSerializer(enrollment).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([permissions.AllowAny])
def drop_course(request, course_id):
    """
    POST: Drop an active enrollment

    Expected payload:
    {
        "reason": "optional free text"
    }
    """
    serializer = DropCourseSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    enrollment = enrollment_service.drop_course(
        request.user, course_id, reason=serializer.validated_data.get('reason')
    )
    return Response(EnrollmentSerializer(enrollment).data)


@api_view(['GET'])
@permission_classes([permissions.AllowAny])
def course_enrollments(request, course_id):
    """
    GET: Every enrollment of a course (course instructor or admin)
    """
    enrollments = enrollment_service.get_course_enrollments(
        request.user, course_id, status=_status_filter(request)
    )
    return Response(EnrollmentSerializer(enrollments, many=True).data)


@api_view(['GET'])
@permission_classes([permissions.AllowAny])
def enrollment_stats(request):
    stats = enrollment_service.get_enrollment_stats(request.user, course_id=request.query_params.get('course_id'))
    return Response(stats)


@api_view(['GET'])
@permission_classes([permissions.AllowAny])
def enrollment_progress(request, enrollment_id):
    report = enrollment_service.get_enrollment_progress(request.user, enrollment_id)
    return Response(EnrollmentProgressSerializer(report).data)


@api_view(['POST'])
@permission_classes([permissions.AllowAny])
def update_module_progress(request, module_id):
    """
    POST: Report progress on a module

    Expected payload:
    {
        "progress_percentage": 60,
        "time_spent": 300,
        "completed": false
    }
    """
    serializer = ProgressUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    progress = enrollment_service.update_module_progress(
        request.user,
        module_id,
        progress_percentage=serializer.validated_data['progress_percentage'],
        time_spent=serializer.validated_data['time_spent'],
        completed=serializer.validated_data['completed'],
    )
    return Response(ModuleProgressSerializer(progress).data)
