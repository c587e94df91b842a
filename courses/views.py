from rest_framework import status, permissions
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
import logging

from backend.exceptions import ValidationFailed
from . import course_service, module_service, exercise_service
from .serializers import (
    CourseSerializer, CourseCreateUpdateSerializer, CourseStatusSerializer, CourseDuplicateSerializer,
    ModuleSerializer, ModuleCreateUpdateSerializer, ModuleReorderSerializer, ModuleDuplicateSerializer,
    ExerciseSerializer, ExerciseCreateUpdateSerializer, ExerciseGenerateSerializer, ExerciseDuplicateSerializer,
    SubmissionSerializer, SubmitSerializer, GradeSerializer,
)

logger = logging.getLogger(__name__)

TRUE_VALUES = ('1', 'true', 'yes')


def _query_bool(request, name):
    return request.query_params.get(name, '').lower() in TRUE_VALUES


def _query_int(request, name, default):
    value = request.query_params.get(name)
    if value is None:
        return default
    try:
        return max(1, int(value))
    except ValueError:
        raise ValidationFailed(f"{name} must be an integer")


def _validated(serializer_class, request, **kwargs):
    serializer = serializer_class(data=request.data, **kwargs)
    serializer.is_valid(raise_exception=True)
    return dict(serializer.validated_data)


def _plain_options(data):
    if data.get('options') is not None:
        data['options'] = [dict(option) for option in data['options']]
    return data


# ===== COURSES =====

@api_view(['GET', 'POST'])
@permission_classes([permissions.AllowAny])
def courses(request):
    """
    GET: Published course catalogue (limit, category query params)
    POST: Create a draft course owned by the caller (instructors and admins)
    """
    if request.method == 'GET':
        result = course_service.get_published_courses(
            limit=_query_int(request, 'limit', 20),
            category=request.query_params.get('category'),
        )
        return Response(CourseSerializer(result, many=True).data)

    data = _validated(CourseCreateUpdateSerializer, request)
    course = course_service.create_course(request.user, **data)
    return Response(CourseSerializer(course).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([permissions.AllowAny])
def search_courses(request):
    result = course_service.search_courses(
        search_term=request.query_params.get('q', ''),
        category=request.query_params.get('category'),
        level=request.query_params.get('level'),
        limit=_query_int(request, 'limit', 20),
    )
    return Response(CourseSerializer(result, many=True).data)


@api_view(['GET'])
@permission_classes([permissions.AllowAny])
def course_categories(request):
    return Response(course_service.get_course_categories())


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def instructor_courses(request):
    """
    GET: Courses of an instructor (the caller unless instructor_uid is given),
    with enrollment stats when include_stats=true
    """
    result = course_service.get_instructor_courses(
        request.user,
        instructor_uid=request.query_params.get('instructor_uid'),
        include_stats=_query_bool(request, 'include_stats'),
    )
    return Response(CourseSerializer(result, many=True).data)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([permissions.AllowAny])
def course_detail(request, course_id):
    """
    GET: Course with its ordered modules
    PATCH: Update course fields (owner or admin)
    DELETE: Delete the course and everything under it (refused while enrollments are active)
    """
    if request.method == 'GET':
        course = course_service.get_course_with_modules(request.user, course_id)
        return Response(CourseSerializer(course).data)

    if request.method == 'PATCH':
        data = _validated(CourseCreateUpdateSerializer, request, partial=True)
        course = course_service.update_course(request.user, course_id, **data)
        return Response(CourseSerializer(course).data)

    deleted_id = course_service.delete_course(request.user, course_id)
    return Response({'deleted': str(deleted_id)})


@api_view(['POST'])
@permission_classes([permissions.AllowAny])
def course_status(request, course_id):
    data = _validated(CourseStatusSerializer, request)
    course = course_service.set_course_status(request.user, course_id, data['status'])
    return Response(CourseSerializer(course).data)


@api_view(['POST'])
@permission_classes([permissions.AllowAny])
def duplicate_course(request, course_id):
    data = _validated(CourseDuplicateSerializer, request)
    course = course_service.duplicate_course(request.user, course_id, new_title=data.get('new_title'))
    return Response(CourseSerializer(course).data, status=status.HTTP_201_CREATED)


# ===== MODULES =====

@api_view(['GET', 'POST'])
@permission_classes([permissions.AllowAny])
def course_modules(request, course_id):
    """
    GET: Ordered modules of a course (include_progress=true adds the caller's progress)
    POST: Append a module to the course
    """
    if request.method == 'GET':
        modules = module_service.get_course_modules(
            request.user, course_id, include_progress=_query_bool(request, 'include_progress')
        )
        return Response(ModuleSerializer(modules, many=True).data)

    data = _validated(ModuleCreateUpdateSerializer, request)
    module = module_service.create_module(request.user, course_id, **data)
    return Response(ModuleSerializer(module).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def instructor_modules(request):
    modules = module_service.get_instructor_modules(
        request.user, include_stats=_query_bool(request, 'include_stats')
    )
    return Response(ModuleSerializer(modules, many=True).data)


@api_view(['PUT'])
@permission_classes([permissions.AllowAny])
def reorder_modules(request):
    """
    PUT: Reorder every module of a course

    Expected payload:
    {
        "module_ids": ["uuid1", "uuid2", "uuid3"]
    }
    """
    data = _validated(ModuleReorderSerializer, request)
    modules = module_service.reorder_modules(request.user, data['module_ids'])
    return Response(ModuleSerializer(modules, many=True).data)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([permissions.AllowAny])
def module_detail(request, module_id):
    if request.method == 'GET':
        module = module_service.get_module_with_exercises(
            request.user, module_id, include_progress=_query_bool(request, 'include_progress')
        )
        return Response(ModuleSerializer(module).data)

    if request.method == 'PATCH':
        data = _validated(ModuleCreateUpdateSerializer, request, partial=True)
        module = module_service.update_module(request.user, module_id, **data)
        return Response(ModuleSerializer(module).data)

    deleted_id = module_service.delete_module(request.user, module_id)
    return Response({'deleted': str(deleted_id)})


@api_view(['POST'])
@permission_classes([permissions.AllowAny])
def duplicate_module(request, module_id):
    data = _validated(ModuleDuplicateSerializer, request)
    module = module_service.duplicate_module(
        request.user,
        module_id,
        target_course_id=data.get('target_course_id'),
        new_title=data.get('new_title'),
    )
    return Response(ModuleSerializer(module).data, status=status.HTTP_201_CREATED)


# ===== EXERCISES =====

@api_view(['GET', 'POST'])
@permission_classes([permissions.AllowAny])
def module_exercises(request, module_id):
    """
    GET: Exercises of a module (include_submissions=true adds the caller's attempts)
    POST: Create an exercise in the module
    """
    if request.method == 'GET':
        exercises = exercise_service.get_module_exercises(
            request.user, module_id, include_submissions=_query_bool(request, 'include_submissions')
        )
        return Response(ExerciseSerializer(exercises, many=True).data)

    data = _plain_options(_validated(ExerciseCreateUpdateSerializer, request))
    exercise = exercise_service.create_exercise(request.user, module_id, **data)
    return Response(ExerciseSerializer(exercise).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([permissions.AllowAny])
def generate_exercises(request, module_id):
    """
    POST: Create placeholder exercises on a topic

    Expected payload:
    {
        "topic": "Recursion",
        "difficulty": "easy" | "medium" | "hard",
        "type": "multiple_choice" | "open_ended" | "coding",
        "count": 3
    }
    """
    data = _validated(ExerciseGenerateSerializer, request)
    exercises = exercise_service.generate_exercise_with_ai(
        request.user,
        module_id,
        topic=data['topic'],
        difficulty=data['difficulty'],
        exercise_type=data['type'],
        count=data['count'],
    )
    return Response(ExerciseSerializer(exercises, many=True).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def ai_generated_exercises(request):
    exercises = exercise_service.get_ai_generated_exercises(
        request.user,
        course_id=request.query_params.get('course_id'),
        difficulty=request.query_params.get('difficulty'),
        limit=_query_int(request, 'limit', 20),
    )
    return Response(ExerciseSerializer(exercises, many=True).data)


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def exercise_stats(request):
    """
    GET: Submission statistics scoped by exercise_id, module_id or course_id
    (first one given wins)
    """
    stats = exercise_service.get_exercise_stats(
        request.user,
        exercise_id=request.query_params.get('exercise_id'),
        module_id=request.query_params.get('module_id'),
        course_id=request.query_params.get('course_id'),
    )
    return Response(stats)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([permissions.AllowAny])
def exercise_detail(request, exercise_id):
    if request.method == 'GET':
        exercise = exercise_service.get_exercise(
            request.user, exercise_id, include_submissions=_query_bool(request, 'include_submissions')
        )
        return Response(ExerciseSerializer(exercise).data)

    if request.method == 'PATCH':
        data = _plain_options(_validated(ExerciseCreateUpdateSerializer, request, partial=True))
        exercise = exercise_service.update_exercise(request.user, exercise_id, **data)
        return Response(ExerciseSerializer(exercise).data)

    deleted_id = exercise_service.delete_exercise(request.user, exercise_id)
    return Response({'deleted': str(deleted_id)})


@api_view(['POST'])
@permission_classes([permissions.AllowAny])
def duplicate_exercise(request, exercise_id):
    data = _validated(ExerciseDuplicateSerializer, request)
    exercise = exercise_service.duplicate_exercise(
        request.user,
        exercise_id,
        target_module_id=data.get('target_module_id'),
        new_title=data.get('new_title'),
    )
    return Response(ExerciseSerializer(exercise).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([permissions.AllowAny])
def submit_exercise(request, exercise_id):
    """
    POST: Submit an attempt. Multiple choice answers are graded immediately.
    """
    data = _validated(SubmitSerializer, request)
    submission = exercise_service.submit_exercise(
        request.user,
        exercise_id,
        answer=data['answer'],
        attachments=data.get('attachments'),
        time_spent=data.get('time_spent', 0),
    )
    return Response(SubmissionSerializer(submission).data, status=status.HTTP_201_CREATED)


# ===== SUBMISSIONS =====

@api_view(['GET'])
@permission_classes([permissions.AllowAny])
def submission_detail(request, submission_id):
    submission = exercise_service.get_submission(request.user, submission_id)
    return Response(SubmissionSerializer(submission).data)


@api_view(['POST'])
@permission_classes([permissions.AllowAny])
def grade_submission(request, submission_id):
    data = _validated(GradeSerializer, request)
    submission = exercise_service.grade_submission(
        request.user, submission_id, data['score'], feedback=data.get('feedback')
    )
    return Response(SubmissionSerializer(submission).data)
