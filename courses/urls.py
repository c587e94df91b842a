from django.urls import path
from . import views

app_name = 'courses'

urlpatterns = [
    # Courses
    path('courses/', views.courses, name='courses'),
    path('courses/search/', views.search_courses, name='search_courses'),
    path('courses/categories/', views.course_categories, name='course_categories'),
    path('courses/mine/', views.instructor_courses, name='instructor_courses'),
    path('courses/<uuid:course_id>/', views.course_detail, name='course_detail'),
    path('courses/<uuid:course_id>/status/', views.course_status, name='course_status'),
    path('courses/<uuid:course_id>/duplicate/', views.duplicate_course, name='duplicate_course'),
    path('courses/<uuid:course_id>/modules/', views.course_modules, name='course_modules'),

    # Modules
    path('modules/mine/', views.instructor_modules, name='instructor_modules'),
    path('modules/reorder/', views.reorder_modules, name='reorder_modules'),
    path('modules/<uuid:module_id>/', views.module_detail, name='module_detail'),
    path('modules/<uuid:module_id>/duplicate/', views.duplicate_module, name='duplicate_module'),
    path('modules/<uuid:module_id>/exercises/', views.module_exercises, name='module_exercises'),
    path('modules/<uuid:module_id>/exercises/generate/', views.generate_exercises, name='generate_exercises'),

    # Exercises
    path('exercises/ai-generated/', views.ai_generated_exercises, name='ai_generated_exercises'),
    path('exercises/stats/', views.exercise_stats, name='exercise_stats'),
    path('exercises/<uuid:exercise_id>/', views.exercise_detail, name='exercise_detail'),
    path('exercises/<uuid:exercise_id>/duplicate/', views.duplicate_exercise, name='duplicate_exercise'),
    path('exercises/<uuid:exercise_id>/submit/', views.submit_exercise, name='submit_exercise'),

    # Submissions
    path('submissions/<uuid:submission_id>/', views.submission_detail, name='submission_detail'),
    path('submissions/<uuid:submission_id>/grade/', views.grade_submission, name='grade_submission'),
]
