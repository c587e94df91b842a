from django.urls import path
from . import views

app_name = 'student'

urlpatterns = [
    # Caller's enrollments
    path('', views.my_enrollments, name='my_enrollments'),
    path('stats/', views.enrollment_stats, name='enrollment_stats'),
    path('<uuid:enrollment_id>/progress/', views.enrollment_progress, name='enrollment_progress'),

    # Per course
    path('courses/<uuid:course_id>/', views.course_enrollment, name='course_enrollment'),
    path('courses/<uuid:course_id>/enroll/', views.enroll, name='enroll'),
    path('courses/<uuid:course_id>/drop/', views.drop_course, name='drop_course'),
    path('courses/<uuid:course_id>/students/', views.course_enrollments, name='course_enrollments'),

    # Module progress
    path('modules/<uuid:module_id>/progress/', views.update_module_progress, name='update_module_progress'),
]
