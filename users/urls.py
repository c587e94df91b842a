from django.urls import path
from . import views

app_name = 'users'

urlpatterns = [
    # Current user
    path('me/', views.current_user, name='current_user'),
    path('me/preferences/', views.update_preferences, name='update_preferences'),
    path('me/learning-profile/', views.update_learning_profile, name='update_learning_profile'),
    path('me/has-role/<str:role>/', views.has_role, name='has_role'),

    # Directory
    path('role/<str:role>/', views.users_by_role, name='users_by_role'),
    path('stats/', views.user_stats, name='user_stats'),
    path('<str:firebase_uid>/', views.user_by_firebase_uid, name='user_detail'),

    # Admin actions
    path('<str:firebase_uid>/role/', views.update_user_role, name='update_user_role'),
    path('<str:firebase_uid>/toggle-status/', views.toggle_user_status, name='toggle_user_status'),
    path('<str:firebase_uid>/data/', views.delete_user_data, name='delete_user_data'),
]
