from django.urls import path
from . import views

app_name = 'authentication'

urlpatterns = [
    # Token verification
    path('verify-token/', views.verify_token, name='verify_token'),

    # First login / account sync
    path('signup/', views.signup, name='signup'),
]
