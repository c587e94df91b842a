from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['email', 'first_name', 'last_name', 'role', 'is_active', 'is_staff', 'last_login_at']
    list_filter = ['role', 'is_active', 'is_staff', 'is_superuser', 'created_at']
    search_fields = ['email', 'first_name', 'last_name', 'firebase_uid']
    ordering = ['-created_at']

    fieldsets = (
        ('Authentication', {
            'fields': ('email', 'password', 'firebase_uid')
        }),
        ('Personal Info', {
            'fields': ('first_name', 'last_name', 'username')
        }),
        ('Role & Permissions', {
            'fields': ('role', 'is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions')
        }),
        ('Learning', {
            'fields': ('preferences', 'learning_profile')
        }),
        ('Important Dates', {
            'fields': ('last_login', 'date_joined', 'last_login_at', 'created_at', 'updated_at')
        }),
    )

    add_fieldsets = (
        ('Create User', {
            'classes': ('wide',),
            'fields': ('email', 'password1', 'password2', 'firebase_uid', 'role', 'first_name', 'last_name'),
        }),
    )

    readonly_fields = ['date_joined', 'last_login', 'created_at', 'updated_at']
