from django.contrib import admin
from .models import Enrollment, ModuleProgress


class ModuleProgressInline(admin.TabularInline):
    model = ModuleProgress
    extra = 0
    fields = ['module', 'status', 'progress_percentage', 'time_spent', 'completed_at']
    readonly_fields = fields
    can_delete = False


@admin.register(Enrollment)
class EnrollmentAdmin(admin.ModelAdmin):
    list_display = [
        'student', 'course', 'status', 'progress_percentage',
        'enrolled_at', 'completed_at', 'last_accessed_at'
    ]
    list_filter = ['status', 'enrolled_at', 'completed_at']
    search_fields = [
        'student__email', 'student__first_name',
        'student__last_name', 'course__title'
    ]
    readonly_fields = [
        'id', 'enrolled_at', 'updated_at', 'progress_percentage', 'current_module',
        'total_time_spent', 'average_score', 'completed_at', 'is_active', 'is_completed'
    ]
    date_hierarchy = 'enrolled_at'
    inlines = [ModuleProgressInline]

    fieldsets = (
        ('Basic Information', {
            'fields': ('student', 'course', 'status', 'drop_reason')
        }),
        ('Academic Progress', {
            'fields': (
                'progress_percentage', 'current_module', 'completed_modules',
                'average_score'
            )
        }),
        ('Engagement', {
            'fields': ('total_time_spent', 'last_accessed_at')
        }),
        ('Dates', {
            'fields': ('id', 'enrolled_at', 'completed_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


@admin.register(ModuleProgress)
class ModuleProgressAdmin(admin.ModelAdmin):
    list_display = ['student', 'module', 'status', 'progress_percentage', 'time_spent', 'last_accessed_at']
    list_filter = ['status']
    search_fields = ['student__email', 'module__title', 'module__course__title']
    readonly_fields = ['id', 'started_at', 'completed_at', 'last_accessed_at']
