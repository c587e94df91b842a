from django.contrib import admin
from django.utils import timezone
from .models import Course, Module, Exercise, Submission


class ModuleInline(admin.TabularInline):
    model = Module
    extra = 0
    fields = ['order', 'title', 'type', 'is_required']
    ordering = ['order']
    show_change_link = True


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = ['title', 'instructor', 'category', 'level', 'status', 'enrollment_count', 'published_at', 'created_at']
    list_filter = ['status', 'level', 'category', 'created_at']
    search_fields = ['title', 'description', 'instructor__email', 'instructor__first_name', 'instructor__last_name']
    readonly_fields = ['id', 'created_at', 'updated_at', 'published_at', 'enrollment_count', 'total_modules']
    actions = ['publish_courses', 'archive_courses']
    inlines = [ModuleInline]

    def publish_courses(self, request, queryset):
        now = timezone.now()
        queryset.filter(published_at__isnull=True).update(published_at=now)
        updated = queryset.exclude(status=Course.Status.PUBLISHED).update(status=Course.Status.PUBLISHED)
        self.message_user(request, f'{updated} courses were published.')
    publish_courses.short_description = "Publish selected courses"

    def archive_courses(self, request, queryset):
        updated = queryset.update(status=Course.Status.ARCHIVED)
        self.message_user(request, f'{updated} courses were archived.')
    archive_courses.short_description = "Archive selected courses"

    fieldsets = (
        ('Basic Information', {
            'fields': ('title', 'description', 'thumbnail', 'instructor', 'category')
        }),
        ('Course Details', {
            'fields': ('level', 'estimated_duration', 'tags', 'learning_objectives', 'prerequisites')
        }),
        ('Publication', {
            'fields': ('status', 'published_at')
        }),
        ('Metadata', {
            'fields': ('id', 'enrollment_count', 'average_rating', 'total_modules', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


@admin.register(Module)
class ModuleAdmin(admin.ModelAdmin):
    list_display = ['title', 'course', 'order', 'type', 'is_required', 'created_at']
    list_filter = ['type', 'is_required', 'course__category']
    search_fields = ['title', 'description', 'course__title']
    readonly_fields = ['id', 'order', 'created_at', 'updated_at']

    fieldsets = (
        ('Basic Information', {
            'fields': ('course', 'title', 'description', 'order', 'type', 'is_required')
        }),
        ('Module Content', {
            'fields': ('content', 'video_url', 'attachments', 'estimated_duration')
        }),
        ('Metadata', {
            'fields': ('id', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


@admin.register(Exercise)
class ExerciseAdmin(admin.ModelAdmin):
    list_display = ['title', 'module', 'type', 'difficulty', 'max_score', 'max_attempts', 'ai_generated']
    list_filter = ['type', 'difficulty', 'ai_generated']
    search_fields = ['title', 'question', 'module__title', 'module__course__title']
    readonly_fields = ['id', 'created_at', 'updated_at']


@admin.register(Submission)
class SubmissionAdmin(admin.ModelAdmin):
    list_display = ['student', 'exercise', 'attempt_number', 'status', 'score', 'max_score', 'submitted_at']
    list_filter = ['status', 'exercise__type', 'submitted_at']
    search_fields = ['student__email', 'exercise__title']
    readonly_fields = ['id', 'attempt_number', 'submitted_at', 'graded_at', 'ai_grading_result']
