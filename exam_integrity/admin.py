"""
Django Admin pages
"""
# pylint: disable=no-member

from django.contrib import admin, messages
from django.utils.translation import gettext_lazy as _

from exam_integrity.api import end_sessions_for_student
from exam_integrity.models import (
    Exam,
    ExamAttempt,
    ExamQuestion,
    ExamSession,
    ExamViolation,
    StudentExamCredential
)
from exam_integrity.statuses import SessionEndReason


class ExamQuestionInline(admin.TabularInline):
    """
    Question definitions edited alongside their exam
    """
    model = ExamQuestion
    extra = 0
    fields = [
        'question_id', 'question_number', 'question_type', 'correct_answer',
        'marks', 'negative_marks', 'has_multiple_answers',
    ]


class ExamAdmin(admin.ModelAdmin):
    """
    The admin panel for Exams
    """
    inlines = [ExamQuestionInline]
    list_display = ['exam_id', 'title', 'password_type', 'is_active', 'is_practice', 'end_datetime']
    list_filter = ['is_active', 'is_practice', 'password_type']
    search_fields = ['exam_id', 'title']


class StudentExamCredentialAdmin(admin.ModelAdmin):
    """
    The admin panel for per-student passwords
    """
    list_display = ['exam_id', 'student_email', 'modified']
    search_fields = ['exam__exam_id', 'student_email']

    def exam_id(self, obj):
        """ Return exam_id of the credential"""
        return obj.exam.exam_id


class ReadOnlyAdminMixin:
    """
    Sessions, attempts and violations are audit records: only the engine writes them
    """

    def has_add_permission(self, request):
        """Don't allow adds"""
        return False

    def has_change_permission(self, request, obj=None):
        """Don't allow changes"""
        return False

    def has_delete_permission(self, request, obj=None):
        """Don't allow deletes"""
        return False


class ExamSessionAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """
    Admin panel for exam sessions, with an action that frees a device lock
    """
    list_display = [
        'student_email', 'exam_id', 'is_active', 'device_fingerprint',
        'ip_address', 'last_activity', 'block_reason', 'blocked_at', 'end_reason',
    ]
    list_filter = ['is_active', 'end_reason']
    search_fields = ['student_email', 'exam__exam_id']
    exclude = ['session_token']
    actions = ['release_sessions']

    def exam_id(self, obj):
        """ Return exam_id of the session"""
        return obj.exam.exam_id

    @admin.action(description=_('Release the device lock of the selected students'))
    def release_sessions(self, request, queryset):
        """
        Ends the active sessions so the students can sign in from another device
        """
        released = 0
        for exam_id, student_email in queryset.filter(is_active=True).values_list(
                'exam__exam_id', 'student_email').distinct():
            released += end_sessions_for_student(exam_id, student_email, SessionEndReason.RELEASED_BY_STAFF)
        messages.info(request, _('Released {count} exam session(s).').format(count=released))


class ExamAttemptAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """
    Admin panel for Exam Attempts
    """
    list_display = [
        'student_email', 'exam_id', 'status', 'score', 'total_marks',
        'percentage', 'violation_count', 'started_at', 'completed_at',
    ]
    list_filter = ['status']
    search_fields = ['student_email', 'exam__exam_id']

    def exam_id(self, obj):
        """ Return exam_id of attempt"""
        return obj.exam.exam_id


class ExamViolationAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """
    Admin panel for integrity violations
    """
    list_display = ['attempt', 'violation_type', 'severity', 'occurred_at']
    list_filter = ['severity', 'violation_type']
    search_fields = ['attempt__student_email', 'attempt__exam__exam_id']


admin.site.register(Exam, ExamAdmin)
admin.site.register(StudentExamCredential, StudentExamCredentialAdmin)
admin.site.register(ExamSession, ExamSessionAdmin)
admin.site.register(ExamAttempt, ExamAttemptAdmin)
admin.site.register(ExamViolation, ExamViolationAdmin)
