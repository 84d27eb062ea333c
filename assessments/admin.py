from django.contrib import admin
from .models import ExamSession, MockTestAttempt, Submission, SubmissionAnswer


class SubmissionAnswerInline(admin.TabularInline):
    model = SubmissionAnswer
    extra = 0
    readonly_fields = (
        'question', 'selected_option_index', 'correct_option_index', 'is_correct', 'marks_awarded', 'answered_at',
    )
    exclude = ('question_text',)


@admin.register(Submission)
class SubmissionAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'exam_type', 'status', 'score', 'started_at', 'submitted_at')
    list_filter = ('exam_type', 'status')
    search_fields = ('user__email',)
    inlines = [SubmissionAnswerInline]


@admin.register(ExamSession)
class ExamSessionAdmin(admin.ModelAdmin):
    list_display = ('session_token', 'user', 'exam_type', 'exam_id', 'status', 'is_locked', 'end_time')
    list_filter = ('status', 'exam_type', 'is_locked')
    search_fields = ('user__email', 'session_token')
    readonly_fields = ('session_token', 'answers', 'created_at', 'updated_at')


admin.site.register(MockTestAttempt)
