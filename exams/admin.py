from django.contrib import admin

# Question banks and exams are authored through the admin site only
from .models import (
    Competition, CompetitionQuestionBank, MockTest, MockTestQuestionBank,
    Question, QuestionBank, QuestionOption,
)


class QuestionOptionInline(admin.TabularInline):
    model = QuestionOption
    extra = 4


@admin.register(Question)
class QuestionAdmin(admin.ModelAdmin):
    list_display = ('question_text', 'question_bank', 'marks', 'sort_order')
    list_filter = ('question_bank',)
    inlines = [QuestionOptionInline]


class CompetitionQuestionBankInline(admin.TabularInline):
    model = CompetitionQuestionBank
    extra = 1


class MockTestQuestionBankInline(admin.TabularInline):
    model = MockTestQuestionBank
    extra = 1


@admin.register(Competition)
class CompetitionAdmin(admin.ModelAdmin):
    list_display = ('title', 'is_published', 'exam_window_start', 'exam_window_end', 'enrollment_fee')
    prepopulated_fields = {'slug': ('title',)}
    inlines = [CompetitionQuestionBankInline]


@admin.register(MockTest)
class MockTestAdmin(admin.ModelAdmin):
    list_display = ('title', 'is_published', 'min_grade', 'max_grade', 'total_questions')
    inlines = [MockTestQuestionBankInline]


admin.site.register(QuestionBank)
