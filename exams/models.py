# exams/models.py
from django.db import models


class QuestionBank(models.Model):
    title = models.CharField(max_length=255)
    # Grade band the bank was written for; open-ended when not set
    min_grade = models.PositiveSmallIntegerField(null=True, blank=True)
    max_grade = models.PositiveSmallIntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.title


class Question(models.Model):
    question_bank = models.ForeignKey(QuestionBank, related_name='questions', on_delete=models.CASCADE)
    question_text = models.TextField()
    image_url = models.URLField(blank=True)
    marks = models.PositiveIntegerField(default=1)
    correct_option_index = models.PositiveSmallIntegerField()
    sort_order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['sort_order', 'id']

    def __str__(self):
        return f"{self.question_text[:50]}..."


class QuestionOption(models.Model):
    question = models.ForeignKey(Question, related_name='options', on_delete=models.CASCADE)
    option_index = models.PositiveSmallIntegerField()
    text = models.CharField(max_length=500)

    class Meta:
        ordering = ['option_index']
        constraints = [
            models.UniqueConstraint(fields=['question', 'option_index'], name='unique_option_index_per_question'),
        ]

    def __str__(self):
        return f"{self.option_index}: {self.text}"


class Competition(models.Model):
    title = models.CharField(max_length=255)
    slug = models.SlugField(unique=True)
    is_published = models.BooleanField(default=False)

    registration_start_date = models.DateTimeField()
    registration_end_date = models.DateTimeField()
    exam_date = models.DateField()
    # The exam may be started any time inside this window
    exam_window_start = models.DateTimeField()
    exam_window_end = models.DateTimeField()

    duration_minutes = models.PositiveIntegerField()
    enrollment_fee = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    min_grade = models.PositiveSmallIntegerField()
    max_grade = models.PositiveSmallIntegerField()
    total_questions = models.PositiveIntegerField(default=0)
    total_marks = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.title

    def accepts_grade(self, grade):
        return grade is not None and self.min_grade <= grade <= self.max_grade


class MockTest(models.Model):
    title = models.CharField(max_length=255)
    is_published = models.BooleanField(default=False)
    duration_minutes = models.PositiveIntegerField()
    min_grade = models.PositiveSmallIntegerField()
    max_grade = models.PositiveSmallIntegerField()
    total_questions = models.PositiveIntegerField()

    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.title

    def accepts_grade(self, grade):
        return grade is not None and self.min_grade <= grade <= self.max_grade


class CompetitionQuestionBank(models.Model):
    """Assigns a question bank to the listed grades of a competition."""
    competition = models.ForeignKey(Competition, related_name='question_bank_assignments', on_delete=models.CASCADE)
    question_bank = models.ForeignKey(QuestionBank, on_delete=models.CASCADE)
    grades = models.JSONField(default=list)

    class Meta:
        ordering = ['id']


class MockTestQuestionBank(models.Model):
    mock_test = models.ForeignKey(MockTest, related_name='question_bank_assignments', on_delete=models.CASCADE)
    question_bank = models.ForeignKey(QuestionBank, on_delete=models.CASCADE)
    grades = models.JSONField(default=list)

    class Meta:
        ordering = ['id']
