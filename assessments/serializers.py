from rest_framework import serializers
from .models import ExamType, Submission


class StartExamSerializer(serializers.Serializer):
    exam_type = serializers.ChoiceField(choices=ExamType.choices)
    exam_id = serializers.IntegerField(min_value=1)


class SessionTokenSerializer(serializers.Serializer):
    session_token = serializers.UUIDField()


class AnswerSerializer(SessionTokenSerializer):
    question_id = serializers.IntegerField(min_value=1)
    selected_option_index = serializers.IntegerField(min_value=0)


class SubmissionSerializer(serializers.ModelSerializer):
    """Lightweight serializer for the student's attempt history."""
    exam_title = serializers.SerializerMethodField()
    total_marks = serializers.SerializerMethodField()

    class Meta:
        model = Submission
        fields = [
            'id', 'exam_type', 'exam_title', 'status', 'score', 'total_marks',
            'correct_answers', 'incorrect_answers', 'unanswered', 'time_taken',
            'started_at', 'submitted_at',
        ]

    def get_exam_title(self, obj):
        return obj.snapshot.title

    def get_total_marks(self, obj):
        return obj.snapshot.total_marks
