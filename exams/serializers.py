# olympiad_platform/exams/serializers.py
from rest_framework import serializers
from .models import Question, QuestionOption

# --- Client-facing projections (never expose correct answers) ---

class ClientOptionSerializer(serializers.ModelSerializer):
    index = serializers.IntegerField(source='option_index')

    class Meta:
        model = QuestionOption
        fields = ['index', 'text']

class ClientQuestionSerializer(serializers.ModelSerializer):
    options = ClientOptionSerializer(many=True, read_only=True)

    class Meta:
        model = Question
        fields = ['id', 'question_text', 'image_url', 'marks', 'options']
