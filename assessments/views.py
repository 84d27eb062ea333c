import logging
from rest_framework import generics, permissions, status, views
from rest_framework.response import Response

from .models import Submission
from .serializers import AnswerSerializer, SessionTokenSerializer, StartExamSerializer, SubmissionSerializer
from . import services

logger = logging.getLogger(__name__)


def _validated(serializer_class, request):
    serializer = serializer_class(data=request.data)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


class StartExamView(views.APIView):
    """
    Student starts an exam (competition or mock test).
    Creates the submission and a timed session, or resumes the live one.
    """
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        data = _validated(StartExamSerializer, request)
        payload, message = services.start_exam(request.user, data['exam_type'], data['exam_id'])
        code = status.HTTP_201_CREATED if message == "Exam started" else status.HTTP_200_OK
        return Response({"success": True, "data": payload, "message": message}, status=code)


class InitExamView(views.APIView):
    """Questions (without answers) plus whatever the student already saved."""
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        data = _validated(SessionTokenSerializer, request)
        return Response({"success": True, "data": services.init_exam(request.user, data['session_token'])})


class SaveAnswerView(views.APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        data = _validated(AnswerSerializer, request)
        result = services.save_answer(
            request.user, data['session_token'], data['question_id'], data['selected_option_index'],
        )
        return Response({"success": True, "data": result})


class HeartbeatView(views.APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        data = _validated(SessionTokenSerializer, request)
        return Response({"success": True, "data": services.heartbeat(request.user, data['session_token'])})


class SubmitExamView(views.APIView):
    """
    Scores the attempt. Repeating the call returns the stored result.
    """
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        data = _validated(SessionTokenSerializer, request)
        result = services.submit_exam(request.user, data['session_token'])
        return Response({"success": True, "data": result})


class StudentSubmissionsView(generics.ListAPIView):
    """List all submissions for the logged-in student."""
    permission_classes = [permissions.IsAuthenticated]
    serializer_class = SubmissionSerializer

    def get_queryset(self):
        return Submission.objects.filter(user=self.request.user).order_by('-started_at')
