from django.urls import path
from .views import (
    HeartbeatView, InitExamView, SaveAnswerView, StartExamView, StudentSubmissionsView, SubmitExamView,
)

urlpatterns = [
    # Student exam flow, mounted under /api/exams/
    path('start/', StartExamView.as_view(), name='start_exam'),
    path('init/', InitExamView.as_view(), name='init_exam'),
    path('answer/', SaveAnswerView.as_view(), name='save_answer'),
    path('heartbeat/', HeartbeatView.as_view(), name='exam_heartbeat'),
    path('submit/', SubmitExamView.as_view(), name='submit_exam'),

    path('submissions/', StudentSubmissionsView.as_view(), name='my_submissions'),
]
