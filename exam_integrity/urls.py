"""
URL mappings for the Exam Integrity Server.
"""

from django.urls import path

from exam_integrity import views

app_name = 'exam_integrity'

urlpatterns = [
    path('exam_integrity/v1/exam/<str:exam_id>/credential', views.ExamCredentialView.as_view(),
         name='exam.credential'
         ),
    path('exam_integrity/v1/exam/<str:exam_id>/session', views.ExamSessionView.as_view(),
         name='exam.session'
         ),
    path('exam_integrity/v1/exam/<str:exam_id>/attempt', views.ExamAttemptCollectionView.as_view(),
         name='exam.attempt'
         ),
    path('exam_integrity/v1/exam/<str:exam_id>/status', views.ExamAttemptStatusView.as_view(),
         name='exam.status'
         ),
    path('exam_integrity/v1/exam/<str:exam_id>/statistics', views.ExamStatisticsView.as_view(),
         name='exam.statistics'
         ),
    path('exam_integrity/v1/attempt/<int:attempt_id>/answer/<str:question_id>', views.AttemptAnswerView.as_view(),
         name='attempt.answer'
         ),
    path('exam_integrity/v1/attempt/<int:attempt_id>/violation', views.AttemptViolationView.as_view(),
         name='attempt.violation'
         ),
    path('exam_integrity/v1/attempt/<int:attempt_id>/submit', views.AttemptSubmitView.as_view(),
         name='attempt.submit'
         ),
    path('exam_integrity/v1/attempt/<int:attempt_id>/result', views.AttemptResultView.as_view(),
         name='attempt.result'
         ),
    path('exam_integrity/v1/attempt/<int:attempt_id>/upload_slots', views.AttemptUploadSlotsView.as_view(),
         name='attempt.upload_slots'
         ),
    path('exam_integrity/v1/attempts', views.StudentAttemptsView.as_view(),
         name='attempts'
         ),
]
