# pylint: disable=invalid-name

"""
Subclasses Django test client to allow for easy login
"""

from datetime import datetime, timedelta
from importlib import import_module

import pytz

from django.conf import settings
from django.contrib.auth import login
from django.contrib.auth.models import User
from django.http import HttpRequest
from django.test import TestCase
from django.test.client import Client

from exam_integrity.models import Exam, ExamQuestion, StudentExamCredential
from exam_integrity.statuses import PasswordType, QuestionType


class TestClient(Client):
    """
    Allows for 'fake logins' of a user so we don't need to expose a 'login' HTTP endpoint
    """
    def login_user(self, user):
        """
        Login as specified user, does not depend on auth backend (hopefully)

        This is based on Client.login() with a small hack that does not
        require the call to authenticate()
        """
        user.backend = "django.contrib.auth.backends.ModelBackend"
        engine = import_module(settings.SESSION_ENGINE)

        # Create a fake request to store login details.
        request = HttpRequest()

        request.session = engine.SessionStore()
        login(request, user)

        # Set the cookie to represent the session.
        session_cookie = settings.SESSION_COOKIE_NAME
        self.cookies[session_cookie] = request.session.session_key
        cookie_data = {
            'max-age': None,
            'path': '/',
            'domain': settings.SESSION_COOKIE_DOMAIN,
            'secure': settings.SESSION_COOKIE_SECURE or None,
            'expires': None,
        }
        self.cookies[session_cookie].update(cookie_data)

        # Save the session values.
        request.session.save()


class LoggedInTestCase(TestCase):
    """
    All tests for the views.py
    """

    def setUp(self):
        """
        Setup for tests
        """
        super().setUp()
        self.client = TestClient()
        self.user = User(username='tester', email='tester@test.com')
        self.user.save()
        self.client.login_user(self.user)


class ExamIntegrityTestCase(LoggedInTestCase):
    """
    Builds a shared password exam with a handful of questions, and a per
    student password exam
    """

    def setUp(self):
        """
        Build out test harnessing
        """
        super().setUp()
        self.student_email = self.user.email
        self.exam_id = 'EXAM_MIDTERM'
        self.per_student_exam_id = 'EXAM_FINAL'
        self.password = 'open-sesame'
        self.device = 'device-one'
        self.other_device = 'device-two'

        self.exam = self._create_exam(self.exam_id, master_password=self.password)
        self._create_question(self.exam, 'Q1', 1, correct_answer='B', marks=5, negative_marks=1)
        self._create_question(self.exam, 'Q2', 2, correct_answer='A,C', marks=3, negative_marks=1,
                              has_multiple_answers=True)
        self._create_question(self.exam, 'Q3', 3, question_type=QuestionType.LONG_ANSWER, marks=2)

        self.per_student_exam = self._create_exam(self.per_student_exam_id, password_type=PasswordType.PER_STUDENT)
        StudentExamCredential.objects.create(
            exam=self.per_student_exam, student_email=self.student_email, password='s3cret'
        )

    def _create_exam(self, exam_id, **kwargs):
        """
        Calls the model to create an exam
        """
        defaults = {
            'title': 'Test Exam',
            'total_marks': 10,
            'start_datetime': datetime.now(pytz.UTC) - timedelta(hours=1),
            'duration_mins': 90,
            'password_type': PasswordType.SHARED,
            'enable_negative_marking': True,
        }
        defaults.update(kwargs)
        return Exam.objects.create(exam_id=exam_id, **defaults)

    def _create_question(self, exam, question_id, number, **kwargs):
        """
        Calls the model to create a question
        """
        defaults = {
            'question_type': QuestionType.MCQ,
            'question_text': f'Question {number}',
        }
        defaults.update(kwargs)
        return ExamQuestion.objects.create(exam=exam, question_id=question_id, question_number=number, **defaults)
