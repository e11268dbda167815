# pylint: disable=invalid-name
"""
All tests for the views.py
"""
import json
from datetime import datetime, timedelta

import ddt
import pytz
from freezegun import freeze_time
from mock import patch

from django.contrib.auth.models import Group
from django.db import DatabaseError
from django.test.client import Client
from django.urls import reverse

from exam_integrity.models import ExamAnswer, ExamAttempt, ExamSession
from exam_integrity.statuses import ExamAttemptStatus
from exam_integrity.tests import mock_perm

from .test_utils.factories import ExamAttemptFactory
from .utils import ExamIntegrityTestCase


class ExamIntegrityViewTestCase(ExamIntegrityTestCase):
    """
    Helpers for driving the HTTP endpoints as the logged in student
    """

    def _admit(self, device=None, password=None):
        response = self.client.post(
            reverse('exam_integrity:exam.session', args=[self.exam_id]),
            json.dumps({
                'password': password or self.password,
                'device_fingerprint': device or self.device,
                'device_info': {'device_type': 'desktop', 'os': 'Linux', 'browser': 'Firefox'},
            }),
            content_type='application/json',
            HTTP_USER_AGENT='Mozilla/5.0',
        )
        return response, json.loads(response.content.decode('utf-8'))

    def _session_headers(self, token, device=None):
        return {
            'HTTP_X_EXAM_SESSION_TOKEN': token,
            'HTTP_X_DEVICE_FINGERPRINT': device or self.device,
        }

    def _start(self, token):
        response = self.client.post(
            reverse('exam_integrity:exam.attempt', args=[self.exam_id]),
            **self._session_headers(token)
        )
        return response, json.loads(response.content.decode('utf-8'))


class ExamIntegrityViewTests(ExamIntegrityViewTestCase):
    """
    Generic tests for the views
    """

    def test_no_anonymous_access(self):
        """
        Make sure we cannot access any API methods without being logged in
        """
        self.client = Client()  # use AnonymousUser on the API calls
        response = self.client.post(reverse('exam_integrity:exam.credential', args=[self.exam_id]))
        self.assertEqual(response.status_code, 403)
        response = self.client.get(reverse('exam_integrity:attempts'))
        self.assertEqual(response.status_code, 403)

    def test_urls(self):
        self.assertEqual(
            reverse('exam_integrity:attempt.submit', args=[12]),
            '/exam_integrity/v1/attempt/12/submit'
        )
        self.assertEqual(
            reverse('exam_integrity:exam.session', args=['EXAM_1']),
            '/exam_integrity/v1/exam/EXAM_1/session'
        )


@ddt.ddt
class ExamCredentialViewTests(ExamIntegrityViewTestCase):
    """
    Tests for the ExamCredentialView
    """

    def _verify(self, exam_id, password):
        response = self.client.post(
            reverse('exam_integrity:exam.credential', args=[exam_id]),
            {'password': password},
        )
        return response, json.loads(response.content.decode('utf-8'))

    def test_verified(self):
        response, data = self._verify(self.exam_id, self.password)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(data, {'verified': True})

    @ddt.data(
        ('EXAM_MIDTERM', '', 'credential_missing'),
        ('EXAM_MIDTERM', 'guess', 'credential_incorrect'),
        ('EXAM_FINAL', 'guess', 'credential_incorrect'),
    )
    @ddt.unpack
    def test_refused(self, exam_id, password, error_code):
        response, data = self._verify(exam_id, password)
        self.assertEqual(response.status_code, 403)
        self.assertFalse(data['verified'])
        self.assertEqual(data['error_code'], error_code)

    def test_not_provisioned(self):
        exam = self._create_exam('EXAM_PERSONAL', password_type='PER_STUDENT')
        response, data = self._verify(exam.exam_id, 's3cret')
        self.assertEqual(response.status_code, 403)
        self.assertEqual(data['error_code'], 'credential_not_provisioned')
        self.assertEqual(data['detail'], 'Student password not found')

    def test_unknown_exam(self):
        response, data = self._verify('NOPE', self.password)
        self.assertEqual(response.status_code, 404)
        self.assertEqual(data['error_code'], 'exam_not_found')


class ExamSessionViewTests(ExamIntegrityViewTestCase):
    """
    Tests for the ExamSessionView
    """

    def test_create_and_resume(self):
        response, data = self._admit()
        self.assertEqual(response.status_code, 201)
        self.assertEqual(data['status'], 'created')
        self.assertTrue(data['session_token'])

        session = ExamSession.objects.get(session_token=data['session_token'])
        self.assertEqual(session.user_agent, 'Mozilla/5.0')
        self.assertEqual(session.device_type, 'desktop')
        self.assertEqual(session.ip_address, '127.0.0.1')

        response, resumed = self._admit(device='d_' + self.device)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(resumed['status'], 'resumed')
        self.assertEqual(resumed['session_token'], data['session_token'])

    def test_second_device_blocked(self):
        self._admit()
        response, data = self._admit(device=self.other_device)
        self.assertEqual(response.status_code, 409)
        self.assertEqual(data['status'], 'blocked')
        self.assertEqual(data['error_code'], 'session_denied')
        self.assertIn('already in progress on another device', data['detail'])
        self.assertNotIn('session_token', data)

    def test_wrong_password(self):
        response, data = self._admit(password='guess')
        self.assertEqual(response.status_code, 403)
        self.assertEqual(data['status'], 'credential_rejected')
        self.assertFalse(ExamSession.objects.exists())

    def test_fingerprint_from_header(self):
        response = self.client.post(
            reverse('exam_integrity:exam.session', args=[self.exam_id]),
            {'password': self.password},
            HTTP_X_DEVICE_FINGERPRINT=self.device,
        )
        self.assertEqual(response.status_code, 201)

    def test_missing_fingerprint(self):
        response = self.client.post(
            reverse('exam_integrity:exam.session', args=[self.exam_id]),
            {'password': self.password},
        )
        self.assertEqual(response.status_code, 400)
        data = json.loads(response.content.decode('utf-8'))
        self.assertEqual(data['error_code'], 'device_fingerprint_required')

    def test_validate(self):
        token = self._admit()[1]['session_token']
        url = reverse('exam_integrity:exam.session', args=[self.exam_id])

        response = self.client.get(url, **self._session_headers(token))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(json.loads(response.content.decode('utf-8'))['status'], 'valid')

        response = self.client.get(url, **self._session_headers(token, device=self.other_device))
        self.assertEqual(response.status_code, 403)
        self.assertEqual(json.loads(response.content.decode('utf-8'))['status'], 'device_mismatch')

        response = self.client.get(url, **self._session_headers('bogus'))
        self.assertEqual(response.status_code, 401)
        self.assertEqual(json.loads(response.content.decode('utf-8'))['status'], 'session_not_found')

    def test_touch(self):
        token = self._admit()[1]['session_token']
        response = self.client.put(
            reverse('exam_integrity:exam.session', args=[self.exam_id]), **self._session_headers(token)
        )
        self.assertEqual(response.status_code, 200)
        self.assertIn('last_activity', json.loads(response.content.decode('utf-8')))

    def test_touch_invalid(self):
        token = self._admit()[1]['session_token']
        response = self.client.put(
            reverse('exam_integrity:exam.session', args=[self.exam_id]),
            **self._session_headers(token, device=self.other_device)
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(json.loads(response.content.decode('utf-8'))['error_code'], 'session_device_mismatch')

    def test_sign_out(self):
        token = self._admit()[1]['session_token']
        url = reverse('exam_integrity:exam.session', args=[self.exam_id])

        response = self.client.delete(url, **self._session_headers(token))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(json.loads(response.content.decode('utf-8')), {'ended': True})

        response = self.client.delete(url, **self._session_headers(token))
        self.assertEqual(json.loads(response.content.decode('utf-8')), {'ended': False})

        response, data = self._admit(device=self.other_device)
        self.assertEqual(response.status_code, 201)


class ExamAttemptViewTests(ExamIntegrityViewTestCase):
    """
    Tests for the attempt endpoints
    """

    def setUp(self):
        super().setUp()
        self.token = self._admit()[1]['session_token']
        self.headers = self._session_headers(self.token)

    def test_start_requires_session(self):
        response = self.client.post(reverse('exam_integrity:exam.attempt', args=[self.exam_id]))
        self.assertEqual(response.status_code, 401)
        self.assertFalse(ExamAttempt.objects.exists())

    def test_start_and_resume(self):
        response, data = self._start(self.token)
        self.assertEqual(response.status_code, 201)
        self.assertFalse(data['resumed'])
        self.assertEqual(data['attempt']['status'], ExamAttemptStatus.IN_PROGRESS)
        self.assertEqual(len(data['upload_slots']['webcam']), 20)

        response, resumed = self._start(self.token)
        self.assertEqual(response.status_code, 200)
        self.assertTrue(resumed['resumed'])
        self.assertEqual(resumed['attempt']['id'], data['attempt']['id'])

    def test_full_attempt(self):
        attempt_id = self._start(self.token)[1]['attempt']['id']

        response = self.client.put(
            reverse('exam_integrity:attempt.answer', args=[attempt_id, 'Q1']),
            json.dumps({'answer': 'B'}),
            content_type='application/json',
            **self.headers
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(json.loads(response.content.decode('utf-8'))['answer'], 'B')

        response = self.client.post(
            reverse('exam_integrity:attempt.violation', args=[attempt_id]),
            json.dumps({'violation_type': 'tab_switch', 'details': {'hidden_ms': 1200}}),
            content_type='application/json',
            **self.headers
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(json.loads(response.content.decode('utf-8'))['severity'], 'HIGH')

        response = self.client.post(
            reverse('exam_integrity:attempt.submit', args=[attempt_id]),
            json.dumps({'answers': {'Q2': 'A,C'}, 'time_spent_seconds': 600}),
            content_type='application/json',
            **self.headers
        )
        self.assertEqual(response.status_code, 200)
        data = json.loads(response.content.decode('utf-8'))
        self.assertEqual(data['status'], ExamAttemptStatus.COMPLETED)
        self.assertEqual(data['score'], 8)
        self.assertEqual(data['violation_count'], 1)
        self.assertFalse(ExamSession.objects.get(session_token=self.token).is_active)

        # a retried submission needs no session and changes nothing
        response = self.client.post(reverse('exam_integrity:attempt.submit', args=[attempt_id]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(json.loads(response.content.decode('utf-8'))['score'], 8)

        response = self.client.get(reverse('exam_integrity:attempt.result', args=[attempt_id]))
        self.assertEqual(response.status_code, 200)
        result = json.loads(response.content.decode('utf-8'))
        self.assertEqual(result['answers'][0]['correct_answer'], 'B')
        self.assertEqual(len(result['violations']), 1)

        response = self.client.get(reverse('exam_integrity:exam.status', args=[self.exam_id]))
        self.assertEqual(json.loads(response.content.decode('utf-8'))['status'], ExamAttemptStatus.COMPLETED)

    def test_no_reattempt(self):
        attempt_id = self._start(self.token)[1]['attempt']['id']
        self.client.post(reverse('exam_integrity:attempt.submit', args=[attempt_id]), **self.headers)

        token = self._admit()[1]['session_token']
        response, data = self._start(token)
        self.assertEqual(response.status_code, 409)
        self.assertEqual(data['error_code'], 'attempt_finalized')

    def test_answer_formats(self):
        attempt_id = self._start(self.token)[1]['attempt']['id']
        url = reverse('exam_integrity:attempt.answer', args=[attempt_id, 'Q2'])

        response = self.client.put(
            url, json.dumps({'answer': ['A', 'C']}), content_type='application/json', **self.headers
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(json.loads(response.content.decode('utf-8'))['answer'], 'A,C')

        response = self.client.put(
            url, json.dumps({'answer': None}), content_type='application/json', **self.headers
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(json.loads(response.content.decode('utf-8'))['answer'], '')

        for answer in ({'A': True}, ['A', 3], 7):
            response = self.client.put(
                url, json.dumps({'answer': answer}), content_type='application/json', **self.headers
            )
            self.assertEqual(response.status_code, 400)

    def test_submit_with_listed_and_cleared_answers(self):
        attempt_id = self._start(self.token)[1]['attempt']['id']
        response = self.client.post(
            reverse('exam_integrity:attempt.submit', args=[attempt_id]),
            json.dumps({'answers': {'Q2': ['A', 'C'], 'Q1': None}}),
            content_type='application/json',
            **self.headers
        )
        self.assertEqual(response.status_code, 200)
        data = json.loads(response.content.decode('utf-8'))
        self.assertEqual(data['status'], ExamAttemptStatus.COMPLETED)
        self.assertEqual(data['score'], 3)
        self.assertEqual(ExamAnswer.objects.get(attempt_id=attempt_id, question_id='Q2').answer, 'A,C')
        self.assertEqual(ExamAnswer.objects.get(attempt_id=attempt_id, question_id='Q1').answer, '')

    def test_answer_requires_session(self):

        attempt_id = self._start(self.token)[1]['attempt']['id']
        response = self.client.put(
            reverse('exam_integrity:attempt.answer', args=[attempt_id, 'Q1']),
            json.dumps({'answer': 'B'}),
            content_type='application/json',
            **self._session_headers(self.token, device=self.other_device)
        )
        self.assertEqual(response.status_code, 403)

    def test_attempt_of_another_student(self):
        other = ExamAttemptFactory(exam=self.exam, student_email='other@test.com')
        response = self.client.get(reverse('exam_integrity:attempt.result', args=[other.id]))
        self.assertEqual(response.status_code, 403)
        response = self.client.post(reverse('exam_integrity:attempt.submit', args=[other.id]), **self.headers)
        self.assertEqual(response.status_code, 403)

    def test_unknown_attempt(self):
        response = self.client.get(reverse('exam_integrity:attempt.result', args=[9999]))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(json.loads(response.content.decode('utf-8'))['error_code'], 'attempt_not_found')

    def test_invalid_violation(self):
        attempt_id = self._start(self.token)[1]['attempt']['id']
        response = self.client.post(
            reverse('exam_integrity:attempt.violation', args=[attempt_id]),
            json.dumps({'details': {}}),
            content_type='application/json',
            **self.headers
        )
        self.assertEqual(response.status_code, 400)

    def test_upload_slots(self):
        attempt_id = self._start(self.token)[1]['attempt']['id']
        url = reverse('exam_integrity:attempt.upload_slots', args=[attempt_id])

        response = self.client.post(url, {'channel': 'screen', 'count': 5})
        self.assertEqual(response.status_code, 201)
        slots = json.loads(response.content.decode('utf-8'))['upload_slots']
        self.assertEqual([slot['filename'] for slot in slots][-1], 'screen_002_0005.jpg')

        response = self.client.post(url, {'channel': 'screen', 'count': 'many'})
        self.assertEqual(response.status_code, 400)

        response = self.client.post(url, {'channel': 'microphone'})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            json.loads(response.content.decode('utf-8'))['error_code'], 'upload_channel_not_supported'
        )

    def test_student_attempts(self):
        self._start(self.token)
        ExamAttemptFactory(exam=self.per_student_exam, student_email=self.student_email)
        ExamAttemptFactory(exam=self.exam, student_email='other@test.com')

        response = self.client.get(reverse('exam_integrity:attempts'))
        self.assertEqual(len(json.loads(response.content.decode('utf-8'))), 2)

        response = self.client.get(reverse('exam_integrity:attempts'), {'exam_id': self.exam_id})
        data = json.loads(response.content.decode('utf-8'))
        self.assertEqual([attempt['exam_id'] for attempt in data], [self.exam_id])

    def test_storage_error(self):
        with patch.object(ExamAttempt.objects, 'get_exam_attempt', side_effect=DatabaseError('database is locked')):
            response, data = self._start(self.token)
        self.assertEqual(response.status_code, 503)
        self.assertEqual(data['error_code'], 'storage_error')

class AttemptSubmitAtTimeUpViewTests(ExamIntegrityViewTestCase):
    """
    Tests for the automatic submission when the exam ends
    """

    def setUp(self):
        super().setUp()
        self.end = datetime.now(pytz.UTC) + timedelta(minutes=30)
        self.exam.end_datetime = self.end
        self.exam.save()
        self.token = self._admit()[1]['session_token']
        self.attempt_id = self._start(self.token)[1]['attempt']['id']

    def _submit(self, headers):
        response = self.client.post(
            reverse('exam_integrity:attempt.submit', args=[self.attempt_id]),
            json.dumps({'answers': {'Q1': 'B'}}),
            content_type='application/json',
            **headers
        )
        return response, json.loads(response.content.decode('utf-8'))

    def test_submit_at_exam_end(self):
        with freeze_time(self.end):
            response, data = self._submit(self._session_headers(self.token))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(data['status'], ExamAttemptStatus.COMPLETED)
        self.assertEqual(data['score'], 5)
        self.assertFalse(ExamSession.objects.get(session_token=self.token).is_active)

    def test_other_device_cannot_submit_after_exam_end(self):
        with freeze_time(self.end + timedelta(minutes=1)):
            response, data = self._submit(self._session_headers(self.token, device=self.other_device))
        self.assertEqual(response.status_code, 401)
        self.assertEqual(data['error_code'], 'session_expired')
        self.assertEqual(ExamAttempt.objects.get(id=self.attempt_id).status, ExamAttemptStatus.IN_PROGRESS)

    def test_autosave_needs_a_live_session(self):
        with freeze_time(self.end):
            response = self.client.put(
                reverse('exam_integrity:attempt.answer', args=[self.attempt_id, 'Q1']),
                json.dumps({'answer': 'B'}),
                content_type='application/json',
                **self._session_headers(self.token)
            )
        self.assertEqual(response.status_code, 401)



class ExamStatisticsViewTests(ExamIntegrityViewTestCase):
    """
    Tests for the ExamStatisticsView
    """

    def test_students_are_refused(self):
        response = self.client.get(reverse('exam_integrity:exam.statistics', args=[self.exam_id]))
        self.assertEqual(response.status_code, 403)

    def test_staff(self):
        self.user.is_staff = True
        self.user.save()
        response = self.client.get(reverse('exam_integrity:exam.statistics', args=[self.exam_id]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(json.loads(response.content.decode('utf-8'))['attempted'], 0)

    def test_reviewers(self):
        with mock_perm('exam_integrity.can_view_exam_statistics'):
            response = self.client.get(reverse('exam_integrity:exam.statistics', args=[self.exam_id]))
        self.assertEqual(response.status_code, 200)

    def test_reviewer_group(self):
        self.user.groups.add(Group.objects.create(name='exam_integrity_reviewers'))
        response = self.client.get(reverse('exam_integrity:exam.statistics', args=[self.exam_id]))
        self.assertEqual(response.status_code, 200)
