"""
Exam Integrity HTTP-based API endpoints
"""

import logging

from rest_framework import status
from rest_framework.response import Response

from exam_integrity import constants
from exam_integrity.api import (
    create_or_resume_session,
    end_session,
    get_attempt_status,
    get_exam_attempt_by_id,
    get_exam_statistics,
    get_result,
    get_student_attempts,
    record_violation,
    request_more_slots,
    save_answer,
    start_or_resume_attempt,
    submit_attempt,
    touch_session,
    validate_session,
    validate_session_for_submission,
    verify_exam_credential
)
from exam_integrity.exceptions import ExamIntegrityBaseException
from exam_integrity.serializers import SaveAnswerSerializer, SubmitAttemptSerializer, ViolationSerializer
from exam_integrity.statuses import ExamAttemptStatus, SessionAdmissionStatus
from exam_integrity.utils import AuthenticatedAPIView, get_client_ip

LOG = logging.getLogger("exam_integrity.views")


def handle_exam_integrity_exception(exc, name=None):  # pylint: disable=inconsistent-return-statements
    """
    Converts exam integrity exceptions into standard restframework responses
    """
    if isinstance(exc, ExamIntegrityBaseException):
        LOG.exception(name)
        return Response(status=exc.http_status, data=_error_data(exc))


def _error_data(exc, **extra):
    data = {'detail': str(exc), 'error_code': exc.error_code}
    data.update(extra)
    return data


class ExamIntegrityAPIView(AuthenticatedAPIView):
    """
    Overrides AuthenticatedAPIView to handle exam integrity exceptions
    """
    def handle_exception(self, exc):
        """
        Converts exam integrity exceptions into standard restframework responses
        """
        resp = handle_exam_integrity_exception(exc, name=self.__class__.__name__)
        if not resp:
            resp = super().handle_exception(exc)
        return resp

    @staticmethod
    def get_session_headers(request):
        """
        Returns the session token and device fingerprint the client presented
        """
        return (
            request.META.get(constants.SESSION_TOKEN_HEADER, ''),
            request.META.get(constants.DEVICE_FINGERPRINT_HEADER, ''),
        )

    def require_valid_session(self, request, exam_id):
        """
        Raises the matching SessionInvalidError unless the request carries
        the active session of the student on this device
        """
        session_token, device_fingerprint = self.get_session_headers(request)
        validation = validate_session(exam_id, request.user.email, session_token, device_fingerprint)
        if not validation.is_valid:
            raise validation.error
        return validation


class ExamCredentialView(ExamIntegrityAPIView):
    """
    Endpoint for checking an exam password
    /exam_integrity/v1/exam/{exam_id}/credential

    HTTP POST
    Expected POST data: {
        "password": "secret"
    }

    **Response Values**
        * {'verified': true}

    **Exceptions**
        * HTTP_403_FORBIDDEN with error_code credential_missing, credential_incorrect
          or credential_not_provisioned
    """

    def post(self, request, exam_id):
        """
        HTTP POST handler.
        """
        verification = verify_exam_credential(exam_id, request.data.get('password'), request.user.email)
        if verification.verified:
            return Response(data={'verified': True}, status=status.HTTP_200_OK)
        return Response(
            data=_error_data(verification.error, verified=False),
            status=verification.error.http_status,
        )


class ExamSessionView(ExamIntegrityAPIView):
    """
    Endpoint for the device session of the student on an exam
    /exam_integrity/v1/exam/{exam_id}/session

    Supports:
        HTTP POST: Admits this device (creates or resumes the session).
        HTTP GET: Validates the presented session.
        HTTP PUT: Records activity on the presented session.
        HTTP DELETE: Signs this device out.

    HTTP POST
    Expected POST data: {
        "password": "secret",
        "device_fingerprint": "d_4f1c...",
        "device_info": {"user_agent": "...", "device_type": "desktop", "os": "Linux", "browser": "Firefox"}
    }

    **Response Values**
        * 201 (new) or 200 (resumed): {'status': 'created', 'session_token': '...', 'expires_at': ...}
        * 409: {'status': 'blocked', 'error_code': 'session_denied', 'detail': '...'} when
          another device holds the session
        * 403: {'status': 'credential_rejected', 'error_code': ..., 'detail': ...}

    GET, PUT and DELETE expect the X-Exam-Session-Token and X-Device-Fingerprint headers.
    """

    def post(self, request, exam_id):
        """
        HTTP POST handler. Admits the device.
        """
        device_fingerprint = (
            request.data.get('device_fingerprint') or self.get_session_headers(request)[1]
        )
        device_info = request.data.get('device_info') or {}
        if not isinstance(device_info, dict):
            device_info = {}
        device_info.setdefault('user_agent', request.META.get('HTTP_USER_AGENT', ''))

        admission = create_or_resume_session(
            exam_id,
            request.user.email,
            device_fingerprint,
            request.data.get('password'),
            ip_address=get_client_ip(request),
            device_info=device_info,
        )
        if admission.admitted:
            return Response(
                data={
                    'status': admission.status,
                    'session_token': admission.session_token,
                    'expires_at': admission.expires_at,
                },
                status=(
                    status.HTTP_201_CREATED if admission.status == SessionAdmissionStatus.CREATED
                    else status.HTTP_200_OK
                ),
            )
        return Response(
            data=_error_data(admission.error, status=admission.status),
            status=admission.error.http_status,
        )

    def get(self, request, exam_id):
        """
        HTTP GET handler. Validates the session.
        """
        session_token, device_fingerprint = self.get_session_headers(request)
        validation = validate_session(exam_id, request.user.email, session_token, device_fingerprint)
        if validation.is_valid:
            return Response(
                data={'status': validation.status, 'expires_at': validation.session.expires_at},
                status=status.HTTP_200_OK,
            )
        return Response(
            data=_error_data(validation.error, status=validation.status),
            status=validation.error.http_status,
        )

    def put(self, request, exam_id):
        """
        HTTP PUT handler. Records activity.
        """
        session_token, device_fingerprint = self.get_session_headers(request)
        session = touch_session(exam_id, request.user.email, session_token, device_fingerprint)
        return Response(
            data={'last_activity': session['last_activity'], 'expires_at': session['expires_at']},
            status=status.HTTP_200_OK,
        )

    def delete(self, request, exam_id):
        """
        HTTP DELETE handler. Signs out.
        """
        session_token, device_fingerprint = self.get_session_headers(request)
        ended = end_session(exam_id, request.user.email, session_token, device_fingerprint)
        return Response(data={'ended': ended}, status=status.HTTP_200_OK)


class ExamAttemptCollectionView(ExamIntegrityAPIView):
    """
    Endpoint for starting or resuming the attempt of the student
    /exam_integrity/v1/exam/{exam_id}/attempt

    HTTP POST, with a valid session

    **Response Values**
        * 201 on a new attempt, 200 on a resume:
          {'attempt': {...}, 'resumed': bool, 'answers': [...], 'upload_slots': {'webcam': [...], ...}}

    **Exceptions**
        * HTTP_409_CONFLICT (attempt_finalized) when the exam was already submitted
    """

    def post(self, request, exam_id):
        """
        HTTP POST handler. To create or resume an exam attempt.
        """
        self.require_valid_session(request, exam_id)
        data = start_or_resume_attempt(exam_id, request.user.email)
        return Response(
            data=data,
            status=status.HTTP_200_OK if data['resumed'] else status.HTTP_201_CREATED,
        )


class ExamAttemptStatusView(ExamIntegrityAPIView):
    """
    Endpoint returning the status of the student's attempt on an exam
    /exam_integrity/v1/exam/{exam_id}/status
    """

    def get(self, request, exam_id):
        """
        HTTP GET handler.
        """
        return Response(data=get_attempt_status(exam_id, request.user.email), status=status.HTTP_200_OK)


class ExamStatisticsView(ExamIntegrityAPIView):
    """
    Endpoint returning score statistics of an exam, for staff and reviewers
    /exam_integrity/v1/exam/{exam_id}/statistics
    """

    def get(self, request, exam_id):
        """
        HTTP GET handler.
        """
        if not request.user.has_perm('exam_integrity.can_view_exam_statistics'):
            return Response(
                status=status.HTTP_403_FORBIDDEN,
                data={"detail": "Must be a Staff User to Perform this request."}
            )
        return Response(data=get_exam_statistics(exam_id), status=status.HTTP_200_OK)


class AttemptScopedView(ExamIntegrityAPIView):
    """
    Base class of the endpoints under /exam_integrity/v1/attempt/{attempt_id}
    """

    def get_attempt(self, request, attempt_id):
        """
        Returns the attempt, if it belongs to the requesting student
        """
        return get_exam_attempt_by_id(attempt_id, request.user.email)


class AttemptAnswerView(AttemptScopedView):
    """
    Autosave endpoint
    /exam_integrity/v1/attempt/{attempt_id}/answer/{question_id}

    HTTP PUT, with a valid session
    Expected PUT data: {
        "answer": "B",
        "submitted": false
    }

    Multiple selected options may be sent as a list, a cleared answer as null.
    """

    def put(self, request, attempt_id, question_id):
        """
        HTTP PUT handler.
        """
        attempt = self.get_attempt(request, attempt_id)
        self.require_valid_session(request, attempt['exam_id'])
        serializer = SaveAnswerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        saved = save_answer(
            attempt_id,
            request.user.email,
            question_id,
            serializer.validated_data['answer'],
            submitted=serializer.validated_data['submitted'],
        )
        return Response(data=saved, status=status.HTTP_200_OK)


class AttemptViolationView(AttemptScopedView):
    """
    Endpoint for reporting an integrity violation
    /exam_integrity/v1/attempt/{attempt_id}/violation

    HTTP POST, with a valid session
    Expected POST data: {
        "violation_type": "tab_switch",
        "details": {"count": 1}
    }
    """

    def post(self, request, attempt_id):
        """
        HTTP POST handler.
        """
        attempt = self.get_attempt(request, attempt_id)
        self.require_valid_session(request, attempt['exam_id'])
        serializer = ViolationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        violation = record_violation(
            attempt_id,
            request.user.email,
            serializer.validated_data['violation_type'],
            serializer.validated_data['details'],
        )
        return Response(data=violation, status=status.HTTP_201_CREATED)


class AttemptSubmitView(AttemptScopedView):
    """
    Endpoint for submitting an attempt
    /exam_integrity/v1/attempt/{attempt_id}/submit

    HTTP POST
    Expected POST data: {
        "answers": {"Q1": "B", "Q2": ["A", "C"], "Q3": null},
        "violations": [{"violation_type": "window_blur", "details": {}}],
        "time_spent_seconds": 1712
    }

    Needs the session of this device. A session that ran out of time is
    still accepted, so the automatic submission at time-up goes through.
    No session is needed once the attempt is final: a retried submission
    then returns the stored outcome.
    """

    def post(self, request, attempt_id):
        """
        HTTP POST handler.
        """
        attempt = self.get_attempt(request, attempt_id)
        if not ExamAttemptStatus.is_terminal_status(attempt['status']):
            session_token, device_fingerprint = self.get_session_headers(request)
            validation = validate_session_for_submission(
                attempt['exam_id'], request.user.email, session_token, device_fingerprint
            )
            if not validation.is_valid:
                raise validation.error
        serializer = SubmitAttemptSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        submitted = submit_attempt(
            attempt_id,
            request.user.email,
            answers=serializer.validated_data['answers'],
            violations=serializer.validated_data['violations'],
            time_spent_seconds=serializer.validated_data['time_spent_seconds'],
        )
        return Response(data=submitted, status=status.HTTP_200_OK)


class AttemptResultView(AttemptScopedView):
    """
    Endpoint returning the graded result of an attempt
    /exam_integrity/v1/attempt/{attempt_id}/result
    """

    def get(self, request, attempt_id):
        """
        HTTP GET handler.
        """
        return Response(data=get_result(attempt_id, request.user.email), status=status.HTTP_200_OK)


class AttemptUploadSlotsView(AttemptScopedView):
    """
    Endpoint replenishing the upload slots of a media channel
    /exam_integrity/v1/attempt/{attempt_id}/upload_slots

    HTTP POST
    Expected POST data: {
        "channel": "webcam",
        "count": 50
    }

    Slots are issued whatever the state of the attempt or session.
    """

    def post(self, request, attempt_id):
        """
        HTTP POST handler.
        """
        count = request.data.get('count')
        try:
            count = int(count) if count is not None else None
        except (TypeError, ValueError):
            return Response(
                status=status.HTTP_400_BAD_REQUEST,
                data={'detail': 'count must be an integer'}
            )
        slots = request_more_slots(attempt_id, request.user.email, request.data.get('channel', ''), count=count)
        return Response(data={'upload_slots': slots}, status=status.HTTP_201_CREATED)


class StudentAttemptsView(ExamIntegrityAPIView):
    """
    Endpoint listing the attempts of the requesting student
    /exam_integrity/v1/attempts?exam_id={exam_id}
    """

    def get(self, request):
        """
        HTTP GET handler.
        """
        attempts = get_student_attempts(request.user.email, exam_id=request.query_params.get('exam_id'))
        return Response(data=attempts, status=status.HTTP_200_OK)
