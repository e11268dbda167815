# pylint: disable=too-many-lines

"""
In-Proc API (aka Library) for the exam_integrity subsystem. This is not to be confused with a HTTP REST
API which is in the views.py file.

This module is the only writer of sessions, attempts, answers, violations and
upload slots, and it owns every rule about them: one active device session per
student and exam, no reattempt after submission, monotonic answer submission
and a single grading per attempt.
"""

import hmac
import logging
from datetime import datetime, timedelta

import pytz

from django.db import IntegrityError, transaction
from django.db.models import Avg, Count, F, Max, Min, OuterRef, Subquery
from django.utils.crypto import get_random_string

from exam_integrity import constants
from exam_integrity.backends import get_backend_provider
from exam_integrity.exceptions import (
    AttemptFinalizedError,
    CredentialIncorrectError,
    CredentialMissingError,
    CredentialNotProvisionedError,
    DeviceFingerprintRequired,
    ExamAttemptDoesNotExistException,
    ExamAttemptIllegalStatusTransition,
    ExamAttemptPermissionDenied,
    ExamNotActiveException,
    ExamNotFoundException,
    SessionDeniedError,
    SessionDeviceMismatchError,
    SessionExpiredError,
    SessionNotFoundError,
    StorageError,
    UploadChannelNotSupported
)
from exam_integrity.grading import grade_exam
from exam_integrity.models import (
    Exam,
    ExamAnswer,
    ExamAttempt,
    ExamQuestion,
    ExamSession,
    ExamViolation,
    StudentExamCredential,
    UploadSlot,
    UploadSlotBatch
)
from exam_integrity.results import CredentialVerification, SessionAdmission, SessionValidation
from exam_integrity.serializers import (
    ExamAnswerSerializer,
    ExamAttemptSerializer,
    ExamSessionSerializer,
    ExamViolationSerializer,
    UploadSlotSerializer
)
from exam_integrity.signals import exam_attempt_graded_signal, exam_attempt_status_signal
from exam_integrity.statuses import (
    ExamAttemptStatus,
    PasswordType,
    SessionAdmissionStatus,
    SessionEndReason,
    SessionValidationStatus,
    ViolationSeverity
)
from exam_integrity.utils import normalize_device_fingerprint, normalize_email, surface_storage_errors

log = logging.getLogger(__name__)

# how often a write that lost a uniqueness race is re-read and retried
MAX_CONFLICT_RETRIES = 3


def _now():
    return datetime.now(pytz.UTC)


def _get_exam(exam_id):
    """
    Looks up exam by its exam_id. Raises exception if not found.
    """
    exam = Exam.get_exam_by_exam_id(exam_id)
    if exam is None:
        err_msg = (
            f'Attempted to get exam_id={exam_id}, but this exam does not exist.'
        )
        raise ExamNotFoundException(err_msg)
    return exam


def _get_owned_attempt(attempt_id, student_email):
    """
    Returns the attempt, making sure it belongs to the student
    """
    attempt = ExamAttempt.objects.get_exam_attempt_by_id(attempt_id)
    if attempt is None:
        raise ExamAttemptDoesNotExistException(
            f'Tried to look up exam by attempt_id={attempt_id}, '
            'but this attempt does not exist.'
        )
    if student_email is not None and attempt.student_email != normalize_email(student_email):
        raise ExamAttemptPermissionDenied(
            f'attempt_id={attempt_id} does not belong to the requesting student.'
        )
    return attempt


#
# Password Verifier
#

@surface_storage_errors
def verify_exam_credential(exam_id, credential, student_email=None):
    """
    Checks the password a student typed in for an exam.

    SHARED exams compare against the one master password, PER_STUDENT exams
    against the password provisioned for the student. Both sides are trimmed
    and the comparison is case sensitive. Never raises for a wrong or missing
    password, it returns a CredentialVerification instead.
    """
    exam = _get_exam(exam_id)
    submitted = (credential or '').strip()
    if not submitted:
        return CredentialVerification.failure(CredentialMissingError('Password is required'))

    if exam.password_type == PasswordType.PER_STUDENT:
        student_credential = None
        if normalize_email(student_email):
            student_credential = StudentExamCredential.get_credential(exam, normalize_email(student_email))
        if student_credential is None:
            log.info(
                'No password provisioned for exam_id=%(exam_id)s and the requesting student',
                {'exam_id': exam_id}
            )
            return CredentialVerification.failure(CredentialNotProvisionedError('Student password not found'))
        expected = student_credential.password.strip()
    else:
        expected = (exam.master_password or '').strip()

    if not expected or not hmac.compare_digest(submitted.encode('utf-8'), expected.encode('utf-8')):
        return CredentialVerification.failure(CredentialIncorrectError('Incorrect password'))
    return CredentialVerification.success()


#
# Session Admission Controller
#

def _generate_session_token(now):
    return f'{get_random_string(constants.SESSION_TOKEN_LENGTH)}_{int(now.timestamp() * 1000)}'


def _get_session_expiry(exam, now):
    """
    Sessions end with the exam, or after the default duration when the exam has no end time
    """
    if exam.end_datetime:
        return exam.end_datetime
    return now + timedelta(hours=constants.DEFAULT_SESSION_DURATION_HOURS)


def _deactivate_session(session, reason, now):
    session.is_active = False
    session.ended_at = now
    session.end_reason = reason
    session.save()
    log.info(
        'Deactivated exam session id=%(session_id)s for exam_id=%(exam_id)s, reason=%(reason)s',
        {'session_id': session.id, 'exam_id': session.exam.exam_id, 'reason': reason}
    )


def _get_live_session(exam, student_email, now):
    """
    Returns the active session of the student, retiring it first when it already expired
    """
    session = ExamSession.objects.get_active_session(exam, student_email)
    if session is not None and session.is_expired(now):
        _deactivate_session(session, SessionEndReason.EXPIRED, now)
        session = None
    return session


@surface_storage_errors
def create_or_resume_session(exam_id, student_email, device_fingerprint, credential,
                             ip_address='', device_info=None):
    """
    Admits a device to an exam.

    The first successful admission gets a new session. The device holding
    the active session gets it back (same token, same expiry). Any other
    device is refused, and the refusal is recorded on the active session
    without disturbing it.

    Returns a SessionAdmission; refusals are not raised.
    """
    exam = _get_exam(exam_id)
    student_email = normalize_email(student_email)
    fingerprint = normalize_device_fingerprint(device_fingerprint)
    if not fingerprint:
        raise DeviceFingerprintRequired('A device fingerprint is required to start an exam session.')

    verification = verify_exam_credential(exam_id, credential, student_email)
    if not verification.verified:
        return SessionAdmission(SessionAdmissionStatus.CREDENTIAL_REJECTED, None, None, verification.error)

    now = _now()
    if not exam.is_active or (exam.end_datetime and exam.end_datetime <= now):
        raise ExamNotActiveException(f'exam_id={exam_id} is not accepting students.')

    device_info = device_info or {}
    for _ in range(MAX_CONFLICT_RETRIES):
        session = _get_live_session(exam, student_email, now)

        if session is None:
            try:
                with transaction.atomic():
                    session = ExamSession.objects.create(
                        exam=exam,
                        student_email=student_email,
                        session_token=_generate_session_token(now),
                        device_fingerprint=fingerprint,
                        issued_at=now,
                        expires_at=_get_session_expiry(exam, now),
                        last_activity=now,
                        ip_address=ip_address or '',
                        user_agent=device_info.get('user_agent', ''),
                        device_type=device_info.get('device_type', ''),
                        os=device_info.get('os', ''),
                        browser=device_info.get('browser', ''),
                    )
            except IntegrityError:
                # another device was admitted between our read and our write
                log.info(
                    'Lost the admission race for exam_id=%(exam_id)s, re-reading the active session',
                    {'exam_id': exam_id}
                )
                continue
            log.info(
                'Created exam session id=%(session_id)s for exam_id=%(exam_id)s expiring at %(expires_at)s',
                {'session_id': session.id, 'exam_id': exam_id, 'expires_at': session.expires_at}
            )
            return SessionAdmission(SessionAdmissionStatus.CREATED, session.session_token, session.expires_at, None)

        if session.device_fingerprint == fingerprint:
            session.last_activity = now
            session.save()
            log.info(
                'Resumed exam session id=%(session_id)s for exam_id=%(exam_id)s',
                {'session_id': session.id, 'exam_id': exam_id}
            )
            return SessionAdmission(SessionAdmissionStatus.RESUMED, session.session_token, session.expires_at, None)

        session.block_reason = constants.BLOCK_REASON_DIFFERENT_DEVICE
        session.blocked_device_fingerprint = fingerprint
        session.blocked_ip_address = ip_address or ''
        session.blocked_at = now
        session.save()
        log.warning(
            ('Blocked admission of a second device for exam_id=%(exam_id)s, '
             'active session id=%(session_id)s, offending ip=%(ip_address)s'),
            {'exam_id': exam_id, 'session_id': session.id, 'ip_address': ip_address}
        )
        error = SessionDeniedError(
            constants.SESSION_IN_USE_MESSAGE,
            block_reason=session.block_reason,
            blocked_device_fingerprint=fingerprint,
            blocked_ip_address=session.blocked_ip_address,
            blocked_at=now,
        )
        return SessionAdmission(SessionAdmissionStatus.BLOCKED, None, None, error)

    raise StorageError(
        f'Could not admit a session for exam_id={exam_id} after {MAX_CONFLICT_RETRIES} tries, please retry.',
        operation='create_or_resume_session',
    )


@surface_storage_errors
def validate_session(exam_id, student_email, session_token, device_fingerprint):
    """
    Checks a presented session. Returns a SessionValidation whose status is
    one of valid, expired, session_not_found or device_mismatch.
    """
    session = None
    if session_token:
        session = ExamSession.objects.filter(
            exam__exam_id=exam_id,
            student_email=normalize_email(student_email),
            session_token=session_token,
        ).select_related('exam').first()

    if session is None:
        return SessionValidation(
            SessionValidationStatus.NOT_FOUND, None, SessionNotFoundError('Session not found')
        )
    if not session.is_active:
        return SessionValidation(
            SessionValidationStatus.EXPIRED, session, SessionExpiredError('Session is no longer active')
        )
    if session.is_expired(_now()):
        return SessionValidation(
            SessionValidationStatus.EXPIRED, session, SessionExpiredError('Session has expired')
        )
    if session.device_fingerprint != normalize_device_fingerprint(device_fingerprint):
        return SessionValidation(
            SessionValidationStatus.DEVICE_MISMATCH, session, SessionDeviceMismatchError('Device mismatch detected')
        )
    return SessionValidation(SessionValidationStatus.VALID, session, None)


@surface_storage_errors
def validate_session_for_submission(exam_id, student_email, session_token, device_fingerprint):
    """
    Checks the session presented with a submission.

    Same as validate_session, except that a session which only ran out of
    time is still accepted when the device presenting it is the one that
    holds it, since clients submit automatically at time-up. Sessions that
    were signed out, released or ended by a submission stay refused.
    """
    validation = validate_session(exam_id, student_email, session_token, device_fingerprint)
    if validation.status != SessionValidationStatus.EXPIRED:
        return validation

    session = validation.session
    timed_out = session.is_active or session.end_reason == SessionEndReason.EXPIRED
    if timed_out and session.device_fingerprint == normalize_device_fingerprint(device_fingerprint):
        log.info(
            'Accepting expired session id=%(session_id)s for a submission on exam_id=%(exam_id)s',
            {'session_id': session.id, 'exam_id': exam_id}
        )
        return SessionValidation(SessionValidationStatus.VALID, session, None)
    return validation


@surface_storage_errors
def touch_session(exam_id, student_email, session_token, device_fingerprint):
    """
    Records activity on a valid session. Raises the matching SessionInvalidError otherwise.
    """
    validation = validate_session(exam_id, student_email, session_token, device_fingerprint)
    if not validation.is_valid:
        raise validation.error
    session = validation.session
    session.last_activity = _now()
    session.save()
    return ExamSessionSerializer(session).data


@surface_storage_errors
def end_session(exam_id, student_email, session_token, device_fingerprint):
    """
    Signs the device out of the exam.

    Only the device holding the session can end it. Ending a session that
    is already inactive or expired is a no-op; returns whether a session was ended.
    """
    validation = validate_session(exam_id, student_email, session_token, device_fingerprint)
    if validation.status == SessionValidationStatus.EXPIRED:
        return False
    if not validation.is_valid:
        raise validation.error
    _deactivate_session(validation.session, SessionEndReason.SIGNED_OUT, _now())
    return True


@surface_storage_errors
def end_sessions_for_student(exam_id, student_email, reason=SessionEndReason.SUBMITTED):
    """
    Deactivates every active session of the student on the exam, regardless
    of the device. Returns the number of sessions ended.
    """
    now = _now()
    sessions = ExamSession.objects.filter(
        exam__exam_id=exam_id, student_email=normalize_email(student_email), is_active=True
    ).select_related('exam')
    count = 0
    for session in sessions:
        _deactivate_session(session, reason, now)
        count += 1
    return count


#
# Upload Slot Allocator
#

def _get_channel_config(channel):
    try:
        return constants.UPLOAD_CHANNELS[channel]
    except KeyError as error:
        raise UploadChannelNotSupported(
            f'Upload channel "{channel}" is not supported. Available: {sorted(constants.UPLOAD_CHANNELS)}'
        ) from error


def _get_media_channels():
    return list(constants.UPLOAD_CHANNELS) + [constants.CAMERA_RECORDING_CHANNEL]


def _provision_media_destinations(attempt):
    """
    Records the media destination of every channel on the attempt.
    Destinations already recorded are reused, never provisioned again.
    """
    destinations = dict(attempt.media_destinations or {})
    missing = [channel for channel in _get_media_channels() if not destinations.get(channel)]
    if not missing:
        return destinations

    backend = get_backend_provider()
    for channel in missing:
        destination_id = backend.get_or_create_destination(attempt.exam.exam_id, attempt.student_email, channel)
        if destination_id is not None:
            destinations[channel] = destination_id
    if destinations != attempt.media_destinations:
        attempt.media_destinations = destinations
        attempt.save(update_fields=['media_destinations', 'modified'])
        log.info(
            'Recorded media destinations %(channels)s for attempt_id=%(attempt_id)s',
            {'channels': sorted(destinations), 'attempt_id': attempt.id}
        )
    return destinations


def _issue_upload_slots(attempt, channel, count):
    """
    Issues a new batch of single-use upload handles for the attempt and channel
    """
    backend = get_backend_provider()
    destination_id = (attempt.media_destinations or {}).get(channel)
    if destination_id is None:
        destination_id = backend.get_or_create_destination(attempt.exam.exam_id, attempt.student_email, channel)

    if destination_id is None:
        return []

    expires_at = _now() + timedelta(seconds=constants.UPLOAD_HANDLE_EXPIRATION_SECONDS)
    for _ in range(MAX_CONFLICT_RETRIES):
        generation = (UploadSlotBatch.objects.filter(
            attempt=attempt, channel=channel
        ).aggregate(Max('generation'))['generation__max'] or 0) + 1
        try:
            with transaction.atomic():
                batch = UploadSlotBatch.objects.create(
                    attempt=attempt, channel=channel, generation=generation, destination_id=destination_id
                )
                slots = []
                for sequence in range(1, count + 1):
                    filename = f'{channel}_{generation:03d}_{sequence:04d}.jpg'
                    slots.append(UploadSlot(
                        batch=batch,
                        sequence=sequence,
                        filename=filename,
                        upload_url=backend.create_upload_handle(destination_id, filename, expires_at),
                        expires_at=expires_at,
                    ))
                UploadSlot.objects.bulk_create(slots)
        except IntegrityError:
            continue
        log.info(
            ('Issued %(count)s upload slots for attempt_id=%(attempt_id)s on channel %(channel)s, '
             'generation %(generation)s'),
            {'count': count, 'attempt_id': attempt.id, 'channel': channel, 'generation': generation}
        )
        return slots

    raise StorageError(
        f'Could not issue upload slots for attempt_id={attempt.id} after {MAX_CONFLICT_RETRIES} tries, please retry.',
        operation='request_more_slots',
    )


def _issue_initial_upload_slots(attempt):
    return {
        channel: UploadSlotSerializer(
            _issue_upload_slots(attempt, channel, config['initial_slots']), many=True
        ).data
        for channel, config in constants.UPLOAD_CHANNELS.items()
    }


@surface_storage_errors
def request_more_slots(attempt_id, student_email, channel, count=None):
    """
    Replenishes the upload slots of a channel once the client used them up.

    Slots go to the destination of the attempt's own student and channel,
    and are issued whatever the state of the attempt, so evidence keeps
    flowing even for an attempt that will be disqualified.
    """
    attempt = _get_owned_attempt(attempt_id, student_email)
    _get_channel_config(channel)
    count = count or constants.DEFAULT_REPLENISH_SLOTS
    count = max(1, min(int(count), constants.MAX_SLOTS_PER_REQUEST))
    slots = _issue_upload_slots(attempt, channel, count)
    return UploadSlotSerializer(slots, many=True).data


#
# Answer Store
#

def _answer_payload(answer):
    """
    Answers are stored as text; multiple selected options as "A,C"
    """
    if answer is None:
        return ''
    if isinstance(answer, (list, tuple, set)):
        return ','.join(str(option) for option in answer)
    return str(answer)


def _upsert_answer(attempt, question_id, answer, submitted, now):
    """
    Writes the answer of one question. The submitted flag only ever goes from false to true.
    """
    values = {'answer': _answer_payload(answer), 'modified': now}
    if submitted:
        values['submitted'] = True

    answers = ExamAnswer.objects.filter(attempt=attempt, question_id=question_id)
    if not answers.update(**values):
        try:
            with transaction.atomic():
                return ExamAnswer.objects.create(
                    attempt=attempt,
                    question_id=question_id,
                    answer=values['answer'],
                    submitted=bool(submitted),
                )
        except IntegrityError:
            # a concurrent autosave inserted it first
            answers.update(**values)
    return answers.get()


@surface_storage_errors
def save_answer(attempt_id, student_email, question_id, answer, submitted=False):
    """
    Autosaves the answer of one question of an in progress attempt.

    Safe to retry: writes always target the (attempt, question) row, and a
    submitted answer stays submitted.
    """
    attempt = _get_owned_attempt(attempt_id, student_email)
    if attempt.is_finalized:
        raise AttemptFinalizedError(constants.ATTEMPT_FINALIZED_MESSAGE)
    saved = _upsert_answer(attempt, str(question_id), answer, submitted, _now())
    return ExamAnswerSerializer(saved).data


@surface_storage_errors
def get_answers(attempt_id, student_email=None):
    """
    Returns all saved answers of an attempt, ordered by question
    """
    attempt = _get_owned_attempt(attempt_id, student_email)
    question_numbers = ExamQuestion.objects.filter(
        exam_id=attempt.exam_id, question_id=OuterRef('question_id')
    ).values('question_number')[:1]
    answers = ExamAnswer.objects.filter(attempt=attempt).annotate(
        question_number=Subquery(question_numbers)
    ).order_by('question_number', 'question_id')
    return ExamAnswerSerializer(answers, many=True).data


#
# Violation Tracker
#

def _append_violation(attempt, violation_type, details, now):
    with transaction.atomic():
        violation = ExamViolation.objects.create(
            attempt=attempt,
            violation_type=violation_type,
            details=details or {},
            severity=ViolationSeverity.for_violation_type(violation_type),
            occurred_at=now,
        )
        ExamAttempt.objects.filter(id=attempt.id).update(violation_count=F('violation_count') + 1)
    log.info(
        'Recorded %(severity)s violation %(violation_type)s for attempt_id=%(attempt_id)s',
        {'severity': violation.severity, 'violation_type': violation_type, 'attempt_id': attempt.id}
    )
    return violation


@surface_storage_errors
def record_violation(attempt_id, student_email, violation_type, details=None):
    """
    Appends an integrity violation to an in progress attempt and counts it.
    Whether it leads to disqualification is decided at submission.
    """
    attempt = _get_owned_attempt(attempt_id, student_email)
    if attempt.is_finalized:
        raise AttemptFinalizedError(constants.ATTEMPT_FINALIZED_MESSAGE)
    violation = _append_violation(attempt, violation_type, details, _now())
    return ExamViolationSerializer(violation).data


@surface_storage_errors
def get_violations(attempt_id, student_email=None):
    """
    Returns the violations of an attempt in the order they occurred
    """
    attempt = _get_owned_attempt(attempt_id, student_email)
    return ExamViolationSerializer(attempt.violations.all(), many=True).data


#
# Attempt Lifecycle Manager
#

def _send_status_signal(attempt, from_status, to_status):
    exam_attempt_status_signal.send(
        sender='exam_integrity',
        attempt_id=attempt.id,
        exam_id=attempt.exam.exam_id,
        student_email=attempt.student_email,
        from_status=from_status,
        to_status=to_status,
    )


@surface_storage_errors
def start_or_resume_attempt(exam_id, student_email):
    """
    Starts the student's attempt on an exam, or resumes the one in progress.

    Refuses with AttemptFinalizedError once the student has submitted. A
    resume returns every saved answer so the client can rebuild its state.
    Both paths get freshly issued upload slots, never old ones. The media
    destinations of the student are recorded on the attempt the first time
    and reused on every resume, so a retry after a partial failure never
    provisions them twice.
    """
    exam = _get_exam(exam_id)
    student_email = normalize_email(student_email)

    attempt = ExamAttempt.objects.get_exam_attempt(exam, student_email)
    if attempt is not None and attempt.is_finalized:
        log.info(
            'Refused to start exam_id=%(exam_id)s again, attempt_id=%(attempt_id)s is %(status)s',
            {'exam_id': exam_id, 'attempt_id': attempt.id, 'status': attempt.status}
        )
        raise AttemptFinalizedError(constants.ATTEMPT_FINALIZED_MESSAGE)

    resumed = attempt is not None
    if attempt is None:
        if not exam.is_active:
            raise ExamNotActiveException(f'exam_id={exam_id} is not accepting students.')
        try:
            with transaction.atomic():
                attempt = ExamAttempt.objects.create(
                    exam=exam,
                    student_email=student_email,
                    status=ExamAttemptStatus.IN_PROGRESS,
                    started_at=_now(),
                )
        except IntegrityError:
            # a concurrent start from the same student created it first
            attempt = ExamAttempt.objects.get_exam_attempt(exam, student_email)
            if attempt.is_finalized:
                raise AttemptFinalizedError(constants.ATTEMPT_FINALIZED_MESSAGE)  # pylint: disable=raise-missing-from
            resumed = True
        else:
            _send_status_signal(attempt, None, ExamAttemptStatus.IN_PROGRESS)
            log.info(
                'Created exam attempt_id=%(attempt_id)s for exam_id=%(exam_id)s',
                {'attempt_id': attempt.id, 'exam_id': exam_id}
            )

    if resumed:
        log.info(
            'Resuming exam attempt_id=%(attempt_id)s for exam_id=%(exam_id)s',
            {'attempt_id': attempt.id, 'exam_id': exam_id}
        )

    _provision_media_destinations(attempt)

    return {
        'attempt': ExamAttemptSerializer(attempt).data,
        'resumed': resumed,
        'answers': get_answers(attempt.id),
        'upload_slots': _issue_initial_upload_slots(attempt),
    }


def _get_violation_threshold(exam):
    """
    Thresholds below one fall back to the default
    """
    if not exam.max_violations_before_action or exam.max_violations_before_action < 1:
        return constants.DEFAULT_MAX_VIOLATIONS
    return exam.max_violations_before_action



@surface_storage_errors
def submit_attempt(attempt_id, student_email, answers=None, violations=None, time_spent_seconds=None):
    """
    Finalizes an attempt: stores the final answers and any violations that
    were not sent yet, grades the attempt, decides between COMPLETED and
    DISQUALIFIED and ends the student's sessions.

    Submitting an attempt that is already final changes nothing and returns
    the stored outcome, so clients can retry freely.
    """
    attempt = _get_owned_attempt(attempt_id, student_email)
    exam = attempt.exam

    with transaction.atomic():
        attempt = ExamAttempt.objects.select_for_update().select_related('exam').get(id=attempt.id)
        if attempt.is_finalized:
            log.info(
                'attempt_id=%(attempt_id)s is already %(status)s, nothing to submit',
                {'attempt_id': attempt.id, 'status': attempt.status}
            )
            return ExamAttemptSerializer(attempt).data

        now = _now()
        for question_id, answer in (answers or {}).items():
            _upsert_answer(attempt, str(question_id), answer, True, now)
        attempt.answers.filter(submitted=False).update(submitted=True, modified=now)
        for violation in violations or []:
            _append_violation(attempt, violation['violation_type'], violation.get('details'), now)

        saved_answers = {answer.question_id: answer.answer for answer in attempt.answers.all()}
        summary = grade_exam(
            exam.questions.all(),
            saved_answers,
            enable_negative_marking=exam.enable_negative_marking,
            total_marks=exam.total_marks,
            minimum_score=exam.minimum_score,
        )
        for result in summary.results:
            if result.question_id in saved_answers:
                ExamAnswer.objects.filter(attempt=attempt, question_id=result.question_id).update(
                    is_correct=result.is_correct, marks_awarded=result.marks_awarded,
                )

        violation_count = attempt.violations.count()
        disqualified = exam.disqualify_on_violation and violation_count >= _get_violation_threshold(exam)
        to_status = ExamAttemptStatus.DISQUALIFIED if disqualified else ExamAttemptStatus.COMPLETED
        from_status = attempt.status
        if not ExamAttemptStatus.is_state_transition_legal(from_status, to_status):
            raise ExamAttemptIllegalStatusTransition(
                f'A status transition from "{from_status}" to "{to_status}" was attempted '
                f'on attempt_id={attempt.id}. This is not allowed!'
            )

        attempt.status = to_status
        attempt.completed_at = now
        if time_spent_seconds is not None:
            attempt.time_spent_seconds = time_spent_seconds
        else:
            attempt.time_spent_seconds = int((now - attempt.started_at).total_seconds())
        attempt.score = summary.score
        attempt.total_marks = summary.total_marks
        attempt.percentage = summary.percentage
        attempt.violation_count = violation_count
        attempt.save()

    log.info(
        ('Submitted attempt_id=%(attempt_id)s for exam_id=%(exam_id)s: status "%(from_status)s" -> '
         '"%(to_status)s", score=%(score)s of %(total_marks)s, violations=%(violation_count)s'),
        {
            'attempt_id': attempt.id,
            'exam_id': exam.exam_id,
            'from_status': from_status,
            'to_status': to_status,
            'score': summary.score,
            'total_marks': summary.total_marks,
            'violation_count': violation_count,
        }
    )

    exam_attempt_graded_signal.send(
        sender='exam_integrity',
        attempt_id=attempt.id,
        exam_id=exam.exam_id,
        student_email=attempt.student_email,
        results=[result._asdict() for result in summary.results],
    )
    _send_status_signal(attempt, from_status, to_status)
    end_sessions_for_student(exam.exam_id, attempt.student_email, SessionEndReason.SUBMITTED)

    return ExamAttemptSerializer(attempt).data


#
# Reporting
#

@surface_storage_errors
def get_exam_attempt_by_id(attempt_id, student_email=None):
    """
    Args:
        int: exam attempt id
        str: when given, the attempt must belong to this student
    Returns:
        dict: our exam attempt
    """
    return ExamAttemptSerializer(_get_owned_attempt(attempt_id, student_email)).data


@surface_storage_errors
def get_result(attempt_id, student_email=None):
    """
    Returns the attempt with its graded answers joined with the question
    definitions, the violations and whether the exam was a practice exam.
    Canonical answers are only revealed once the attempt is final.
    """
    attempt = _get_owned_attempt(attempt_id, student_email)
    saved_answers = {answer.question_id: answer for answer in attempt.answers.all()}
    answers = []
    for question in attempt.exam.questions.all():
        saved = saved_answers.get(question.question_id)
        answers.append({
            'question_id': question.question_id,
            'question_number': question.question_number,
            'question_type': question.question_type,
            'question_text': question.question_text,
            'marks': question.marks,
            'correct_answer': question.correct_answer if attempt.is_finalized else None,
            'answer': saved.answer if saved else None,
            'submitted': saved.submitted if saved else False,
            'is_correct': saved.is_correct if saved else None,
            'marks_awarded': saved.marks_awarded if saved else 0,
        })
    return {
        'attempt': ExamAttemptSerializer(attempt).data,
        'exam_title': attempt.exam.title,
        'is_practice': attempt.exam.is_practice,
        'answers': answers,
        'violations': ExamViolationSerializer(attempt.violations.all(), many=True).data,
    }


@surface_storage_errors
def get_attempt_status(exam_id, student_email):
    """
    Read-only status of the student's attempt for other subsystems, e.g.
    {
        "exam_id": "EXAM_1",
        "student_email": "student@example.com",
        "status": "COMPLETED",
        "completed_at": datetime
    }
    The status is None when the student never started the exam.
    """
    exam = _get_exam(exam_id)
    student_email = normalize_email(student_email)
    attempt = ExamAttempt.objects.get_exam_attempt(exam, student_email)
    return {
        'exam_id': exam.exam_id,
        'student_email': student_email,
        'attempt_id': attempt.id if attempt else None,
        'status': attempt.status if attempt else None,
        'completed_at': attempt.completed_at if attempt else None,
    }


@surface_storage_errors
def get_student_attempts(student_email, exam_id=None):
    """
    Returns the attempts of a student, optionally limited to one exam
    """
    attempts = ExamAttempt.objects.get_student_attempts(normalize_email(student_email), exam_id=exam_id)
    return ExamAttemptSerializer(attempts, many=True).data


@surface_storage_errors
def get_exam_statistics(exam_id):
    """
    Score statistics over the completed attempts of an exam.
    Disqualified attempts are only counted, not averaged.
    """
    exam = _get_exam(exam_id)
    stats = ExamAttempt.objects.filter(exam=exam, status=ExamAttemptStatus.COMPLETED).aggregate(
        attempted=Count('id'),
        average_score=Avg('score'),
        highest_score=Max('score'),
        lowest_score=Min('score'),
    )
    disqualified = ExamAttempt.objects.filter(exam=exam, status=ExamAttemptStatus.DISQUALIFIED).count()
    in_progress = ExamAttempt.objects.filter(exam=exam, status=ExamAttemptStatus.IN_PROGRESS).count()
    return {
        'exam_id': exam.exam_id,
        'attempted': stats['attempted'],
        'average_score': round(stats['average_score'], 2) if stats['average_score'] is not None else 0,
        'highest_score': stats['highest_score'] if stats['highest_score'] is not None else 0,
        'lowest_score': stats['lowest_score'] if stats['lowest_score'] is not None else 0,
        'disqualified': disqualified,
        'in_progress': in_progress,
    }
