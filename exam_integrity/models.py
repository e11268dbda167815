"""
Data models for the exam integrity subsystem
"""

# pylint: disable=model-missing-unicode

from model_utils.models import TimeStampedModel
from simple_history.models import HistoricalRecords

from django.db import models
from django.db.models import Q
from django.db.models.base import ObjectDoesNotExist
from django.utils import timezone

from exam_integrity.statuses import ExamAttemptStatus, PasswordType, QuestionType, SessionEndReason, ViolationSeverity


class Exam(TimeStampedModel):
    """
    Exam metadata the engine reads when admitting, grading and
    enforcing the integrity policy.

    .. no_pii:
    """

    # externally visible identifier of the exam
    exam_id = models.CharField(max_length=255, unique=True)

    # This is the display name of the Exam (Midterm etc).
    title = models.TextField()

    total_marks = models.FloatField(default=0)

    start_datetime = models.DateTimeField(null=True, blank=True)

    # when known, no session outlives this
    end_datetime = models.DateTimeField(null=True, blank=True)

    # Time limit (in minutes) that a student can finish this exam.
    duration_mins = models.IntegerField(null=True, blank=True)

    password_type = models.CharField(max_length=32, choices=PasswordType.choices, default=PasswordType.SHARED)

    # only used for SHARED password exams
    master_password = models.CharField(max_length=255, blank=True, default='')

    # Whether this exam is for practice only.
    is_practice = models.BooleanField(default=False)

    # Whether this exam will be active.
    is_active = models.BooleanField(default=True)

    enable_negative_marking = models.BooleanField(default=False)

    disqualify_on_violation = models.BooleanField(default=False)

    max_violations_before_action = models.IntegerField(default=5)

    # optional floor for the total score
    minimum_score = models.FloatField(null=True, blank=True)

    class Meta:
        """ Meta class for this Django model """
        db_table = 'exam_integrity_exam'

    def __str__(self):
        """ String representation """
        # pragma: no cover
        active = 'active' if self.is_active else 'inactive'
        return f'{self.exam_id}: {self.title} ({active})'

    @classmethod
    def get_exam_by_exam_id(cls, exam_id):
        """
        Returns the Exam if found else returns None,
        Given the external exam_id
        """
        try:
            exam = cls.objects.get(exam_id=exam_id)
        except cls.DoesNotExist:  # pylint: disable=no-member
            exam = None
        return exam


class ExamQuestion(TimeStampedModel):
    """
    A question definition, as the grading engine sees it

    .. no_pii:
    """

    exam = models.ForeignKey(Exam, related_name='questions', on_delete=models.CASCADE)

    question_id = models.CharField(max_length=255)

    question_number = models.IntegerField(default=0)

    question_type = models.CharField(max_length=32, choices=QuestionType.choices, default=QuestionType.MCQ)

    question_text = models.TextField(blank=True, default='')

    # for multiple answer questions this is a comma separated list, e.g. "A,C"
    correct_answer = models.CharField(max_length=255, blank=True, default='')

    marks = models.FloatField(default=1)

    negative_marks = models.FloatField(default=0)

    has_multiple_answers = models.BooleanField(default=False)

    class Meta:
        """ Meta class for this Django model """
        db_table = 'exam_integrity_examquestion'
        unique_together = (('exam', 'question_id'),)
        ordering = ('question_number', 'question_id')

    def __str__(self):
        """ String representation """
        return f'{self.exam.exam_id}: {self.question_id}'


class StudentExamCredential(TimeStampedModel):
    """
    A per-student password for an exam that uses PER_STUDENT passwords.
    """

    exam = models.ForeignKey(Exam, related_name='student_credentials', on_delete=models.CASCADE)

    student_email = models.EmailField(db_index=True)

    password = models.CharField(max_length=255)

    class Meta:
        """ Meta class for this Django model """
        db_table = 'exam_integrity_studentexamcredential'
        unique_together = (('exam', 'student_email'),)

    @classmethod
    def get_credential(cls, exam, student_email):
        """
        Returns the credential of the student, matching the email case insensitively,
        or None
        """
        return cls.objects.filter(exam=exam, student_email__iexact=student_email).first()


class ExamSessionManager(models.Manager):
    """
    Custom manager
    """
    def get_active_session(self, exam, student_email):
        """
        Returns the active session for the exam and student if found
        else Returns None.
        """
        try:
            session = self.get(exam=exam, student_email=student_email, is_active=True)
        except ObjectDoesNotExist:  # pylint: disable=no-member
            session = None
        return session


class ExamSession(TimeStampedModel):
    """
    The device lock of a student on an exam. Rows are never deleted,
    only deactivated, so the table doubles as the audit trail.

    .. pii: device and network metadata of the student
    .. pii_types: email_address, ip, other
    .. pii_retirement: retained
    """
    objects = ExamSessionManager()

    exam = models.ForeignKey(Exam, related_name='sessions', on_delete=models.CASCADE)

    student_email = models.EmailField(db_index=True)

    # opaque and unguessable
    session_token = models.CharField(max_length=255, unique=True)

    device_fingerprint = models.CharField(max_length=255)

    is_active = models.BooleanField(default=True)

    issued_at = models.DateTimeField(default=timezone.now)

    expires_at = models.DateTimeField()

    last_activity = models.DateTimeField(default=timezone.now)

    ip_address = models.CharField(max_length=64, blank=True, default='')

    user_agent = models.TextField(blank=True, default='')

    device_type = models.CharField(max_length=64, blank=True, default='')

    os = models.CharField(max_length=64, blank=True, default='')

    browser = models.CharField(max_length=64, blank=True, default='')

    # set when another device is refused admission while this session holds the lock
    block_reason = models.CharField(max_length=255, blank=True, default='')

    blocked_device_fingerprint = models.CharField(max_length=255, blank=True, default='')

    blocked_ip_address = models.CharField(max_length=64, blank=True, default='')

    blocked_at = models.DateTimeField(null=True, blank=True)

    ended_at = models.DateTimeField(null=True, blank=True)

    end_reason = models.CharField(max_length=32, choices=SessionEndReason.choices, blank=True, default='')

    history = HistoricalRecords(table_name='exam_integrity_examsession_history')

    class Meta:
        """ Meta class for this Django model """
        db_table = 'exam_integrity_examsession'
        verbose_name = 'exam session'
        constraints = [
            models.UniqueConstraint(
                fields=['exam', 'student_email'],
                condition=Q(is_active=True),
                name='exam_integrity_one_active_session',
            ),
        ]

    def __str__(self):
        """ String representation """
        active = 'active' if self.is_active else 'inactive'
        return f'{self.exam.exam_id}: {self.student_email} ({active})'

    def is_expired(self, now=None):
        """
        Returns whether the session has passed its expiry
        """
        now = now or timezone.now()
        return now >= self.expires_at

    def delete(self, *args, **kwargs):  # pylint: disable=signature-differs
        """
        Don't allow deletions!
        """
        raise NotImplementedError()


class ExamAttemptManager(models.Manager):
    """
    Custom manager
    """
    def get_exam_attempt(self, exam, student_email):
        """
        Returns the Student Exam Attempt object if found
        else Returns None.
        """
        try:
            exam_attempt_obj = self.get(exam=exam, student_email=student_email)
        except ObjectDoesNotExist:  # pylint: disable=no-member
            exam_attempt_obj = None
        return exam_attempt_obj

    def get_exam_attempt_by_id(self, attempt_id):
        """
        Returns the Student Exam Attempt by the attempt_id else return None
        """
        try:
            exam_attempt_obj = self.select_related('exam').get(id=attempt_id)
        except (ObjectDoesNotExist, ValueError, TypeError):  # pylint: disable=no-member
            exam_attempt_obj = None
        return exam_attempt_obj

    def get_student_attempts(self, student_email, exam_id=None):
        """
        Returns all attempts of a student, most recent first
        """
        filtered_query = Q(student_email=student_email)
        if exam_id:
            filtered_query = filtered_query & Q(exam__exam_id=exam_id)
        return self.filter(filtered_query).select_related('exam').order_by('-created')


class ExamAttempt(TimeStampedModel):
    """
    Information about the Student Attempt on an Exam.

    There is at most one attempt per student and exam: an in-progress
    attempt is always resumed and a finalized one forbids new attempts.

    .. no_pii:
    """
    objects = ExamAttemptManager()

    exam = models.ForeignKey(Exam, related_name='attempts', on_delete=models.CASCADE)

    student_email = models.EmailField(db_index=True)

    status = models.CharField(max_length=64, choices=ExamAttemptStatus.choices, default=ExamAttemptStatus.IN_PROGRESS)

    # started/completed date times
    started_at = models.DateTimeField(default=timezone.now)

    # completed_at means when the attempt was submitted
    completed_at = models.DateTimeField(null=True, blank=True)

    time_spent_seconds = models.IntegerField(null=True, blank=True)

    score = models.FloatField(null=True, blank=True)

    total_marks = models.FloatField(null=True, blank=True)

    percentage = models.FloatField(null=True, blank=True)

    violation_count = models.IntegerField(default=0)

    # media destination of each channel, recorded when the attempt starts
    media_destinations = models.JSONField(default=dict, blank=True)

    class Meta:
        """ Meta class for this Django model """
        db_table = 'exam_integrity_examattempt'
        verbose_name = 'exam attempt'
        unique_together = (('exam', 'student_email'),)

    def __str__(self):
        """ String representation """
        return f'{self.exam.exam_id}: {self.student_email} ({self.status})'

    @property
    def is_finalized(self):
        """
        Whether the attempt reached a terminal status
        """
        return ExamAttemptStatus.is_terminal_status(self.status)


class ExamAnswer(TimeStampedModel):
    """
    The latest answer of a student to one question of an attempt.
    The `modified` timestamp is the last write.

    .. no_pii:
    """

    attempt = models.ForeignKey(ExamAttempt, related_name='answers', on_delete=models.CASCADE)

    question_id = models.CharField(max_length=255)

    answer = models.TextField(blank=True, default='')

    # once true, never goes back to false
    submitted = models.BooleanField(default=False)

    # None until graded, and for answers that are not auto-graded
    is_correct = models.BooleanField(null=True, blank=True)

    marks_awarded = models.FloatField(default=0)

    class Meta:
        """ Meta class for this Django model """
        db_table = 'exam_integrity_examanswer'
        unique_together = (('attempt', 'question_id'),)


class ExamViolation(TimeStampedModel):
    """
    An integrity event reported while the attempt was in progress.
    Append only.

    .. no_pii:
    """

    attempt = models.ForeignKey(ExamAttempt, related_name='violations', on_delete=models.CASCADE)

    violation_type = models.CharField(max_length=64, db_index=True)

    details = models.JSONField(default=dict, blank=True)

    severity = models.CharField(max_length=16, choices=ViolationSeverity.choices)

    occurred_at = models.DateTimeField(default=timezone.now)

    class Meta:
        """ Meta class for this Django model """
        db_table = 'exam_integrity_examviolation'
        verbose_name = 'exam violation'
        ordering = ('occurred_at', 'id')

    def save(self, *args, **kwargs):  # pylint: disable=signature-differs
        """
        Violations are recorded once and never changed
        """
        if not self._state.adding:
            raise NotImplementedError()
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):  # pylint: disable=signature-differs
        """
        Don't allow deletions!
        """
        raise NotImplementedError()


class UploadSlotBatch(TimeStampedModel):
    """
    One issuance of upload slots for an attempt and media channel.
    Every replenishment gets the next generation.

    .. no_pii:
    """

    attempt = models.ForeignKey(ExamAttempt, related_name='upload_batches', on_delete=models.CASCADE)

    channel = models.CharField(max_length=32)

    generation = models.IntegerField()

    # where the media of this attempt and channel is written to
    destination_id = models.CharField(max_length=1024, blank=True, default='')

    class Meta:
        """ Meta class for this Django model """
        db_table = 'exam_integrity_uploadslotbatch'
        unique_together = (('attempt', 'channel', 'generation'),)


class UploadSlot(TimeStampedModel):
    """
    A single-use, pre-authorized write handle for one unit of media

    .. no_pii:
    """

    batch = models.ForeignKey(UploadSlotBatch, related_name='slots', on_delete=models.CASCADE)

    sequence = models.IntegerField()

    filename = models.CharField(max_length=255)

    upload_url = models.TextField()

    expires_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        """ Meta class for this Django model """
        db_table = 'exam_integrity_uploadslot'
        unique_together = (('batch', 'sequence'),)
        ordering = ('sequence',)
