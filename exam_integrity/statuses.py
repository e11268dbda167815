"""
Status enums for exam_integrity
"""

from django.db import models
from django.utils.translation import gettext_noop


class ExamAttemptStatus(models.TextChoices):
    """
    The closed set of statuses an exam attempt can have.

    IMPORTANT: Since these values are stored in a database, they are system
    constants and should not be language translated.
    """

    # the student has started the exam and is in the process of completing it
    IN_PROGRESS = 'IN_PROGRESS', gettext_noop('In Progress')

    #
    # The statuses below are terminal: no transition ever leaves them
    #

    # the student submitted the exam and it was graded
    COMPLETED = 'COMPLETED', gettext_noop('Completed')

    # the exam was submitted, but the integrity policy was breached
    DISQUALIFIED = 'DISQUALIFIED', gettext_noop('Disqualified')

    @classmethod
    def is_terminal_status(cls, status):
        """
        Returns a boolean if the passed in status is terminal, meaning
        that it cannot go backwards in state
        """
        return status in (cls.COMPLETED, cls.DISQUALIFIED)

    @classmethod
    def is_state_transition_legal(cls, from_status, to_status):
        """
        NONE -> IN_PROGRESS -> {COMPLETED | DISQUALIFIED}
        """
        if from_status is None:
            return to_status == cls.IN_PROGRESS
        if from_status == cls.IN_PROGRESS:
            return cls.is_terminal_status(to_status)
        return False


class SessionValidationStatus(models.TextChoices):
    """
    Outcomes of validating a presented session.
    """
    VALID = 'valid'
    EXPIRED = 'expired'
    NOT_FOUND = 'session_not_found'
    DEVICE_MISMATCH = 'device_mismatch'


class SessionAdmissionStatus(models.TextChoices):
    """
    Outcomes of an admission request.
    """
    CREATED = 'created'
    RESUMED = 'resumed'
    BLOCKED = 'blocked'
    CREDENTIAL_REJECTED = 'credential_rejected'


class SessionEndReason(models.TextChoices):
    """
    Why an exam session stopped being active.
    """
    SUBMITTED = 'submitted'
    SIGNED_OUT = 'signed_out'
    EXPIRED = 'expired'
    RELEASED_BY_STAFF = 'released_by_staff'


class PasswordType(models.TextChoices):
    """
    How the exam credential is provisioned.
    """
    SHARED = 'SHARED', gettext_noop('One password for every student')
    PER_STUDENT = 'PER_STUDENT', gettext_noop('A unique password per student')


class QuestionType(models.TextChoices):
    """
    Question types known to the grading engine. Only the objective
    types are auto-graded.
    """
    MCQ = 'MCQ'
    MCQ_IMAGE = 'MCQ_IMAGE'
    SHORT_ANSWER = 'SHORT_ANSWER'
    LONG_ANSWER = 'LONG_ANSWER'

    @classmethod
    def is_objective(cls, question_type):
        """
        Returns whether answers to the question type can be graded automatically
        """
        return question_type in (cls.MCQ, cls.MCQ_IMAGE)


class ViolationSeverity(models.TextChoices):
    """
    Severity of an integrity violation, derived from its type.
    """
    HIGH = 'HIGH'
    MEDIUM = 'MEDIUM'
    LOW = 'LOW'

    @classmethod
    def for_violation_type(cls, violation_type):
        """
        Classifies a violation type; anything unknown is LOW.
        """
        if violation_type in ('fullscreen_exit', 'tab_switch', 'window_blur'):
            return cls.HIGH
        if violation_type in ('copy', 'paste', 'right_click'):
            return cls.MEDIUM
        return cls.LOW
