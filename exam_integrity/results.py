"""
Typed outcomes of the operations whose failures the caller has to branch on.

Credential checks and session admission never raise for an expected refusal:
they return one of these, carrying the matching exception instance in `error`.
"""

from collections import namedtuple

from exam_integrity.statuses import SessionAdmissionStatus, SessionValidationStatus


class CredentialVerification(namedtuple('CredentialVerification', ['verified', 'reason', 'error'])):
    """
    Outcome of verifying an exam credential
    """
    __slots__ = ()

    @classmethod
    def success(cls):
        return cls(verified=True, reason='', error=None)

    @classmethod
    def failure(cls, error):
        return cls(verified=False, reason=str(error), error=error)


class SessionAdmission(namedtuple('SessionAdmission', ['status', 'session_token', 'expires_at', 'error'])):
    """
    Outcome of asking for an active session
    """
    __slots__ = ()

    @property
    def admitted(self):
        return self.status in (SessionAdmissionStatus.CREATED, SessionAdmissionStatus.RESUMED)

    @property
    def blocked(self):
        return self.status == SessionAdmissionStatus.BLOCKED


class SessionValidation(namedtuple('SessionValidation', ['status', 'session', 'error'])):
    """
    Outcome of validating a presented session
    """
    __slots__ = ()

    @property
    def is_valid(self):
        return self.status == SessionValidationStatus.VALID
