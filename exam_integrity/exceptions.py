"""
Specialized exceptions for the exam integrity subsystem
"""
from rest_framework import status


class ExamIntegrityBaseException(Exception):
    """
    A common base class for all exceptions
    """
    http_status = status.HTTP_400_BAD_REQUEST
    error_code = 'exam_integrity_error'


class ExamNotFoundException(ExamIntegrityBaseException):
    """
    Raised when a look up fails.
    """
    http_status = status.HTTP_404_NOT_FOUND
    error_code = 'exam_not_found'


class ExamNotActiveException(ExamIntegrityBaseException):
    """
    Raised when the exam is not currently accepting students.
    """
    error_code = 'exam_not_active'


class CredentialError(ExamIntegrityBaseException):
    """
    Base class for a credential that could not be verified
    """
    http_status = status.HTTP_403_FORBIDDEN
    error_code = 'credential_error'


class CredentialMissingError(CredentialError):
    """
    Raised when no credential was submitted at all
    """
    error_code = 'credential_missing'


class CredentialIncorrectError(CredentialError):
    """
    Raised when the submitted credential does not match the stored secret
    """
    error_code = 'credential_incorrect'


class CredentialNotProvisionedError(CredentialError):
    """
    Raised when no per-student credential exists for the student
    """
    error_code = 'credential_not_provisioned'


class SessionDeniedError(ExamIntegrityBaseException):
    """
    Raised when admission is refused because another device holds the
    active session. Carries the block metadata that was recorded.
    """
    http_status = status.HTTP_409_CONFLICT
    error_code = 'session_denied'

    def __init__(self, message, block_reason=None, blocked_device_fingerprint=None,
                 blocked_ip_address=None, blocked_at=None):
        """ Init method of exception """
        super().__init__(message)
        self.block_reason = block_reason
        self.blocked_device_fingerprint = blocked_device_fingerprint
        self.blocked_ip_address = blocked_ip_address
        self.blocked_at = blocked_at


class SessionInvalidError(ExamIntegrityBaseException):
    """
    Base class for a presented session that is no longer usable
    """
    http_status = status.HTTP_401_UNAUTHORIZED
    error_code = 'session_invalid'


class SessionExpiredError(SessionInvalidError):
    """
    Raised when the session is past its expiry or was deactivated
    """
    error_code = 'session_expired'


class SessionNotFoundError(SessionInvalidError):
    """
    Raised when the presented token does not belong to the student and exam
    """
    error_code = 'session_not_found'


class SessionDeviceMismatchError(SessionInvalidError):
    """
    Raised when the presented device fingerprint is not the one that holds the session
    """
    http_status = status.HTTP_403_FORBIDDEN
    error_code = 'session_device_mismatch'


class AttemptFinalizedError(ExamIntegrityBaseException):
    """
    Raised when trying to start an exam when a terminal attempt already exists.
    """
    http_status = status.HTTP_409_CONFLICT
    error_code = 'attempt_finalized'


class ExamAttemptDoesNotExistException(ExamIntegrityBaseException):
    """
    Raised when an attempt look up fails.
    """
    http_status = status.HTTP_404_NOT_FOUND
    error_code = 'attempt_not_found'


class ExamAttemptPermissionDenied(ExamIntegrityBaseException):
    """
    Raised when the calling user does not own the requested attempt.
    """
    http_status = status.HTTP_403_FORBIDDEN
    error_code = 'attempt_permission_denied'


class ExamAttemptIllegalStatusTransition(ExamIntegrityBaseException):
    """
    Raised if a state transition is not allowed, e.g. going from completed to in progress
    """
    error_code = 'illegal_status_transition'


class UploadChannelNotSupported(ExamIntegrityBaseException):
    """
    Raised when upload slots are requested for an unknown media channel
    """
    error_code = 'upload_channel_not_supported'


class StorageError(ExamIntegrityBaseException):
    """
    Raised when the record store is unavailable or returned malformed data.
    The failed operation is always safe to retry in full.
    """
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = 'storage_error'
    retryable = True

    def __init__(self, message, operation=None):
        """ Init method of exception """
        super().__init__(message)
        self.operation = operation


class DeviceFingerprintRequired(ExamIntegrityBaseException):
    """
    Raised when a session is requested without identifying the device
    """
    error_code = 'device_fingerprint_required'
