"""
Helpers for the HTTP views and the in-proc API
"""

import functools
import logging

from rest_framework.authentication import SessionAuthentication
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from django.db import DatabaseError

from exam_integrity.constants import DEVICE_FINGERPRINT_PREFIX
from exam_integrity.exceptions import StorageError

log = logging.getLogger(__name__)


class AuthenticatedAPIView(APIView):
    """
    Authenticate APi View.
    """
    authentication_classes = (SessionAuthentication,)
    permission_classes = (IsAuthenticated,)


def normalize_email(email):
    """
    Emails identify students; they are compared trimmed and lower cased
    """
    return (email or '').strip().lower()


def normalize_device_fingerprint(fingerprint):
    """
    Strips the storage prefix older clients put in front of the device hash
    """
    fingerprint = (fingerprint or '').strip()
    if fingerprint.startswith(DEVICE_FINGERPRINT_PREFIX):
        fingerprint = fingerprint[len(DEVICE_FINGERPRINT_PREFIX):]
    return fingerprint


def sanitize_email_for_path(email):
    """
    student@example.com -> student_example_com
    """
    return normalize_email(email).replace('@', '_').replace('.', '_')


def get_client_ip(request):
    """
    Returns the originating address of the request
    """
    forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded_for:
        return forwarded_for.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR', '')


def surface_storage_errors(func):
    """
    Decorator that turns a failure of the record store into a StorageError,
    naming the operation so the caller can retry it
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DatabaseError as error:
            log.exception(
                'Record store failure in %(operation)s',
                {'operation': func.__name__}
            )
            raise StorageError(
                f'The record store could not complete {func.__name__}, please retry.',
                operation=func.__name__,
            ) from error
    return wrapper
