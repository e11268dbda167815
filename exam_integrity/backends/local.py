"""
Media backend that stores proctoring media on a local (or mounted) filesystem
and hands out HMAC signed, expiring upload URLs for it.
"""

import calendar
import hashlib
import hmac
import logging
import os
from datetime import datetime
from urllib.parse import urlencode

import pytz

from django.conf import settings

from exam_integrity.backends.backend import MediaBackendProvider
from exam_integrity.constants import CAMERA_RECORDING_CHANNEL
from exam_integrity.utils import sanitize_email_for_path

log = logging.getLogger(__name__)

CHANNEL_FOLDERS = {
    'webcam': 'Webcam',
    'screen': 'Screen_Share',
}


class LocalMediaBackendProvider(MediaBackendProvider):
    """
    Destinations are directories below `base_path`:

        <exam_id>/Proctoring_Screenshots/<student>/<Webcam|Screen_Share>
        <exam_id>/Camera_Recordings/<student>

    The upload URLs point to `base_url` and carry a signature over the
    destination, the file name and the expiry.
    """
    verbose_name = 'Local Filesystem'

    def __init__(self, base_path='exam_media', base_url='/exam_media/upload/', secret_key=None, verbose_name=None):
        self.base_path = base_path
        self.base_url = base_url
        self.secret_key = secret_key or settings.SECRET_KEY
        if verbose_name:
            self.verbose_name = verbose_name

    def get_destination_path(self, exam_id, student_email, channel):
        """
        The relative path of the destination. Pure, so that it is always the same for a key.
        """
        if channel == CAMERA_RECORDING_CHANNEL:
            return '/'.join([str(exam_id), 'Camera_Recordings', sanitize_email_for_path(student_email)])
        folder = CHANNEL_FOLDERS.get(channel, channel.title())
        return '/'.join([str(exam_id), 'Proctoring_Screenshots', sanitize_email_for_path(student_email), folder])

    def get_or_create_destination(self, exam_id, student_email, channel):
        destination_id = self.get_destination_path(exam_id, student_email, channel)
        full_path = os.path.join(self.base_path, *destination_id.split('/'))
        if not os.path.isdir(full_path):
            os.makedirs(full_path, exist_ok=True)
            log.info(
                'Created media destination %(destination)s for exam_id=%(exam_id)s',
                {'destination': destination_id, 'exam_id': exam_id}
            )
        return destination_id

    def _sign(self, destination_id, filename, expires):
        message = f'{destination_id}/{filename}:{expires}'.encode('utf-8')
        return hmac.new(self.secret_key.encode('utf-8'), message, digestmod=hashlib.sha256).hexdigest()

    def create_upload_handle(self, destination_id, filename, expires_at):
        expires = calendar.timegm(expires_at.astimezone(pytz.UTC).utctimetuple())
        query = urlencode({
            'path': f'{destination_id}/{filename}',
            'expires': expires,
            'signature': self._sign(destination_id, filename, expires),
        })
        return f'{self.base_url}?{query}'

    def verify_upload_handle(self, path, expires, signature, now=None):
        """
        Checks an upload request against the signature of its handle.

        Returns True only if the signature matches and the handle has not expired.
        """
        if not path or '/' not in path:
            return False
        destination_id, filename = path.rsplit('/', 1)
        try:
            expires = int(expires)
        except (TypeError, ValueError):
            return False
        expected = self._sign(destination_id, filename, expires)
        if not hmac.compare_digest(expected, str(signature or '')):
            return False
        if now is None:
            now = calendar.timegm(datetime.now(pytz.UTC).utctimetuple())
        return now < expires
