"""
Tests for the local filesystem media backend
"""

import calendar
import os
import shutil
import tempfile
from datetime import datetime, timedelta
from urllib.parse import parse_qs, urlparse

import pytz

from django.test import TestCase

from exam_integrity.backends.local import LocalMediaBackendProvider


class LocalMediaBackendProviderTests(TestCase):
    """
    Destination layout and signed upload handles
    """

    def setUp(self):
        super().setUp()
        self.base_path = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.base_path, ignore_errors=True)
        self.provider = LocalMediaBackendProvider(
            base_path=self.base_path, base_url='https://media.example.com/upload/', secret_key='not-so-secret'
        )

    def test_destination_layout(self):
        destination = self.provider.get_or_create_destination('EXAM_1', 'Jane.Doe@Example.com', 'webcam')
        self.assertEqual(destination, 'EXAM_1/Proctoring_Screenshots/jane_doe_example_com/Webcam')
        self.assertTrue(os.path.isdir(os.path.join(self.base_path, 'EXAM_1', 'Proctoring_Screenshots',
                                                   'jane_doe_example_com', 'Webcam')))
        screen = self.provider.get_or_create_destination('EXAM_1', 'jane.doe@example.com', 'screen')
        self.assertTrue(screen.endswith('/Screen_Share'))

    def test_camera_destination(self):
        destination = self.provider.get_or_create_destination('EXAM_1', 'jane.doe@example.com', 'camera')
        self.assertEqual(destination, 'EXAM_1/Camera_Recordings/jane_doe_example_com')
        self.assertTrue(os.path.isdir(os.path.join(self.base_path, 'EXAM_1', 'Camera_Recordings',
                                                   'jane_doe_example_com')))

    def test_destination_is_idempotent(self):
        first = self.provider.get_or_create_destination('EXAM_1', 'jane@example.com', 'webcam')
        second = self.provider.get_or_create_destination('EXAM_1', 'jane@example.com', 'webcam')
        self.assertEqual(first, second)

    def _parse_handle(self, url):
        query = parse_qs(urlparse(url).query)
        return query['path'][0], query['expires'][0], query['signature'][0]

    def test_signed_handle_verifies(self):
        expires_at = datetime.now(pytz.UTC) + timedelta(hours=1)
        url = self.provider.create_upload_handle('EXAM_1/dest', 'webcam_001_0001.jpg', expires_at)
        self.assertTrue(url.startswith('https://media.example.com/upload/?'))
        path, expires, signature = self._parse_handle(url)
        self.assertEqual(path, 'EXAM_1/dest/webcam_001_0001.jpg')
        self.assertTrue(self.provider.verify_upload_handle(path, expires, signature))

    def test_tampered_handle_is_rejected(self):
        expires_at = datetime.now(pytz.UTC) + timedelta(hours=1)
        url = self.provider.create_upload_handle('EXAM_1/dest', 'webcam_001_0001.jpg', expires_at)
        path, expires, signature = self._parse_handle(url)
        # redirecting the upload to another student's destination breaks the signature
        self.assertFalse(self.provider.verify_upload_handle('EXAM_1/other/webcam_001_0001.jpg', expires, signature))
        self.assertFalse(self.provider.verify_upload_handle(path, int(expires) + 60, signature))
        self.assertFalse(self.provider.verify_upload_handle(path, 'never', signature))
        self.assertFalse(self.provider.verify_upload_handle('', expires, signature))

    def test_expired_handle_is_rejected(self):
        expires_at = datetime.now(pytz.UTC) + timedelta(minutes=5)
        url = self.provider.create_upload_handle('EXAM_1/dest', 'screen_001_0001.jpg', expires_at)
        path, expires, signature = self._parse_handle(url)
        later = calendar.timegm((expires_at + timedelta(seconds=1)).utctimetuple())
        self.assertFalse(self.provider.verify_upload_handle(path, expires, signature, now=later))
