"""
Implementation of a media backend provider, which does nothing
"""

from exam_integrity.backends.backend import MediaBackendProvider


class NullBackendProvider(MediaBackendProvider):
    """
    Implementation of the MediaBackendProvider that does nothing.
    Without destinations no upload slots are issued.
    """
    verbose_name = 'Null Backend'

    def get_or_create_destination(self, exam_id, student_email, channel):
        """
        No media is stored
        """
        return None

    def create_upload_handle(self, destination_id, filename, expires_at):
        """
        No media is stored
        """
        return None
