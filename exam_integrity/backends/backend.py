"""
Defines the abstract base class that all media backends should derive from
"""

import abc


class MediaBackendProvider(metaclass=abc.ABCMeta):
    """
    The base abstract class for all providers of proctoring media storage
    """
    verbose_name = 'Unknown'

    @abc.abstractmethod
    def get_or_create_destination(self, exam_id, student_email, channel):
        """
        Returns the identifier of the durable write destination for the
        student's media on a channel, creating it when it does not exist yet.

        Must be idempotent: the same key always returns the same destination.
        """
        raise NotImplementedError()

    @abc.abstractmethod
    def create_upload_handle(self, destination_id, filename, expires_at):
        """
        Returns a pre-authorized, single-use URL that allows writing
        `filename` into the destination until `expires_at`
        """
        raise NotImplementedError()
