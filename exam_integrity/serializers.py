"""Defines serializers used by the Exam Integrity API."""

from rest_framework import serializers
from rest_framework.fields import DateTimeField

from exam_integrity.models import ExamAnswer, ExamAttempt, ExamSession, ExamViolation, UploadSlot


class ExamAttemptSerializer(serializers.ModelSerializer):
    """
    Serializer for the ExamAttempt Model.
    """
    exam_id = serializers.CharField(source='exam.exam_id', read_only=True)

    # Django Rest Framework v3 defaults to `settings.DATE_FORMAT` when serializing
    # datetime fields.  We need to specify `format=None` to maintain the old behavior
    # of returning raw `datetime` objects instead of unicode.
    started_at = DateTimeField(format=None)
    completed_at = DateTimeField(format=None)

    class Meta:
        """
        Meta Class
        """
        model = ExamAttempt

        fields = (
            "id", "created", "modified", "exam_id", "student_email", "status",
            "started_at", "completed_at", "time_spent_seconds", "score",
            "total_marks", "percentage", "violation_count", "media_destinations",
        )


class ExamAnswerSerializer(serializers.ModelSerializer):
    """
    Serializer for the ExamAnswer Model.
    """
    saved_at = DateTimeField(source='modified', format=None)

    class Meta:
        """
        Meta Class
        """
        model = ExamAnswer

        fields = (
            "question_id", "answer", "submitted", "is_correct", "marks_awarded", "saved_at",
        )


class ExamViolationSerializer(serializers.ModelSerializer):
    """
    Serializer for the ExamViolation Model.
    """
    occurred_at = DateTimeField(format=None)

    class Meta:
        """
        Meta Class
        """
        model = ExamViolation

        fields = (
            "id", "violation_type", "details", "severity", "occurred_at",
        )


class ExamSessionSerializer(serializers.ModelSerializer):
    """
    Serializer for the ExamSession Model, used for audit listings.
    The session token is never serialized.
    """
    exam_id = serializers.CharField(source='exam.exam_id', read_only=True)
    issued_at = DateTimeField(format=None)
    expires_at = DateTimeField(format=None)
    last_activity = DateTimeField(format=None)
    blocked_at = DateTimeField(format=None)
    ended_at = DateTimeField(format=None)

    class Meta:
        """
        Meta Class
        """
        model = ExamSession

        fields = (
            "id", "exam_id", "student_email", "device_fingerprint", "is_active",
            "issued_at", "expires_at", "last_activity", "ip_address", "device_type",
            "os", "browser", "block_reason", "blocked_device_fingerprint",
            "blocked_ip_address", "blocked_at", "ended_at", "end_reason",
        )


class UploadSlotSerializer(serializers.ModelSerializer):
    """
    Serializer for the UploadSlot Model.
    """
    channel = serializers.CharField(source='batch.channel', read_only=True)
    generation = serializers.IntegerField(source='batch.generation', read_only=True)
    expires_at = DateTimeField(format=None)

    class Meta:
        """
        Meta Class
        """
        model = UploadSlot

        fields = (
            "channel", "generation", "sequence", "filename", "upload_url", "expires_at",
        )


class AnswerField(serializers.Field):
    """
    An answer is a string, a list of selected options or null for a cleared answer
    """
    default_error_messages = {
        'invalid': 'Must be a string, a list of strings or null.',
    }

    def to_internal_value(self, data):  # pylint: disable=inconsistent-return-statements
        if isinstance(data, str):
            return data
        if isinstance(data, list) and all(isinstance(option, str) for option in data):
            return data
        self.fail('invalid')

    def to_representation(self, value):
        return value


class SaveAnswerSerializer(serializers.Serializer):  # pylint: disable=abstract-method
    """
    Validates the body of an autosave request
    """
    answer = AnswerField(allow_null=True, required=False, default='')
    submitted = serializers.BooleanField(required=False, default=False)


class ViolationSerializer(serializers.Serializer):  # pylint: disable=abstract-method
    """
    Validates a reported violation
    """
    violation_type = serializers.CharField(max_length=64)
    details = serializers.JSONField(required=False, default=dict)


class SubmitAttemptSerializer(serializers.Serializer):  # pylint: disable=abstract-method
    """
    Validates the body of a submission
    """
    answers = serializers.DictField(child=AnswerField(allow_null=True), required=False, default=dict)
    violations = ViolationSerializer(many=True, required=False, default=list)
    time_spent_seconds = serializers.IntegerField(min_value=0, required=False, allow_null=True, default=None)
