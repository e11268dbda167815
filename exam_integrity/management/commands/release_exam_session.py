"""
Django management command to free the device lock of a student on an exam,
so that the student can continue from another device
"""

from django.core.management.base import BaseCommand, CommandError

from exam_integrity.models import Exam
from exam_integrity.statuses import SessionEndReason


class Command(BaseCommand):
    """
    Django Management command to end the active sessions of a student on an exam
    """

    def add_arguments(self, parser):
        parser.add_argument(
            '-e',
            '--exam',
            metavar='EXAM_ID',
            dest='exam_id',
            required=True,
            help='exam_id the student is locked on',
        )
        parser.add_argument(
            '-s',
            '--student',
            metavar='EMAIL',
            dest='student_email',
            required=True,
            help='email of the student',
        )

    def handle(self, *args, **options):
        """
        Management command entry point, simply call into the api
        """
        # pylint: disable=import-outside-toplevel
        from exam_integrity.api import end_sessions_for_student

        exam_id = options['exam_id']
        student_email = options['student_email']

        self.stdout.write(
            f'Running management command to release the exam sessions of {student_email} on exam {exam_id}'
        )

        if Exam.get_exam_by_exam_id(exam_id) is None:
            raise CommandError(f'{exam_id} is not a known exam!')

        released = end_sessions_for_student(exam_id, student_email, SessionEndReason.RELEASED_BY_STAFF)

        self.stdout.write(f'Released {released} session(s). Completed!')
