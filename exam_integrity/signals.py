"""exam-integrity signals"""
from django.dispatch import Signal

# Signal that is emitted when an attempt is created or reaches a terminal status.
# Arguments: attempt_id, exam_id, student_email, from_status, to_status
exam_attempt_status_signal = Signal()

# Signal that is emitted exactly once per attempt, when it is graded.
# Arguments: attempt_id, exam_id, student_email, results (list of per-question result dicts)
exam_attempt_graded_signal = Signal()
