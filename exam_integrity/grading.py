"""
Deterministic scoring of objective answers.

Nothing in here touches the database: callers hand in question
definitions and the student's answers and get the per-question results
and the totals back. Grading happens once, at submission time.
"""

from collections import namedtuple

from exam_integrity.statuses import QuestionType

GradedAnswer = namedtuple(
    'GradedAnswer',
    ['question_id', 'student_answer', 'correct_answer', 'is_correct', 'marks_awarded']
)

GradingSummary = namedtuple('GradingSummary', ['score', 'total_marks', 'percentage', 'results'])


def normalize_answer_set(value):
    """
    Turns a comma separated answer such as " c, a,A " into a sorted tuple
    of unique, upper cased options: ('A', 'C')
    """
    if not value:
        return ()
    options = {option.strip().upper() for option in str(value).split(',')}
    options.discard('')
    return tuple(sorted(options))


def is_multiple_answer_question(question):
    """
    Returns whether the question expects a set of options rather than one
    """
    return bool(question.has_multiple_answers or ',' in (question.correct_answer or ''))


def _is_blank(answer):
    return answer is None or not str(answer).strip()


def grade_answer(question, answer, enable_negative_marking=False):
    """
    Grades a single answer against its question definition.

    Free-response questions are left ungraded (no correctness, zero marks)
    for manual review. Unanswered questions score zero and never incur
    negative marks.
    """
    if not QuestionType.is_objective(question.question_type):
        return GradedAnswer(question.question_id, answer, question.correct_answer, None, 0)

    if _is_blank(answer):
        return GradedAnswer(question.question_id, answer, question.correct_answer, False, 0)

    if is_multiple_answer_question(question):
        is_correct = normalize_answer_set(answer) == normalize_answer_set(question.correct_answer)
    else:
        is_correct = str(answer).strip().upper() == (question.correct_answer or '').strip().upper()

    if is_correct:
        marks = question.marks
    elif enable_negative_marking and question.negative_marks:
        marks = -abs(question.negative_marks)
    else:
        marks = 0
    return GradedAnswer(question.question_id, answer, question.correct_answer, is_correct, marks)


def calculate_percentage(score, total_marks):
    """
    100 * score / total_marks rounded to two decimals, 0 when nothing can be scored
    """
    if not total_marks or total_marks <= 0:
        return 0
    return round(100.0 * score / total_marks, 2)


def grade_exam(questions, answers, enable_negative_marking=False, total_marks=None, minimum_score=None):
    """
    Grades every question of an exam.

    :param questions: iterable of question definitions
    :param answers: dict of question_id -> raw answer payload
    :param total_marks: total possible marks; defaults to the sum of the question marks
    :param minimum_score: optional floor for the total score. Without one a
        negative total is kept as is.
    """
    questions = list(questions)
    results = [
        grade_answer(question, answers.get(question.question_id), enable_negative_marking)
        for question in questions
    ]
    score = sum(result.marks_awarded for result in results)
    if minimum_score is not None:
        score = max(score, minimum_score)
    if not total_marks:
        total_marks = sum(question.marks for question in questions)
    return GradingSummary(score, total_marks, calculate_percentage(score, total_marks), results)
