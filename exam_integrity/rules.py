"""Django Rules for exam_integrity"""

import rules


@rules.predicate
def is_in_exam_reviewer_group(user):
    """
    Returns whether user is in the group allowed to review exam results
    """
    return user.groups.filter(name='exam_integrity_reviewers').exists()


rules.add_perm('exam_integrity.can_view_exam_statistics', is_in_exam_reviewer_group | rules.is_staff)
