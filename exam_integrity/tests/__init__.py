"""
Monkeypatches the default backends
"""

import contextlib

import rules


def setup_test_backends():
    """
    Sets up the backend entrypoints required for testing.
    """
    # pylint: disable=import-outside-toplevel
    from django.apps import apps
    config = apps.get_app_config('exam_integrity')
    from exam_integrity.backends.tests.test_backend import TestBackendProvider
    from exam_integrity.backends.null import NullBackendProvider
    config.backends['test'] = TestBackendProvider()
    config.backends['null'] = NullBackendProvider()


@contextlib.contextmanager
def mock_perm(perm='exam_integrity.can_view_exam_statistics'):
    """
    Context manager for mocking a specific permission to return True inside the block
    """
    original = rules.permissions.permissions[perm]
    try:
        rules.set_perm(perm, rules.always_true)
        yield
    finally:
        rules.set_perm(perm, original)


setup_test_backends()
