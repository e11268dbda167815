"""
All supporting media backends
"""

from django.apps import apps


def get_backend_provider(name=None):
    """
    Returns an instance of the configured media backend provider.
    Passing in a name will return the named backend
    """
    return apps.get_app_config('exam_integrity').get_backend(name=name)
