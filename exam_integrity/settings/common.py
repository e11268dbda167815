"""
Common Pluggable Django App settings
"""


def plugin_settings(settings):
    """
    Injects local settings into django settings
    """
    settings.EXAM_INTEGRITY_SETTINGS = {}
    settings.EXAM_INTEGRITY_MEDIA_BACKENDS = {
        'DEFAULT': 'null',
        'null': {},
    }
