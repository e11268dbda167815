"""
exam_integrity Django application initialization.
"""

from stevedore.extension import ExtensionManager

from django.apps import AppConfig
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

BACKEND_CONFIGURATION_ALLOW_LIST = [
    'base_path',
    'base_url',
    'secret_key',
    'verbose_name',
]


class ExamIntegrityConfig(AppConfig):
    """
    Configuration for the exam_integrity Django application.
    """

    name = 'exam_integrity'
    verbose_name = 'Exam Integrity'
    default_auto_field = 'django.db.models.AutoField'
    plugin_app = {
        'url_config': {
            'lms.djangoapp': {
                'namespace': 'exam_integrity',
                'regex': '^api/',
                'relative_path': 'urls',
            },
        },
        'settings_config': {
            'lms.djangoapp': {
                'common': {'relative_path': 'settings.common'},
            },
        },
    }

    def get_backend_choices(self):
        """
        Returns an iterator of available backends:
        backend_name, verbose name
        """
        for name, backend in self.backends.items():
            yield name, getattr(backend, 'verbose_name', 'Unknown')

    def get_backend(self, name=None):
        """
        Returns an instance of the media backend.

        :param str name: Name of entrypoint in exam_integrity.media
        """
        if name is None:
            try:
                name = settings.EXAM_INTEGRITY_MEDIA_BACKENDS['DEFAULT']
            except (KeyError, AttributeError) as exc:
                raise ImproperlyConfigured(
                    "No default media backend set in settings.EXAM_INTEGRITY_MEDIA_BACKENDS"
                ) from exc
        try:
            return self.backends[name]
        except KeyError as error:
            raise NotImplementedError(f"No media backend configured for '{name}'.  "
                                      f"Available: {list(self.backends)}") from error

    def ready(self):
        """
        Loads the available media backends
        """
        # pylint: disable=unused-import
        # pylint: disable=import-outside-toplevel
        from exam_integrity import rules, signals
        config = getattr(settings, 'EXAM_INTEGRITY_MEDIA_BACKENDS', {})

        self.backends = {}  # pylint: disable=W0201
        for extension in ExtensionManager(namespace='exam_integrity.media'):
            name = extension.name
            try:
                options = {
                    key: val for (key, val) in config[name].items()
                    if key in BACKEND_CONFIGURATION_ALLOW_LIST
                }
                self.backends[name] = extension.plugin(**options)
            except KeyError:
                pass
