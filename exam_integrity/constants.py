"""
Lists of constants that can be used in the exam integrity engine
"""

from django.conf import settings

EXAM_INTEGRITY_SETTINGS = getattr(settings, 'EXAM_INTEGRITY_SETTINGS', {})

DEFAULT_SESSION_DURATION_HOURS = (
    EXAM_INTEGRITY_SETTINGS['DEFAULT_SESSION_DURATION_HOURS'] if
    'DEFAULT_SESSION_DURATION_HOURS' in EXAM_INTEGRITY_SETTINGS
    else getattr(settings, 'DEFAULT_SESSION_DURATION_HOURS', 4)
)

DEFAULT_MAX_VIOLATIONS = (
    EXAM_INTEGRITY_SETTINGS['DEFAULT_MAX_VIOLATIONS'] if
    'DEFAULT_MAX_VIOLATIONS' in EXAM_INTEGRITY_SETTINGS
    else getattr(settings, 'DEFAULT_MAX_VIOLATIONS', 5)
)

# per channel: how many slots a fresh attempt gets and the expected capture cadence
UPLOAD_CHANNELS = (
    EXAM_INTEGRITY_SETTINGS['UPLOAD_CHANNELS'] if
    'UPLOAD_CHANNELS' in EXAM_INTEGRITY_SETTINGS
    else {
        'webcam': {'initial_slots': 20, 'interval_seconds': 60},
        'screen': {'initial_slots': 10, 'interval_seconds': 180},
    }
)

DEFAULT_REPLENISH_SLOTS = (
    EXAM_INTEGRITY_SETTINGS['DEFAULT_REPLENISH_SLOTS'] if
    'DEFAULT_REPLENISH_SLOTS' in EXAM_INTEGRITY_SETTINGS
    else getattr(settings, 'DEFAULT_REPLENISH_SLOTS', 50)
)

MAX_SLOTS_PER_REQUEST = (
    EXAM_INTEGRITY_SETTINGS['MAX_SLOTS_PER_REQUEST'] if
    'MAX_SLOTS_PER_REQUEST' in EXAM_INTEGRITY_SETTINGS
    else getattr(settings, 'MAX_SLOTS_PER_REQUEST', 100)
)

UPLOAD_HANDLE_EXPIRATION_SECONDS = (
    EXAM_INTEGRITY_SETTINGS['UPLOAD_HANDLE_EXPIRATION_SECONDS'] if
    'UPLOAD_HANDLE_EXPIRATION_SECONDS' in EXAM_INTEGRITY_SETTINGS
    else getattr(settings, 'UPLOAD_HANDLE_EXPIRATION_SECONDS', 6 * 60 * 60)
)

# destination of the continuous camera recording, provisioned next to the upload channels
CAMERA_RECORDING_CHANNEL = 'camera'

# storage prefix older clients put in front of the device hash
DEVICE_FINGERPRINT_PREFIX = 'd_'

SESSION_TOKEN_LENGTH = 32

SESSION_TOKEN_HEADER = 'HTTP_X_EXAM_SESSION_TOKEN'

DEVICE_FINGERPRINT_HEADER = 'HTTP_X_DEVICE_FINGERPRINT'

BLOCK_REASON_DIFFERENT_DEVICE = 'Different device attempted login'

SESSION_IN_USE_MESSAGE = (
    'This exam is already in progress on another device. '
    'Please use the original device to continue.'
)

ATTEMPT_FINALIZED_MESSAGE = 'You have already submitted this exam and cannot reattempt it.'
