"""
The exam attempt and session integrity engine for the student examination portal.
"""

__version__ = '1.0.0'
