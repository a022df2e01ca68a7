"""Utility functions and helpers"""

from .name_normalizer import normalize, fuzzy_key, similarity, is_unclaimed
from .time_codec import seconds_to_time, iso_duration_to_time, validate_time_format, validate_date_format

__all__ = [
    'normalize', 'fuzzy_key', 'similarity', 'is_unclaimed',
    'seconds_to_time', 'iso_duration_to_time', 'validate_time_format', 'validate_date_format',
]
