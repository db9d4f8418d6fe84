from .validators import (
    validate_required_fields, validate_date_format, validate_moment,
    validate_enum, validate_positive_number, validate_email_format
)
from .intervals import Interval, overlaps, contains, normalize, merge, uncovered

__all__ = [
    'validate_required_fields', 'validate_date_format', 'validate_moment',
    'validate_enum', 'validate_positive_number', 'validate_email_format',
    'Interval', 'overlaps', 'contains', 'normalize', 'merge', 'uncovered'
]
