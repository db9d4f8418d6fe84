import math
import re
from datetime import datetime
from staffing.utils.intervals import parse_moment

def validate_required_fields(data, required_fields):
    """Validate that required fields are present in data"""
    if not data:
        return False, "No data provided"

    for field in required_fields:
        if field not in data or data.get(field) in (None, ''):
            return False, f"{field} is required"

    return True, ""

def validate_date_format(date_string):
    """Validate date string is in YYYY-MM-DD format"""
    try:
        parsed_date = datetime.strptime(date_string, '%Y-%m-%d').date()
        return True, parsed_date
    except (TypeError, ValueError):
        return False, "Invalid date format. Use YYYY-MM-DD"

def validate_moment(value, field='date'):
    """Validate a YYYY-MM-DD date or an ISO-8601 timestamp"""
    try:
        return True, parse_moment(value)
    except (TypeError, ValueError):
        return False, f"Invalid {field} format. Use YYYY-MM-DD or ISO-8601"

def validate_enum(enum_cls, value, field):
    """Validate an enum value by its string form"""
    if isinstance(value, enum_cls):
        return True, value
    try:
        return True, enum_cls(value)
    except ValueError:
        allowed = ', '.join(e.value for e in enum_cls)
        return False, f"Invalid {field}. Allowed: {allowed}"

def validate_positive_number(value, field, maximum=None):
    """Validate a number is > 0 (and <= maximum when given)"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False, f"{field} must be a number"

    if not math.isfinite(value):
        return False, f"{field} must be a finite number"

    if value <= 0:
        return False, f"{field} must be greater than 0"

    if maximum is not None and value > maximum:
        return False, f"{field} must be at most {maximum}"

    return True, ""

def validate_email_format(email):
    """Basic email format validation"""
    email_pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    if isinstance(email, str) and re.match(email_pattern, email):
        return True, ""
    return False, "Invalid email format"
