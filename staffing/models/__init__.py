from .enums import (ShiftType, ScheduleStatus, AssignmentStatus, AvailabilityType, INITIAL_ASSIGNMENT_STATUSES,
                    TERMINAL_SCHEDULE_STATUSES, TERMINAL_ASSIGNMENT_STATUSES, BLOCKING_AVAILABILITY_TYPES,
                    COVERING_AVAILABILITY_TYPES)
from .consultant import Consultant
from .project import Project
from .schedule import Schedule
from .assignment import Assignment
from .availability import Availability

__all__ = [
    'ShiftType', 'ScheduleStatus', 'AssignmentStatus', 'AvailabilityType', 'INITIAL_ASSIGNMENT_STATUSES',
    'TERMINAL_SCHEDULE_STATUSES', 'TERMINAL_ASSIGNMENT_STATUSES', 'BLOCKING_AVAILABILITY_TYPES',
    'COVERING_AVAILABILITY_TYPES',
    'Consultant', 'Project', 'Schedule', 'Assignment', 'Availability'
]
