from enum import Enum

class ShiftType(Enum):
    DAY = "day"
    NIGHT = "night"
    ROTATING = "rotating"

class ScheduleStatus(Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class AssignmentStatus(Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

# Statuses an assignment may be created with
INITIAL_ASSIGNMENT_STATUSES = (
    AssignmentStatus.SCHEDULED,
    AssignmentStatus.PENDING,
    AssignmentStatus.CONFIRMED,
)

TERMINAL_SCHEDULE_STATUSES = (ScheduleStatus.COMPLETED, ScheduleStatus.CANCELLED)
TERMINAL_ASSIGNMENT_STATUSES = (AssignmentStatus.COMPLETED, AssignmentStatus.CANCELLED)

class AvailabilityType(Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    VACATION = "vacation"
    SICK = "sick"
    TRAINING = "training"
    OTHER = "other"

# Windows that rule the consultant out
BLOCKING_AVAILABILITY_TYPES = (
    AvailabilityType.UNAVAILABLE,
    AvailabilityType.VACATION,
    AvailabilityType.SICK,
)

# Windows that count towards coverage; training still raises a warning
COVERING_AVAILABILITY_TYPES = (AvailabilityType.AVAILABLE, AvailabilityType.TRAINING)
