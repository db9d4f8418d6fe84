from .errors import (EngineError, ValidationError, OutOfBoundsError, ConflictError,
                     InvalidStateTransition, NotFoundError, InternalError)
from .availability_store import AvailabilityStore, AvailabilityCheck
from .status_coordinator import StatusCoordinator
from .schedule_manager import ScheduleManager
from .allocator import AssignmentAllocator, Allocation, BulkResult, OverlapScope
from .matching import CandidateMatcher, Candidate, CandidateList

__all__ = [
    'EngineError', 'ValidationError', 'OutOfBoundsError', 'ConflictError',
    'InvalidStateTransition', 'NotFoundError', 'InternalError',
    'AvailabilityStore', 'AvailabilityCheck', 'StatusCoordinator', 'ScheduleManager',
    'AssignmentAllocator', 'Allocation', 'BulkResult', 'OverlapScope',
    'CandidateMatcher', 'Candidate', 'CandidateList'
]
