"""
Assignment allocator: the conflict-detection core.

A proposal is checked against the owning schedule (state and date window),
the consultant's other non-cancelled assignments across every schedule and
project, and the consultant's declared availability. Proposals are
serialized per schedule and per consultant so the overlap check and the
insert cannot interleave with a competing proposal.
"""
from datetime import date, datetime
from enum import Enum
from typing import List, NamedTuple, Optional

from flask import current_app

from staffing.extensions import db
from staffing.models import (Assignment, AssignmentStatus, Consultant, INITIAL_ASSIGNMENT_STATUSES)
from staffing.services.availability_store import AvailabilityCheck, AvailabilityStore
from staffing.services.errors import (ConflictError, EngineError, InvalidStateTransition, NotFoundError,
                                      OutOfBoundsError, ValidationError)
from staffing.services.locks import consultant_locks, schedule_locks
from staffing.services.schedule_manager import check_version, load_schedule
from staffing.services.status_coordinator import StatusCoordinator
from staffing.services.transaction import atomic
from staffing.utils.intervals import contains, interval, to_utc_naive
from staffing.utils.validators import validate_enum, validate_moment, validate_positive_number

WARN = 'warn'
BLOCK = 'block'

EDITABLE_FIELDS = ('role', 'hourly_rate', 'notes', 'start_at', 'end_at')


class OverlapScope(Enum):
    WITHIN_SCHEDULE = 'within-schedule'
    GLOBAL = 'global'


class Allocation(NamedTuple):
    assignment: Assignment
    availability: Optional[AvailabilityCheck]

    @property
    def warnings(self):
        warnings = []
        if self.availability is None:
            return warnings
        if not self.availability.available:
            warnings.append({
                'kind': 'availability_conflict',
                'message': 'Consultant has not declared availability for the whole period',
                **self.availability.to_dict()
            })
        if self.availability.partial:
            warnings.append({
                'kind': 'partial_availability',
                'message': 'Consultant is in training for part of the period',
                'windows': [w.to_dict() for w in self.availability.partial]
            })
        return warnings


class BulkResult(NamedTuple):
    succeeded: List[int]
    failed: List[dict]

    def to_dict(self):
        return {
            'succeeded': self.succeeded,
            'failed': self.failed,
            'succeeded_count': len(self.succeeded),
            'failed_count': len(self.failed)
        }


def coerce_id(value, field):
    if isinstance(value, bool) or not isinstance(value, int):
        try:
            value = int(value)
        except (TypeError, ValueError):
            raise ValidationError(f'{field} must be an integer') from None
    return value


def coerce_moment(value, field):
    if isinstance(value, (date, datetime)):
        return to_utc_naive(value)
    is_valid, parsed = validate_moment(value, field)
    if not is_valid:
        raise ValidationError(parsed)
    return to_utc_naive(parsed)


class AssignmentAllocator:

    def __init__(self, availability=None, coordinator=None, conflict_policy=None):
        self.availability = availability or AvailabilityStore()
        self.coordinator = coordinator or StatusCoordinator()
        self._conflict_policy = conflict_policy

    def conflict_policy(self, override=None):
        policy = override or self._conflict_policy or \
            current_app.config.get('AVAILABILITY_CONFLICT_POLICY', WARN)
        if policy not in (WARN, BLOCK):
            raise ValidationError(f'Unknown availability policy: {policy}. Allowed: {WARN}, {BLOCK}')
        return policy

    # Lookups

    def get(self, assignment_id, for_update=False):
        if for_update:
            assignment = db.session.get(Assignment, assignment_id, with_for_update=True, populate_existing=True)
        else:
            assignment = db.session.get(Assignment, assignment_id)
        if assignment is None:
            raise NotFoundError('Assignment not found', entity_id=assignment_id)
        return assignment

    def _load_consultant(self, consultant_id):
        # Row lock keeps the check-then-insert safe across processes on backends that support it
        consultant = db.session.get(Consultant, consultant_id, with_for_update=True, populate_existing=True)
        if consultant is None:
            raise NotFoundError('Consultant not found', entity_id=consultant_id)
        return consultant

    def find_overlaps(self, consultant_id, target, scope=OverlapScope.GLOBAL, schedule_id=None, exclude_id=None):
        """Non-cancelled assignments of the consultant overlapping ``target``.

        ``within-schedule`` restricts the search to one schedule (duplicate
        assignment), ``global`` searches every schedule of every project
        (double-booking).
        """
        query = Assignment.query.filter(
            Assignment.consultant_id == consultant_id,
            Assignment.status != AssignmentStatus.CANCELLED,
            Assignment.start_at < target.end,
            Assignment.end_at > target.start
        )
        if scope == OverlapScope.WITHIN_SCHEDULE:
            if schedule_id is None:
                raise ValueError('schedule_id is required for a within-schedule search')
            query = query.filter(Assignment.schedule_id == schedule_id)
        if exclude_id is not None:
            query = query.filter(Assignment.id != exclude_id)
        return query.order_by(Assignment.start_at, Assignment.id).all()

    # Checks, in the order a proposal runs them

    def check_bounds(self, schedule, start_at, end_at):
        if start_at >= end_at:
            raise ValidationError('start_at must be before end_at')
        target = interval(start_at, end_at)
        window = schedule.interval
        if not contains(window, target):
            raise OutOfBoundsError(
                f'Assignment must fall within the schedule window '
                f'{schedule.start_date.isoformat()}..{schedule.end_date.isoformat()}',
                entity_id=schedule.id,
                bounds=window
            )
        return target

    def _check_terms(self, role, hourly_rate):
        is_valid, error = validate_positive_number(hourly_rate, 'hourly_rate')
        if not is_valid:
            raise ValidationError(error)
        if not isinstance(role, str) or not role.strip():
            raise ValidationError('role is required')

    def _check_double_booking(self, consultant_id, target, schedule_id, exclude_id=None):
        for scope in (OverlapScope.WITHIN_SCHEDULE, OverlapScope.GLOBAL):
            colliding = self.find_overlaps(
                consultant_id, target, scope=scope, schedule_id=schedule_id, exclude_id=exclude_id
            )
            if colliding:
                if scope == OverlapScope.WITHIN_SCHEDULE:
                    message = 'Consultant is already assigned to this schedule for an overlapping period'
                else:
                    message = 'Consultant is already assigned elsewhere for an overlapping period'
                current_app.logger.info(
                    'Double-booking rejected for consultant %s (%s): collides with %s',
                    consultant_id, scope.value, [a.id for a in colliding]
                )
                raise ConflictError(
                    message,
                    entity_id=colliding[0].id,
                    conflicting_ids=[a.id for a in colliding],
                    details={'scope': scope.value, 'consultant_id': consultant_id}
                )

    def _check_availability(self, consultant_id, target, policy):
        check = self.availability.check(consultant_id, target)
        if not check.available and policy == BLOCK:
            raise ConflictError(
                'Consultant is not available for the whole period',
                entity_id=consultant_id,
                conflicting_ids=[w.id for w in check.conflicts],
                details={'availability': check.to_dict()}
            )
        if not check.available:
            current_app.logger.info(
                'Availability warning for consultant %s on %s..%s',
                consultant_id, target.start.isoformat(), target.end.isoformat()
            )
        elif check.partial:
            current_app.logger.info(
                'Consultant %s is in training during %s..%s',
                consultant_id, target.start.isoformat(), target.end.isoformat()
            )
        return check

    # Mutations

    def propose(self, schedule_id, consultant_id, start, end, role, hourly_rate,
                notes=None, status=None, availability_policy=None):
        """Create an assignment if it passes every check. Returns an Allocation."""
        schedule_id = coerce_id(schedule_id, 'schedule_id')
        consultant_id = coerce_id(consultant_id, 'consultant_id')
        policy = self.conflict_policy(availability_policy)

        if status is None:
            status = AssignmentStatus.SCHEDULED
        else:
            is_valid, status = validate_enum(AssignmentStatus, status, 'status')
            if not is_valid:
                raise ValidationError(status)
            if status not in INITIAL_ASSIGNMENT_STATUSES:
                raise ValidationError(
                    f'An assignment cannot be created as {status.value}',
                    details={'allowed': [s.value for s in INITIAL_ASSIGNMENT_STATUSES]}
                )

        start_at = coerce_moment(start, 'start_at')
        end_at = coerce_moment(end, 'end_at')

        with schedule_locks.hold(schedule_id), consultant_locks.hold(consultant_id):
            with atomic():
                schedule = load_schedule(schedule_id, for_update=True)
                if schedule.is_terminal:
                    raise InvalidStateTransition(
                        f'Cannot assign consultants to a {schedule.status.value} schedule',
                        entity_id=schedule.id,
                        current=schedule.status.value,
                        allowed=[]
                    )
                consultant = self._load_consultant(consultant_id)

                target = self.check_bounds(schedule, start_at, end_at)
                self._check_terms(role, hourly_rate)
                self._check_double_booking(consultant.id, target, schedule.id)
                check = self._check_availability(consultant.id, target, policy)

                assignment = Assignment(
                    schedule_id=schedule.id,
                    consultant_id=consultant.id,
                    role=role.strip(),
                    start_at=start_at,
                    end_at=end_at,
                    hourly_rate=float(hourly_rate),
                    notes=notes
                )
                self.coordinator.apply_assignment_status(assignment, status)
                db.session.add(assignment)
                db.session.flush()
                current_app.logger.info(
                    'Assignment %s allocated: consultant %s on schedule %s (%s..%s, %s)',
                    assignment.id, consultant.id, schedule.id,
                    start_at.isoformat(), end_at.isoformat(), status.value
                )

        return Allocation(assignment, check)

    def update(self, assignment_id, patch, expected_version=None, availability_policy=None):
        """Edit an assignment. Date, role and rate changes re-run the conflict checks."""
        if not patch:
            raise ValidationError('Request body is required')
        unknown = set(patch) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f'Fields cannot be edited: {", ".join(sorted(unknown))}')
        policy = self.conflict_policy(availability_policy)

        # Ids needed for the locks come from a plain read; everything is re-read under them
        current = self.get(assignment_id)
        schedule_id, consultant_id = current.schedule_id, current.consultant_id

        with schedule_locks.hold(schedule_id), consultant_locks.hold(consultant_id):
            with atomic(assignment_id):
                assignment = self.get(assignment_id, for_update=True)
                check_version(assignment, expected_version)
                if assignment.is_terminal:
                    raise InvalidStateTransition(
                        f'A {assignment.status.value} assignment cannot be edited',
                        entity_id=assignment.id,
                        current=assignment.status.value,
                        allowed=[]
                    )
                schedule = load_schedule(assignment.schedule_id, for_update=True)
                if schedule.is_terminal:
                    raise InvalidStateTransition(
                        f'Assignments of a {schedule.status.value} schedule cannot be edited',
                        entity_id=assignment.id,
                        current=assignment.status.value,
                        allowed=[],
                        details={'schedule_status': schedule.status.value}
                    )

                start_at = coerce_moment(patch['start_at'], 'start_at') if 'start_at' in patch \
                    else assignment.start_at
                end_at = coerce_moment(patch['end_at'], 'end_at') if 'end_at' in patch \
                    else assignment.end_at
                role = patch.get('role', assignment.role)
                hourly_rate = patch.get('hourly_rate', assignment.hourly_rate)

                target = self.check_bounds(schedule, start_at, end_at)
                self._check_terms(role, hourly_rate)
                self._check_double_booking(
                    assignment.consultant_id, target, assignment.schedule_id, exclude_id=assignment.id
                )
                check = self._check_availability(assignment.consultant_id, target, policy)

                assignment.start_at = start_at
                assignment.end_at = end_at
                assignment.role = role.strip()
                assignment.hourly_rate = float(hourly_rate)
                if 'notes' in patch:
                    assignment.notes = patch['notes']

        current_app.logger.info('Assignment %s updated', assignment_id)
        return Allocation(assignment, check)

    def transition(self, assignment_id, target, expected_version=None):
        """Change an assignment's status. Overlaps are not re-checked."""
        is_valid, target = validate_enum(AssignmentStatus, target, 'status')
        if not is_valid:
            raise ValidationError(target)

        current = self.get(assignment_id)
        with schedule_locks.hold(current.schedule_id):
            with atomic(assignment_id):
                assignment = self.get(assignment_id, for_update=True)
                check_version(assignment, expected_version)
                load_schedule(assignment.schedule_id, for_update=True)
                self.coordinator.transition_assignment(assignment, target)
        return assignment

    def delete(self, assignment_id):
        current = self.get(assignment_id)
        with schedule_locks.hold(current.schedule_id), consultant_locks.hold(current.consultant_id):
            with atomic(assignment_id):
                assignment = self.get(assignment_id, for_update=True)
                status = assignment.status
                db.session.delete(assignment)

        if status == AssignmentStatus.COMPLETED:
            current_app.logger.warning('Completed assignment %s deleted', assignment_id)
        else:
            current_app.logger.info('Assignment %s (%s) deleted', assignment_id, status.value)

    # Bulk operations: every item is its own transaction, failures are reported per item

    def bulk_delete(self, assignment_ids):
        return self._bulk(assignment_ids, self.delete)

    def bulk_update_status(self, assignment_ids, target):
        return self._bulk(assignment_ids, lambda assignment_id: self.transition(assignment_id, target))

    def _bulk(self, assignment_ids, operation):
        if not isinstance(assignment_ids, list) or not assignment_ids:
            raise ValidationError('ids must be a non-empty list')

        succeeded, failed = [], []
        for assignment_id in assignment_ids:
            try:
                operation(coerce_id(assignment_id, 'id'))
            except EngineError as error:
                failed.append({'id': assignment_id, 'error': error.to_dict()})
            else:
                succeeded.append(assignment_id)

        current_app.logger.info(
            'Bulk operation: %d succeeded, %d failed', len(succeeded), len(failed)
        )
        return BulkResult(succeeded, failed)
