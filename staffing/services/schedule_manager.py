"""
Schedule manager: creation, edits, deletion and the schedule state machine.
"""
from flask import current_app

from staffing.extensions import db
from staffing.models import Assignment, AssignmentStatus, Project, Schedule, ScheduleStatus, ShiftType
from staffing.services.errors import (ConflictError, InvalidStateTransition, NotFoundError,
                                      OutOfBoundsError, ValidationError)
from staffing.services.locks import schedule_locks
from staffing.services.status_coordinator import StatusCoordinator
from staffing.services.transaction import atomic
from staffing.utils.intervals import contains, normalize
from staffing.utils.validators import (validate_date_format, validate_enum, validate_positive_number,
                                       validate_required_fields)

DELETE_BLOCK = 'block'
DELETE_CASCADE = 'cascade'

EDITABLE_FIELDS = ('title', 'description', 'start_date', 'end_date', 'shift_type', 'hours_per_day')


def load_schedule(schedule_id, for_update=False):
    """Fetch a schedule or raise NotFoundError. ``for_update`` re-reads the row under a row lock."""
    if for_update:
        schedule = db.session.get(Schedule, schedule_id, with_for_update=True, populate_existing=True)
    else:
        schedule = db.session.get(Schedule, schedule_id)
    if schedule is None:
        raise NotFoundError('Schedule not found', entity_id=schedule_id)
    return schedule


def check_version(entity, expected_version):
    if expected_version is not None and expected_version != entity.version:
        raise ConflictError(
            'The record was modified by another session. Reload and retry.',
            entity_id=entity.id,
            details={'expected_version': expected_version, 'current_version': entity.version}
        )


class ScheduleManager:

    def __init__(self, coordinator=None, delete_policy=None):
        self.coordinator = coordinator or StatusCoordinator()
        self._delete_policy = delete_policy

    @property
    def delete_policy(self):
        policy = self._delete_policy or current_app.config.get('SCHEDULE_DELETE_POLICY', DELETE_BLOCK)
        if policy not in (DELETE_BLOCK, DELETE_CASCADE):
            raise ValueError(f'Unknown schedule delete policy: {policy}')
        return policy

    def get(self, schedule_id):
        return load_schedule(schedule_id)

    def _parse(self, data, current=None):
        """Validate schedule fields, merged over ``current`` when editing"""
        fields = {}

        if 'title' in data:
            if not isinstance(data['title'], str) or not data['title'].strip():
                raise ValidationError('title is required')
            fields['title'] = data['title'].strip()

        if 'description' in data:
            fields['description'] = data['description']

        for field in ('start_date', 'end_date'):
            if field in data:
                is_valid, value = validate_date_format(data[field])
                if not is_valid:
                    raise ValidationError(f'{field}: {value}')
                fields[field] = value

        if 'shift_type' in data:
            is_valid, value = validate_enum(ShiftType, data['shift_type'], 'shift_type')
            if not is_valid:
                raise ValidationError(value)
            fields['shift_type'] = value

        if 'hours_per_day' in data:
            is_valid, error = validate_positive_number(data['hours_per_day'], 'hours_per_day', maximum=24)
            if not is_valid:
                raise ValidationError(error)
            fields['hours_per_day'] = float(data['hours_per_day'])

        start_date = fields.get('start_date', current.start_date if current else None)
        end_date = fields.get('end_date', current.end_date if current else None)
        if start_date >= end_date:
            raise ValidationError('start_date must be before end_date')

        return fields

    def create(self, data):
        is_valid, error = validate_required_fields(data, ['project_id', 'title', 'start_date', 'end_date'])
        if not is_valid:
            raise ValidationError(error)

        project = db.session.get(Project, data['project_id'])
        if project is None:
            raise NotFoundError('Project not found', entity_id=data['project_id'])

        fields = self._parse(data)
        schedule = Schedule(project_id=project.id, status=ScheduleStatus.DRAFT, **fields)
        with atomic():
            db.session.add(schedule)

        current_app.logger.info(
            'Schedule %s created for project %s (%s..%s)',
            schedule.id, project.id, schedule.start_date, schedule.end_date
        )
        return schedule

    def update(self, schedule_id, patch, expected_version=None):
        if not patch:
            raise ValidationError('Request body is required')
        unknown = set(patch) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f'Fields cannot be edited: {", ".join(sorted(unknown))}')

        with schedule_locks.hold(schedule_id):
            schedule = load_schedule(schedule_id, for_update=True)
            check_version(schedule, expected_version)
            if schedule.is_terminal:
                raise InvalidStateTransition(
                    f'A {schedule.status.value} schedule cannot be edited',
                    entity_id=schedule.id,
                    current=schedule.status.value,
                    allowed=[]
                )

            fields = self._parse(patch, current=schedule)
            window = normalize(
                fields.get('start_date', schedule.start_date),
                fields.get('end_date', schedule.end_date)
            )
            outside = [
                a.id for a in schedule.assignments
                if a.status != AssignmentStatus.CANCELLED and not contains(window, a.interval)
            ]
            if outside:
                raise OutOfBoundsError(
                    'Existing assignments would fall outside the new schedule window',
                    entity_id=schedule.id,
                    bounds=window,
                    details={'assignment_ids': outside}
                )

            with atomic(schedule.id):
                for key, value in fields.items():
                    setattr(schedule, key, value)
        return schedule

    def transition(self, schedule_id, target, cascade=False, expected_version=None):
        """Move a schedule to ``target``.

        Cancelling or completing a schedule that still has confirmed
        assignments fails unless ``cascade`` is set, in which case every
        non-terminal assignment is cancelled in the same transaction.
        """
        is_valid, target = validate_enum(ScheduleStatus, target, 'status')
        if not is_valid:
            raise ValidationError(target)

        with schedule_locks.hold(schedule_id):
            schedule = load_schedule(schedule_id, for_update=True)
            check_version(schedule, expected_version)
            self.coordinator.check_schedule_transition(schedule, target)

            cancelled = []
            with atomic(schedule.id):
                if target in (ScheduleStatus.CANCELLED, ScheduleStatus.COMPLETED):
                    blocking = self.coordinator.blocking_assignments(schedule)
                    if blocking and not cascade:
                        raise ConflictError(
                            f'Schedule has {len(blocking)} confirmed assignment(s); '
                            f'pass cascade to cancel them with the schedule',
                            entity_id=schedule.id,
                            conflicting_ids=[a.id for a in blocking]
                        )
                    if cascade:
                        cancelled = self.coordinator.cascade_cancel(schedule)
                previous = schedule.status
                schedule.status = target

        current_app.logger.info(
            'Schedule %s: %s -> %s (cascade=%s, cancelled assignments=%d)',
            schedule.id, previous.value, target.value, cascade, len(cancelled)
        )
        return schedule

    def delete(self, schedule_id):
        with schedule_locks.hold(schedule_id):
            schedule = load_schedule(schedule_id, for_update=True)
            assignments = Assignment.query.filter_by(schedule_id=schedule.id).all()

            if assignments and self.delete_policy == DELETE_BLOCK:
                raise ConflictError(
                    'Schedule still has assignments and cannot be deleted',
                    entity_id=schedule.id,
                    conflicting_ids=[a.id for a in assignments]
                )

            with atomic(schedule.id):
                for assignment in assignments:
                    db.session.delete(assignment)
                db.session.delete(schedule)

        current_app.logger.info(
            'Schedule %s deleted with %d assignment(s)', schedule_id, len(assignments)
        )
