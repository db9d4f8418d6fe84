"""
Availability store: the windows each consultant declared (available,
unavailable, vacation, sick, training, other) and the coverage test the
allocator runs against them.
"""
from typing import List, NamedTuple

from flask import current_app

from staffing.extensions import db
from staffing.models import Availability, AvailabilityType, Consultant, BLOCKING_AVAILABILITY_TYPES
from staffing.services.errors import NotFoundError, ValidationError
from staffing.services.transaction import atomic
from staffing.utils.intervals import Interval, contains, overlaps, uncovered
from staffing.utils.validators import validate_date_format, validate_enum, validate_required_fields

PERMISSIVE = 'permissive'
STRICT = 'strict'


class AvailabilityCheck(NamedTuple):
    available: bool
    conflicts: List[Availability]
    gaps: List[Interval]
    partial: List[Availability]

    def to_dict(self):
        return {
            'available': self.available,
            'conflicts': [w.to_dict() for w in self.conflicts],
            'gaps': [g.to_dict() for g in self.gaps],
            'partial': [w.to_dict() for w in self.partial],
        }


class AvailabilityStore:
    """Per-consultant declared availability.

    ``default_policy`` decides what a consultant without any declared
    available window is: ``permissive`` (fully available) or ``strict``
    (covered only by declared windows). Unavailable, vacation and sick
    windows always block. Training windows count as covered time but are
    reported as partial availability; ``other`` windows are informational.
    """

    def __init__(self, default_policy=None):
        self._default_policy = default_policy

    @property
    def default_policy(self):
        policy = self._default_policy or current_app.config.get('AVAILABILITY_DEFAULT', PERMISSIVE)
        if policy not in (PERMISSIVE, STRICT):
            raise ValueError(f'Unknown availability policy: {policy}')
        return policy

    # Reads

    def get(self, availability_id):
        window = db.session.get(Availability, availability_id)
        if window is None:
            raise NotFoundError('Availability not found', entity_id=availability_id)
        return window

    def list_for(self, consultant_id, start=None, end=None):
        """Windows of a consultant, optionally only those touching [start, end] (dates)"""
        query = Availability.query.filter(Availability.consultant_id == consultant_id)
        if start is not None:
            query = query.filter(Availability.end_date >= start)
        if end is not None:
            query = query.filter(Availability.start_date <= end)
        return query.order_by(Availability.start_date, Availability.id).all()

    def _windows_touching(self, consultant_id, target):
        # Date filter is a superset; the exact half-open test runs in Python
        candidates = self.list_for(consultant_id, target.start.date(), target.end.date())
        return [w for w in candidates if overlaps(w.interval, target)]

    def _has_declared_available(self, consultant_id):
        return db.session.query(
            Availability.query.filter_by(consultant_id=consultant_id, type=AvailabilityType.AVAILABLE).exists()
        ).scalar()

    def check(self, consultant_id, target):
        """Coverage of ``target`` by the consultant's declarations, with the explanation"""
        windows = self._windows_touching(consultant_id, target)
        blocked = [w for w in windows if w.is_blocking]
        open_windows = [w for w in windows if w.is_covering]
        partial = [w for w in windows if w.type == AvailabilityType.TRAINING]

        if self.default_policy == PERMISSIVE and not self._has_declared_available(consultant_id):
            gaps = []
        else:
            gaps = uncovered(target, [w.interval for w in open_windows])

        conflicts = list(blocked)
        if gaps:
            conflicts.extend(w for w in open_windows if not contains(w.interval, target))

        return AvailabilityCheck(
            available=not blocked and not gaps,
            conflicts=conflicts,
            gaps=gaps,
            partial=partial
        )

    def is_available(self, consultant_id, target):
        return self.check(consultant_id, target).available

    def conflicting_windows(self, consultant_id, target):
        return self.check(consultant_id, target).conflicts

    # Writes

    def _parse(self, data, current=None):
        fields = {}
        for field in ('start_date', 'end_date'):
            if field in data:
                is_valid, value = validate_date_format(data[field])
                if not is_valid:
                    raise ValidationError(f'{field}: {value}')
                fields[field] = value
            elif current is not None:
                fields[field] = getattr(current, field)

        if fields['end_date'] <= fields['start_date']:
            raise ValidationError('end_date must be after start_date')

        if 'is_available' in data and not isinstance(data['is_available'], bool):
            raise ValidationError('is_available must be a boolean')

        # is_available is the shorthand for available / unavailable
        if 'type' in data:
            is_valid, value = validate_enum(AvailabilityType, data['type'], 'type')
            if not is_valid:
                raise ValidationError(value)
            if 'is_available' in data and data['is_available'] == (value in BLOCKING_AVAILABILITY_TYPES):
                raise ValidationError(f'is_available contradicts type {value.value}')
            fields['type'] = value
        elif 'is_available' in data:
            fields['type'] = AvailabilityType.AVAILABLE if data['is_available'] else AvailabilityType.UNAVAILABLE

        for field in ('location', 'notes'):
            if field in data:
                fields[field] = data[field]
        return fields

    def create(self, data):
        is_valid, error = validate_required_fields(data, ['consultant_id', 'start_date', 'end_date'])
        if not is_valid:
            raise ValidationError(error)

        consultant = db.session.get(Consultant, data['consultant_id'])
        if consultant is None:
            raise NotFoundError('Consultant not found', entity_id=data['consultant_id'])

        fields = self._parse(data)
        window = Availability(consultant_id=consultant.id, **fields)
        with atomic():
            db.session.add(window)

        current_app.logger.info(
            'Availability %s declared for consultant %s (%s..%s, %s)',
            window.id, consultant.id, window.start_date, window.end_date, window.type.value
        )
        return window

    def update(self, availability_id, data):
        if not data:
            raise ValidationError('Request body is required')
        window = self.get(availability_id)
        fields = self._parse(data, current=window)
        with atomic(availability_id):
            for key, value in fields.items():
                setattr(window, key, value)
        return window

    def delete(self, availability_id):
        window = self.get(availability_id)
        with atomic(availability_id):
            db.session.delete(window)
        current_app.logger.info('Availability %s deleted', availability_id)
