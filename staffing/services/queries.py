"""
Read side: search, filter, sort and paginate schedules and assignments.

Filters are ANDed together. Every query runs against the committed data in
the caller's session, so a caller always sees its own writes.
"""
from datetime import timedelta
from typing import List, NamedTuple

from flask import current_app
from sqlalchemy import or_

from staffing.extensions import db
from staffing.models import Assignment, AssignmentStatus, Consultant, Project, Schedule, ScheduleStatus
from staffing.services.errors import NotFoundError, ValidationError
from staffing.utils.intervals import to_utc_naive
from staffing.utils.validators import validate_enum

SCHEDULE_SORTS = {
    'name': Schedule.title,
    'date': Schedule.start_date,
}

ASSIGNMENT_SORTS = {
    'name': Consultant.name,
    'date': Assignment.start_at,
    'rating': Consultant.rating,
}


class Page(NamedTuple):
    items: List
    total: int
    offset: int
    limit: int

    def to_dict(self):
        return {
            'items': [item.to_dict() for item in self.items],
            'total': self.total,
            'offset': self.offset,
            'limit': self.limit,
        }


def _statuses(enum_cls, value):
    """Accept one status, a comma-separated string or a list"""
    if value is None:
        return None
    if isinstance(value, str):
        value = [v for v in value.split(',') if v]
    elif not isinstance(value, (list, tuple, set)):
        value = [value]
    parsed = []
    for item in value:
        is_valid, status = validate_enum(enum_cls, item, 'status')
        if not is_valid:
            raise ValidationError(status)
        parsed.append(status)
    return parsed


def _like(text):
    return f'%{text.strip()}%'


def _paginate(query, offset, limit):
    config = current_app.config
    if limit is None:
        limit = config.get('DEFAULT_PAGE_SIZE', 20)
    if offset is None:
        offset = 0
    if offset < 0 or limit < 1:
        raise ValidationError('offset must be >= 0 and limit >= 1')
    limit = min(limit, config.get('MAX_PAGE_SIZE', 100))

    total = query.order_by(None).count()
    items = query.offset(offset).limit(limit).all()
    return Page(items, total, offset, limit)


def _order(query, sorts, sort, direction, tiebreak):
    if sort not in sorts:
        raise ValidationError(f'Invalid sort. Allowed: {", ".join(sorts)}')
    if direction not in ('asc', 'desc'):
        raise ValidationError('direction must be asc or desc')
    column = sorts[sort]
    # Rows without a value (e.g. unrated consultants) go last either way
    query = query.order_by(column.is_(None), column.desc() if direction == 'desc' else column.asc())
    return query.order_by(tiebreak)


def _assignment_range(query, date_from, date_to):
    # Inclusive dates against half-open [start_at, end_at)
    if date_from is not None:
        query = query.filter(Assignment.end_at > to_utc_naive(date_from))
    if date_to is not None:
        query = query.filter(Assignment.start_at < to_utc_naive(date_to) + timedelta(days=1))
    return query


def search_schedules(status=None, project_id=None, date_from=None, date_to=None, search=None,
                     sort='date', direction='asc', offset=0, limit=None):
    query = Schedule.query.join(Project, Schedule.project_id == Project.id)

    statuses = _statuses(ScheduleStatus, status)
    if statuses:
        query = query.filter(Schedule.status.in_(statuses))
    if project_id is not None:
        query = query.filter(Schedule.project_id == project_id)
    if date_from is not None:
        query = query.filter(Schedule.end_date >= date_from)
    if date_to is not None:
        query = query.filter(Schedule.start_date <= date_to)
    if search:
        pattern = _like(search)
        query = query.filter(or_(
            Schedule.title.ilike(pattern),
            Schedule.description.ilike(pattern),
            Project.name.ilike(pattern)
        ))

    query = _order(query, SCHEDULE_SORTS, sort, direction, Schedule.id)
    return _paginate(query, offset, limit)


def search_assignments(status=None, role=None, schedule_id=None, consultant_id=None, project_id=None,
                       date_from=None, date_to=None, search=None, specialty=None,
                       sort='date', direction='asc', offset=0, limit=None):
    query = Assignment.query \
        .join(Consultant, Assignment.consultant_id == Consultant.id) \
        .join(Schedule, Assignment.schedule_id == Schedule.id)

    statuses = _statuses(AssignmentStatus, status)
    if statuses:
        query = query.filter(Assignment.status.in_(statuses))
    if role:
        query = query.filter(Assignment.role.ilike(_like(role)))
    if schedule_id is not None:
        query = query.filter(Assignment.schedule_id == schedule_id)
    if consultant_id is not None:
        query = query.filter(Assignment.consultant_id == consultant_id)
    if project_id is not None:
        query = query.filter(Schedule.project_id == project_id)
    if specialty:
        query = query.filter(Consultant.specialty.ilike(_like(specialty)))
    if search:
        pattern = _like(search)
        query = query.filter(or_(
            Consultant.name.ilike(pattern),
            Assignment.role.ilike(pattern),
            Schedule.title.ilike(pattern)
        ))
    query = _assignment_range(query, date_from, date_to)

    query = _order(query, ASSIGNMENT_SORTS, sort, direction, Assignment.id)
    return _paginate(query, offset, limit)


def consultant_schedule(consultant_id, status=None, date_from=None, date_to=None,
                        sort='date', direction='asc', offset=0, limit=None):
    """A consultant's assignments across every schedule and project"""
    if db.session.get(Consultant, consultant_id) is None:
        raise NotFoundError('Consultant not found', entity_id=consultant_id)
    return search_assignments(
        status=status, consultant_id=consultant_id, date_from=date_from, date_to=date_to,
        sort=sort, direction=direction, offset=offset, limit=limit
    )
