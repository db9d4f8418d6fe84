# =============================================================================
# Scheduling engine - Pytest Fixtures Configuration
# =============================================================================

import pytest
from sqlalchemy import update

from staffing import create_app
from staffing.extensions import db
from staffing.models import Consultant, Project, Schedule, ScheduleStatus, ShiftType
from staffing.services import AssignmentAllocator, AvailabilityStore, ScheduleManager
from datetime import date


# =============================================================================
# Application Fixtures
# =============================================================================

@pytest.fixture(scope='function')
def app():
    """Create and configure test application with SQLite in-memory database."""
    application = create_app('testing')

    with application.app_context():
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Test client for HTTP requests."""
    return app.test_client()


# =============================================================================
# Service Fixtures
# =============================================================================

@pytest.fixture
def manager(app):
    return ScheduleManager()


@pytest.fixture
def allocator(app):
    return AssignmentAllocator()


@pytest.fixture
def store(app):
    return AvailabilityStore()


# =============================================================================
# Directory Fixtures
# =============================================================================

def _add(instance):
    db.session.add(instance)
    db.session.commit()
    instance_id = instance.id
    db.session.expire_all()
    return db.session.get(type(instance), instance_id)


@pytest.fixture
def project(app):
    """Create a project."""
    return _add(Project(name='Epic Go-Live', client_company='Mercy Health'))


@pytest.fixture
def other_project(app):
    """Create a second project, for cross-project checks."""
    return _add(Project(name='Cerner Upgrade', client_company='St. Luke'))


@pytest.fixture
def consultant(app):
    """Create consultant C1."""
    return _add(Consultant(
        name='Alice Martin',
        email='alice@example.com',
        specialty='Epic Ambulatory',
        skills=['epic', 'training'],
        rating=4.5
    ))


@pytest.fixture
def other_consultant(app):
    """Create a second consultant."""
    return _add(Consultant(
        name='Bruno Keller',
        email='bruno@example.com',
        specialty='Cerner Pharmacy',
        skills=['cerner'],
        rating=None
    ))


# =============================================================================
# Schedule Fixtures
# =============================================================================

@pytest.fixture
def schedule(app, project):
    """Schedule S1: 2024-02-01 .. 2024-02-28, draft."""
    return _add(Schedule(
        project_id=project.id,
        title='February go-live support',
        start_date=date(2024, 2, 1),
        end_date=date(2024, 2, 28),
        shift_type=ShiftType.DAY,
        hours_per_day=8.0,
        status=ScheduleStatus.DRAFT
    ))


@pytest.fixture
def other_schedule(app, other_project):
    """Schedule on another project covering the same month."""
    return _add(Schedule(
        project_id=other_project.id,
        title='Cerner cutover',
        start_date=date(2024, 2, 1),
        end_date=date(2024, 3, 31),
        shift_type=ShiftType.NIGHT,
        hours_per_day=12.0,
        status=ScheduleStatus.ACTIVE
    ))


@pytest.fixture
def propose(allocator, schedule, consultant):
    """Shortcut: propose an assignment for C1 on S1 (overridable)."""
    def _propose(start, end, **kwargs):
        params = {
            'schedule_id': schedule.id,
            'consultant_id': consultant.id,
            'role': 'At-the-elbow support',
            'hourly_rate': 95.0,
        }
        params.update(kwargs)
        return allocator.propose(start=start, end=end, **params)
    return _propose


@pytest.fixture
def bump_version(app):
    """Write a newer row version behind the session's back, as a competing session would."""
    def _bump(model, entity_id):
        table = model.__table__
        with db.session.no_autoflush:
            db.session.execute(
                update(table).where(table.c.id == entity_id).values(version=table.c.version + 1)
            )
    return _bump
