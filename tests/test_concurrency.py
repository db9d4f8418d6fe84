# =============================================================================
# Scheduling engine - Concurrency Tests
# =============================================================================

import threading
import time
from datetime import date

import pytest

from staffing import create_app
from staffing.extensions import db
from staffing.models import Assignment, Consultant, Project, Schedule, ScheduleStatus
from staffing.services import AssignmentAllocator, ConflictError
from staffing.services.locks import KeyedLocks, consultant_locks, schedule_locks


# =============================================================================
# Local Fixtures
# =============================================================================

@pytest.fixture
def file_app(tmp_path):
    """Application on a file database so every thread gets its own connection."""
    application = create_app('testing', overrides={
        'SQLALCHEMY_DATABASE_URI': f'sqlite:///{tmp_path / "concurrency.db"}'
    })
    with application.app_context():
        db.create_all()
        project = Project(name='Epic Go-Live')
        db.session.add(project)
        db.session.flush()
        schedules = [
            Schedule(project_id=project.id, title=f'Wave {n}', start_date=date(2024, 2, 1),
                     end_date=date(2024, 2, 28), status=ScheduleStatus.ACTIVE)
            for n in (1, 2)
        ]
        consultant = Consultant(name='Alice Martin', email='alice@example.com')
        db.session.add_all(schedules + [consultant])
        db.session.commit()
        application.config['FIXTURE_IDS'] = {
            'schedules': [s.id for s in schedules],
            'consultant': consultant.id,
        }

    yield application

    with application.app_context():
        db.session.remove()
        db.drop_all()


def run_together(app, proposals):
    """Start every proposal at the same moment; collect 'ok' or 'conflict' per thread."""
    barrier = threading.Barrier(len(proposals))
    results = []
    errors = []

    def worker(schedule_id, consultant_id, start, end):
        with app.app_context():
            barrier.wait()
            try:
                AssignmentAllocator().propose(schedule_id, consultant_id, start, end,
                                              role='Support', hourly_rate=90)
            except ConflictError:
                results.append('conflict')
            except Exception as exc:  # surfaced by the assertion below
                errors.append(exc)
            else:
                results.append('ok')

    threads = [threading.Thread(target=worker, args=args) for args in proposals]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert errors == []
    return sorted(results)


# =============================================================================
# Allocation Races
# =============================================================================

class TestConcurrentProposals:

    def test_same_schedule_overlap_only_one_wins(self, file_app):
        ids = file_app.config['FIXTURE_IDS']
        schedule_id = ids['schedules'][0]

        results = run_together(file_app, [
            (schedule_id, ids['consultant'], '2024-02-05', '2024-02-10'),
            (schedule_id, ids['consultant'], '2024-02-08', '2024-02-12'),
        ])

        assert results == ['conflict', 'ok']
        with file_app.app_context():
            assert Assignment.query.count() == 1

    def test_cross_schedule_double_booking_only_one_wins(self, file_app):
        ids = file_app.config['FIXTURE_IDS']

        results = run_together(file_app, [
            (ids['schedules'][0], ids['consultant'], '2024-02-05', '2024-02-10'),
            (ids['schedules'][1], ids['consultant'], '2024-02-05', '2024-02-10'),
        ])

        assert results == ['conflict', 'ok']
        with file_app.app_context():
            assert Assignment.query.count() == 1

    def test_many_identical_proposals(self, file_app):
        ids = file_app.config['FIXTURE_IDS']
        proposal = (ids['schedules'][0], ids['consultant'], '2024-02-05', '2024-02-10')

        results = run_together(file_app, [proposal] * 5)

        assert results.count('ok') == 1
        assert results.count('conflict') == 4

    def test_locks_released_afterwards(self, file_app):
        ids = file_app.config['FIXTURE_IDS']
        run_together(file_app, [(ids['schedules'][0], ids['consultant'], '2024-02-05', '2024-02-10')] * 2)
        assert len(schedule_locks) == 0
        assert len(consultant_locks) == 0


# =============================================================================
# Keyed Locks
# =============================================================================

class TestKeyedLocks:

    def test_same_key_is_exclusive(self):
        locks = KeyedLocks('test')
        inside = []
        overlapped = []

        def worker():
            with locks.hold('k'):
                inside.append(1)
                if len(inside) > 1:
                    overlapped.append(True)
                time.sleep(0.01)
                inside.pop()

        threads = [threading.Thread(target=worker) for _ in range(5)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert overlapped == []
        assert len(locks) == 0

    def test_different_keys_do_not_block(self):
        locks = KeyedLocks('test')
        entered = threading.Event()

        def worker():
            with locks.hold('b'):
                entered.set()

        with locks.hold('a'):
            thread = threading.Thread(target=worker)
            thread.start()
            assert entered.wait(timeout=5)
            thread.join()

    def test_entry_dropped_after_error(self):
        locks = KeyedLocks('test')
        with pytest.raises(RuntimeError):
            with locks.hold('k'):
                raise RuntimeError('boom')
        assert len(locks) == 0
