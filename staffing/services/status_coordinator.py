"""
Legal status transitions for schedules and assignments, and the cascading
effects of schedule transitions on their assignments.
"""
from datetime import datetime

from flask import current_app

from staffing.models import AssignmentStatus, ScheduleStatus
from staffing.services.errors import InvalidStateTransition

SCHEDULE_TRANSITIONS = {
    ScheduleStatus.DRAFT: {ScheduleStatus.ACTIVE, ScheduleStatus.CANCELLED},
    ScheduleStatus.ACTIVE: {ScheduleStatus.COMPLETED, ScheduleStatus.CANCELLED},
    ScheduleStatus.COMPLETED: set(),
    ScheduleStatus.CANCELLED: set(),
}

ASSIGNMENT_TRANSITIONS = {
    AssignmentStatus.PENDING: {AssignmentStatus.SCHEDULED, AssignmentStatus.CONFIRMED,
                               AssignmentStatus.CANCELLED},
    AssignmentStatus.SCHEDULED: {AssignmentStatus.CONFIRMED, AssignmentStatus.CANCELLED},
    AssignmentStatus.CONFIRMED: {AssignmentStatus.COMPLETED, AssignmentStatus.CANCELLED},
    AssignmentStatus.COMPLETED: set(),
    AssignmentStatus.CANCELLED: set(),
}

# What an assignment may still move to, given its parent schedule's status
ALLOWED_UNDER_SCHEDULE = {
    ScheduleStatus.CANCELLED: {AssignmentStatus.CANCELLED},
    ScheduleStatus.COMPLETED: {AssignmentStatus.COMPLETED, AssignmentStatus.CANCELLED},
}


def _values(statuses):
    return [s.value for s in statuses]


class StatusCoordinator:

    def allowed_schedule_targets(self, current):
        return SCHEDULE_TRANSITIONS[current]

    def allowed_assignment_targets(self, current, schedule_status=None):
        allowed = ASSIGNMENT_TRANSITIONS[current]
        if schedule_status in ALLOWED_UNDER_SCHEDULE:
            allowed = allowed & ALLOWED_UNDER_SCHEDULE[schedule_status]
        return allowed

    def check_schedule_transition(self, schedule, target):
        allowed = self.allowed_schedule_targets(schedule.status)
        if target not in allowed:
            raise InvalidStateTransition(
                f'Schedule cannot move from {schedule.status.value} to {target.value}',
                entity_id=schedule.id,
                current=schedule.status.value,
                allowed=_values(allowed)
            )

    def check_assignment_transition(self, assignment, target):
        """Validate an assignment status change against its own state and its schedule's"""
        schedule_status = assignment.schedule.status
        if target not in ASSIGNMENT_TRANSITIONS[assignment.status]:
            raise InvalidStateTransition(
                f'Assignment cannot move from {assignment.status.value} to {target.value}',
                entity_id=assignment.id,
                current=assignment.status.value,
                allowed=_values(self.allowed_assignment_targets(assignment.status, schedule_status))
            )
        allowed = self.allowed_assignment_targets(assignment.status, schedule_status)
        if target not in allowed:
            raise InvalidStateTransition(
                f'Assignment cannot move to {target.value} while its schedule is {schedule_status.value}',
                entity_id=assignment.id,
                current=assignment.status.value,
                allowed=_values(allowed),
                details={'schedule_status': schedule_status.value}
            )

    def apply_assignment_status(self, assignment, target):
        """Set the status and its timestamp. The caller owns the transaction."""
        now = datetime.utcnow()
        assignment.status = target
        if target == AssignmentStatus.CONFIRMED:
            assignment.confirmed_at = now
        elif target == AssignmentStatus.CANCELLED:
            assignment.cancelled_at = now

    def transition_assignment(self, assignment, target):
        self.check_assignment_transition(assignment, target)
        previous = assignment.status
        self.apply_assignment_status(assignment, target)
        current_app.logger.info(
            'Assignment %s: %s -> %s', assignment.id, previous.value, target.value
        )

    def blocking_assignments(self, schedule):
        """Confirmed assignments that a cancel/complete would orphan"""
        return [a for a in schedule.assignments if a.status == AssignmentStatus.CONFIRMED]

    def cascade_cancel(self, schedule):
        """Cancel every non-terminal assignment of the schedule. Returns the affected ids."""
        cancelled = []
        for assignment in schedule.assignments:
            if assignment.is_terminal:
                continue
            self.apply_assignment_status(assignment, AssignmentStatus.CANCELLED)
            cancelled.append(assignment.id)
        if cancelled:
            current_app.logger.info(
                'Schedule %s: cascaded cancellation to assignments %s', schedule.id, cancelled
            )
        return cancelled
