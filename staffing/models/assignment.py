from datetime import datetime
from staffing.extensions import db
from staffing.models.enums import AssignmentStatus, TERMINAL_ASSIGNMENT_STATUSES
from staffing.utils.intervals import interval

class Assignment(db.Model):
    """A consultant's committed time range and role within a schedule"""
    id = db.Column(db.Integer, primary_key=True)
    schedule_id = db.Column(db.Integer, db.ForeignKey('schedule.id'), nullable=False)
    consultant_id = db.Column(db.Integer, db.ForeignKey('consultant.id'), nullable=False)
    role = db.Column(db.String(100), nullable=False)
    start_at = db.Column(db.DateTime, nullable=False)  # Inclusive, naive UTC
    end_at = db.Column(db.DateTime, nullable=False)  # Exclusive, naive UTC
    hourly_rate = db.Column(db.Float, nullable=False)
    notes = db.Column(db.Text, nullable=True)
    status = db.Column(db.Enum(AssignmentStatus), default=AssignmentStatus.SCHEDULED, nullable=False)
    version = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    confirmed_at = db.Column(db.DateTime, nullable=True)
    cancelled_at = db.Column(db.DateTime, nullable=True)

    __mapper_args__ = {'version_id_col': version}

    # Overlap lookups are always scoped by consultant and time range
    __table_args__ = (
        db.Index('idx_assignment_consultant_range', 'consultant_id', 'start_at', 'end_at'),
        db.Index('idx_assignment_schedule', 'schedule_id'),
    )

    @property
    def interval(self):
        return interval(self.start_at, self.end_at)

    @property
    def is_terminal(self):
        return self.status in TERMINAL_ASSIGNMENT_STATUSES

    def to_dict(self):
        return {
            'id': self.id,
            'schedule_id': self.schedule_id,
            'consultant_id': self.consultant_id,
            'consultant_name': self.consultant.name if self.consultant else None,
            'role': self.role,
            'start_at': self.start_at.isoformat(),
            'end_at': self.end_at.isoformat(),
            'hourly_rate': self.hourly_rate,
            'notes': self.notes,
            'status': self.status.value,
            'version': self.version,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'confirmed_at': self.confirmed_at.isoformat() if self.confirmed_at else None,
            'cancelled_at': self.cancelled_at.isoformat() if self.cancelled_at else None
        }
