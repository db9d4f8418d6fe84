from datetime import datetime
from staffing.extensions import db
from staffing.models.enums import ShiftType, ScheduleStatus, TERMINAL_SCHEDULE_STATUSES
from staffing.utils.intervals import normalize

class Schedule(db.Model):
    """Project-scoped, date-bounded window of work consultants are assigned to"""
    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.Integer, db.ForeignKey('project.id'), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    shift_type = db.Column(db.Enum(ShiftType), default=ShiftType.DAY, nullable=False)
    hours_per_day = db.Column(db.Float, nullable=False, default=8.0)
    status = db.Column(db.Enum(ScheduleStatus), default=ScheduleStatus.DRAFT, nullable=False)
    version = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    assignments = db.relationship('Assignment', backref='schedule', lazy=True)

    # Stale writes raise StaleDataError on flush
    __mapper_args__ = {'version_id_col': version}

    __table_args__ = (
        db.Index('idx_schedule_project', 'project_id'),
    )

    @property
    def interval(self):
        """Schedule window as a half-open interval (dates are inclusive whole days)"""
        return normalize(self.start_date, self.end_date)

    @property
    def is_terminal(self):
        return self.status in TERMINAL_SCHEDULE_STATUSES

    def to_dict(self):
        return {
            'id': self.id,
            'project_id': self.project_id,
            'project_name': self.project.name if self.project else None,
            'title': self.title,
            'description': self.description,
            'start_date': self.start_date.isoformat(),
            'end_date': self.end_date.isoformat(),
            'shift_type': self.shift_type.value,
            'hours_per_day': self.hours_per_day,
            'status': self.status.value,
            'version': self.version,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }
