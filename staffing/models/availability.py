from datetime import datetime
from staffing.extensions import db
from staffing.models.enums import AvailabilityType, BLOCKING_AVAILABILITY_TYPES, COVERING_AVAILABILITY_TYPES
from staffing.utils.intervals import normalize

class Availability(db.Model):
    """A window a consultant declared: available, away (vacation, sick, ...) or in training"""
    id = db.Column(db.Integer, primary_key=True)
    consultant_id = db.Column(db.Integer, db.ForeignKey('consultant.id'), nullable=False)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    type = db.Column(db.Enum(AvailabilityType), default=AvailabilityType.AVAILABLE, nullable=False)
    location = db.Column(db.String(100), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.Index('idx_availability_consultant_range', 'consultant_id', 'start_date', 'end_date'),
    )

    @property
    def interval(self):
        return normalize(self.start_date, self.end_date)

    @property
    def is_blocking(self):
        return self.type in BLOCKING_AVAILABILITY_TYPES

    @property
    def is_covering(self):
        return self.type in COVERING_AVAILABILITY_TYPES

    @property
    def is_available(self):
        return not self.is_blocking

    def to_dict(self):
        return {
            'id': self.id,
            'consultant_id': self.consultant_id,
            'start_date': self.start_date.isoformat(),
            'end_date': self.end_date.isoformat(),
            'type': self.type.value,
            'is_available': self.is_available,
            'location': self.location,
            'notes': self.notes,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
