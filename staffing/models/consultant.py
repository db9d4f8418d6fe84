from datetime import datetime
from staffing.extensions import db

class Consultant(db.Model):
    """Read-mostly directory entry the scheduling engine resolves consultant ids against"""
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    specialty = db.Column(db.String(100), nullable=True)
    skills = db.Column(db.JSON, nullable=False, default=list)
    rating = db.Column(db.Float, nullable=True)  # Average rating, when the consultant has been rated
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Relationships
    assignments = db.relationship('Assignment', backref='consultant', lazy=True)
    availabilities = db.relationship('Availability', backref='consultant', lazy=True, cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'specialty': self.specialty,
            'skills': self.skills or [],
            'rating': self.rating,
            'is_active': self.is_active,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
