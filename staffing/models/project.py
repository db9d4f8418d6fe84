from datetime import datetime
from staffing.extensions import db

class Project(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    client_company = db.Column(db.String(100), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    is_active = db.Column(db.Boolean, default=True)

    # Relationships
    schedules = db.relationship('Schedule', backref='project', lazy=True)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'client_company': self.client_company,
            'is_active': self.is_active,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
