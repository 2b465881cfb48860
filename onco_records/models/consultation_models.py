# /onco_records/models/consultation_models.py
from datetime import datetime
from onco_records.extensions import db

class Consultation(db.Model):
    """A consultation held with a patient."""
    __tablename__ = 'consultations'

    id = db.Column(db.Integer, primary_key=True)
    patient_id = db.Column(db.String(36), db.ForeignKey('patients.id'), nullable=False, index=True)

    date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    reason = db.Column(db.String(512))
    conclusion = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    patient = db.relationship('Patient', back_populates='consultations')

    def to_dict(self):
        return {
            'id': self.id,
            'date': self.date.isoformat(),
            'reason': self.reason,
            'conclusion': self.conclusion,
        }
