# /onco_records/models/appointment_models.py
from datetime import datetime
from onco_records.extensions import db

APPOINTMENT_STATUSES = ('SCHEDULED', 'CONFIRMED', 'COMPLETED', 'CANCELLED')

# Statuses that still count as an upcoming visit
ACTIVE_APPOINTMENT_STATUSES = ('SCHEDULED', 'CONFIRMED')

class Appointment(db.Model):
    """Model for storing a patient's clinic appointment."""
    __tablename__ = 'appointments'

    id = db.Column(db.Integer, primary_key=True)
    patient_id = db.Column(db.String(36), db.ForeignKey('patients.id'), nullable=False, index=True)

    # Appointment details
    appointment_datetime = db.Column(db.DateTime, nullable=False)
    location = db.Column(db.String(100)) # e.g., 'Day hospital', 'Consultation room 2'
    status = db.Column(db.String(50), default='SCHEDULED')

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    patient = db.relationship('Patient', back_populates='appointments')

    __table_args__ = (
        db.CheckConstraint(
            "status IN ({})".format(', '.join(f"'{s}'" for s in APPOINTMENT_STATUSES)),
            name='valid_appointment_status',
        ),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'appointment_datetime': self.appointment_datetime.isoformat(),
            'location': self.location,
            'status': self.status,
        }
