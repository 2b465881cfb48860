# /onco_records/models/patient_models.py
import uuid
from datetime import datetime
from onco_records.extensions import db

SEX_CHOICES = ('MALE', 'FEMALE')

BLOOD_TYPE_CHOICES = (
    'A_POSITIVE', 'A_NEGATIVE',
    'B_POSITIVE', 'B_NEGATIVE',
    'AB_POSITIVE', 'AB_NEGATIVE',
    'O_POSITIVE', 'O_NEGATIVE',
)

# Columns a client may write through the create/update paths.
# Everything else on the model is server-managed.
WRITABLE_FIELDS = (
    'last_name', 'first_name', 'birth_date', 'sex', 'national_id',
    'phone', 'secondary_phone', 'email', 'address', 'city',
    'national_insurance_number', 'insurer_name', 'insurer_policy_number',
    'blood_type', 'allergies', 'medical_history', 'family_history',
    'primary_care_physician', 'primary_diagnosis', 'cancer_discovery_date',
    'stage', 'histological_type', 'primary_site',
)


def _new_patient_id():
    return str(uuid.uuid4())


class Patient(db.Model):
    """Oncology patient record. Archiving is a soft delete."""
    __tablename__ = 'patients'

    id = db.Column(db.String(36), primary_key=True, default=_new_patient_id)

    # --- Identity ---
    last_name = db.Column(db.String(255), nullable=False, index=True)
    first_name = db.Column(db.String(255), nullable=False)
    birth_date = db.Column(db.Date, nullable=False)
    sex = db.Column(db.String(10), nullable=False)
    # Unique index backs the uniqueness guard under concurrent writes
    national_id = db.Column(db.String(20), unique=True, index=True)

    # --- Contact ---
    phone = db.Column(db.String(50), nullable=False)
    secondary_phone = db.Column(db.String(50))
    email = db.Column(db.String(255))
    address = db.Column(db.String(1024))
    city = db.Column(db.String(255))

    # --- Coverage ---
    national_insurance_number = db.Column(db.String(100))
    insurer_name = db.Column(db.String(255))
    insurer_policy_number = db.Column(db.String(100))

    # --- Medical background ---
    blood_type = db.Column(db.String(20))
    allergies = db.Column(db.Text)
    medical_history = db.Column(db.Text)
    family_history = db.Column(db.Text)
    primary_care_physician = db.Column(db.String(255))

    # --- Oncology ---
    primary_diagnosis = db.Column(db.Text)
    cancer_discovery_date = db.Column(db.Date)
    stage = db.Column(db.String(50))
    histological_type = db.Column(db.String(255))
    primary_site = db.Column(db.String(255))

    # --- Lifecycle ---
    created_by_user_id = db.Column(db.String(64), nullable=False)
    clinic_id = db.Column(db.String(64), nullable=False, index=True)
    is_archived = db.Column(db.Boolean, nullable=False, default=False, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # --- Relationships ---
    consultations = db.relationship('Consultation', back_populates='patient', lazy='dynamic')
    appointments = db.relationship('Appointment', back_populates='patient', lazy='dynamic')
    documents = db.relationship('PatientDocument', back_populates='patient', lazy='dynamic')

    def to_dict(self):
        """Serializes the stored fields for API responses (no derived fields)."""
        data = {'id': self.id}
        for field in WRITABLE_FIELDS:
            value = getattr(self, field)
            if field in ('birth_date', 'cancer_discovery_date') and value is not None:
                value = value.isoformat()
            data[field] = value

        data.update({
            'created_by_user_id': self.created_by_user_id,
            'clinic_id': self.clinic_id,
            'is_archived': self.is_archived,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        })
        return data

    def __repr__(self):
        return f'<Patient {self.id} archived={self.is_archived}>'
