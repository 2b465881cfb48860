# /onco_records/services/repository.py
from datetime import datetime
from onco_records.extensions import db
from onco_records.models.patient_models import Patient
from onco_records.models.appointment_models import Appointment, ACTIVE_APPOINTMENT_STATUSES
from onco_records.models.consultation_models import Consultation
from onco_records.models.patient_document_models import PatientDocument


class PatientRepository:
    """Persistence for patient records.

    Store errors (``SQLAlchemyError`` and subclasses) propagate to the caller
    after the session has been rolled back.
    """

    def __init__(self, session=None):
        self.session = session or db.session

    def get(self, patient_id):
        """Fetch a patient by id, archived or not."""
        return self.session.get(Patient, patient_id)

    def find_by_national_id(self, national_id):
        return self.session.query(Patient).filter_by(national_id=national_id).first()

    def find_page(self, query):
        """Return ``(patients, total)`` for a compiled ``PatientQuery``."""
        base = self.session.query(Patient).filter(query.predicate)
        total = base.order_by(None).count()
        patients = (
            base.order_by(*query.order_by)
            .offset(query.offset)
            .limit(query.limit)
            .all()
        )
        return patients, total

    def insert(self, fields, created_by_user_id, clinic_id):
        patient = Patient(
            created_by_user_id=created_by_user_id,
            clinic_id=clinic_id,
            is_archived=False,
            **fields
        )
        self.session.add(patient)
        self._commit()
        return patient

    def update(self, patient, fields):
        for name, value in fields.items():
            setattr(patient, name, value)
        # Set explicitly; onupdate does not fire when no column changed
        patient.updated_at = datetime.utcnow()
        self._commit()
        return patient

    def archive(self, patient):
        patient.is_archived = True
        patient.updated_at = datetime.utcnow()
        self._commit()
        return patient

    def recent_activity(self, patient, consultations_limit=5, appointments_limit=3, documents_limit=10):
        """Bounded, most-recent-first activity attached to one patient."""
        consultations = (
            patient.consultations
            .order_by(Consultation.date.desc())
            .limit(consultations_limit)
            .all()
        )
        upcoming_appointments = (
            patient.appointments
            .filter(
                Appointment.appointment_datetime >= datetime.utcnow(),
                Appointment.status.in_(ACTIVE_APPOINTMENT_STATUSES),
            )
            .order_by(Appointment.appointment_datetime.asc())
            .limit(appointments_limit)
            .all()
        )
        documents = (
            patient.documents
            .order_by(PatientDocument.created_at.desc())
            .limit(documents_limit)
            .all()
        )

        return {
            'consultations': [c.to_dict() for c in consultations],
            'upcoming_appointments': [a.to_dict() for a in upcoming_appointments],
            'documents': [d.to_dict() for d in documents],
            'counts': {
                'consultations': patient.consultations.count(),
                'appointments': patient.appointments.count(),
                'documents': patient.documents.count(),
            },
        }

    def _commit(self):
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
