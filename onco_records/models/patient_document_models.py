# /onco_records/models/patient_document_models.py
from datetime import datetime
from onco_records.extensions import db

class PatientDocument(db.Model):
    """Model for storing patient document metadata."""
    __tablename__ = 'patient_documents'

    id = db.Column(db.Integer, primary_key=True)
    patient_id = db.Column(db.String(36), db.ForeignKey('patients.id'), nullable=False, index=True)

    # Document details
    name = db.Column(db.String(255), nullable=False)
    document_type = db.Column(db.String(50), nullable=False)   # e.g., 'pathology_report', 'imaging'
    document_date = db.Column(db.Date)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    patient = db.relationship('Patient', back_populates='documents')

    def to_dict(self):
        """Convert document to dictionary for API responses."""
        return {
            'id': self.id,
            'name': self.name,
            'document_type': self.document_type,
            'document_date': self.document_date.isoformat() if self.document_date else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
