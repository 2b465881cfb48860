from flask import request, jsonify, current_app
from onco_records.services import PatientRecordService

def _patient_service():
    """Builds a record service from the application configuration."""
    config = current_app.config
    return PatientRecordService(
        created_by_user_id=config['DEFAULT_USER_ID'],
        clinic_id=config['DEFAULT_CLINIC_ID'],
        default_page_size=config['PATIENTS_DEFAULT_PAGE_SIZE'],
        max_page_size=config['PATIENTS_MAX_PAGE_SIZE'],
        activity_limits={
            'consultations_limit': config['RECENT_CONSULTATIONS_LIMIT'],
            'appointments_limit': config['UPCOMING_APPOINTMENTS_LIMIT'],
            'documents_limit': config['RECENT_DOCUMENTS_LIMIT'],
        },
    )

def list_patients():
    """Paginated, filtered list of active patients."""
    result = _patient_service().list(request.args)
    return jsonify(result), 200

def create_patient():
    """Creates a new patient record."""
    data = request.get_json(silent=True)
    patient = _patient_service().create(data)
    return jsonify(patient), 201

def get_patient(patient_id):
    """Retrieves a single active patient with recent activity."""
    patient = _patient_service().get(patient_id)
    return jsonify(patient), 200

def update_patient(patient_id):
    """Applies a partial update to an active patient."""
    data = request.get_json(silent=True)
    patient = _patient_service().update(patient_id, data)
    return jsonify(patient), 200

def archive_patient(patient_id):
    """Soft-deletes a patient. A second archive answers 410."""
    confirmation = _patient_service().archive(patient_id)
    return jsonify(confirmation), 200
