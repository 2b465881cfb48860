# /onco_records/api/routes.py

from flask import current_app, jsonify
from . import api_bp
from onco_records.extensions import limiter
from onco_records.utils.decorators import audit_log
from .controllers import patient_controller


def _write_rate_limit():
    return current_app.config['PATIENTS_WRITE_RATE_LIMIT']


# --- Health Endpoint ---
@api_bp.route('/health', methods=['GET'])
@limiter.exempt
def health():
    return jsonify({'status': 'healthy'}), 200


# --- Patient Management Endpoints ---
@api_bp.route('/patients', methods=['GET'])
@audit_log("VIEW_ALL_PATIENTS", "patients")
def get_patients_route():
    return patient_controller.list_patients()

@api_bp.route('/patients', methods=['POST'])
@limiter.limit(_write_rate_limit)
@audit_log("PATIENT_REGISTRATION", "patients")
def create_patient_route():
    return patient_controller.create_patient()

@api_bp.route('/patients/<string:patient_id>', methods=['GET'])
@audit_log("VIEW_PATIENT_DETAIL", "patients")
def get_patient_route(patient_id):
    return patient_controller.get_patient(patient_id)

@api_bp.route('/patients/<string:patient_id>', methods=['PUT', 'PATCH'])
@limiter.limit(_write_rate_limit)
@audit_log("UPDATE_PATIENT", "patients")
def update_patient_route(patient_id):
    return patient_controller.update_patient(patient_id)

# TODO: restrict archiving to clinicians once authentication lands
@api_bp.route('/patients/<string:patient_id>', methods=['DELETE'])
@limiter.limit(_write_rate_limit)
@audit_log("ARCHIVE_PATIENT", "patients")
def archive_patient_route(patient_id):
    return patient_controller.archive_patient(patient_id)
