# /onco_records/utils/error_handlers.py
from flask import jsonify, current_app
from onco_records.extensions import db
from onco_records.services.exceptions import PatientRecordError

def register_error_handlers(app):
    @app.errorhandler(PatientRecordError)
    def patient_record_error(error):
        if error.status_code >= 500:
            db.session.rollback()
            current_app.audit_logger.error(f"Patient record failure: {error.__cause__ or error}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(400)
    def bad_request(error):
        return jsonify({'error': 'Bad request'}), 400

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'error': 'Resource not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'error': 'Method not allowed'}), 405

    @app.errorhandler(429)
    def rate_limited(error):
        return jsonify({'error': f'Rate limit exceeded: {error.description}'}), 429

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        current_app.audit_logger.error(f"Internal server error: {str(error)}")
        return jsonify({'error': 'Internal server error'}), 500
