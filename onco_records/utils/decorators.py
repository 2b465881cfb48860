from functools import wraps
from flask import request, current_app, make_response
from onco_records.models.system_models import AuditLog
from onco_records.extensions import db
from onco_records.services.exceptions import PatientRecordError
from sqlalchemy.exc import SQLAlchemyError

def _write_audit_entry(**entry):
    """Persist an audit row without ever masking the request outcome."""
    try:
        db.session.add(AuditLog(**entry))
        db.session.commit()
    except SQLAlchemyError as db_error:
        current_app.audit_logger.error(f"Failed to log audit entry due to DB error: {db_error}")
        db.session.rollback()

def audit_log(action, resource):
    """Logs user actions for HIPAA compliance."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # No authentication yet: every request acts as the configured user
            user_id = current_app.config.get('DEFAULT_USER_ID')
            resource_id = kwargs.get('patient_id')
            ip_address = request.remote_addr
            user_agent = request.headers.get('User-Agent')

            try:
                # Execute the decorated view function.
                # Use make_response to handle both Response objects and tuples.
                raw_response = f(*args, **kwargs)
                response = make_response(raw_response)

                success = response.status_code < 400
                details = f"Request successful. Status: {response.status_code}"

                # A successful create only learns its resource id from the response
                if resource_id is None and success and response.is_json:
                    response_data = response.get_json(silent=True) or {}
                    resource_id = response_data.get('id')

                _write_audit_entry(
                    user_id=user_id,
                    action=action,
                    resource=resource,
                    resource_id=resource_id,
                    ip_address=ip_address,
                    user_agent=user_agent,
                    success=success,
                    details=details
                )
                current_app.audit_logger.info(
                    f"Action='{action}', Resource='{resource}', ResourceID='{resource_id}', UserID='{user_id}', Success='{success}', Details='{details}'"
                )

                return response

            except Exception as e:
                if isinstance(e, PatientRecordError):
                    details = f"Request failed. Status: {e.status_code} ({e.message})"
                else:
                    details = f"An error occurred: {str(e)}"

                _write_audit_entry(
                    user_id=user_id,
                    action=action,
                    resource=resource,
                    resource_id=resource_id,
                    ip_address=ip_address,
                    user_agent=user_agent,
                    success=False,
                    details=details
                )
                current_app.audit_logger.error(
                    f"Action='{action}', Resource='{resource}', ResourceID='{resource_id}', UserID='{user_id}', Success='False', Details='{details}'"
                )

                raise

        return decorated_function
    return decorator
