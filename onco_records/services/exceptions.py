"""Error kinds raised by the patient record service.

Every failure leaving the service layer is one of the classes below. Each
carries the HTTP status the API layer answers with.
"""


class PatientRecordError(Exception):
    """Base exception for all patient record failures."""

    status_code = 500
    default_message = 'Patient record operation failed'

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self):
        return {'error': self.message}


class ValidationError(PatientRecordError):
    """Raised when input data is rejected.

    Always carries the complete field -> messages mapping, never just the
    first violation.
    """

    status_code = 400
    default_message = 'Invalid data'

    def __init__(self, errors, message=None):
        super().__init__(message)
        self.errors = errors

    def to_dict(self):
        return {'error': self.message, 'details': self.errors}


class ConflictError(PatientRecordError):
    """Raised when a write would duplicate a national ID."""

    status_code = 409
    default_message = 'A patient with this national ID already exists'


class NotFoundError(PatientRecordError):
    """Raised when no patient has the requested id."""

    status_code = 404
    default_message = 'Patient not found'


class GoneError(PatientRecordError):
    """Raised when the patient exists but has been archived."""

    status_code = 410
    default_message = 'This patient has been archived'


class UnexpectedError(PatientRecordError):
    """Raised for store or infrastructure failures the caller cannot fix."""

    status_code = 500
    default_message = 'An unexpected error occurred'
