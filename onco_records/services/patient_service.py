"""Patient record operations: create, read, list, update and archive.

The service is the error boundary of the package. Whatever happens below it
(validation problems, duplicate national IDs, database faults) leaves as one
of the exceptions in :mod:`onco_records.services.exceptions`.

A record is either active or archived. Archiving is terminal: an archived
record can no longer be read, updated or archived again through this
service, and each of those attempts raises :class:`GoneError`.
"""

import logging
import math
from contextlib import contextmanager
from datetime import date

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from onco_records.services.exceptions import (
    ConflictError,
    GoneError,
    NotFoundError,
    UnexpectedError,
    ValidationError,
)
from onco_records.services.query_compiler import DEFAULT_LIMIT, compile_patient_query
from onco_records.services.repository import PatientRepository
from onco_records.services.uniqueness import national_id_taken
from onco_records.services.validator import MODE_CREATE, MODE_UPDATE, validate_patient


logger = logging.getLogger(__name__)

DEFAULT_ACTIVITY_LIMITS = {
    "consultations_limit": 5,
    "appointments_limit": 3,
    "documents_limit": 10,
}


def compute_age(birth_date, today=None):
    """Whole years between ``birth_date`` and ``today``."""
    today = today or date.today()
    years = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        years -= 1
    return years


class PatientRecordService:
    """Orchestrates validation, the uniqueness guard and the repository.

    Args:
        repository: Store access; defaults to a session-bound PatientRepository.
        created_by_user_id: Owner stamped on new records.
        clinic_id: Clinic stamped on new records.
        default_page_size: List page size when the caller gives none.
        max_page_size: Upper bound on the list page size.
        activity_limits: Overrides for the related-activity caps of ``get``.
        today: Zero-argument callable returning the reference date.
    """

    def __init__(self, repository=None, created_by_user_id="user-default",
                 clinic_id="clinic-default", default_page_size=DEFAULT_LIMIT,
                 max_page_size=None, activity_limits=None, today=date.today):
        self.repository = repository or PatientRepository()
        self.created_by_user_id = created_by_user_id
        self.clinic_id = clinic_id
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size
        self.activity_limits = dict(DEFAULT_ACTIVITY_LIMITS, **(activity_limits or {}))
        self.today = today

    # --- Operations ---

    def create(self, data):
        fields = self._validate(data, MODE_CREATE)

        with self._store_errors("create"):
            if national_id_taken(self.repository, fields.get("national_id")):
                raise ConflictError()
            patient = self.repository.insert(fields, self.created_by_user_id, self.clinic_id)

        logger.info("Created patient %s", patient.id)
        return self._serialize(patient)

    def get(self, patient_id):
        with self._store_errors("get"):
            patient = self._get_active(patient_id)
            record = self._serialize(patient)
            record["recent_activity"] = self.repository.recent_activity(patient, **self.activity_limits)
        return record

    def list(self, params=None):
        compilation = compile_patient_query(
            params,
            default_limit=self.default_page_size,
            max_limit=self.max_page_size,
        )
        if not compilation.is_valid:
            raise ValidationError(compilation.errors, "Invalid query parameters")

        query = compilation.query
        with self._store_errors("list"):
            patients, total = self.repository.find_page(query)

        return {
            "data": [self._serialize(p) for p in patients],
            "pagination": {
                "page": query.page,
                "limit": query.limit,
                "total": total,
                "total_pages": math.ceil(total / query.limit),
            },
        }

    def update(self, patient_id, data):
        with self._store_errors("update"):
            patient = self._get_active(patient_id)

        fields = self._validate(data, MODE_UPDATE)

        with self._store_errors("update"):
            national_id = fields.get("national_id")
            if national_id and national_id != patient.national_id:
                if national_id_taken(self.repository, national_id, exclude_id=patient.id):
                    raise ConflictError()
            patient = self.repository.update(patient, fields)

        logger.info("Updated patient %s (%s)", patient.id, ", ".join(sorted(fields)) or "no fields")
        return self._serialize(patient)

    def archive(self, patient_id):
        with self._store_errors("archive"):
            patient = self._get_active(patient_id, gone_message="This patient is already archived")
            self.repository.archive(patient)

        logger.info("Archived patient %s", patient_id)
        return {"message": "Patient archived successfully", "id": patient_id}

    # --- Helpers ---

    def _get_active(self, patient_id, gone_message=None):
        patient = self.repository.get(patient_id)
        if patient is None:
            raise NotFoundError()
        if patient.is_archived:
            raise GoneError(gone_message)
        return patient

    def _validate(self, data, mode):
        try:
            result = validate_patient(data, mode, today=self.today())
        except TypeError:
            raise ValidationError({"_schema": ["Expected a JSON object."]}) from None
        if not result.is_valid:
            raise ValidationError(result.errors)
        return result.record

    def _serialize(self, patient):
        record = patient.to_dict()
        record["age"] = compute_age(patient.birth_date, self.today())
        return record

    @contextmanager
    def _store_errors(self, action):
        try:
            yield
        except IntegrityError as e:
            # Lost the race against a concurrent write of the same national ID
            self.repository.session.rollback()
            logger.warning("Integrity error during patient %s: %s", action, e.orig)
            raise ConflictError() from e
        except SQLAlchemyError as e:
            self.repository.session.rollback()
            logger.exception("Database error during patient %s", action)
            raise UnexpectedError() from e
