"""Field validation for patient records.

Every field is checked independently and all problems are collected before
returning, so a client can fix a whole form in one round trip. Validation
failures are returned as data, never raised; only an input that is not a
mapping at all raises ``TypeError``.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from email_validator import EmailNotValidError, validate_email

from onco_records.models.patient_models import (
    BLOOD_TYPE_CHOICES,
    SEX_CHOICES,
    WRITABLE_FIELDS,
    Patient,
)


NATIONAL_ID_PATTERN = re.compile(r"[A-Z]{1,2}[0-9]{5,7}")

REQUIRED_ON_CREATE = ("last_name", "first_name", "birth_date", "sex", "phone")

NAME_MIN_LENGTH = 2
PHONE_MIN_LENGTH = 10

MODE_CREATE = "create"
MODE_UPDATE = "update"

REQUIRED_MESSAGE = "This field is required."
NOT_TEXT_MESSAGE = "Must be a string."
INVALID_DATE_MESSAGE = "Must be a valid date (YYYY-MM-DD)."

# Bounded text columns; Text and Date columns carry no length
MAX_LENGTHS = {
    name: Patient.__table__.c[name].type.length
    for name in WRITABLE_FIELDS
    if getattr(Patient.__table__.c[name].type, "length", None)
}


@dataclass
class ValidationResult:
    """Outcome of validating one patient payload.

    Attributes:
        record: Normalized field values, keyed by column name. Only fields
            present in the input (plus nothing server-managed) appear here.
        errors: Field name -> ordered list of human-readable messages.
    """

    record: dict = field(default_factory=dict)
    errors: dict = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add_error(self, field_name: str, message: str) -> None:
        self.errors.setdefault(field_name, []).append(message)


def parse_date(value) -> date:
    """Parse an ISO calendar date; datetimes contribute their date part.

    Raises:
        ValueError: If the value is not a date or an ISO date string.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"not a date: {value!r}")

    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()


def is_valid_national_id(value: str) -> bool:
    return NATIONAL_ID_PATTERN.fullmatch(value) is not None


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _check_name(result, name, value):
    if not isinstance(value, str):
        result.add_error(name, NOT_TEXT_MESSAGE)
        return
    value = value.strip()
    if len(value) < NAME_MIN_LENGTH:
        result.add_error(name, f"Must be at least {NAME_MIN_LENGTH} characters.")
        return
    result.record[name] = value


def _check_birth_date(result, name, value, today):
    try:
        parsed = parse_date(value)
    except ValueError:
        result.add_error(name, INVALID_DATE_MESSAGE)
        return
    if parsed >= today:
        result.add_error(name, "Birth date must be in the past.")
        return
    result.record[name] = parsed


def _check_sex(result, name, value):
    if value not in SEX_CHOICES:
        result.add_error(name, f"Must be one of: {', '.join(SEX_CHOICES)}.")
        return
    result.record[name] = value


def _check_national_id(result, name, value):
    if value is None or value == "":
        result.record[name] = None
        return
    if not isinstance(value, str):
        result.add_error(name, NOT_TEXT_MESSAGE)
        return
    if not is_valid_national_id(value):
        result.add_error(name, "Invalid national ID format (e.g. BE123456).")
        return
    result.record[name] = value


def _check_phone(result, name, value):
    if not isinstance(value, str):
        result.add_error(name, NOT_TEXT_MESSAGE)
        return
    value = value.strip()
    if len(value) < PHONE_MIN_LENGTH:
        result.add_error(name, f"Must be at least {PHONE_MIN_LENGTH} characters.")
        return
    result.record[name] = value


def _check_email(result, name, value):
    if _blank(value):
        result.record[name] = None
        return
    if not isinstance(value, str):
        result.add_error(name, NOT_TEXT_MESSAGE)
        return
    value = value.strip()
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        result.add_error(name, "Invalid email address.")
        return
    result.record[name] = value


def _check_blood_type(result, name, value):
    if _blank(value):
        result.record[name] = None
        return
    if value not in BLOOD_TYPE_CHOICES:
        result.add_error(name, f"Must be one of: {', '.join(BLOOD_TYPE_CHOICES)}.")
        return
    result.record[name] = value


def _check_optional_date(result, name, value):
    if _blank(value):
        result.record[name] = None
        return
    try:
        result.record[name] = parse_date(value)
    except ValueError:
        result.add_error(name, INVALID_DATE_MESSAGE)


def _check_optional_text(result, name, value):
    if _blank(value):
        result.record[name] = None
        return
    if not isinstance(value, str):
        result.add_error(name, NOT_TEXT_MESSAGE)
        return
    result.record[name] = value


def _check_max_length(result, name):
    value = result.record.get(name)
    limit = MAX_LENGTHS.get(name)
    if limit is None or not isinstance(value, str) or len(value) <= limit:
        return
    del result.record[name]
    result.add_error(name, f"Must be at most {limit} characters.")


_FIELD_CHECKS = {
    "last_name": _check_name,
    "first_name": _check_name,
    "sex": _check_sex,
    "national_id": _check_national_id,
    "phone": _check_phone,
    "email": _check_email,
    "blood_type": _check_blood_type,
    "cancer_discovery_date": _check_optional_date,
}


def validate_patient(data, mode: str = MODE_CREATE, today: Optional[date] = None) -> ValidationResult:
    """Validate and normalize a patient payload.

    Args:
        data: Raw field -> value mapping, typically a decoded JSON body.
        mode: ``"create"`` requires the identity and contact fields;
            ``"update"`` treats every field as optional.
        today: Reference date for the birth-date check. Defaults to the
            current date.

    Returns:
        ValidationResult holding the normalized record or the field errors.

    Raises:
        TypeError: If ``data`` is not a mapping.
        ValueError: If ``mode`` is unknown.
    """
    if not isinstance(data, Mapping):
        raise TypeError(f"patient data must be a mapping, got {type(data).__name__}")
    if mode not in (MODE_CREATE, MODE_UPDATE):
        raise ValueError(f"unknown validation mode: {mode!r}")

    today = today or date.today()
    result = ValidationResult()

    if mode == MODE_CREATE:
        for name in REQUIRED_ON_CREATE:
            if data.get(name) is None:
                result.add_error(name, REQUIRED_MESSAGE)

    # Unknown and server-managed keys are dropped here
    for name in WRITABLE_FIELDS:
        if name not in data:
            continue
        value = data[name]

        if name in REQUIRED_ON_CREATE and value is None:
            if mode == MODE_UPDATE:
                result.add_error(name, REQUIRED_MESSAGE)
            continue

        if name == "birth_date":
            _check_birth_date(result, name, value, today)
        else:
            _FIELD_CHECKS.get(name, _check_optional_text)(result, name, value)

        _check_max_length(result, name)

    return result
