"""Shared fixtures for the patient record tests.

Every test that touches the database gets a fresh in-memory SQLite schema.
"""

from datetime import date

import pytest

from onco_records import create_app
from onco_records.extensions import db
from onco_records.services import PatientRecordService


@pytest.fixture(scope="session")
def log_dir(tmp_path_factory):
    """Keep log files out of the working tree."""
    return tmp_path_factory.mktemp("logs")


@pytest.fixture
def app(log_dir):
    """Application built with TestingConfig, schema created."""
    app = create_app("testing", overrides={"LOG_DIR": str(log_dir)})
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def service(app) -> PatientRecordService:
    """Record service wired the same way the API wires it."""
    return PatientRecordService(
        created_by_user_id=app.config["DEFAULT_USER_ID"],
        clinic_id=app.config["DEFAULT_CLINIC_ID"],
        default_page_size=app.config["PATIENTS_DEFAULT_PAGE_SIZE"],
        max_page_size=app.config["PATIENTS_MAX_PAGE_SIZE"],
    )


@pytest.fixture
def minimal_patient() -> dict:
    """Smallest payload the create operation accepts."""
    return {
        "last_name": "Bennani",
        "first_name": "Amina",
        "birth_date": "1980-04-12",
        "sex": "FEMALE",
        "phone": "0612345678",
    }


@pytest.fixture
def full_patient() -> dict:
    """Payload with every writable field set to a valid value."""
    return {
        "last_name": "Alaoui",
        "first_name": "Youssef",
        "birth_date": "1965-09-30",
        "sex": "MALE",
        "national_id": "BE123456",
        "phone": "0612345678",
        "secondary_phone": "0522334455",
        "email": "youssef.alaoui@example.com",
        "address": "12 rue des Orangers",
        "city": "Casablanca",
        "national_insurance_number": "CN-998877",
        "insurer_name": "Mutuelle Atlas",
        "insurer_policy_number": "POL-2024-001",
        "blood_type": "O_POSITIVE",
        "allergies": "Penicillin",
        "medical_history": "Type 2 diabetes",
        "family_history": "Mother: breast cancer",
        "primary_care_physician": "Dr. Tazi",
        "primary_diagnosis": "Colorectal adenocarcinoma",
        "cancer_discovery_date": "2024-02-01",
        "stage": "IIIB",
        "histological_type": "Adenocarcinoma",
        "primary_site": "Sigmoid colon",
    }


@pytest.fixture
def fixed_today() -> date:
    return date(2026, 10, 19)
