"""Tests for the patient record service against an in-memory database."""

from datetime import date, datetime, timedelta

import pytest
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from onco_records.extensions import db
from onco_records.models import Appointment, Consultation, Patient, PatientDocument
from onco_records.services import PatientRecordService, PatientRepository, compute_age
from onco_records.services.exceptions import (
    ConflictError,
    GoneError,
    NotFoundError,
    UnexpectedError,
    ValidationError,
)
from onco_records.services.query_compiler import MAX_SQL_INTEGER
from onco_records.services.uniqueness import national_id_taken


def _create(service: PatientRecordService, base: dict, **overrides) -> dict:
    return service.create({**base, **overrides})


class TestAgeComputation:
    """Age is whole calendar years, computed at read time."""

    def test_one_day_short_of_thirtieth_birthday(self, fixed_today: date) -> None:
        assert compute_age(date(1996, 10, 20), today=fixed_today) == 29

    def test_exactly_thirty_years(self, fixed_today: date) -> None:
        assert compute_age(date(1996, 10, 19), today=fixed_today) == 30

    def test_leap_day_birthday(self) -> None:
        assert compute_age(date(2000, 2, 29), today=date(2025, 2, 28)) == 24
        assert compute_age(date(2000, 2, 29), today=date(2025, 3, 1)) == 25

    def test_age_is_added_to_records(self, app, minimal_patient: dict, fixed_today: date) -> None:
        service = PatientRecordService(today=lambda: fixed_today)

        created = _create(service, minimal_patient, birth_date="1996-10-20")

        assert created["age"] == 29
        assert service.get(created["id"])["age"] == 29


class TestCreate:
    """Create: validate, guard, persist."""

    def test_creates_active_record_with_server_fields(self, service, minimal_patient: dict) -> None:
        created = service.create(minimal_patient)

        assert created["id"]
        assert created["is_archived"] is False
        assert created["created_by_user_id"] == "user-test"
        assert created["clinic_id"] == "clinic-test"
        assert created["created_at"] is not None
        assert created["updated_at"] is not None
        assert created["primary_diagnosis"] is None

    def test_ids_are_unique(self, service, minimal_patient: dict) -> None:
        first = service.create(minimal_patient)
        second = service.create(minimal_patient)

        assert first["id"] != second["id"]

    def test_client_cannot_choose_id_or_archive_flag(self, service, minimal_patient: dict) -> None:
        created = _create(service, minimal_patient, id="chosen-id", is_archived=True, clinic_id="elsewhere")

        assert created["id"] != "chosen-id"
        assert created["is_archived"] is False
        assert created["clinic_id"] == "clinic-test"

    def test_validation_error_carries_every_field(self, service) -> None:
        with pytest.raises(ValidationError) as exc_info:
            service.create({"last_name": "X", "email": "nope"})

        assert {"last_name", "first_name", "birth_date", "sex", "phone", "email"} <= set(exc_info.value.errors)
        assert Patient.query.count() == 0

    def test_over_length_value_is_a_validation_error(self, service, minimal_patient: dict) -> None:
        with pytest.raises(ValidationError) as exc_info:
            _create(service, minimal_patient, phone="0" * 60)

        assert exc_info.value.errors == {"phone": ["Must be at most 50 characters."]}
        assert Patient.query.count() == 0

    def test_non_mapping_payload_is_a_validation_error(self, service) -> None:
        with pytest.raises(ValidationError) as exc_info:
            service.create(None)

        assert "_schema" in exc_info.value.errors

    def test_duplicate_national_id_conflicts(self, service, minimal_patient: dict) -> None:
        _create(service, minimal_patient, national_id="BE123456")

        with pytest.raises(ConflictError):
            _create(service, minimal_patient, national_id="BE123456", first_name="Other")

        assert Patient.query.count() == 1

    def test_archived_holder_still_conflicts(self, service, minimal_patient: dict) -> None:
        created = _create(service, minimal_patient, national_id="BE123456")
        service.archive(created["id"])

        with pytest.raises(ConflictError):
            _create(service, minimal_patient, national_id="BE123456")

    def test_empty_national_ids_never_conflict(self, service, minimal_patient: dict) -> None:
        _create(service, minimal_patient, national_id="")
        _create(service, minimal_patient, national_id="")

        assert Patient.query.count() == 2

    def test_store_level_unique_violation_surfaces_as_conflict(self, service, minimal_patient: dict, monkeypatch) -> None:
        """A write that races past the guard is stopped by the unique index."""
        _create(service, minimal_patient, national_id="BE123456")
        monkeypatch.setattr(
            "onco_records.services.patient_service.national_id_taken",
            lambda *args, **kwargs: False,
        )

        with pytest.raises(ConflictError):
            _create(service, minimal_patient, national_id="BE123456")

        # The session was rolled back and is usable again
        assert service.list()["pagination"]["total"] == 1

    def test_round_trip_preserves_every_field(self, service, full_patient: dict) -> None:
        created = service.create(full_patient)

        fetched = service.get(created["id"])

        for name, value in full_patient.items():
            assert fetched[name] == value, name
        assert "age" in fetched


class TestGet:
    """Read-one distinguishes missing from archived."""

    def test_missing_patient(self, service) -> None:
        with pytest.raises(NotFoundError):
            service.get("does-not-exist")

    def test_archived_patient_is_gone(self, service, minimal_patient: dict) -> None:
        created = service.create(minimal_patient)
        service.archive(created["id"])

        with pytest.raises(GoneError):
            service.get(created["id"])

    def test_recent_activity_is_bounded_and_ordered(self, service, minimal_patient: dict) -> None:
        created = service.create(minimal_patient)
        patient_id = created["id"]
        now = datetime.utcnow()

        for days_ago in range(7):
            db.session.add(Consultation(
                patient_id=patient_id,
                date=now - timedelta(days=days_ago),
                reason=f"Follow-up {days_ago}",
            ))
        db.session.add_all([
            Appointment(patient_id=patient_id, appointment_datetime=now + timedelta(days=9), status="SCHEDULED"),
            Appointment(patient_id=patient_id, appointment_datetime=now + timedelta(days=2), status="CONFIRMED"),
            Appointment(patient_id=patient_id, appointment_datetime=now + timedelta(days=5), status="SCHEDULED"),
            Appointment(patient_id=patient_id, appointment_datetime=now + timedelta(days=1), status="CANCELLED"),
            Appointment(patient_id=patient_id, appointment_datetime=now + timedelta(days=20), status="SCHEDULED"),
            Appointment(patient_id=patient_id, appointment_datetime=now - timedelta(days=3), status="COMPLETED"),
        ])
        for index in range(12):
            db.session.add(PatientDocument(
                patient_id=patient_id,
                name=f"report-{index}.pdf",
                document_type="pathology_report",
                created_at=now - timedelta(hours=index),
            ))
        db.session.commit()

        activity = service.get(patient_id)["recent_activity"]

        assert [c["reason"] for c in activity["consultations"]] == [f"Follow-up {d}" for d in range(5)]
        upcoming = activity["upcoming_appointments"]
        assert len(upcoming) == 3
        assert [a["status"] for a in upcoming] == ["CONFIRMED", "SCHEDULED", "SCHEDULED"]
        assert upcoming[0]["appointment_datetime"] < upcoming[1]["appointment_datetime"] < upcoming[2]["appointment_datetime"]
        assert len(activity["documents"]) == 10
        assert activity["documents"][0]["name"] == "report-0.pdf"
        assert activity["counts"] == {"consultations": 7, "appointments": 6, "documents": 12}


class TestList:
    """Read-many: filters, ordering and pagination."""

    def test_pagination_over_45_records(self, service, minimal_patient: dict) -> None:
        for _ in range(45):
            service.create(minimal_patient)

        first_page = service.list({"limit": "20"})
        last_page = service.list({"limit": "20", "page": "3"})

        assert first_page["pagination"] == {"page": 1, "limit": 20, "total": 45, "total_pages": 3}
        assert len(first_page["data"]) == 20
        assert len(last_page["data"]) == 5

    def test_pages_do_not_overlap(self, service, minimal_patient: dict) -> None:
        for _ in range(7):
            service.create(minimal_patient)

        seen = []
        for page in (1, 2, 3):
            seen.extend(p["id"] for p in service.list({"limit": 3, "page": page})["data"])

        assert len(seen) == 7
        assert len(set(seen)) == 7

    def test_page_far_past_the_end_is_empty(self, service, minimal_patient: dict) -> None:
        service.create(minimal_patient)

        result = service.list({"page": str(10 ** 30)})

        assert result["data"] == []
        assert result["pagination"]["total"] == 1
        assert result["pagination"]["total_pages"] == 1
        assert result["pagination"]["limit"] == 20
        assert result["pagination"]["page"] == MAX_SQL_INTEGER // 20 + 1

    def test_empty_list(self, service) -> None:
        result = service.list()

        assert result["data"] == []
        assert result["pagination"]["total"] == 0
        assert result["pagination"]["total_pages"] == 0

    def test_archived_records_are_excluded(self, service, minimal_patient: dict) -> None:
        kept = service.create(minimal_patient)
        archived = service.create(minimal_patient)
        service.archive(archived["id"])

        ids = [p["id"] for p in service.list()["data"]]

        assert ids == [kept["id"]]

    def test_has_diagnosis_filter(self, service, minimal_patient: dict) -> None:
        without = service.create(minimal_patient)
        with_diagnosis = _create(service, minimal_patient, primary_diagnosis="Breast carcinoma")

        true_ids = [p["id"] for p in service.list({"has_diagnosis": "true"})["data"]]
        false_ids = [p["id"] for p in service.list({"has_diagnosis": "false"})["data"]]

        assert without["primary_diagnosis"] is None
        assert true_ids == [with_diagnosis["id"]]
        assert false_ids == [without["id"]]

    def test_search_is_case_insensitive_on_names_and_national_id(self, service, minimal_patient: dict) -> None:
        bennani = _create(service, minimal_patient, last_name="Bennani", national_id="BE123456")
        _create(service, minimal_patient, last_name="Tazi", first_name="Omar")

        by_name = [p["id"] for p in service.list({"q": "BENN"})["data"]]
        by_national_id = [p["id"] for p in service.list({"q": "be1234"})["data"]]

        assert by_name == [bennani["id"]]
        assert by_national_id == [bennani["id"]]

    def test_search_matches_phone_substring(self, service, minimal_patient: dict) -> None:
        target = _create(service, minimal_patient, phone="0699887766")
        _create(service, minimal_patient, phone="0611111111")

        ids = [p["id"] for p in service.list({"q": "99887"})["data"]]

        assert ids == [target["id"]]

    def test_search_wildcards_are_literal(self, service, minimal_patient: dict) -> None:
        service.create(minimal_patient)

        assert service.list({"q": "%"})["data"] == []
        assert service.list({"q": "_"})["data"] == []

    def test_sex_and_city_filters(self, service, minimal_patient: dict) -> None:
        target = _create(service, minimal_patient, sex="MALE", city="Casablanca")
        _create(service, minimal_patient, sex="FEMALE", city="Casablanca")
        _create(service, minimal_patient, sex="MALE", city="Rabat")

        ids = [p["id"] for p in service.list({"sex": "MALE", "city": "casa"})["data"]]

        assert ids == [target["id"]]

    def test_invalid_sex_filter_is_ignored(self, service, minimal_patient: dict) -> None:
        service.create(minimal_patient)

        assert service.list({"sex": "UNKNOWN"})["pagination"]["total"] == 1

    def test_sort_by_last_name(self, service, minimal_patient: dict) -> None:
        for name in ("Tazi", "Alaoui", "Idrissi"):
            _create(service, minimal_patient, last_name=name)

        ascending = [p["last_name"] for p in service.list({"sort_by": "last_name", "sort_order": "asc"})["data"]]

        assert ascending == ["Alaoui", "Idrissi", "Tazi"]

    def test_unknown_sort_field_is_rejected(self, service) -> None:
        with pytest.raises(ValidationError) as exc_info:
            service.list({"sort_by": "__proto__"})

        assert "sort_by" in exc_info.value.errors

    def test_every_record_carries_age(self, service, minimal_patient: dict) -> None:
        service.create(minimal_patient)

        assert all("age" in p for p in service.list()["data"])

    def test_store_failure_is_unexpected_error(self, service, monkeypatch) -> None:
        def broken_find_page(query):
            raise SQLAlchemyError("connection lost")

        monkeypatch.setattr(service.repository, "find_page", broken_find_page)

        with pytest.raises(UnexpectedError):
            service.list()


class TestUpdate:
    """Update: existence, archive state, validation, uniqueness."""

    def test_partial_update(self, service, full_patient: dict) -> None:
        created = service.create(full_patient)

        updated = service.update(created["id"], {"city": "Rabat", "stage": "IV"})

        assert updated["city"] == "Rabat"
        assert updated["stage"] == "IV"
        assert updated["last_name"] == full_patient["last_name"]
        assert updated["id"] == created["id"]

    def test_updated_at_is_refreshed(self, service, minimal_patient: dict) -> None:
        created = service.create(minimal_patient)
        patient = db.session.get(Patient, created["id"])
        patient.updated_at = datetime(2020, 1, 1)
        db.session.commit()

        updated = service.update(created["id"], {})

        assert updated["updated_at"] > "2020-01-01T00:00:00"

    def test_missing_patient(self, service) -> None:
        with pytest.raises(NotFoundError):
            service.update("does-not-exist", {"city": "Rabat"})

    def test_archived_patient_cannot_be_updated(self, service, minimal_patient: dict) -> None:
        created = service.create(minimal_patient)
        service.archive(created["id"])

        with pytest.raises(GoneError):
            service.update(created["id"], {"city": "Rabat"})

    def test_cannot_unarchive_through_update(self, service, minimal_patient: dict) -> None:
        created = service.create(minimal_patient)

        service.update(created["id"], {"is_archived": True})

        assert db.session.get(Patient, created["id"]).is_archived is False

    def test_invalid_update_is_rejected(self, service, minimal_patient: dict) -> None:
        created = service.create(minimal_patient)

        with pytest.raises(ValidationError) as exc_info:
            service.update(created["id"], {"phone": "123", "national_id": "bad"})

        assert set(exc_info.value.errors) == {"phone", "national_id"}
        assert db.session.get(Patient, created["id"]).phone == minimal_patient["phone"]

    def test_taking_another_patients_national_id_conflicts(self, service, minimal_patient: dict) -> None:
        _create(service, minimal_patient, national_id="BE123456")
        other = _create(service, minimal_patient, national_id="CD765432")

        with pytest.raises(ConflictError):
            service.update(other["id"], {"national_id": "BE123456"})

    def test_keeping_own_national_id_is_not_a_conflict(self, service, minimal_patient: dict) -> None:
        created = _create(service, minimal_patient, national_id="BE123456")

        updated = service.update(created["id"], {"national_id": "BE123456", "city": "Fes"})

        assert updated["national_id"] == "BE123456"
        assert updated["city"] == "Fes"

    def test_clearing_national_id(self, service, minimal_patient: dict) -> None:
        created = _create(service, minimal_patient, national_id="BE123456")

        updated = service.update(created["id"], {"national_id": ""})

        assert updated["national_id"] is None


class TestArchive:
    """Archive is terminal and observably non-idempotent."""

    def test_archive_then_archive_again(self, service, minimal_patient: dict) -> None:
        created = service.create(minimal_patient)

        confirmation = service.archive(created["id"])

        assert confirmation == {"message": "Patient archived successfully", "id": created["id"]}
        with pytest.raises(GoneError):
            service.archive(created["id"])

    def test_archive_keeps_field_data(self, service, full_patient: dict) -> None:
        created = service.create(full_patient)

        service.archive(created["id"])

        patient = db.session.get(Patient, created["id"])
        assert patient.is_archived is True
        assert patient.primary_diagnosis == full_patient["primary_diagnosis"]

    def test_missing_patient(self, service) -> None:
        with pytest.raises(NotFoundError):
            service.archive("does-not-exist")


class TestUniquenessGuard:
    """The guard on its own, through the repository."""

    def test_no_holder(self, app) -> None:
        assert national_id_taken(PatientRepository(), "BE123456") is False

    def test_absent_value_is_never_taken(self, app) -> None:
        assert national_id_taken(PatientRepository(), None) is False

    def test_holder_conflicts_on_create(self, service, minimal_patient: dict) -> None:
        _create(service, minimal_patient, national_id="BE123456")

        assert national_id_taken(service.repository, "BE123456") is True

    def test_self_match_is_not_a_conflict(self, service, minimal_patient: dict) -> None:
        created = _create(service, minimal_patient, national_id="BE123456")

        assert national_id_taken(service.repository, "BE123456", exclude_id=created["id"]) is False
        assert national_id_taken(service.repository, "BE123456", exclude_id="someone-else") is True


class TestAppointmentStatus:
    """Appointment status is limited to the known values."""

    def test_unknown_status_is_rejected_by_the_store(self, service, minimal_patient: dict) -> None:
        patient_id = service.create(minimal_patient)["id"]
        db.session.add(Appointment(
            patient_id=patient_id,
            appointment_datetime=datetime.utcnow(),
            status="LOST",
        ))

        with pytest.raises(IntegrityError):
            db.session.commit()
        db.session.rollback()

    def test_known_status_is_stored(self, service, minimal_patient: dict) -> None:
        patient_id = service.create(minimal_patient)["id"]
        db.session.add(Appointment(
            patient_id=patient_id,
            appointment_datetime=datetime.utcnow(),
            status="COMPLETED",
        ))
        db.session.commit()

        assert Appointment.query.filter_by(patient_id=patient_id).one().status == "COMPLETED"
