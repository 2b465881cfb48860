from onco_records.services.patient_service import PatientRecordService, compute_age
from onco_records.services.repository import PatientRepository
