from onco_records.models.patient_models import Patient
from onco_records.models.appointment_models import Appointment
from onco_records.models.consultation_models import Consultation
from onco_records.models.patient_document_models import PatientDocument
from onco_records.models.system_models import AuditLog
