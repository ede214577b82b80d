import logging

from core.ports import DoctorRegistration, get_ledger_store
from core.unit_of_work import Step, UnitOfWork

logger = logging.getLogger(__name__)


def register_doctor(registration: DoctorRegistration, store=None):
    """
    Onboard a doctor. License validation belongs to the store; its message
    (e.g. ``Invalid License ID: ...``) reaches the caller unchanged.
    """
    store = get_ledger_store(store)
    result = UnitOfWork('doctor_onboarding').execute([
        Step('doctor', lambda r: store.validate_and_create_doctor(registration)),
    ])
    doctor_id = result['doctor']
    logger.info("Registered doctor %s (license %s)", doctor_id, registration.license_number)
    return {'doctor_id': str(doctor_id)}


def registration_from_data(data):
    return DoctorRegistration(
        email=data['email'],
        first_name=data['first_name'],
        last_name=data['last_name'],
        license_number=data['license_number'],
        specialization=data['specialization'],
        consultation_fee=data['consultation_fee'],
        department_id=data.get('department'),
        phone=data.get('phone', ''),
        gender=data.get('gender', ''),
        address=data.get('address', ''),
        joining_date=data.get('joining_date'),
        room_number=data.get('room_number') or None,
    )
