import pytest
from django.db import DatabaseError, IntegrityError, transaction

from core.errors import CapacityExhausted, TransientStoreFailure, ValidationRejected
from core.unit_of_work import Step, UnitOfWork, require_transaction
from patients.models import Patient


def _patient(name, phone):
    return lambda r: Patient.objects.create(full_name=name, gender='O', phone=phone)


@pytest.mark.django_db
class TestUnitOfWork:

    def test_steps_see_earlier_results(self):
        result = UnitOfWork('chain').execute([
            Step('first', _patient('First', '0100000001')),
            Step('second', lambda r: f"after {r['first'].full_name}"),
        ])
        assert result['second'] == 'after First'
        assert result.unit == 'chain'
        assert result.committed_at is not None

    def test_failure_rolls_back_every_prior_step(self):
        def boom(r):
            raise CapacityExhausted("No slots remaining for this date")

        with pytest.raises(CapacityExhausted) as exc:
            UnitOfWork('rollback').execute([
                Step('first', _patient('First', '0100000001')),
                Step('second', _patient('Second', '0100000002')),
                Step('third', boom),
            ])

        assert exc.value.message == "No slots remaining for this date"
        assert Patient.objects.count() == 0

    def test_integrity_error_becomes_validation_rejected(self):
        Patient.objects.create(full_name='Existing', gender='O', phone='0100000009')

        with pytest.raises(ValidationRejected):
            UnitOfWork('dupe').execute([
                Step('fresh', _patient('Fresh', '0100000003')),
                Step('clash', _patient('Clash', '0100000009')),
            ])

        assert not Patient.objects.filter(phone='0100000003').exists()

    def test_database_error_becomes_transient_failure(self):
        def lost_connection(r):
            raise DatabaseError("server closed the connection unexpectedly")

        with pytest.raises(TransientStoreFailure) as exc:
            UnitOfWork('flaky').execute([Step('only', lost_connection)])

        assert exc.value.retryable
        assert "server closed" in exc.value.message

    def test_programming_errors_propagate_unchanged(self):
        def bug(r):
            raise KeyError('missing')

        with pytest.raises(KeyError):
            UnitOfWork('bug').execute([Step('only', bug)])

    def test_duplicate_step_names_rejected(self):
        with pytest.raises(ValueError):
            UnitOfWork('dupe-names').execute([
                Step('same', lambda r: 1),
                Step('same', lambda r: 2),
            ])

    def test_integrity_error_class_is_database_error(self):
        # IntegrityError must be matched before the generic DatabaseError branch
        assert issubclass(IntegrityError, DatabaseError)


@pytest.mark.django_db(transaction=True)
class TestRequireTransaction:

    def test_outside_atomic_block_raises(self):
        with pytest.raises(RuntimeError):
            require_transaction()

    def test_inside_atomic_block_passes(self):
        with transaction.atomic():
            require_transaction()
