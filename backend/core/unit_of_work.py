"""
Unit of Work.

Runs an ordered list of dependent steps inside a single database transaction.
A step is a callable receiving the results of every step that ran before it,
keyed by step name. Either every step succeeds and the transaction commits,
or the first failure rolls back everything and is re-raised to the caller.

Usage:
    result = UnitOfWork('appointment_booking').execute([
        Step('availability', lambda r: oracle.require(selector, when)),
        Step('appointment', lambda r: Appointment.objects.create(...)),
        Step('invoice', lambda r: create_invoice(AppointmentRef(r['appointment'].id), lines)),
    ])
    result['invoice'].id

Nothing here retries. A caller that wants to retry must run the whole unit
again, since identifiers generated inside a unit are not stable across attempts.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from .errors import TransientStoreFailure, ValidationRejected

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Step:
    name: str
    run: Callable[[Dict[str, Any]], Any]


@dataclass
class CommitResult:
    unit: str
    results: Dict[str, Any] = field(default_factory=dict)
    committed_at: Optional[Any] = None

    def __getitem__(self, step_name):
        return self.results[step_name]


class UnitOfWork:
    def __init__(self, name, using=None):
        self.name = name
        self.using = using

    def execute(self, steps: List[Step]) -> CommitResult:
        names = [step.name for step in steps]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate step names in unit {self.name}: {names}")

        results: Dict[str, Any] = {}
        current = None
        try:
            with transaction.atomic(using=self.using):
                for step in steps:
                    current = step.name
                    results[step.name] = step.run(results)
        except IntegrityError as exc:
            logger.warning("Unit %s rolled back at step %s: %s", self.name, current, exc)
            raise ValidationRejected(str(exc)) from exc
        except DatabaseError as exc:
            logger.warning("Unit %s rolled back at step %s (store failure): %s", self.name, current, exc)
            raise TransientStoreFailure(str(exc)) from exc
        except Exception as exc:
            logger.warning("Unit %s rolled back at step %s: %s", self.name, current, exc)
            raise

        logger.info("Unit %s committed (%d steps)", self.name, len(steps))
        return CommitResult(unit=self.name, results=results, committed_at=timezone.now())


def require_transaction(using=None):
    """Binding reads and writes only make sense inside an open transaction."""
    if not transaction.get_connection(using).in_atomic_block:
        raise RuntimeError("This operation must run inside a Unit of Work (transaction.atomic).")
