"""
Failures raised by the reservation and billing workflows.

Every ``DomainError`` is rendered to callers in the uniform
``{success: false, error, code}`` shape. ``LedgerInvariantError`` is not a
domain error: it marks a programming mistake and is allowed to propagate.
"""


class DomainError(Exception):
    code = 'DOMAIN_ERROR'
    http_status = 400
    retryable = False

    def __init__(self, message, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self):
        return self.message


class CapacityExhausted(DomainError):
    """No slot, no room, or not enough stock at commit time."""
    code = 'CAPACITY_EXHAUSTED'
    http_status = 409


class InsufficientStock(CapacityExhausted):
    code = 'INSUFFICIENT_STOCK'

    def __init__(self, medicine_name, available, requested):
        super().__init__(
            f"Insufficient stock for {medicine_name}. Available: {available}, Requested: {requested}",
            available=available,
            requested=requested,
        )
        self.available = available
        self.requested = requested


class ValidationRejected(DomainError):
    """The store signalled a domain rule violation. The message is shown as-is."""
    code = 'VALIDATION_REJECTED'
    http_status = 400


class ReferenceNotFound(ValidationRejected):
    code = 'NOT_FOUND'
    http_status = 404


class AuthorizationDenied(DomainError):
    code = 'FORBIDDEN'
    http_status = 403


class TemporalGuardViolation(DomainError):
    code = 'TEMPORAL_GUARD'
    http_status = 409
    retryable = True

    def __init__(self, message, remaining):
        super().__init__(message, remaining_seconds=int(remaining.total_seconds()))
        self.remaining = remaining


class NotYetElapsed(TemporalGuardViolation):
    code = 'NOT_YET_ELAPSED'

    def __init__(self, remaining):
        total = int(remaining.total_seconds())
        minutes, seconds = divmod(max(total, 0), 60)
        super().__init__(f"Test is processing. Time remaining: {minutes}m {seconds}s", remaining)


class TransientStoreFailure(DomainError):
    """Connection or transaction level failure unrelated to business rules."""
    code = 'STORE_FAILURE'
    http_status = 503
    retryable = True


class LedgerInvariantError(Exception):
    pass
