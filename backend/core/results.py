import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from rest_framework.response import Response
from rest_framework.views import exception_handler

from .errors import DomainError

logger = logging.getLogger(__name__)


@dataclass
class WorkflowResult:
    success: bool
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    code: Optional[str] = None
    http_status: int = 200
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self):
        payload = {'success': self.success}
        if self.success:
            payload.update(self.data)
        else:
            payload['error'] = self.error
            payload['code'] = self.code
            payload.update(self.details)
        return payload

    def to_response(self, success_status=200):
        return Response(self.to_dict(), status=success_status if self.success else self.http_status)


def run_workflow(fn, *args, **kwargs):
    """
    Call a workflow and fold its outcome into a WorkflowResult.

    The workflow returns a dict of values for the caller. Domain failures
    become ``success=False`` with the failure's own message.
    """
    try:
        data = fn(*args, **kwargs) or {}
    except DomainError as exc:
        logger.info("%s failed: [%s] %s", getattr(fn, '__name__', fn), exc.code, exc.message)
        return WorkflowResult(
            success=False,
            error=exc.message,
            code=exc.code,
            http_status=exc.http_status,
            details=exc.details,
        )
    return WorkflowResult(success=True, data=data)


def domain_exception_handler(exc, context):
    if isinstance(exc, DomainError):
        body = {'success': False, 'error': exc.message, 'code': exc.code}
        body.update(exc.details)
        return Response(body, status=exc.http_status)
    return exception_handler(exc, context)
