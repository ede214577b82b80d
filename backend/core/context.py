from dataclasses import dataclass
from typing import Optional

from .errors import AuthorizationDenied
from .permissions import ROLE_ADMIN


@dataclass(frozen=True)
class AuthContext:
    """
    Who is asking. Built once per request from the authenticated user and
    passed explicitly into every workflow that makes a role decision.
    """
    role: str
    user_id: Optional[str] = None

    @classmethod
    def from_request(cls, request):
        user = request.user
        role = getattr(user, 'role', '') or ''
        if getattr(user, 'is_superuser', False) and not role:
            role = ROLE_ADMIN
        user_id = str(user.pk) if getattr(user, 'pk', None) else None
        return cls(role=role, user_id=user_id)

    @classmethod
    def system(cls):
        return cls(role='SYSTEM')

    def require_any(self, *roles, action='perform this action'):
        if self.role not in roles:
            raise AuthorizationDenied(f"Role {self.role or 'anonymous'} cannot {action}.")

    def forbid(self, role, message):
        if self.role == role:
            raise AuthorizationDenied(message)
