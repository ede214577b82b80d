import uuid
from django.core.exceptions import ValidationError
from django.db import models

from .errors import ReferenceNotFound


class BaseModel(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


def get_or_not_found(queryset, label, **lookup):
    """``queryset.get(**lookup)`` raising ReferenceNotFound for a missing or malformed reference."""
    if isinstance(queryset, type) and issubclass(queryset, models.Model):
        queryset = queryset.objects.all()
    try:
        return queryset.get(**lookup)
    except (queryset.model.DoesNotExist, ValidationError, ValueError):
        raise ReferenceNotFound(f"{label} not found.")
