import csv
from django.http import HttpResponse


def resolve_attr(obj, path, default=""):
    """Follow a dotted path like ``invoice.patient.full_name`` through objects or dicts."""
    value = obj
    for part in path.split('.'):
        if isinstance(value, dict):
            value = value.get(part)
        else:
            value = getattr(value, part, None)
        if value is None:
            return default
        if callable(value):
            value = value()
    return value


def export_to_csv(rows, filename, fields, headers=None):
    response = HttpResponse(content_type='text/csv')
    response['Content-Disposition'] = f'attachment; filename="{filename}.csv"'

    writer = csv.writer(response)
    writer.writerow(headers or fields)
    for obj in rows:
        writer.writerow([resolve_attr(obj, field) for field in fields])
    return response
