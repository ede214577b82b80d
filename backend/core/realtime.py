import logging

from asgiref.sync import async_to_sync
from django.db import transaction

logger = logging.getLogger(__name__)


def _emit(event, payload):
    try:
        from careconnect_cms.sio import sio
        async_to_sync(sio.emit)(event, payload)
    except Exception as e:
        # the workflow has already committed
        logger.warning("Socket emit error for %s: %s", event, e)


def broadcast(event, payload):
    """Push ``event`` to connected desks once the surrounding transaction commits."""
    transaction.on_commit(lambda: _emit(event, payload))
