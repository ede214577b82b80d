import logging

import socketio
from django.conf import settings

logger = logging.getLogger(__name__)

# Desks (billing, pharmacy, lab, reception) join a room per desk to get live updates
sio = socketio.AsyncServer(async_mode='asgi', cors_allowed_origins=settings.SOCKETIO_CORS_ORIGINS)


@sio.event
async def connect(sid, environ):
    logger.info("SocketIO client connected: %s", sid)


@sio.event
async def disconnect(sid):
    logger.info("SocketIO client disconnected: %s", sid)


@sio.event
async def join_room(sid, room):
    logger.info("SocketIO %s joining room: %s", sid, room)
    await sio.enter_room(sid, room)
