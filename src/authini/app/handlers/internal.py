import logging

from aiohttp import web
from sqlalchemy import text

from authini.app.config import DatabaseAppKey

logger = logging.getLogger(__name__)


async def handle_internal_ready(request: web.Request):
    engine = request.app[DatabaseAppKey]
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception:
        logger.exception("handle_internal_ready: database unavailable")
        return web.Response(status=503)
    return web.Response(status=200)


async def handle_internal_alive(request: web.Request):
    return web.Response(status=200)
