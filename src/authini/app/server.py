import logging
from time import time
from typing import Optional

import aiohttp
from aiohttp import web
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    async_sessionmaker,
    AsyncSession,
)
import sentry_sdk
from sentry_sdk.integrations.aiohttp import AioHttpIntegration

from authini.app.config import (
    DatabaseAppKey,
    DatabaseSessionMakerAppKey,
    MetricsClientAppKey,
    SessionAppKey,
    SessionBrokerAppKey,
    Settings,
    SettingsAppKey,
)
from authini.app.cors import get_cors_headers
from authini.app.handlers.clients import (
    handle_authini,
    handle_client_create,
    handle_client_delete,
    handle_client_get,
    handle_client_update,
    handle_clients_list,
)
from authini.app.handlers.helpers import error_response
from authini.app.handlers.internal import handle_internal_alive, handle_internal_ready
from authini.app.handlers.links import handle_link_get, handle_link_update
from authini.app.handlers.sessions import (
    handle_profile,
    handle_session_start,
    handle_token,
)
from authini.metrics import create_metrics_client
from authini.broker.errors import BrokerException
from authini.broker.relay import RelaySessionIssuer
from authini.broker.service import SessionBroker, SessionIssuer
from authini.broker.sessions import LocalSessionIssuer

logger = logging.getLogger(__name__)


def create_database_engine(settings: Settings):
    return create_async_engine(
        str(settings.pg_dsn),
        pool_pre_ping=True,
        pool_timeout=settings.database_timeout,
        connect_args={
            "timeout": settings.database_timeout,
            "command_timeout": settings.database_timeout,
        },
    )


def create_session_issuer(
    settings: Settings,
    database_session_maker: async_sessionmaker[AsyncSession],
    http_session: aiohttp.ClientSession,
) -> SessionIssuer:
    if settings.session_backend == "relay":
        return RelaySessionIssuer(
            http_session,
            settings.relay_url,
            settings.relay_token,
            timeout=settings.relay_timeout,
        )
    return LocalSessionIssuer(database_session_maker, settings.code_length)


async def background_tasks(app):
    logger.info("Starting up")
    settings: Settings = app[SettingsAppKey]

    engine = create_database_engine(settings)
    app[DatabaseAppKey] = engine
    database_session = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )
    app[DatabaseSessionMakerAppKey] = database_session

    http_session = aiohttp.ClientSession(
        timeout=aiohttp.ClientTimeout(total=settings.relay_timeout)
    )
    app[SessionAppKey] = http_session

    metrics_client = create_metrics_client(
        settings.metrics_backend,
        host=settings.statsd_host,
        port=settings.statsd_port,
        prefix=settings.statsd_prefix,
        debug=settings.debug,
    )
    await metrics_client.connect()
    app[MetricsClientAppKey] = metrics_client

    issuer = create_session_issuer(settings, database_session, http_session)
    app[SessionBrokerAppKey] = SessionBroker(
        database_session,
        issuer,
        config=settings.broker_config(),
        metrics_client=metrics_client,
    )

    logger.info("Startup complete, session backend is %s", settings.session_backend)

    yield

    logger.info("Shutting down")

    await app[DatabaseAppKey].dispose()
    await app[SessionAppKey].close()
    await app[MetricsClientAppKey].close()


@web.middleware
async def logging_middleware(request: web.Request, handler):
    start_time: float = time()
    logger.info("Started %s %s", request.method, request.path)
    response_status_code = 0
    try:
        response = await handler(request)
        response_status_code = response.status
        return response
    finally:
        logger.info(
            "Completed %s %s %d in %.1fms",
            request.method,
            request.path,
            response_status_code,
            (time() - start_time) * 1000,
        )


@web.middleware
async def cors_middleware(request: web.Request, handler):
    settings = request.app[SettingsAppKey]
    headers = get_cors_headers(request.headers.get("Origin"), settings.cors_origins())

    if request.method == "OPTIONS":
        return web.Response(status=200, headers=headers)

    response = await handler(request)
    response.headers.update(headers)
    return response


@web.middleware
async def statsd_middleware(request: web.Request, handler):
    metrics_client = request.app.get(MetricsClientAppKey)
    if metrics_client is None:
        return await handler(request)

    request_method: str = request.method
    request_path = (
        request.match_info.route.resource.canonical
        if request.match_info.route.resource is not None
        else request.path
    )

    start_time: float = time()
    response_status_code = 0

    try:
        response = await handler(request)
        response_status_code = response.status
        return response
    except Exception as e:
        metrics_client.increment(
            "server.request.exception",
            1,
            tag_dict={
                "exception": type(e).__name__,
                "path": request_path,
                "method": request_method,
            },
        )
        raise e
    finally:
        metrics_client.timer(
            "server.request.time",
            time() - start_time,
            tag_dict={"path": request_path, "method": request_method},
        )
        metrics_client.increment(
            "server.request.count",
            1,
            tag_dict={
                "path": request_path,
                "method": request_method,
                "status": response_status_code,
            },
        )


@web.middleware
async def error_middleware(request: web.Request, handler):
    """Render every failure as a flat JSON error object."""
    try:
        return await handler(request)
    except BrokerException as e:
        if e.status >= 500:
            sentry_sdk.capture_exception(e)
            logger.error("%s %s: %s", request.method, request.path, e.message)
        return error_response(e)
    except web.HTTPException as e:
        if e.status < 400:
            raise e
        return web.json_response(status=e.status, data={"error": e.reason})
    except Exception as e:
        sentry_sdk.capture_exception(e)
        logger.exception("Unhandled exception in %s %s", request.method, request.path)
        return web.json_response(status=500, data={"error": "Internal Server Error"})


def create_app(settings: Settings) -> web.Application:
    app = web.Application(
        middlewares=[
            logging_middleware,
            cors_middleware,
            statsd_middleware,
            error_middleware,
        ]
    )

    app[SettingsAppKey] = settings

    app.add_routes(
        [
            web.get("/internal/alive", handle_internal_alive),
            web.get("/internal/ready", handle_internal_ready),
        ]
    )

    app.add_routes([web.post("/session-start", handle_session_start)])

    # With the relay backend the remote service owns code exchange and profiles.
    if settings.session_backend == "local":
        app.add_routes(
            [
                web.get("/token", handle_token),
                web.get("/profile", handle_profile),
            ]
        )

    app.add_routes(
        [
            web.get("/clients", handle_clients_list),
            web.post("/clients", handle_client_create),
            web.get("/clients/{id}", handle_client_get),
            web.put("/clients/{id}", handle_client_update),
            web.delete("/clients/{id}", handle_client_delete),
            web.get("/authini/{client_id}", handle_authini),
        ]
    )

    app.add_routes(
        [
            web.get("/links/{person_id}/{client_id}", handle_link_get),
            web.put("/links/{person_id}/{client_id}", handle_link_update),
        ]
    )

    return app


async def start_web_server(settings: Optional[Settings] = None):

    if settings is None:
        settings = Settings()  # type: ignore
    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            send_default_pii=False,
            integrations=[AioHttpIntegration()]
        )

    app = create_app(settings)
    app.cleanup_ctx.append(background_tasks)

    return app
