"""
Client Management Handlers

All routes in this module are administrative and require the shared bearer credential.

- GET /clients - List clients
- POST /clients - Register a client
- GET /clients/{id} - Client detail with its links and linked persons
- PUT /clients/{id} - Replace a client; declaring a callback URL rotates the secret
- DELETE /clients/{id} - Remove a client
- GET /authini/{client_id} - Login bootstrap view for a client by its public identifier
"""
import logging
from typing import Any, Dict

from aiohttp import web

from authini.app.config import DatabaseSessionMakerAppKey, SettingsAppKey
from authini.app.handlers.helpers import admin_only, parse_body, path_int
from authini.broker.errors import IncompleteClientError, NotFound
from authini.broker.links import LinkStore
from authini.broker.persons import PersonStore
from authini.broker.registry import (
    ClientCreate,
    ClientRegistry,
    ClientUpdate,
    validate_client_fields,
)
from authini.broker.storage import transaction

logger = logging.getLogger(__name__)


@admin_only
async def handle_clients_list(request: web.Request) -> web.Response:
    database_session_maker = request.app[DatabaseSessionMakerAppKey]

    async with transaction(database_session_maker, "list clients") as database_session:
        clients = await ClientRegistry(database_session).list_all()
        results = [client.to_dict() for client in clients]

    return web.json_response(results)


@admin_only
async def handle_client_create(request: web.Request) -> web.Response:
    database_session_maker = request.app[DatabaseSessionMakerAppKey]
    settings = request.app[SettingsAppKey]
    body = await parse_body(request, ClientCreate)

    validate_client_fields(body.client_id, body.client_url)

    async with transaction(database_session_maker, "create client") as database_session:
        client = await ClientRegistry(
            database_session, settings.secret_length
        ).create(body.client_id, body.client_url)
        result = client.to_dict()

    return web.json_response(result)


@admin_only
async def handle_client_get(request: web.Request) -> web.Response:
    database_session_maker = request.app[DatabaseSessionMakerAppKey]
    client_pk = path_int(request, "id")

    async with transaction(database_session_maker, "get client") as database_session:
        client = await ClientRegistry(database_session).get(client_pk)
        links = await LinkStore(database_session).list_by_client(client_pk)
        persons = await PersonStore(database_session).list_by_client(client_pk)

        data: Dict[str, Any] = {"client": client.to_dict()}
        if len(links) > 0:
            data["links"] = [link.to_dict() for link in links]
        if len(persons) > 0:
            data["persons"] = [person.to_dict() for person in persons]

    return web.json_response(data)


@admin_only
async def handle_client_update(request: web.Request) -> web.Response:
    database_session_maker = request.app[DatabaseSessionMakerAppKey]
    settings = request.app[SettingsAppKey]
    client_pk = path_int(request, "id")
    body = await parse_body(request, ClientUpdate)

    async with transaction(database_session_maker, "update client") as database_session:
        client = await ClientRegistry(
            database_session, settings.secret_length
        ).update(client_pk, body)
        result = client.to_dict()

    return web.json_response(result)


@admin_only
async def handle_client_delete(request: web.Request) -> web.Response:
    database_session_maker = request.app[DatabaseSessionMakerAppKey]
    client_pk = path_int(request, "id")

    async with transaction(database_session_maker, "delete client") as database_session:
        await ClientRegistry(database_session).delete(client_pk)

    logger.info("Deleted client %d", client_pk)
    return web.json_response({"message": "Client deleted"})


@admin_only
async def handle_authini(request: web.Request) -> web.Response:
    """
    Everything a login screen for the client needs: the client, every registered
    person and the client's existing links.
    """
    database_session_maker = request.app[DatabaseSessionMakerAppKey]
    client_id = request.match_info.get("client_id", "")

    async with transaction(database_session_maker, "authini") as database_session:
        client = await ClientRegistry(database_session).get_by_client_id(client_id)
        if not client.callback_url:
            raise IncompleteClientError.missing_callback(client.client_id)

        persons = await PersonStore(database_session).list_all()
        if len(persons) == 0:
            raise NotFound.no_persons()

        links = await LinkStore(database_session).list_by_client(client.id)

        data: Dict[str, Any] = {
            "client": client.to_dict(),
            "persons": [person.to_dict() for person in persons],
        }
        if len(links) > 0:
            data["links"] = [link.to_dict() for link in links]

    return web.json_response(data)
