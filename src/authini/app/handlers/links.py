"""
Person-Application Link Handlers

- GET /links/{person_id}/{client_id} - Link row with its person and client
- PUT /links/{person_id}/{client_id} - Overwrite the link's profile
"""
import logging

from aiohttp import web

from authini.app.config import DatabaseSessionMakerAppKey
from authini.app.handlers.helpers import admin_only, parse_body, path_int
from authini.broker.errors import NotFound, ValidationError
from authini.broker.links import LinkStore, LinkUpdate
from authini.broker.persons import PersonStore
from authini.broker.registry import ClientRegistry
from authini.broker.storage import transaction

logger = logging.getLogger(__name__)


@admin_only
async def handle_link_get(request: web.Request) -> web.Response:
    database_session_maker = request.app[DatabaseSessionMakerAppKey]
    person_id = path_int(request, "person_id")
    client_pk = path_int(request, "client_id")

    async with transaction(database_session_maker, "get link") as database_session:
        person = await PersonStore(database_session).get(person_id)
        if person is None:
            raise NotFound.person(person_id)
        client = await ClientRegistry(database_session).get(client_pk)
        link = await LinkStore(database_session).get_by_person_and_client(
            person_id, client_pk
        )

        data = {
            "link": link.to_dict() if link is not None else None,
            "person": person.to_dict(),
            "client": client.to_dict(),
        }

    return web.json_response(data)


@admin_only
async def handle_link_update(request: web.Request) -> web.Response:
    database_session_maker = request.app[DatabaseSessionMakerAppKey]
    person_id = path_int(request, "person_id")
    client_pk = path_int(request, "client_id")
    body = await parse_body(request, LinkUpdate)

    if body.person_id != person_id or body.client_id != client_pk:
        raise ValidationError.id_mismatch()

    async with transaction(database_session_maker, "update link") as database_session:
        await LinkStore(database_session).update(body)

    return web.json_response({"message": "Link updated"})
