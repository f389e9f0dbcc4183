"""
Session Handlers

- POST /session-start - Start a session for a (person, client) pair (administrative)
- GET /token?code=... - Exchange a single-use code for a bearer token
- GET /profile - Redeem a bearer token for the session payload

The code and token endpoints are unauthenticated: the code and the token are
themselves the credential.
"""
import logging
from typing import Optional

from aiohttp import web
from pydantic import BaseModel, Field

from authini.app.config import SessionBrokerAppKey
from authini.app.handlers.helpers import admin_only, bearer_token, parse_body
from authini.broker.errors import ValidationError
from authini.model.base import ID_MAX

logger = logging.getLogger(__name__)


class SessionStartRequest(BaseModel):
    person_id: int = Field(gt=0, le=ID_MAX)
    client_id: int = Field(gt=0, le=ID_MAX)


@admin_only
async def handle_session_start(request: web.Request) -> web.Response:
    broker = request.app[SessionBrokerAppKey]
    body = await parse_body(request, SessionStartRequest)

    grant = await broker.start_session(body.person_id, body.client_id)
    return web.json_response(
        {"code": grant.code, "expires_in_min": grant.expires_in_min}
    )


async def handle_token(request: web.Request) -> web.Response:
    broker = request.app[SessionBrokerAppKey]
    code: Optional[str] = request.query.get("code", None)
    if not code:
        raise ValidationError.missing_field("code")

    token = await broker.redeem_code(code)
    return web.json_response({"token": token})


async def handle_profile(request: web.Request) -> web.Response:
    """
    Return the payload bound to the bearer token.

    An unknown token yields 200 with an empty body rather than an error.
    """
    broker = request.app[SessionBrokerAppKey]
    token = bearer_token(request)
    if token is None:
        return web.json_response(status=401, data={"error": "Not Authorized"})

    payload = await broker.fetch_profile(token)
    if payload is None:
        return web.Response(status=200, content_type="application/json")
    return web.json_response(payload)
