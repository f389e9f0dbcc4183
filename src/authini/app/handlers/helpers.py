import functools
import logging
import secrets
from typing import Awaitable, Callable, Optional, Type, TypeVar

from aiohttp import web
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from authini.app.config import SettingsAppKey
from authini.broker.errors import BrokerException, ValidationError
from authini.model.base import ID_MAX

logger = logging.getLogger(__name__)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]
ModelT = TypeVar("ModelT", bound=BaseModel)


def error_response(e: BrokerException) -> web.Response:
    return web.json_response(status=e.status, data={"error": e.message})


def bearer_token(request: web.Request) -> Optional[str]:
    """
    Return the bearer credential from the `Authorization` header.

    Returns None when the header is missing, uses another scheme, or carries an
    empty credential.
    """
    authorization: Optional[str] = request.headers.getone("Authorization", None)
    if authorization is None or not authorization.startswith("Bearer "):
        return None
    token = authorization[7:].strip()
    if len(token) == 0:
        return None
    return token


def admin_only(handler: Handler) -> Handler:
    """Require the shared administrative bearer credential."""

    @functools.wraps(handler)
    async def wrapper(request: web.Request) -> web.StreamResponse:
        settings = request.app[SettingsAppKey]
        token = bearer_token(request)
        if token is None or not secrets.compare_digest(
            token.encode("utf-8"), settings.admin_token.encode("utf-8")
        ):
            return web.json_response(status=401, data={"error": "Not Authorized"})
        return await handler(request)

    return wrapper


def path_int(request: web.Request, name: str) -> int:
    value = request.match_info.get(name, "")
    try:
        parsed = int(value)
    except ValueError:
        raise ValidationError.invalid_id(name, value)
    if parsed <= 0 or parsed > ID_MAX:
        raise ValidationError.invalid_id(name, value)
    return parsed


async def parse_body(request: web.Request, model: Type[ModelT]) -> ModelT:
    try:
        data = await request.read()
        return model.model_validate_json(data)
    except PydanticValidationError as e:
        raise ValidationError.invalid_body(
            "; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in e.errors()
            )
        )
