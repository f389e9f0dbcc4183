import os
from typing import Optional
from aiohttp import web
import logging
from logging.config import dictConfig
import json

from authini.app.config import Settings


def configure_logging(debug: bool, logging_config_file: Optional[str] = None):
    """
    Load a dictConfig JSON file when one is given, otherwise log to stderr at DEBUG
    in debug mode and INFO otherwise.
    """
    if logging_config_file is None:
        logging_config_file = os.getenv("LOGGING_CONFIG_FILE", "")

    if len(logging_config_file) > 0:
        with open(logging_config_file) as fl:
            dictConfig(json.load(fl))
        return

    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        level=logging.DEBUG if debug else logging.INFO,
    )
    # SQL echo is only useful when explicitly debugging queries.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def invoke():
    settings = Settings()  # type: ignore
    configure_logging(settings.debug)

    from authini.app.server import start_web_server

    web.run_app(
        start_web_server(settings), port=settings.http_port, access_log=None
    )


if __name__ == "__main__":
    invoke()
