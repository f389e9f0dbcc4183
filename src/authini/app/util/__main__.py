import argparse
import asyncio
import logging
import os

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from authini.broker.credentials import DEFAULT_SECRET_LENGTH, generate_secret
from authini.broker.links import LinkStore
from authini.broker.persons import PersonStore
from authini.broker.registry import ClientRegistry, ClientUpdate
from authini.broker.storage import transaction
from authini.model.base import Base
import authini.model.client  # noqa: F401
import authini.model.link  # noqa: F401
import authini.model.person  # noqa: F401
import authini.model.session  # noqa: F401

logger = logging.getLogger(__name__)

SAMPLE_PERSONS = [
    ("12345678A", "Juan", "Pérez", "jperez@mydomain.com", "123456789"),
    ("87654321B", "María", "López", "mlo@mydomain.com", "987654321"),
    ("11111111C", "Pedro", "García", "pg@mydomain.com", "111111111"),
]

SAMPLE_CLIENTS = [
    ("CORP_ERP", "https://erp.mydomain.com/", None),
    ("CRM", "https://crm.mydomain.com/", "https://crm.mydomain.com/authback"),
    ("APP1", "https://app1.mydomain.com/", "https://app1.mydomain.com/authback"),
    ("APP2", "https://app2.mydomain.com/", "https://app2.mydomain.com/authback"),
]

# (person index, client index, profile)
SAMPLE_LINKS = [
    (0, 1, {"role": "admin"}),
    (0, 2, {"role": "user"}),
    (1, 1, {"role": "user"}),
    (1, 3, {"role": "admin"}),
    (2, 1, {"role": "user"}),
]


async def initDb(pg_dsn: str) -> None:
    engine = create_async_engine(pg_dsn)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    print("Tables created or already present")


async def dropDb(pg_dsn: str) -> None:
    engine = create_async_engine(pg_dsn)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()
    print("Tables dropped or not present")


async def seedDb(pg_dsn: str) -> None:
    engine = create_async_engine(pg_dsn)
    database_session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with transaction(database_session_maker, "seed") as database_session:
        person_store = PersonStore(database_session)
        registry = ClientRegistry(database_session)
        link_store = LinkStore(database_session)

        persons = [await person_store.create(*fields) for fields in SAMPLE_PERSONS]

        clients = []
        for client_id, client_url, callback_url in SAMPLE_CLIENTS:
            client = await registry.create(client_id, client_url)
            if callback_url is not None:
                client = await registry.update(
                    client.id,
                    ClientUpdate(
                        id=client.id,
                        client_id=client_id,
                        client_url=client_url,
                        callback_url=callback_url,
                    ),
                )
            clients.append(client)

        for person_index, client_index, profile in SAMPLE_LINKS:
            await link_store.create(
                persons[person_index].id, clients[client_index].id, profile
            )

    await engine.dispose()
    print(
        f"Seeded {len(SAMPLE_PERSONS)} persons, {len(SAMPLE_CLIENTS)} clients "
        f"and {len(SAMPLE_LINKS)} links"
    )


async def genSecret(length: int) -> None:
    print(generate_secret(length))


async def realMain() -> None:
    parser = argparse.ArgumentParser(prog="authiniutil", description="Authini utilities")

    parser.add_argument(
        "--pg-dsn",
        default=os.getenv("PG_DSN", "postgresql+asyncpg://postgres:password@db/authini"),
        help="The database to operate on.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    _ = subparsers.add_parser("init-db", help="Create the tables")
    _ = subparsers.add_parser("drop-db", help="Drop the tables")
    _ = subparsers.add_parser("seed", help="Insert sample persons, clients and links")
    gen_secret = subparsers.add_parser("gen-secret", help="Generate a client secret")
    gen_secret.add_argument(
        "--length", type=int, default=DEFAULT_SECRET_LENGTH, help="Secret length."
    )

    args = vars(parser.parse_args())
    command = args.get("command", None)
    pg_dsn: str = args["pg_dsn"]

    if command == "init-db":
        await initDb(pg_dsn)
    elif command == "drop-db":
        await dropDb(pg_dsn)
    elif command == "seed":
        await seedDb(pg_dsn)
    elif command == "gen-secret":
        await genSecret(args.get("length", DEFAULT_SECRET_LENGTH))


def main() -> None:
    logging.basicConfig()
    asyncio.run(realMain())


if __name__ == "__main__":
    main()
