"""
Tests for authini.broker.registry.ClientRegistry against PostgreSQL.
"""

import pytest
from sqlalchemy import select

from authini.broker.credentials import CREDENTIAL_ALPHABET
from authini.broker.errors import Conflict, NotFound, StorageError, ValidationError
from authini.broker.registry import ClientRegistry, ClientUpdate
from authini.broker.storage import transaction
from authini.model.client import Client
from tests.test_helpers import create_client, create_link, create_person


def update_record(client, **changes):
    values = {
        "id": client.id,
        "client_id": client.client_id,
        "client_url": client.client_url,
        "callback_url": client.callback_url,
    }
    values.update(changes)
    return ClientUpdate(**values)


class TestValidation:
    """Validation happens before any storage access."""

    @pytest.mark.parametrize(
        "client_id, client_url, field",
        [
            ("", "https://crm.mydomain.com/", "client_id"),
            ("CRM", "", "client_url"),
        ],
    )
    async def test_create_missing_field(self, client_id, client_url, field):
        # The session is never touched, so a bare object is enough.
        registry = ClientRegistry(database_session=None)  # type: ignore
        with pytest.raises(ValidationError, match=field):
            await registry.create(client_id, client_url)

    async def test_create_client_id_too_long(self):
        registry = ClientRegistry(database_session=None)  # type: ignore
        with pytest.raises(ValidationError, match="at most 32"):
            await registry.create("X" * 33, "https://crm.mydomain.com/")

    @pytest.mark.parametrize("field", ["client_url", "callback_url"])
    async def test_update_url_too_long(self, field):
        registry = ClientRegistry(database_session=None)  # type: ignore
        values = {
            "id": 1,
            "client_id": "CRM",
            "client_url": "https://crm/",
            "callback_url": "https://crm/authback",
        }
        values[field] = "https://crm/" + "x" * 250
        with pytest.raises(ValidationError, match=f"{field} must be at most 255"):
            await registry.update(1, ClientUpdate(**values))

    async def test_create_client_url_too_long(self):
        registry = ClientRegistry(database_session=None)  # type: ignore
        with pytest.raises(ValidationError, match="client_url must be at most 255"):
            await registry.create("CRM", "https://crm/" + "x" * 250)

    async def test_longest_url_is_accepted(self, session_maker):
        url = "https://crm/" + "x" * (255 - len("https://crm/"))
        client = await create_client(session_maker, client_url=url, callback_url=url)
        assert client.client_url == url
        assert client.callback_url == url

    async def test_update_id_mismatch(self):
        registry = ClientRegistry(database_session=None)  # type: ignore
        record = ClientUpdate(id=2, client_id="CRM", client_url="https://crm/")
        with pytest.raises(ValidationError, match="error-validation-1001"):
            await registry.update(1, record)


class TestCreate:
    async def test_create(self, session_maker):
        client = await create_client(session_maker)

        assert client.id > 0
        assert client.client_id == "CRM"
        assert client.client_url == "https://crm.mydomain.com/"
        assert client.callback_url is None
        assert client.secret is None
        assert client.created_at is not None

    async def test_duplicate_client_id(self, session_maker):
        await create_client(session_maker)

        with pytest.raises(Conflict) as exc_info:
            async with transaction(session_maker, "create client") as session:
                await ClientRegistry(session).create("CRM", "https://other/")
        assert exc_info.value.status == 409

    async def test_conflict_leaves_transaction_usable(self, session_maker):
        await create_client(session_maker)

        async with transaction(session_maker, "create clients") as session:
            registry = ClientRegistry(session)
            with pytest.raises(Conflict):
                await registry.create("CRM", "https://other/")
            await registry.create("APP1", "https://app1/")

        async with session_maker() as session:
            client_ids = (await session.scalars(select(Client.client_id))).all()
        assert sorted(client_ids) == ["APP1", "CRM"]


class TestRead:
    async def test_list_all_ordered_by_id(self, session_maker):
        first = await create_client(session_maker, client_id="CRM")
        second = await create_client(session_maker, client_id="APP1")

        async with transaction(session_maker, "list clients") as session:
            clients = await ClientRegistry(session).list_all()
        assert [client.id for client in clients] == [first.id, second.id]

    async def test_list_all_empty(self, session_maker):
        async with transaction(session_maker, "list clients") as session:
            assert await ClientRegistry(session).list_all() == []

    async def test_get_missing(self, session_maker):
        async with transaction(session_maker, "get client") as session:
            registry = ClientRegistry(session)
            assert await registry.find(999) is None
            with pytest.raises(NotFound):
                await registry.get(999)

    async def test_get_by_client_id(self, session_maker):
        created = await create_client(session_maker, client_id="APP2")

        async with transaction(session_maker, "get client") as session:
            registry = ClientRegistry(session)
            client = await registry.get_by_client_id("APP2")
            assert client.id == created.id
            with pytest.raises(NotFound):
                await registry.get_by_client_id("NOPE")


class TestUpdate:
    async def test_callback_generates_secret(self, session_maker):
        client = await create_client(session_maker)

        async with transaction(session_maker, "update client") as session:
            updated = await ClientRegistry(session, secret_length=64).update(
                client.id, update_record(client, callback_url="https://crm/authback")
            )

        assert updated.callback_url == "https://crm/authback"
        assert updated.secret is not None
        assert len(updated.secret) == 64
        assert set(updated.secret) <= set(CREDENTIAL_ALPHABET)

    async def test_every_callback_update_rotates_secret(self, session_maker):
        client = await create_client(session_maker, callback_url="https://crm/authback")
        secrets = {client.secret}

        for _ in range(3):
            async with transaction(session_maker, "update client") as session:
                client = await ClientRegistry(session).update(
                    client.id, update_record(client)
                )
            secrets.add(client.secret)

        assert len(secrets) == 4

    async def test_caller_secret_is_ignored(self, session_maker):
        client = await create_client(session_maker)

        async with transaction(session_maker, "update client") as session:
            updated = await ClientRegistry(session).update(
                client.id,
                update_record(
                    client, callback_url="https://crm/authback", secret="chosen"
                ),
            )
        assert updated.secret != "chosen"

    async def test_without_callback_secret_is_kept(self, session_maker):
        client = await create_client(session_maker, callback_url="https://crm/authback")

        async with transaction(session_maker, "update client") as session:
            updated = await ClientRegistry(session).update(
                client.id,
                update_record(client, client_url="https://crm2/", callback_url=""),
            )

        assert updated.client_url == "https://crm2/"
        assert updated.callback_url is None
        assert updated.secret == client.secret

    async def test_update_missing(self, session_maker):
        record = ClientUpdate(id=999, client_id="CRM", client_url="https://crm/")
        with pytest.raises(NotFound):
            async with transaction(session_maker, "update client") as session:
                await ClientRegistry(session).update(999, record)

    async def test_update_to_taken_client_id(self, session_maker):
        await create_client(session_maker, client_id="CRM")
        other = await create_client(session_maker, client_id="APP1")

        with pytest.raises(Conflict):
            async with transaction(session_maker, "update client") as session:
                await ClientRegistry(session).update(
                    other.id, update_record(other, client_id="CRM")
                )


class TestDelete:
    async def test_delete(self, session_maker):
        client = await create_client(session_maker)

        async with transaction(session_maker, "delete client") as session:
            await ClientRegistry(session).delete(client.id)

        async with transaction(session_maker, "get client") as session:
            assert await ClientRegistry(session).find(client.id) is None

    async def test_delete_missing(self, session_maker):
        with pytest.raises(NotFound):
            async with transaction(session_maker, "delete client") as session:
                await ClientRegistry(session).delete(999)

    async def test_delete_linked_client_is_rejected(self, session_maker):
        person = await create_person(session_maker)
        client = await create_client(session_maker)
        await create_link(session_maker, person.id, client.id, {"role": "user"})

        with pytest.raises(StorageError):
            async with transaction(session_maker, "delete client") as session:
                await ClientRegistry(session).delete(client.id)

        async with transaction(session_maker, "get client") as session:
            assert await ClientRegistry(session).find(client.id) is not None
