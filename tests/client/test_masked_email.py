"""Unit tests for the MaskedEmail sub-client."""

import pytest

from jmap_client import capabilities
from jmap_client._masked_email import AsyncMaskedEmailClient, MaskedEmail, MaskedEmailState
from jmap_client._session import SessionContext
from jmap_client.exceptions import CapabilityError, SetItemError
from tests.fixtures.session import create_account_capabilities, create_session

MASKED_USING = [capabilities.CORE, capabilities.MASKED_EMAIL]


@pytest.fixture
def masked_client(mock_engine, context) -> AsyncMaskedEmailClient:
    return AsyncMaskedEmailClient(mock_engine, context)


class TestMaskedEmailModel:
    """Tests for the MaskedEmail model."""

    def test_state_enum(self) -> None:
        masked = MaskedEmail.model_validate(
            {
                "id": "ME1",
                "email": "abc123@fastmail.com",
                "state": "enabled",
                "forDomain": "https://shop.example.com",
                "lastMessageAt": "2024-02-01T12:00:00Z",
            }
        )
        assert masked.state is MaskedEmailState.ENABLED
        assert masked.for_domain == "https://shop.example.com"

    def test_unknown_state_rejected(self) -> None:
        with pytest.raises(ValueError):
            MaskedEmailState("paused")


class TestMaskedEmailClient:
    """Tests for AsyncMaskedEmailClient."""

    async def test_get_all(self, masked_client, mock_engine) -> None:
        mock_engine.call_method.return_value = {
            "list": [
                {"id": "ME1", "email": "a@fastmail.com", "state": "enabled"},
                {"id": "ME2", "email": "b@fastmail.com", "state": "disabled"},
            ]
        }

        masked = await masked_client.get_all()

        assert [m.state for m in masked] == [MaskedEmailState.ENABLED, MaskedEmailState.DISABLED]
        mock_engine.call_method.assert_called_once_with(
            MASKED_USING,
            "MaskedEmail/get",
            {"accountId": "A1", "ids": None},
        )

    async def test_create(self, masked_client, mock_engine) -> None:
        """The result carries the requested domain and description."""
        mock_engine.call_method.return_value = {
            "created": {"new": {"id": "ME3", "email": "shop.x1@fastmail.com", "state": "pending"}},
        }

        masked = await masked_client.create(
            for_domain="https://shop.example.com",
            description="Shop newsletter",
            email_prefix="shop",
        )

        assert masked.id == "ME3"
        assert masked.email == "shop.x1@fastmail.com"
        assert masked.for_domain == "https://shop.example.com"
        assert masked.description == "Shop newsletter"
        mock_engine.call_method.assert_called_once_with(
            MASKED_USING,
            "MaskedEmail/set",
            {
                "accountId": "A1",
                "create": {
                    "new": {
                        "forDomain": "https://shop.example.com",
                        "description": "Shop newsletter",
                        "emailPrefix": "shop",
                    }
                },
            },
        )

    async def test_create_rejected(self, masked_client, mock_engine) -> None:
        mock_engine.call_method.return_value = {
            "notCreated": {"new": {"type": "invalidProperties", "properties": ["emailPrefix"]}},
        }

        with pytest.raises(SetItemError):
            await masked_client.create(for_domain="x", description="y", email_prefix="!!")

    @pytest.mark.parametrize(
        "method, state",
        [("enable", "enabled"), ("disable", "disabled"), ("delete", "deleted")],
    )
    async def test_state_changes(self, masked_client, mock_engine, method, state) -> None:
        mock_engine.call_method.return_value = {"updated": {"ME1": None}}

        await getattr(masked_client, method)("ME1")

        arguments = mock_engine.call_method.call_args[0][2]
        assert arguments["update"] == {"ME1": {"state": state}}

    async def test_set_state_accepts_string(self, masked_client, mock_engine) -> None:
        mock_engine.call_method.return_value = {"updated": {"ME1": None}}

        await masked_client.set_state("ME1", "pending")

        assert mock_engine.call_method.call_args[0][2]["update"] == {"ME1": {"state": "pending"}}

    async def test_set_state_unknown(self, masked_client, mock_engine) -> None:
        with pytest.raises(ValueError):
            await masked_client.set_state("ME1", "paused")
        mock_engine.call_method.assert_not_called()

    async def test_update(self, masked_client, mock_engine) -> None:
        mock_engine.call_method.return_value = {"updated": {"ME1": None}}

        await masked_client.update("ME1", description="New note", url="https://shop.example.com/me")

        assert mock_engine.call_method.call_args[0][2]["update"] == {
            "ME1": {"description": "New note", "url": "https://shop.example.com/me"}
        }

    async def test_set_updated_with_server_properties(self, masked_client, mock_engine) -> None:
        mock_engine.call_method.return_value = {
            "updated": {"ME1": {"lastMessageAt": "2024-03-01T08:00:00Z"}}
        }

        response = await masked_client.set(update={"ME1": {"state": "disabled"}})

        assert response.updated["ME1"] == {"lastMessageAt": "2024-03-01T08:00:00Z"}
        assert not response.has_errors

    async def test_requires_capability(self, mock_engine) -> None:
        session = create_session(
            account_capabilities=create_account_capabilities(maskedemail=None)
        )
        client = AsyncMaskedEmailClient(mock_engine, SessionContext(session))

        with pytest.raises(CapabilityError):
            await client.get_all()

        mock_engine.call_method.assert_not_called()
