"""Unit tests for the Thread, Identity, EmailSubmission and VacationResponse sub-clients."""

import pytest

from jmap_client import capabilities
from jmap_client._session import SessionContext
from jmap_client._submission import (
    AsyncEmailSubmissionClient,
    AsyncIdentityClient,
    Envelope,
    SubmissionAddress,
)
from jmap_client._thread import AsyncThreadClient
from jmap_client._vacation import AsyncVacationResponseClient
from jmap_client.exceptions import CapabilityError, NotFoundError, SetItemError
from tests.fixtures.session import create_account_capabilities, create_session

SUBMISSION_USING = [capabilities.CORE, capabilities.MAIL, capabilities.SUBMISSION]
VACATION_USING = [capabilities.CORE, capabilities.VACATION_RESPONSE]


# =============================================================================
# Thread
# =============================================================================


class TestThread:
    """Tests for AsyncThreadClient."""

    async def test_get(self, mock_engine, context) -> None:
        mock_engine.call_method.return_value = {
            "list": [{"id": "T1", "emailIds": ["M1", "M2"]}],
            "notFound": [],
        }

        threads = await AsyncThreadClient(mock_engine, context).get(["T1"])

        assert threads[0].email_ids == ["M1", "M2"]
        mock_engine.call_method.assert_called_once_with(
            [capabilities.CORE, capabilities.MAIL],
            "Thread/get",
            {"accountId": "A1", "ids": ["T1"]},
        )


# =============================================================================
# Identity and EmailSubmission
# =============================================================================


class TestIdentity:
    """Tests for AsyncIdentityClient."""

    async def test_get_all(self, mock_engine, context) -> None:
        mock_engine.call_method.return_value = {
            "list": [{"id": "I1", "name": "Alice", "email": "alice@example.com", "mayDelete": False}],
        }

        identities = await AsyncIdentityClient(mock_engine, context).get_all()

        assert identities[0].email == "alice@example.com"
        assert mock_engine.call_method.call_args[0][0] == SUBMISSION_USING

    async def test_requires_submission(self, mock_engine) -> None:
        session = create_session(
            account_capabilities=create_account_capabilities(submission=None)
        )
        client = AsyncIdentityClient(mock_engine, SessionContext(session))

        with pytest.raises(CapabilityError) as exc_info:
            await client.get_all()

        assert exc_info.value.capability == capabilities.SUBMISSION
        mock_engine.call_method.assert_not_called()


class TestEmailSubmission:
    """Tests for AsyncEmailSubmissionClient."""

    async def test_create(self, mock_engine, context) -> None:
        mock_engine.call_method.return_value = {
            "created": {"sub": {"id": "S1", "undoStatus": "pending"}},
        }
        envelope = Envelope(
            mail_from=SubmissionAddress(email="alice@example.com"),
            rcpt_to=[SubmissionAddress(email="bob@example.com")],
        )

        submission = await AsyncEmailSubmissionClient(mock_engine, context).create(
            "I1",
            "M1",
            envelope=envelope,
            on_success_update_email={"#sub": {"keywords/$draft": None}},
        )

        assert submission.id == "S1"
        assert submission.undo_status == "pending"
        mock_engine.call_method.assert_called_once_with(
            SUBMISSION_USING,
            "EmailSubmission/set",
            {
                "accountId": "A1",
                "create": {
                    "sub": {
                        "identityId": "I1",
                        "emailId": "M1",
                        "envelope": {
                            "mailFrom": {"email": "alice@example.com"},
                            "rcptTo": [{"email": "bob@example.com"}],
                        },
                    }
                },
                "onSuccessUpdateEmail": {"#sub": {"keywords/$draft": None}},
            },
        )

    async def test_cancel(self, mock_engine, context) -> None:
        mock_engine.call_method.return_value = {"updated": {"S1": None}}

        await AsyncEmailSubmissionClient(mock_engine, context).cancel("S1")

        arguments = mock_engine.call_method.call_args[0][2]
        assert arguments["update"] == {"S1": {"undoStatus": "canceled"}}

    async def test_cancel_too_late(self, mock_engine, context) -> None:
        mock_engine.call_method.return_value = {
            "notUpdated": {"S1": {"type": "cannotUnsend"}},
        }

        with pytest.raises(SetItemError) as exc_info:
            await AsyncEmailSubmissionClient(mock_engine, context).cancel("S1")

        assert exc_info.value.error_type == "cannotUnsend"


# =============================================================================
# VacationResponse
# =============================================================================


class TestVacationResponse:
    """Tests for AsyncVacationResponseClient."""

    async def test_get(self, mock_engine, context) -> None:
        mock_engine.call_method.return_value = {
            "list": [{"id": "singleton", "isEnabled": True, "subject": "Away"}],
        }

        vacation = await AsyncVacationResponseClient(mock_engine, context).get()

        assert vacation.is_enabled
        assert vacation.subject == "Away"
        mock_engine.call_method.assert_called_once_with(
            VACATION_USING,
            "VacationResponse/get",
            {"accountId": "A1", "ids": ["singleton"]},
        )

    async def test_get_missing(self, mock_engine, context) -> None:
        mock_engine.call_method.return_value = {"list": [], "notFound": ["singleton"]}

        with pytest.raises(NotFoundError):
            await AsyncVacationResponseClient(mock_engine, context).get()

    async def test_update(self, mock_engine, context) -> None:
        mock_engine.call_method.return_value = {"updated": {"singleton": None}}

        await AsyncVacationResponseClient(mock_engine, context).update(
            is_enabled=False,
            text_body="Back Monday",
        )

        arguments = mock_engine.call_method.call_args[0][2]
        assert arguments["update"] == {
            "singleton": {"isEnabled": False, "textBody": "Back Monday"}
        }
