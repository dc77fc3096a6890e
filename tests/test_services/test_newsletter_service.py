# tests/test_services/test_newsletter_service.py

import pytest

from app.core.exceptions import Conflict, InternalFailure, ValidationFailed
from app.services.newsletter_service import send_contact_message, subscribe_newsletter


@pytest.mark.anyio
async def test_subscribe_and_welcome(db_session, outbox):
    result = await subscribe_newsletter(db_session, " Reader@Example.com ")
    assert result["message"] == "Subscribed successfully"
    assert result["data"]["email"] == "reader@example.com"
    assert outbox.of("send_subscription_welcome_email")[0]["args"] == ("reader@example.com",)


@pytest.mark.anyio
async def test_duplicate_subscription(db_session):
    await subscribe_newsletter(db_session, "dup@example.com")
    with pytest.raises(Conflict) as exc:
        await subscribe_newsletter(db_session, "DUP@example.com")
    assert exc.value.status_code == 409
    assert exc.value.message == "You have already subscribed before"


@pytest.mark.anyio
@pytest.mark.parametrize("email, message", [(None, "Email is required"), ("nope", "Please enter a valid email address")])
async def test_subscribe_validation(db_session, email, message):
    with pytest.raises(ValidationFailed) as exc:
        await subscribe_newsletter(db_session, email)
    assert exc.value.message == message


@pytest.mark.anyio
async def test_welcome_failure_still_subscribes(db_session, outbox):
    outbox.fail("send_subscription_welcome_email")
    result = await subscribe_newsletter(db_session, "ok@example.com")
    assert result["message"] == "Subscribed successfully"


@pytest.mark.anyio
async def test_contact_message(outbox):
    result = await send_contact_message("Asha", "asha@example.com", "Hello", "Loved the show")
    assert result == {"message": "Message sent successfully"}
    assert outbox.of("send_contact_email")[0]["args"] == ("Asha", "asha@example.com", "Hello", "Loved the show")


@pytest.mark.anyio
async def test_contact_requires_every_field(outbox):
    with pytest.raises(ValidationFailed) as exc:
        await send_contact_message("Asha", "asha@example.com", " ", "hi")
    assert exc.value.message == "All fields are required"
    assert outbox.sent == []


@pytest.mark.anyio
async def test_contact_delivery_failure(outbox):
    outbox.fail("send_contact_email")
    with pytest.raises(InternalFailure) as exc:
        await send_contact_message("Asha", "asha@example.com", "Hello", "hi")
    assert exc.value.message == "Failed to send message, please try again later."
