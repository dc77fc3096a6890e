# tests/test_api/test_account_deletion_routes.py

"""
/api/users/delete-otp and /api/users/delete end to end: OTP issuance,
throttling, dispatch failures, validation order, and the full cascade.
"""

from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select, update

from app.db.base_class import utcnow
from app.db.models.otp import OTP
from app.db.models.podcast import Podcast
from app.db.models.user import User
from app.schemas.enums import DeletionStep
from app.services import account_deletion_service

OTP_URL = "/api/users/delete-otp"
DELETE_URL = "/api/users/delete"
REASON = {"reason": "moving on"}


async def _count(db, model, *criteria):
    return (await db.execute(select(func.count()).select_from(model).where(*criteria))).scalar_one()


async def _delete(client: AsyncClient, headers, body=None):
    return await client.request("DELETE", DELETE_URL, json=body, headers=headers)


# ─────────────────────────────────────────────────────────────
# /api/users/delete-otp
# ─────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_delete_otp_sends_code(async_client, user_with_headers, outbox, db_session):
    user, headers = await user_with_headers()

    resp = await async_client.post(OTP_URL, json=REASON, headers=headers)

    assert resp.status_code == 200
    assert resp.json() == {"message": "OTP sent to your email"}
    assert "no-store" in resp.headers["Cache-Control"]
    [mail] = outbox.of("send_delete_otp_email")
    assert mail["args"][0] == user.email
    assert len(mail["args"][1]) == 6
    assert await _count(db_session, OTP, OTP.user_id == user.id, OTP.purpose == "delete_account") == 1


@pytest.mark.anyio
async def test_delete_otp_requires_token(async_client):
    resp = await async_client.post(OTP_URL)
    assert resp.status_code == 401
    assert resp.json()["kind"] == "auth_error"


@pytest.mark.anyio
@pytest.mark.parametrize("body", [None, {}, {"reason": ""}, {"reason": "   "}])
async def test_delete_otp_requires_reason(async_client, user_with_headers, outbox, db_session, redis_client, body):
    user, headers = await user_with_headers()
    user_id = user.id

    resp = await async_client.post(OTP_URL, json=body, headers=headers)

    assert resp.status_code == 400
    assert resp.json()["message"] == "Please provide a reason"
    assert resp.json()["kind"] == "validation_error"
    assert outbox.of("send_delete_otp_email") == []
    assert await _count(db_session, OTP, OTP.user_id == user_id) == 0
    assert await redis_client.get(f"rate-limit:delete-otp:{user_id}") is None


@pytest.mark.anyio
async def test_delete_otp_rejects_bad_token(async_client):
    resp = await async_client.post(OTP_URL, json=REASON, headers={"Authorization": "Bearer not.a.jwt"})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Not authorized, token failed"


@pytest.mark.anyio
async def test_delete_otp_is_throttled(async_client, user_with_headers):
    _, headers = await user_with_headers()
    for _ in range(3):
        assert (await async_client.post(OTP_URL, json=REASON, headers=headers)).status_code == 200

    resp = await async_client.post(OTP_URL, json=REASON, headers=headers)
    assert resp.status_code == 429
    assert resp.json()["code"] == "rate_limited"


@pytest.mark.anyio
async def test_delete_otp_dispatch_failure(async_client, user_with_headers, outbox, db_session):
    user, headers = await user_with_headers()
    user_id = user.id
    outbox.fail("send_delete_otp_email")

    resp = await async_client.post(OTP_URL, json=REASON, headers=headers)

    assert resp.status_code == 500
    assert resp.json()["message"] == "Failed to send OTP"
    assert resp.json()["kind"] == "internal_error"
    assert await _count(db_session, OTP, OTP.user_id == user_id) == 0


# ─────────────────────────────────────────────────────────────
# /api/users/delete
# ─────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_delete_account_happy_path(
    async_client, user_with_headers, create_test_podcast, outbox, db_session
):
    user, headers = await user_with_headers(username="leaver", phone="555-0100")
    user_id = user.id
    await create_test_podcast(owner=user, title="Mine", audio_url="https://cdn.example.com/a.mp3")

    await async_client.post(OTP_URL, json=REASON, headers=headers)
    code = outbox.last_otp("send_delete_otp_email")

    resp = await _delete(async_client, headers, {"otp": code, "reason": "moving on"})

    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["message"] == "Account, uploaded content, and data deleted successfully"
    assert body["job_id"]
    assert await _count(db_session, User, User.id == user_id) == 0
    assert await _count(db_session, Podcast) == 0

    [notice] = outbox.of("send_account_deleted_notification")
    assert notice["args"][0]["username"] == "leaver"
    assert notice["args"][1] == "moving on"

    # The token now points at nobody.
    resp = await async_client.post(OTP_URL, json=REASON, headers=headers)
    assert resp.status_code == 401


@pytest.mark.anyio
@pytest.mark.parametrize("body", [None, {}, {"otp": "123456"}, {"reason": "bye"}, {"otp": "", "reason": "bye"}])
async def test_delete_account_missing_fields(async_client, user_with_headers, db_session, body):
    user, headers = await user_with_headers()
    user_id = user.id

    resp = await _delete(async_client, headers, body)

    assert resp.status_code == 400
    assert resp.json()["message"] == "Please provide OTP and reason"
    assert resp.json()["kind"] == "validation_error"
    assert await _count(db_session, User, User.id == user_id) == 1


@pytest.mark.anyio
async def test_delete_account_wrong_otp(async_client, user_with_headers, outbox, db_session):
    user, headers = await user_with_headers()
    user_id = user.id
    await async_client.post(OTP_URL, json=REASON, headers=headers)
    code = outbox.last_otp("send_delete_otp_email")
    wrong = "000000" if code != "000000" else "999999"

    resp = await _delete(async_client, headers, {"otp": wrong, "reason": "bye"})

    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid or expired OTP"
    assert resp.json()["code"] == "otp_invalid"
    assert await _count(db_session, User, User.id == user_id) == 1


@pytest.mark.anyio
async def test_delete_account_expired_otp(async_client, user_with_headers, outbox, db_session):
    user, headers = await user_with_headers()
    user_id = user.id
    await async_client.post(OTP_URL, json=REASON, headers=headers)
    code = outbox.last_otp("send_delete_otp_email")
    await db_session.execute(
        update(OTP).where(OTP.user_id == user_id).values(expires_at=utcnow() - timedelta(seconds=5))
    )
    await db_session.commit()

    resp = await _delete(async_client, headers, {"otp": code, "reason": "bye"})

    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid or expired OTP"
    assert resp.json()["code"] == "otp_expired"


@pytest.mark.anyio
async def test_new_otp_replaces_old_one(async_client, user_with_headers, outbox):
    _, headers = await user_with_headers()
    await async_client.post(OTP_URL, json=REASON, headers=headers)
    first = outbox.last_otp("send_delete_otp_email")
    await async_client.post(OTP_URL, json=REASON, headers=headers)
    second = outbox.last_otp("send_delete_otp_email")

    if first != second:
        resp = await _delete(async_client, headers, {"otp": first, "reason": "bye"})
        assert resp.status_code == 400

    resp = await _delete(async_client, headers, {"otp": second, "reason": "bye"})
    assert resp.status_code == 200


@pytest.mark.anyio
async def test_delete_account_unexpected_failure(
    async_client, user_with_headers, outbox, db_session, monkeypatch
):
    user, headers = await user_with_headers()
    user_id = user.id

    async def crash(db, job, **_):
        raise RuntimeError("boom")

    monkeypatch.setitem(account_deletion_service._STEP_HANDLERS, DeletionStep.DELETE_USER, crash)
    await async_client.post(OTP_URL, json=REASON, headers=headers)
    code = outbox.last_otp("send_delete_otp_email")

    resp = await _delete(async_client, headers, {"otp": code, "reason": "bye"})

    assert resp.status_code == 500
    assert resp.json()["message"] == "Failed to delete account"
    assert resp.json()["kind"] == "internal_error"
    assert await _count(db_session, User, User.id == user_id) == 1
