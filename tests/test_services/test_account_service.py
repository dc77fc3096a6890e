# tests/test_services/test_account_service.py

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from app.core.exceptions import AuthFailed, Conflict, NotFound
from app.core.security import decode_access_token, verify_password
from app.db.models.library import HistoryEntry
from app.db.models.user import User
from app.services import account_service, interaction_service
from app.services.otp_service import InvalidOtpCode
from app.utils.redis_utils import RateLimited


# ─────────────────────────────────────────────────────────────
# 📝 Registration
# ─────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_register_then_verify(db_session, outbox):
    body, created = await account_service.register(
        db_session, username="ravi", email=" Ravi@Example.com ", password="secret1", phone="99999"
    )
    assert created is True
    assert body == {"message": "OTP sent to email", "email": "ravi@example.com"}

    user = (await db_session.execute(select(User).where(User.email == "ravi@example.com"))).scalar_one()
    assert user.is_verified is False

    code = outbox.last_otp(email="ravi@example.com")
    payload = await account_service.verify_registration(db_session, "ravi@example.com", code)

    assert payload["isVerified"] is True
    assert payload["username"] == "ravi"
    assert decode_access_token(payload["token"])["sub"] == str(user.id)


@pytest.mark.anyio
async def test_reregister_unverified_refreshes_account(db_session, outbox):
    await account_service.register(db_session, username="first", email="a@example.com", password="secret1")
    body, created = await account_service.register(
        db_session, username="second", email="a@example.com", password="secret2"
    )

    assert created is False
    users = (await db_session.execute(select(User).where(User.email == "a@example.com"))).scalars().all()
    assert len(users) == 1
    assert users[0].username == "second"
    assert verify_password("secret2", users[0].hashed_password)
    assert len(outbox.of("send_otp_email")) == 2


@pytest.mark.anyio
async def test_register_verified_email_conflicts(db_session, create_test_user):
    await create_test_user(email="taken@example.com")
    with pytest.raises(Conflict) as exc:
        await account_service.register(db_session, username="x", email="taken@example.com", password="secret1")
    assert exc.value.status_code == 400
    assert exc.value.message == "User already exists"


@pytest.mark.anyio
async def test_register_otp_is_throttled(db_session):
    for _ in range(3):
        await account_service.register(db_session, username="x", email="spam@example.com", password="secret1")
    with pytest.raises(RateLimited):
        await account_service.register(db_session, username="x", email="spam@example.com", password="secret1")


@pytest.mark.anyio
async def test_verify_with_wrong_code(db_session, outbox):
    await account_service.register(db_session, username="x", email="w@example.com", password="secret1")
    code = outbox.last_otp()
    wrong = "000000" if code != "000000" else "111111"
    with pytest.raises(InvalidOtpCode):
        await account_service.verify_registration(db_session, "w@example.com", wrong)


@pytest.mark.anyio
async def test_verify_unknown_email(db_session):
    with pytest.raises(NotFound):
        await account_service.verify_registration(db_session, "nobody@example.com", "123456")


# ─────────────────────────────────────────────────────────────
# 🔐 Login / passwords
# ─────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_login(db_session, create_test_user):
    user = await create_test_user(email="l@example.com", password="pw123456")
    payload = await account_service.login(db_session, "L@example.com", "pw123456")
    assert payload["id"] == user.id
    assert payload["token"]


@pytest.mark.anyio
@pytest.mark.parametrize("email, password", [("l@example.com", "nope"), ("missing@example.com", "pw123456")])
async def test_login_bad_credentials(db_session, create_test_user, email, password):
    await create_test_user(email="l@example.com", password="pw123456")
    with pytest.raises(AuthFailed) as exc:
        await account_service.login(db_session, email, password)
    assert exc.value.message == "Invalid email or password"


@pytest.mark.anyio
async def test_login_unverified(db_session, create_test_user):
    await create_test_user(email="u@example.com", password="pw123456", is_verified=False)
    with pytest.raises(AuthFailed) as exc:
        await account_service.login(db_session, "u@example.com", "pw123456")
    assert exc.value.code == "email_unverified"


@pytest.mark.anyio
async def test_change_password(db_session, create_test_user):
    user = await create_test_user(password="old-pass")
    with pytest.raises(AuthFailed):
        await account_service.change_password(db_session, user, "wrong", "new-pass")

    result = await account_service.change_password(db_session, user, "old-pass", "new-pass")
    assert result == {"message": "Password updated successfully"}
    assert verify_password("new-pass", user.hashed_password)


@pytest.mark.anyio
async def test_password_reset_flow(db_session, create_test_user, outbox):
    user = await create_test_user(email="r@example.com", password="old-pass")

    body = await account_service.request_password_reset(db_session, "r@example.com")
    assert body["email"] == "r@example.com"

    code = outbox.last_otp(email="r@example.com")
    result = await account_service.reset_password(db_session, "r@example.com", code, "brand-new")
    assert "Password updated successfully" in result["message"]
    assert verify_password("brand-new", user.hashed_password)

    # Single use
    with pytest.raises(InvalidOtpCode):
        await account_service.reset_password(db_session, "r@example.com", code, "again-new")


# ─────────────────────────────────────────────────────────────
# 👤 Profiles, library, history
# ─────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_profile_lists_likes_library_history(db_session, create_test_user, create_test_podcast):
    user = await create_test_user()
    creator = await create_test_user()
    liked = await create_test_podcast(legacy_id="1", title="Liked")
    saved = await create_test_podcast(owner=creator, title="Saved", episodes=[{"title": "Pilot"}])

    await interaction_service.toggle_like(db_session, "1", user.id)
    await account_service.toggle_library(db_session, user, str(saved.id))
    await account_service.record_history(db_session, user, "1", 30)
    await interaction_service.toggle_subscribe(db_session, user.id, str(creator.id))

    profile = await account_service.get_profile(db_session, user)

    assert [p["id"] for p in profile["likedPodcasts"]] == ["1"]
    assert profile["likedPodcasts"][0]["uuid"] == str(liked.id)
    assert [p["title"] for p in profile["library"]] == ["Saved"]
    assert profile["library"][0]["episodes"][0]["title"] == "Pilot"
    assert profile["history"][0]["podcastId"] == "1"
    assert profile["history"][0]["progress"] == 30
    assert profile["history"][0]["podcast"]["title"] == "Liked"
    assert profile["subscribedTo"] == [str(creator.id)]
    assert profile["subscribersCount"] == 0


@pytest.mark.anyio
async def test_public_profile(db_session, create_test_user, create_test_podcast):
    creator = await create_test_user(username="maker")
    await create_test_podcast(owner=creator, title="Show")

    result = await account_service.get_public_profile(db_session, str(creator.id))
    assert result["user"]["username"] == "maker"
    assert result["user"]["subscribersCount"] == 0
    assert [p["title"] for p in result["podcasts"]] == ["Show"]

    with pytest.raises(NotFound):
        await account_service.get_public_profile(db_session, "garbage")


@pytest.mark.anyio
async def test_library_toggle(db_session, create_test_user, create_test_podcast):
    user = await create_test_user()
    await create_test_podcast(legacy_id="1")
    await create_test_podcast(legacy_id="2")

    assert await account_service.toggle_library(db_session, user, "1") == ["1"]
    assert await account_service.toggle_library(db_session, user, "2") == ["1", "2"]
    assert await account_service.toggle_library(db_session, user, "1") == ["2"]

    with pytest.raises(NotFound):
        await account_service.toggle_library(db_session, user, "404")


@pytest.mark.anyio
async def test_history_moves_replayed_to_top_and_is_capped(db_session, create_test_user, create_test_podcast, monkeypatch):
    monkeypatch.setattr(account_service, "HISTORY_LIMIT", 2)
    user = await create_test_user()
    for legacy in ("1", "2", "3"):
        await create_test_podcast(legacy_id=legacy)

    await account_service.record_history(db_session, user, "1")
    await account_service.record_history(db_session, user, "2")
    history = await account_service.record_history(db_session, user, "1", 12)
    assert [h["podcastId"] for h in history] == ["1", "2"]
    assert history[0]["progress"] == 12

    history = await account_service.record_history(db_session, user, "3")
    assert [h["podcastId"] for h in history] == ["3", "1"]
    count = (
        await db_session.execute(select(func.count()).select_from(HistoryEntry).where(HistoryEntry.user_id == user.id))
    ).scalar_one()
    assert count == 2


@pytest.mark.anyio
async def test_history_concurrent_duplicate_keeps_existing_entry(
    db_session, create_test_user, create_test_podcast, monkeypatch
):
    user = await create_test_user()
    await create_test_podcast(legacy_id="1")
    await account_service.record_history(db_session, user, "1", 10)

    async def _unique_violation(*args, **kwargs):
        raise IntegrityError("INSERT INTO history_entries", {}, Exception("UNIQUE constraint failed"))

    monkeypatch.setattr(db_session, "flush", _unique_violation)
    history = await account_service.record_history(db_session, user, "1", 99)

    assert [(h["podcastId"], h["progress"]) for h in history] == [("1", 10)]
