from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from judgearena.engine.errors import AlreadyLoggedIn, AuthenticationError
from judgearena.models.models import Identity, Role


def test_admin_login(services) -> None:
    identity, token = services.sessions.login("admin", "admin-pass", "admin")
    assert identity == Identity("admin", Role.ADMIN)
    assert services.sessions.verify_token(token) == identity


def test_admin_wrong_password(services) -> None:
    with pytest.raises(AuthenticationError):
        services.sessions.login("admin", "nope", "admin")


def test_participant_first_login_registers(services) -> None:
    identity, _ = services.sessions.login("alice", "contest", "participant")
    assert identity.role == Role.PARTICIPANT
    alice = services.storage.get_participant("alice")
    assert (alice.score, alice.unlock_index, alice.is_logged_in) == (0, 1, True)


def test_concurrent_login_is_blocked(services) -> None:
    services.sessions.login("alice", "contest", "participant")
    with pytest.raises(AlreadyLoggedIn):
        services.sessions.login("alice", "contest", "participant")


def test_relogin_after_logout_keeps_progress(services) -> None:
    services.sessions.login("alice", "contest", "participant")
    services.storage.advance_participant("alice", 1, 100)
    assert services.sessions.logout("alice") is True

    services.sessions.login("alice", "contest", "participant")
    alice = services.storage.get_participant("alice")
    assert (alice.score, alice.is_logged_in) == (100, True)


def test_participant_requires_name_and_password(services) -> None:
    with pytest.raises(AuthenticationError):
        services.sessions.login("", "contest", "participant")
    with pytest.raises(AuthenticationError):
        services.sessions.login("alice", "wrong", "participant")
    with pytest.raises(AuthenticationError):
        services.sessions.login("alice", "contest", "judge")


def test_session_ends_with_logout_or_kick(services) -> None:
    identity, _ = services.sessions.login("alice", "contest", "participant")
    assert services.sessions.is_session_active(identity)

    services.sessions.logout("alice")
    assert not services.sessions.is_session_active(identity)

    services.sessions.login("alice", "contest", "participant")
    services.ledger.kick("alice", actor="admin")
    assert not services.sessions.is_session_active(identity)


def test_tampered_and_expired_tokens_are_rejected(services) -> None:
    with pytest.raises(AuthenticationError):
        services.sessions.verify_token("not-a-token")

    forged = jwt.encode({"sub": "admin", "role": "admin"}, "other-secret", algorithm="HS256")
    with pytest.raises(AuthenticationError):
        services.sessions.verify_token(forged)

    expired = jwt.encode(
        {"sub": "admin", "role": "admin", "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
        "test-secret",
        algorithm="HS256",
    )
    with pytest.raises(AuthenticationError):
        services.sessions.verify_token(expired)
